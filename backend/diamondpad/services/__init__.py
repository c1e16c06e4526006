"""Engine services.

- staking: tier classification, Strong Holder Score, stake ledger
- allocation: launch pools, distribution algorithms, vesting
- launchpad: wires both managers around one shared ledger
"""

"""DiamondPad allocation engine.

Off-chain planning core for token launches: staking tiers, allocation
pools and vesting schedules.
"""

__version__ = "0.1.0"

"""Staking tiers and Strong Holder Score."""

from diamondpad.services.staking.scoring import (
    compute_shs,
    effective_weight,
    shs_multiplier,
    tier_for_stake,
    upgrade_hint,
)
from diamondpad.services.staking.tier_manager import (
    StakingTierManager,
    UnstakeResult,
    WalletSnapshot,
)

__all__ = [
    "compute_shs",
    "effective_weight",
    "shs_multiplier",
    "tier_for_stake",
    "upgrade_hint",
    "StakingTierManager",
    "UnstakeResult",
    "WalletSnapshot",
]

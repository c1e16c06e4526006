"""Pydantic schemas."""

from diamondpad.schemas.staking import (
    HoldHistory,
    PositionView,
    StakingOverview,
    TierBenefits,
    TierSimulation,
    TierStat,
)

__all__ = [
    "HoldHistory",
    "PositionView",
    "StakingOverview",
    "TierBenefits",
    "TierSimulation",
    "TierStat",
]

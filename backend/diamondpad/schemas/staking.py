"""Staking input and read models."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from diamondpad.models.staking import Tier


class HoldHistory(BaseModel):
    """A wallet's holding behaviour across past launches."""
    hold_duration: Decimal = Field(default=Decimal("0"), ge=0, description="Average days held")
    launches_participated: int = Field(default=0, ge=0)
    launches_held_long: int = Field(default=0, ge=0, description="Launches held 30+ days")
    quick_flips: int = Field(default=0, ge=0, description="Launches sold within 24h")
    lp_provided: bool = False
    governance_votes: int = Field(default=0, ge=0)


class TierBenefits(BaseModel):
    """What a tier grants."""
    allocation_weight: Decimal
    guaranteed_allocation: bool
    lottery_boost: Decimal
    fee_discount: Decimal
    priority_access: bool
    max_allocation_percent: Decimal


class PositionView(BaseModel):
    """A staker position with derived lock information."""
    wallet: str
    staked_amount: Decimal
    staked_at: datetime
    lock_end_date: datetime
    tier: Tier
    tier_name: str
    strong_holder_score: Decimal
    effective_weight: Decimal
    total_allocations_received: int
    total_allocations_value: Decimal
    loyalty_streak: int
    days_remaining: int
    can_unstake_without_penalty: bool
    benefits: TierBenefits


class TierStat(BaseModel):
    """Aggregate figures for one tier."""
    tier: Tier
    count: int
    total_staked: Decimal
    avg_shs: Decimal
    percent_of_total: Decimal = Decimal("0")


class StakingOverview(BaseModel):
    """Ledger-wide staking figures."""
    total_staked: Decimal
    total_stakers: int
    avg_stake_size: Decimal
    by_tier: List[TierStat]


class TierSimulation(BaseModel):
    """Preview of the tier and weight a stake would earn."""
    stake_amount: Decimal
    lock_days: int
    tier: Tier
    tier_name: str
    strong_holder_score: Decimal
    shs_multiplier: Decimal
    base_weight: Decimal
    effective_weight: Decimal
    benefits: TierBenefits
    upgrade_hint: Optional[str] = None

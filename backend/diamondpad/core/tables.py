"""Static tier, pool and vesting tables.

These are fixed at process start. Tier thresholds:
- Diamond: 100k tokens, 180 day lock, 10x weight
- Gold:    50k tokens, 90 day lock, 5x weight
- Silver:  20k tokens, 60 day lock, 2.5x weight
- Bronze:  5k tokens, 30 day lock, 1x weight
- Public:  no stake, 0.25x weight
"""

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from diamondpad.models.allocation import Mechanism, PoolName
from diamondpad.models.staking import Tier


class TierConfig(BaseModel):
    """Benefits and thresholds of a staking tier."""
    model_config = ConfigDict(frozen=True)

    name: str
    min_stake: Decimal
    lock_days: int
    allocation_weight: Decimal
    guaranteed_allocation: bool
    lottery_boost: Decimal
    fee_discount: Decimal
    priority_access: bool
    max_allocation_percent: Decimal


class PoolConfig(BaseModel):
    """Rules of an allocation pool."""
    model_config = ConfigDict(frozen=True)

    name: str
    percent: int = Field(ge=0, le=100)
    requires_staking: bool
    min_tier: Optional[Tier] = None
    max_per_wallet: Decimal  # USD
    mechanism: Mechanism
    vesting_days: int = 0
    exit_fee: Decimal = Decimal("0")


class VestingRule(BaseModel):
    """Vesting terms for awards up to max_usd (None = unbounded)."""
    model_config = ConfigDict(frozen=True)

    max_usd: Optional[Decimal]
    cliff_days: int
    vesting_days: int
    tge_percent: int

    def covers(self, amount_usd: Decimal) -> bool:
        return self.max_usd is None or amount_usd <= self.max_usd


TIER_CONFIG: Dict[Tier, TierConfig] = {
    Tier.DIAMOND: TierConfig(
        name="Diamond",
        min_stake=Decimal("100000"),
        lock_days=180,
        allocation_weight=Decimal("10"),
        guaranteed_allocation=True,
        lottery_boost=Decimal("5.0"),
        fee_discount=Decimal("0.6"),
        priority_access=True,
        max_allocation_percent=Decimal("5"),
    ),
    Tier.GOLD: TierConfig(
        name="Gold",
        min_stake=Decimal("50000"),
        lock_days=90,
        allocation_weight=Decimal("5"),
        guaranteed_allocation=True,
        lottery_boost=Decimal("3.0"),
        fee_discount=Decimal("0.4"),
        priority_access=True,
        max_allocation_percent=Decimal("3"),
    ),
    Tier.SILVER: TierConfig(
        name="Silver",
        min_stake=Decimal("20000"),
        lock_days=60,
        allocation_weight=Decimal("2.5"),
        guaranteed_allocation=False,
        lottery_boost=Decimal("2.0"),
        fee_discount=Decimal("0.25"),
        priority_access=False,
        max_allocation_percent=Decimal("2"),
    ),
    Tier.BRONZE: TierConfig(
        name="Bronze",
        min_stake=Decimal("5000"),
        lock_days=30,
        allocation_weight=Decimal("1"),
        guaranteed_allocation=False,
        lottery_boost=Decimal("1.5"),
        fee_discount=Decimal("0.1"),
        priority_access=False,
        max_allocation_percent=Decimal("1"),
    ),
    Tier.PUBLIC: TierConfig(
        name="Public",
        min_stake=Decimal("0"),
        lock_days=0,
        allocation_weight=Decimal("0.25"),
        guaranteed_allocation=False,
        lottery_boost=Decimal("1.0"),
        fee_discount=Decimal("0"),
        priority_access=False,
        max_allocation_percent=Decimal("0.5"),
    ),
}

# Lowest to highest, used for minimum-tier gates
TIER_ORDER: List[Tier] = [Tier.PUBLIC, Tier.BRONZE, Tier.SILVER, Tier.GOLD, Tier.DIAMOND]


POOL_CONFIG: Dict[PoolName, PoolConfig] = {
    PoolName.GUARANTEED: PoolConfig(
        name="Guaranteed Allocation",
        percent=30,
        requires_staking=True,
        min_tier=Tier.GOLD,
        max_per_wallet=Decimal("25000"),
        mechanism=Mechanism.PRORATA,
    ),
    PoolName.WEIGHTED_LOTTERY: PoolConfig(
        name="Weighted Lottery",
        percent=25,
        requires_staking=True,
        min_tier=Tier.BRONZE,
        max_per_wallet=Decimal("5000"),
        mechanism=Mechanism.LOTTERY,
    ),
    PoolName.PUBLIC_LOTTERY: PoolConfig(
        name="Public Lottery",
        percent=10,
        requires_staking=False,
        max_per_wallet=Decimal("500"),
        mechanism=Mechanism.LOTTERY,
    ),
    PoolName.FCFS: PoolConfig(
        name="First Come First Serve",
        percent=5,
        requires_staking=False,
        max_per_wallet=Decimal("100"),
        mechanism=Mechanism.FCFS,
    ),
    PoolName.FLIPPER: PoolConfig(
        name="Flipper Pool",
        percent=5,
        requires_staking=False,
        max_per_wallet=Decimal("200"),
        mechanism=Mechanism.LOTTERY,
        exit_fee=Decimal("0.05"),  # within 24h
    ),
    PoolName.LIQUIDITY: PoolConfig(
        name="Liquidity Reserve",
        percent=15,
        requires_staking=False,
        max_per_wallet=Decimal("0"),
        mechanism=Mechanism.AUTO,
        vesting_days=365,
    ),
    PoolName.TRADER_REWARDS: PoolConfig(
        name="Trader Rewards",
        percent=10,
        requires_staking=False,
        max_per_wallet=Decimal("0"),
        mechanism=Mechanism.AUTO,
        vesting_days=30,
    ),
}

# Participant-driven pools in execution order
DISTRIBUTION_ORDER: List[PoolName] = [
    PoolName.GUARANTEED,
    PoolName.WEIGHTED_LOTTERY,
    PoolName.PUBLIC_LOTTERY,
    PoolName.FLIPPER,
    PoolName.FCFS,
]

AUTO_POOLS: List[PoolName] = [PoolName.LIQUIDITY, PoolName.TRADER_REWARDS]


# Ascending by max_usd; the first rule that covers an amount applies
VESTING_RULES: List[VestingRule] = [
    VestingRule(max_usd=Decimal("500"), cliff_days=0, vesting_days=0, tge_percent=100),
    VestingRule(max_usd=Decimal("2000"), cliff_days=0, vesting_days=30, tge_percent=50),
    VestingRule(max_usd=Decimal("10000"), cliff_days=7, vesting_days=60, tge_percent=25),
    VestingRule(max_usd=None, cliff_days=14, vesting_days=90, tge_percent=20),
]


def tier_rank(tier: Tier) -> int:
    """Position of a tier in TIER_ORDER (public = 0)."""
    return TIER_ORDER.index(tier)


def validate_pool_table(pools: Optional[Dict[PoolName, PoolConfig]] = None) -> None:
    """Raise ValueError unless every pool is configured and percents sum to 100."""
    pools = POOL_CONFIG if pools is None else pools
    missing = [name.value for name in PoolName if name not in pools]
    if missing:
        raise ValueError(f"Pool table missing pools: {', '.join(missing)}")
    total = sum(cfg.percent for cfg in pools.values())
    if total != 100:
        raise ValueError(f"Pool percents must sum to 100, got {total}")

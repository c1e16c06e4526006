"""Tier classification and Strong Holder Score (SHS) math.

Pure functions with no ledger access:
- tier_for_stake: highest tier whose stake AND lock minimums are both met
- compute_shs: memoryless 0-100 score from hold history
- shs_multiplier: SHS 0-100 mapped linearly to 0.5x-2.0x
- effective_weight: tier weight x SHS multiplier
"""

from decimal import Decimal
from typing import Dict, Optional

from diamondpad.core.tables import TIER_CONFIG, TIER_ORDER, TierConfig, tier_rank
from diamondpad.models.staking import Tier
from diamondpad.schemas.staking import HoldHistory, TierBenefits

SHS_BASE = Decimal("50")
SHS_MIN = Decimal("0")
SHS_MAX = Decimal("100")
SHS_MIN_MULTIPLIER = Decimal("0.5")
SHS_MAX_MULTIPLIER = Decimal("2.0")

# Score components
HOLD_FULL_CREDIT_DAYS = Decimal("90")
HOLD_POINTS = Decimal("40")
LOYALTY_POINTS = Decimal("20")
FLIP_PENALTY_POINTS = Decimal("30")
LP_BONUS_POINTS = Decimal("10")
GOVERNANCE_VOTE_CAP = 5

ONE = Decimal("1")


def tier_for_stake(
    amount: Decimal,
    lock_days: int,
    tiers: Optional[Dict[Tier, TierConfig]] = None,
) -> Tier:
    """Return the highest tier reached by both amount and lock_days."""
    tiers = tiers or TIER_CONFIG
    for tier in reversed(TIER_ORDER):
        if tier == Tier.PUBLIC:
            break
        cfg = tiers[tier]
        if amount >= cfg.min_stake and lock_days >= cfg.lock_days:
            return tier
    return Tier.PUBLIC


def clamp_shs(score: Decimal) -> Decimal:
    return max(SHS_MIN, min(SHS_MAX, score))


def compute_shs(history: HoldHistory) -> Decimal:
    """Compute the Strong Holder Score for a hold history.

    Starts at 50, adds up to 40 for hold duration (full credit at 90 days),
    up to 20 for the share of launches held long, subtracts up to 30 for
    the share of quick flips, adds 10 for providing liquidity and 1 per
    governance vote (max 5). The result is clamped to [0, 100].
    """
    participated = Decimal(max(history.launches_participated, 1))

    hold_ratio = min(history.hold_duration / HOLD_FULL_CREDIT_DAYS, ONE)
    loyalty_ratio = min(Decimal(history.launches_held_long) / participated, ONE)
    flip_ratio = min(Decimal(history.quick_flips) / participated, ONE)

    score = SHS_BASE
    score += hold_ratio * HOLD_POINTS
    score += loyalty_ratio * LOYALTY_POINTS
    score -= flip_ratio * FLIP_PENALTY_POINTS
    if history.lp_provided:
        score += LP_BONUS_POINTS
    score += Decimal(min(history.governance_votes, GOVERNANCE_VOTE_CAP))

    return clamp_shs(score)


def shs_multiplier(
    shs: Decimal,
    min_multiplier: Decimal = SHS_MIN_MULTIPLIER,
    max_multiplier: Decimal = SHS_MAX_MULTIPLIER,
) -> Decimal:
    """Map SHS 0-100 linearly onto [min_multiplier, max_multiplier]."""
    normalized = clamp_shs(Decimal(shs)) / SHS_MAX
    return min_multiplier + normalized * (max_multiplier - min_multiplier)


def effective_weight(
    tier: Tier,
    shs: Decimal,
    min_multiplier: Decimal = SHS_MIN_MULTIPLIER,
    max_multiplier: Decimal = SHS_MAX_MULTIPLIER,
) -> Decimal:
    return TIER_CONFIG[tier].allocation_weight * shs_multiplier(shs, min_multiplier, max_multiplier)


def tier_benefits(tier: Tier) -> TierBenefits:
    cfg = TIER_CONFIG[tier]
    return TierBenefits(
        allocation_weight=cfg.allocation_weight,
        guaranteed_allocation=cfg.guaranteed_allocation,
        lottery_boost=cfg.lottery_boost,
        fee_discount=cfg.fee_discount,
        priority_access=cfg.priority_access,
        max_allocation_percent=cfg.max_allocation_percent,
    )


def upgrade_hint(tier: Tier, amount: Decimal, lock_days: int) -> Optional[str]:
    """Describe what it takes to reach the next tier, or None at the top."""
    rank = tier_rank(tier)
    if rank == len(TIER_ORDER) - 1:
        return None

    next_tier = TIER_ORDER[rank + 1]
    cfg = TIER_CONFIG[next_tier]
    more_stake = cfg.min_stake - amount
    more_days = cfg.lock_days - lock_days

    if more_stake > 0 and more_days > 0:
        return f"Stake {more_stake} more tokens and lock for {more_days} more days to reach {cfg.name}"
    if more_stake > 0:
        return f"Stake {more_stake} more tokens to reach {cfg.name}"
    if more_days > 0:
        return f"Lock for {more_days} more days to reach {cfg.name}"
    return None

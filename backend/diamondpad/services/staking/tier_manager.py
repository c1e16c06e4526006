"""Staking tier manager.

Owns the wallet -> StakerPosition ledger:
- stake / unstake with lock periods and the early-unstake penalty
- tier and effective-weight recomputation after every balance change
- read-side queries (positions, tier stats, lottery boost)
- feedback hooks run after a launch concludes (SHS, launch outcome)
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from decimal import Decimal
from math import ceil, floor
from typing import Any, Dict, List, Optional

import structlog

from diamondpad.core.clock import Clock, SystemClock
from diamondpad.core.config import Settings, get_settings
from diamondpad.core.errors import ErrorKind, LaunchpadError, OperationResult, run_operation, to_decimal
from diamondpad.core.metrics import MetricsCollector
from diamondpad.core.store import LedgerStore
from diamondpad.core.tables import TIER_CONFIG, TIER_ORDER
from diamondpad.models.staking import StakerPosition, Tier
from diamondpad.schemas.staking import (
    HoldHistory,
    PositionView,
    StakingOverview,
    TierSimulation,
    TierStat,
)
from diamondpad.services.staking import scoring

logger = structlog.get_logger()

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass
class UnstakeResult:
    """Outcome of an unstake."""
    amount_returned: Decimal
    penalty_applied: Decimal
    new_position: Optional[StakerPosition]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amount_returned": str(self.amount_returned),
            "penalty_applied": str(self.penalty_applied),
            "new_position": self.new_position.to_dict() if self.new_position else None,
        }


@dataclass
class WalletSnapshot:
    """Tier figures captured when a wallet requests an allocation."""
    wallet: str
    staked: bool
    tier: Tier
    effective_weight: Decimal
    lottery_boost: Decimal


def remaining_lock_days(lock_end_date: datetime, now: datetime) -> int:
    """Whole days left until lock end (floored, never negative)."""
    seconds = (lock_end_date - now).total_seconds()
    return max(0, floor(seconds / SECONDS_PER_DAY))


class StakingTierManager:
    """Stake ledger with tier classification and SHS weighting."""

    def __init__(
        self,
        store: LedgerStore,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        settings = settings or get_settings()
        self._store = store
        self._clock = clock or SystemClock()
        self._metrics = metrics or MetricsCollector()

        self.default_shs = settings.default_shs
        self.early_unstake_penalty = settings.early_unstake_penalty
        self.min_multiplier = settings.shs_min_multiplier
        self.max_multiplier = settings.shs_max_multiplier
        self.legacy_stake_merge_lock_days = settings.legacy_stake_merge_lock_days

    # ==================== Scoring ====================

    def tier_for_stake(self, amount: Decimal, lock_days: int) -> Tier:
        return scoring.tier_for_stake(amount, lock_days)

    def compute_shs(self, history: HoldHistory) -> Decimal:
        return scoring.compute_shs(history)

    def shs_multiplier(self, shs: Decimal) -> Decimal:
        return scoring.shs_multiplier(shs, self.min_multiplier, self.max_multiplier)

    def effective_weight(self, tier: Tier, shs: Decimal) -> Decimal:
        return TIER_CONFIG[tier].allocation_weight * self.shs_multiplier(shs)

    def simulate(
        self,
        stake_amount: Decimal,
        lock_days: int,
        history: Optional[HoldHistory] = None,
    ) -> TierSimulation:
        """Preview tier, SHS and weight for a hypothetical stake."""
        amount = Decimal(str(stake_amount))
        tier = self.tier_for_stake(amount, lock_days)
        shs = self.compute_shs(history) if history is not None else self.default_shs
        multiplier = self.shs_multiplier(shs)
        cfg = TIER_CONFIG[tier]

        return TierSimulation(
            stake_amount=amount,
            lock_days=lock_days,
            tier=tier,
            tier_name=cfg.name,
            strong_holder_score=shs,
            shs_multiplier=multiplier,
            base_weight=cfg.allocation_weight,
            effective_weight=cfg.allocation_weight * multiplier,
            benefits=scoring.tier_benefits(tier),
            upgrade_hint=scoring.upgrade_hint(tier, amount, lock_days),
        )

    # ==================== Mutations ====================

    def stake(self, wallet: str, amount: Any, lock_days: int) -> OperationResult[StakerPosition]:
        """Stake tokens, creating or topping up the wallet's position."""
        return run_operation(self._metrics, "stake", self._stake, wallet, amount, lock_days)

    def unstake(self, wallet: str, amount: Any, early: bool = False) -> OperationResult[UnstakeResult]:
        """Withdraw stake; early withdrawal before lock end costs the penalty."""
        return run_operation(self._metrics, "unstake", self._unstake, wallet, amount, early)

    def update_shs(self, wallet: str, new_shs: Any) -> OperationResult[StakerPosition]:
        """Replace a wallet's SHS after a launch concludes and reweight it."""
        return run_operation(self._metrics, "update_shs", self._update_shs, wallet, new_shs)

    def record_launch_outcome(
        self,
        wallet: str,
        tokens: int,
        value_usd: Any,
        held_long: bool,
    ) -> OperationResult[StakerPosition]:
        """Fold a concluded launch into the wallet's cumulative counters."""
        return run_operation(
            self._metrics, "record_launch_outcome", self._record_launch_outcome,
            wallet, tokens, value_usd, held_long,
        )

    def _stake(self, wallet: str, amount: Any, lock_days: int) -> StakerPosition:
        amount = to_decimal(amount, "amount")
        if not wallet:
            raise LaunchpadError(ErrorKind.VALIDATION_ERROR, "wallet is required")
        if amount <= 0:
            raise LaunchpadError(ErrorKind.VALIDATION_ERROR, "amount must be positive")
        if not isinstance(lock_days, int) or isinstance(lock_days, bool) or lock_days < 0:
            raise LaunchpadError(ErrorKind.VALIDATION_ERROR, "lock_days must be a non-negative integer")

        now = self._clock.now()
        requested_lock_end = now + timedelta(days=lock_days)

        with self._store.staking_lock:
            position = self._store.stakers.get(wallet)

            if position is None:
                tier = self.tier_for_stake(amount, lock_days)
                position = StakerPosition(
                    wallet=wallet,
                    staked_amount=amount,
                    staked_at=now,
                    lock_end_date=requested_lock_end,
                    tier=tier,
                    strong_holder_score=self.default_shs,
                    effective_weight=self.effective_weight(tier, self.default_shs),
                )
                self._store.stakers[wallet] = position
                logger.info(
                    "Stake opened",
                    wallet=wallet,
                    amount=str(amount),
                    lock_days=lock_days,
                    tier=tier.value,
                )
                return replace(position)

            if self.legacy_stake_merge_lock_days:
                tier_lock_days = lock_days
            else:
                tier_lock_days = max(remaining_lock_days(position.lock_end_date, now), lock_days)

            previous_tier = position.tier
            position.staked_amount += amount
            position.lock_end_date = max(position.lock_end_date, requested_lock_end)
            position.tier = self.tier_for_stake(position.staked_amount, tier_lock_days)
            position.effective_weight = self.effective_weight(position.tier, position.strong_holder_score)

            logger.info(
                "Stake increased",
                wallet=wallet,
                amount=str(amount),
                staked_amount=str(position.staked_amount),
                tier_lock_days=tier_lock_days,
                previous_tier=previous_tier.value,
                tier=position.tier.value,
            )
            return replace(position)

    def _unstake(self, wallet: str, amount: Any, early: bool) -> UnstakeResult:
        amount = to_decimal(amount, "amount")
        if amount <= 0:
            raise LaunchpadError(ErrorKind.VALIDATION_ERROR, "amount must be positive")

        now = self._clock.now()

        with self._store.staking_lock:
            position = self._store.stakers.get(wallet)
            if position is None:
                raise LaunchpadError(ErrorKind.NOT_FOUND, f"No staking position for {wallet}")
            if amount > position.staked_amount:
                raise LaunchpadError(
                    ErrorKind.INSUFFICIENT_BALANCE,
                    f"Insufficient staked balance: requested {amount}, staked {position.staked_amount}",
                )

            penalty = Decimal("0")
            if early and position.lock_end_date > now:
                penalty = amount * self.early_unstake_penalty
            returned = amount - penalty

            position.staked_amount -= amount

            if position.staked_amount <= 0:
                del self._store.stakers[wallet]
                logger.info(
                    "Stake closed",
                    wallet=wallet,
                    amount_returned=str(returned),
                    penalty=str(penalty),
                )
                return UnstakeResult(amount_returned=returned, penalty_applied=penalty, new_position=None)

            lock_days = remaining_lock_days(position.lock_end_date, now)
            position.tier = self.tier_for_stake(position.staked_amount, lock_days)
            position.effective_weight = self.effective_weight(position.tier, position.strong_holder_score)

            logger.info(
                "Stake reduced",
                wallet=wallet,
                amount_returned=str(returned),
                penalty=str(penalty),
                staked_amount=str(position.staked_amount),
                tier=position.tier.value,
            )
            return UnstakeResult(
                amount_returned=returned,
                penalty_applied=penalty,
                new_position=replace(position),
            )

    def _update_shs(self, wallet: str, new_shs: Any) -> StakerPosition:
        shs = to_decimal(new_shs, "shs")
        if shs < scoring.SHS_MIN or shs > scoring.SHS_MAX:
            raise LaunchpadError(ErrorKind.VALIDATION_ERROR, "shs must be between 0 and 100")

        with self._store.staking_lock:
            position = self._store.stakers.get(wallet)
            if position is None:
                raise LaunchpadError(ErrorKind.NOT_FOUND, f"No staking position for {wallet}")
            position.strong_holder_score = shs
            position.effective_weight = self.effective_weight(position.tier, shs)
            logger.info("SHS updated", wallet=wallet, shs=str(shs), weight=str(position.effective_weight))
            return replace(position)

    def _record_launch_outcome(
        self,
        wallet: str,
        tokens: int,
        value_usd: Any,
        held_long: bool,
    ) -> StakerPosition:
        value = to_decimal(value_usd, "value_usd")
        if tokens < 0 or value < 0:
            raise LaunchpadError(ErrorKind.VALIDATION_ERROR, "tokens and value_usd must be non-negative")

        with self._store.staking_lock:
            position = self._store.stakers.get(wallet)
            if position is None:
                raise LaunchpadError(ErrorKind.NOT_FOUND, f"No staking position for {wallet}")
            if tokens > 0:
                position.total_allocations_received += 1
                position.total_allocations_value += value
            position.loyalty_streak = position.loyalty_streak + 1 if held_long else 0
            return replace(position)

    # ==================== Queries ====================

    def get_position(self, wallet: str) -> Optional[StakerPosition]:
        position = self._store.stakers.get(wallet)
        return replace(position) if position else None

    def position_view(self, wallet: str) -> Optional[PositionView]:
        """Position with lock countdown and tier benefits, or None if unstaked."""
        position = self._store.stakers.get(wallet)
        if position is None:
            return None

        seconds_left = (position.lock_end_date - self._clock.now()).total_seconds()
        days_remaining = max(0, ceil(seconds_left / SECONDS_PER_DAY))

        return PositionView(
            wallet=position.wallet,
            staked_amount=position.staked_amount,
            staked_at=position.staked_at,
            lock_end_date=position.lock_end_date,
            tier=position.tier,
            tier_name=TIER_CONFIG[position.tier].name,
            strong_holder_score=position.strong_holder_score,
            effective_weight=position.effective_weight,
            total_allocations_received=position.total_allocations_received,
            total_allocations_value=position.total_allocations_value,
            loyalty_streak=position.loyalty_streak,
            days_remaining=days_remaining,
            can_unstake_without_penalty=days_remaining == 0,
            benefits=scoring.tier_benefits(position.tier),
        )

    def stakers_by_tier(self, tier: Tier) -> List[StakerPosition]:
        return [replace(p) for p in self._store.stakers.values() if p.tier == tier]

    def tier_stats(self) -> List[TierStat]:
        """Per-tier count, total staked and average SHS, highest tier first."""
        stats = []
        for tier in reversed(TIER_ORDER):
            stakers = [p for p in self._store.stakers.values() if p.tier == tier]
            total = sum((p.staked_amount for p in stakers), Decimal("0"))
            avg_shs = (
                sum((p.strong_holder_score for p in stakers), Decimal("0")) / len(stakers)
                if stakers else Decimal("0")
            )
            stats.append(TierStat(tier=tier, count=len(stakers), total_staked=total, avg_shs=avg_shs))
        return stats

    def staking_overview(self) -> StakingOverview:
        stats = self.tier_stats()
        total_staked = sum((s.total_staked for s in stats), Decimal("0"))
        total_stakers = sum(s.count for s in stats)

        if total_staked > 0:
            for s in stats:
                s.percent_of_total = s.total_staked / total_staked * 100

        return StakingOverview(
            total_staked=total_staked,
            total_stakers=total_stakers,
            avg_stake_size=total_staked / total_stakers if total_stakers else Decimal("0"),
            by_tier=stats,
        )

    def lottery_boost(self, wallet: str) -> Decimal:
        """Tier lottery boost scaled by SHS; unstaked wallets get the public boost."""
        position = self._store.stakers.get(wallet)
        if position is None:
            return TIER_CONFIG[Tier.PUBLIC].lottery_boost
        return TIER_CONFIG[position.tier].lottery_boost * self.shs_multiplier(position.strong_holder_score)

    def has_guaranteed_allocation(self, wallet: str) -> bool:
        position = self._store.stakers.get(wallet)
        if position is None:
            return False
        return TIER_CONFIG[position.tier].guaranteed_allocation

    def snapshot(self, wallet: str) -> WalletSnapshot:
        """Capture tier, weight and lottery boost for allocation intake."""
        with self._store.staking_lock:
            position = self._store.stakers.get(wallet)
            if position is None:
                return WalletSnapshot(
                    wallet=wallet,
                    staked=False,
                    tier=Tier.PUBLIC,
                    effective_weight=TIER_CONFIG[Tier.PUBLIC].allocation_weight,
                    lottery_boost=TIER_CONFIG[Tier.PUBLIC].lottery_boost,
                )
            return WalletSnapshot(
                wallet=wallet,
                staked=True,
                tier=position.tier,
                effective_weight=position.effective_weight,
                lottery_boost=self.lottery_boost(wallet),
            )

"""Allocation pool engine.

Owns one LaunchAllocation per launch plus the raw request log:
- initialize_launch splits the supply across the seven pools
- open_pool / close_pool drive the intake window
- submit_request gates on staking tier and snapshots weight and tickets
- execute_pool / execute_all_pools run each pool's algorithm exactly once
- claim_vested releases tranches that have come due

Every mutation of a launch happens under that launch's lock, so intake can
never interleave with closing or distributing a pool.
"""

from copy import deepcopy
from dataclasses import dataclass, field
from decimal import ROUND_FLOOR, Decimal
from typing import Any, Dict, List, Optional

import structlog

from diamondpad.core.clock import Clock, SystemClock
from diamondpad.core.config import Settings, get_settings
from diamondpad.core.errors import ErrorKind, LaunchpadError, OperationResult, run_operation, to_decimal
from diamondpad.core.metrics import MetricsCollector
from diamondpad.core.randomness import RandomSource, SeededRandomSource
from diamondpad.core.store import LedgerStore
from diamondpad.core.tables import (
    AUTO_POOLS,
    DISTRIBUTION_ORDER,
    POOL_CONFIG,
    tier_rank,
    validate_pool_table,
)
from diamondpad.models.allocation import (
    AllocationEntry,
    AllocationRequest,
    LaunchAllocation,
    Mechanism,
    PoolAllocation,
    PoolName,
    PoolStatus,
)
from diamondpad.services.allocation import distribution
from diamondpad.services.allocation.distribution import DistributionContext, DistributionOutcome
from diamondpad.services.allocation.settlement import (
    LoggingSettlementGateway,
    SettlementGateway,
    dispatch_allocation,
    dispatch_reservation,
)
from diamondpad.services.allocation.vesting import release_due
from diamondpad.services.staking.tier_manager import StakingTierManager

logger = structlog.get_logger()


@dataclass
class UserAllocation:
    """A wallet's awarded entries across every pool of a launch."""
    launch_id: str
    wallet: str
    total_tokens: int = 0
    total_value_usd: Decimal = Decimal("0")
    allocations: List[AllocationEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "launch_id": self.launch_id,
            "wallet": self.wallet,
            "total_tokens": self.total_tokens,
            "total_value_usd": str(self.total_value_usd),
            "allocations": [a.to_dict() for a in self.allocations],
        }


@dataclass
class ClaimResult:
    """Tokens released by a vesting claim."""
    launch_id: str
    wallet: str
    claimed: int
    total_released: int
    total_locked: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "launch_id": self.launch_id,
            "wallet": self.wallet,
            "claimed": self.claimed,
            "total_released": self.total_released,
            "total_locked": self.total_locked,
        }


def _parse_pool(pool: Any) -> PoolName:
    try:
        return PoolName(pool)
    except ValueError:
        raise LaunchpadError(ErrorKind.VALIDATION_ERROR, f"Unknown pool: {pool}")


class AllocationPoolEngine:
    """Runs launches: pool intake, distribution and vesting."""

    def __init__(
        self,
        store: LedgerStore,
        staking: StakingTierManager,
        clock: Optional[Clock] = None,
        random_source: Optional[RandomSource] = None,
        settlement: Optional[SettlementGateway] = None,
        settings: Optional[Settings] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        validate_pool_table()
        settings = settings or get_settings()
        self._store = store
        self._staking = staking
        self._clock = clock or SystemClock()
        self._random = random_source or SeededRandomSource(settings.lottery_seed)
        self._settlement = settlement or LoggingSettlementGateway()
        self._metrics = metrics or MetricsCollector()

        self.allow_repeat_requests = settings.allow_repeat_requests
        self.release_count = settings.vesting_release_count
        self.auto_pool_days = {
            PoolName.LIQUIDITY: settings.liquidity_lock_days,
            PoolName.TRADER_REWARDS: settings.trader_rewards_emission_days,
        }

    def _get_launch(self, launch_id: str) -> LaunchAllocation:
        launch = self._store.launches.get(launch_id)
        if launch is None:
            raise LaunchpadError(ErrorKind.NOT_FOUND, f"Launch not found: {launch_id}")
        return launch

    # ==================== Launch setup ====================

    def initialize_launch(
        self,
        launch_id: str,
        total_tokens: int,
        token_price: Any,
    ) -> OperationResult[LaunchAllocation]:
        """Partition total_tokens across the pools by their fixed percentages."""
        return run_operation(
            self._metrics, "initialize_launch", self._initialize_launch, launch_id, total_tokens, token_price
        )

    def _initialize_launch(self, launch_id: str, total_tokens: int, token_price: Any) -> LaunchAllocation:
        price = to_decimal(token_price, "token_price")
        if not launch_id:
            raise LaunchpadError(ErrorKind.VALIDATION_ERROR, "launch_id is required")
        if not isinstance(total_tokens, int) or isinstance(total_tokens, bool) or total_tokens <= 0:
            raise LaunchpadError(ErrorKind.VALIDATION_ERROR, "total_tokens must be a positive integer")
        if price <= 0:
            raise LaunchpadError(ErrorKind.VALIDATION_ERROR, "token_price must be positive")

        with self._store.launch_lock(launch_id):
            if launch_id in self._store.launches:
                raise LaunchpadError(ErrorKind.INVALID_REQUEST, f"Launch already initialized: {launch_id}")

            pools: Dict[PoolName, PoolAllocation] = {}
            for name, cfg in POOL_CONFIG.items():
                pool_tokens = total_tokens * cfg.percent // 100
                pools[name] = PoolAllocation(
                    pool=name,
                    total_tokens=pool_tokens,
                    total_value_usd=pool_tokens * price,
                    remaining=pool_tokens,
                )

            dust = total_tokens - sum(p.total_tokens for p in pools.values())
            launch = LaunchAllocation(
                launch_id=launch_id,
                total_tokens=total_tokens,
                token_price=price,
                pools=pools,
                unallocated_dust=dust,
            )
            self._store.launches[launch_id] = launch
            self._store.requests[launch_id] = []

            logger.info(
                "Launch initialized",
                launch_id=launch_id,
                total_tokens=total_tokens,
                token_price=str(price),
                unallocated_dust=dust,
            )
            return deepcopy(launch)

    # ==================== Pool lifecycle ====================

    def open_pool(self, launch_id: str, pool: Any) -> OperationResult[PoolStatus]:
        """Open a pending pool for requests."""
        return run_operation(self._metrics, "open_pool", self._open_pool, launch_id, pool)

    def close_pool(self, launch_id: str, pool: Any) -> OperationResult[PoolStatus]:
        """Stop intake on an open pool."""
        return run_operation(self._metrics, "close_pool", self._close_pool, launch_id, pool)

    def _open_pool(self, launch_id: str, pool: Any) -> PoolStatus:
        name = _parse_pool(pool)
        with self._store.launch_lock(launch_id):
            pool_alloc = self._get_launch(launch_id).pools[name]
            if POOL_CONFIG[name].mechanism == Mechanism.AUTO:
                raise LaunchpadError(ErrorKind.INVALID_REQUEST, f"{name.value} takes no requests")
            if pool_alloc.status != PoolStatus.PENDING:
                raise LaunchpadError(
                    ErrorKind.INVALID_REQUEST,
                    f"Cannot open {name.value} from status {pool_alloc.status.value}",
                )
            pool_alloc.status = PoolStatus.OPEN
            logger.info("Pool opened", launch_id=launch_id, pool=name.value)
            return pool_alloc.status

    def _close_pool(self, launch_id: str, pool: Any) -> PoolStatus:
        name = _parse_pool(pool)
        with self._store.launch_lock(launch_id):
            pool_alloc = self._get_launch(launch_id).pools[name]
            if pool_alloc.status != PoolStatus.OPEN:
                raise LaunchpadError(
                    ErrorKind.INVALID_REQUEST,
                    f"Cannot close {name.value} from status {pool_alloc.status.value}",
                )
            pool_alloc.status = PoolStatus.CLOSED
            logger.info(
                "Pool closed",
                launch_id=launch_id,
                pool=name.value,
                participants=len(pool_alloc.participants),
            )
            return pool_alloc.status

    # ==================== Intake ====================

    def submit_request(
        self,
        wallet: str,
        launch_id: str,
        pool: Any,
        amount_usd: Any,
    ) -> OperationResult[AllocationEntry]:
        """Queue a wallet's request for a share of an open pool."""
        return run_operation(
            self._metrics, "submit_request", self._submit_request, wallet, launch_id, pool, amount_usd
        )

    def _submit_request(self, wallet: str, launch_id: str, pool: Any, amount_usd: Any) -> AllocationEntry:
        name = _parse_pool(pool)
        amount = to_decimal(amount_usd, "amount_usd")
        if not wallet:
            raise LaunchpadError(ErrorKind.VALIDATION_ERROR, "wallet is required")
        if amount <= 0:
            raise LaunchpadError(ErrorKind.VALIDATION_ERROR, "amount_usd must be positive")

        cfg = POOL_CONFIG[name]

        with self._store.launch_lock(launch_id):
            launch = self._get_launch(launch_id)
            pool_alloc = launch.pools[name]
            if pool_alloc.status != PoolStatus.OPEN:
                raise LaunchpadError(
                    ErrorKind.POOL_NOT_OPEN,
                    f"Pool {name.value} is {pool_alloc.status.value}, not open for requests",
                )

            snapshot = self._staking.snapshot(wallet)
            if cfg.requires_staking:
                if not snapshot.staked:
                    raise LaunchpadError(ErrorKind.TIER_NOT_MET, f"Staking required for {name.value}")
                if cfg.min_tier is not None and tier_rank(snapshot.tier) < tier_rank(cfg.min_tier):
                    raise LaunchpadError(
                        ErrorKind.TIER_NOT_MET,
                        f"Minimum tier required: {cfg.min_tier.value}. Your tier: {snapshot.tier.value}",
                    )

            if not self.allow_repeat_requests and pool_alloc.active_entry(wallet) is not None:
                raise LaunchpadError(
                    ErrorKind.INVALID_REQUEST,
                    f"{wallet} already has an active request in {name.value}",
                )

            amount = min(amount, cfg.max_per_wallet)
            tickets = int((amount * snapshot.lottery_boost).to_integral_value(rounding=ROUND_FLOOR))
            sequence = self._store.intake_sequence.next()

            entry = AllocationEntry(
                wallet=wallet,
                pool=name,
                requested_amount=amount,
                weight=snapshot.effective_weight,
                lottery_tickets=tickets,
                sequence=sequence,
            )
            pool_alloc.participants.append(entry)
            self._store.requests[launch_id].append(
                AllocationRequest(
                    wallet=wallet,
                    launch_id=launch_id,
                    pool=name,
                    amount_usd=amount,
                    sequence=sequence,
                    submitted_at=self._clock.now(),
                )
            )

            logger.info(
                "Allocation requested",
                launch_id=launch_id,
                wallet=wallet,
                pool=name.value,
                amount_usd=str(amount),
                tier=snapshot.tier.value,
                tickets=tickets,
                sequence=sequence,
            )
            return deepcopy(entry)

    # ==================== Distribution ====================

    def execute_pool(self, launch_id: str, pool: Any) -> OperationResult[PoolAllocation]:
        """Run one pool's distribution. A pool is distributed at most once."""
        return run_operation(self._metrics, "execute_pool", self._execute_pool, launch_id, pool)

    def execute_all_pools(self, launch_id: str) -> OperationResult[LaunchAllocation]:
        """Distribute every pool not yet distributed, in the fixed launch order."""
        return run_operation(self._metrics, "execute_all_pools", self._execute_all_pools, launch_id)

    def _execute_pool(self, launch_id: str, pool: Any) -> PoolAllocation:
        name = _parse_pool(pool)
        with self._store.launch_lock(launch_id):
            launch = self._get_launch(launch_id)
            if launch.pools[name].status == PoolStatus.DISTRIBUTED:
                raise LaunchpadError(
                    ErrorKind.ALREADY_DISTRIBUTED,
                    f"Pool {name.value} of {launch_id} is already distributed",
                )
            self._distribute(launch, name)
            return deepcopy(launch.pools[name])

    def _execute_all_pools(self, launch_id: str) -> LaunchAllocation:
        with self._store.launch_lock(launch_id):
            launch = self._get_launch(launch_id)
            for name in DISTRIBUTION_ORDER + AUTO_POOLS:
                if launch.pools[name].status != PoolStatus.DISTRIBUTED:
                    self._distribute(launch, name)
            self._update_launch_totals(launch)
            logger.info(
                "Launch distributed",
                launch_id=launch_id,
                participant_count=launch.participant_count,
                oversubscribed=launch.oversubscribed,
                oversubscription_ratio=str(launch.oversubscription_ratio),
            )
            return deepcopy(launch)

    def _distribute(self, launch: LaunchAllocation, name: PoolName) -> DistributionOutcome:
        """Close (if open), run the algorithm and mark distributed in one step.

        Caller must hold the launch lock.
        """
        pool_alloc = launch.pools[name]
        cfg = POOL_CONFIG[name]
        if pool_alloc.status == PoolStatus.OPEN:
            pool_alloc.status = PoolStatus.CLOSED

        ctx = DistributionContext(
            token_price=launch.token_price,
            pool_config=cfg,
            now=self._clock.now(),
            random_source=self._random,
            release_count=self.release_count,
        )

        if cfg.mechanism == Mechanism.PRORATA:
            outcome = distribution.distribute_prorata(pool_alloc, ctx)
        elif cfg.mechanism == Mechanism.LOTTERY:
            outcome = distribution.distribute_lottery(pool_alloc, ctx)
        elif cfg.mechanism == Mechanism.FCFS:
            outcome = distribution.distribute_fcfs(pool_alloc, ctx)
        else:
            outcome = distribution.reserve_pool(pool_alloc, ctx, self.auto_pool_days[name])

        pool_alloc.status = PoolStatus.DISTRIBUTED

        self._metrics.record_distribution(name.value, outcome.allocated, len(outcome.awarded), outcome.lost)
        logger.info(
            "Pool distributed",
            launch_id=launch.launch_id,
            pool=name.value,
            mechanism=cfg.mechanism.value,
            allocated=pool_alloc.allocated,
            remaining=pool_alloc.remaining,
            awarded=len(outcome.awarded),
            lost=outcome.lost,
        )

        for entry in outcome.awarded:
            dispatch_allocation(self._settlement, launch.launch_id, entry)
        if outcome.reservation is not None:
            dispatch_reservation(self._settlement, launch.launch_id, outcome.reservation)

        return outcome

    def _update_launch_totals(self, launch: LaunchAllocation) -> None:
        participant_pools = [launch.pools[name] for name in DISTRIBUTION_ORDER]

        launch.participant_count = sum(
            1 for p in participant_pools for entry in p.participants if entry.is_awarded
        )

        requested = sum(
            (entry.requested_amount for p in participant_pools for entry in p.participants),
            Decimal("0"),
        )
        capacity = sum((p.total_value_usd for p in participant_pools), Decimal("0"))
        launch.oversubscription_ratio = requested / capacity if capacity > 0 else Decimal("1")
        launch.oversubscribed = launch.oversubscription_ratio > 1

    # ==================== Vesting claims ====================

    def claim_vested(self, launch_id: str, wallet: str) -> OperationResult[ClaimResult]:
        """Release every tranche of the wallet's awards that has come due."""
        return run_operation(self._metrics, "claim_vested", self._claim_vested, launch_id, wallet)

    def _claim_vested(self, launch_id: str, wallet: str) -> ClaimResult:
        now = self._clock.now()
        with self._store.launch_lock(launch_id):
            launch = self._get_launch(launch_id)
            schedules = [
                entry.vesting_schedule
                for pool_alloc in launch.pools.values()
                for entry in pool_alloc.participants
                if entry.wallet == wallet and entry.is_awarded and entry.vesting_schedule is not None
            ]
            if not schedules:
                raise LaunchpadError(ErrorKind.NOT_FOUND, f"No allocation for {wallet} in {launch_id}")

            due = sum(
                r.amount for s in schedules for r in s.releases if not r.released and r.date <= now
            )
            if due <= 0:
                raise LaunchpadError(ErrorKind.NOTHING_TO_CLAIM, "Nothing to claim yet")

            claimed = sum(release_due(s, now) for s in schedules)
            released = sum(s.released_tokens for s in schedules)
            locked = sum(s.locked_tokens for s in schedules)

            logger.info(
                "Vested tokens claimed",
                launch_id=launch_id,
                wallet=wallet,
                claimed=claimed,
                total_released=released,
            )
            return ClaimResult(
                launch_id=launch_id,
                wallet=wallet,
                claimed=claimed,
                total_released=released,
                total_locked=locked,
            )

    # ==================== Queries ====================

    def get_launch_status(self, launch_id: str) -> Optional[LaunchAllocation]:
        with self._store.launch_lock(launch_id):
            launch = self._store.launches.get(launch_id)
            return deepcopy(launch) if launch else None

    def get_user_allocation(self, launch_id: str, wallet: str) -> UserAllocation:
        """Sum a wallet's won/filled entries across pools."""
        result = UserAllocation(launch_id=launch_id, wallet=wallet)
        with self._store.launch_lock(launch_id):
            launch = self._store.launches.get(launch_id)
            if launch is None:
                return result
            for pool_alloc in launch.pools.values():
                for entry in pool_alloc.participants:
                    if entry.wallet == wallet and entry.is_awarded:
                        result.allocations.append(deepcopy(entry))
                        result.total_tokens += entry.allocated_tokens
                        result.total_value_usd += entry.allocated_value_usd
        return result

    def get_requests(self, launch_id: str) -> List[AllocationRequest]:
        """Intake log of a launch in arrival order."""
        with self._store.launch_lock(launch_id):
            return list(self._store.requests.get(launch_id, []))

"""Per-pool distribution algorithms.

Each function awards the participants of a single PoolAllocation and
updates its allocated/remaining counters. Status transitions and locking
belong to the caller (AllocationPoolEngine).
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import ROUND_FLOOR, Decimal
from typing import List, Optional, Set

import structlog

from diamondpad.core.randomness import RandomSource, fisher_yates_shuffle
from diamondpad.core.tables import PoolConfig
from diamondpad.models.allocation import (
    AllocationEntry,
    EntryStatus,
    PoolAllocation,
    PoolReservation,
)
from diamondpad.services.allocation.vesting import DEFAULT_RELEASE_COUNT, create_vesting_schedule

logger = structlog.get_logger()


@dataclass
class DistributionContext:
    """Launch-level inputs shared by every algorithm."""
    token_price: Decimal
    pool_config: PoolConfig
    now: datetime
    random_source: Optional[RandomSource] = None
    release_count: int = DEFAULT_RELEASE_COUNT


@dataclass
class DistributionOutcome:
    """What one distribution run handed out."""
    allocated: int = 0
    awarded: List[AllocationEntry] = field(default_factory=list)
    lost: int = 0
    reservation: Optional[PoolReservation] = None


def tokens_for_usd(amount_usd: Decimal, token_price: Decimal) -> int:
    """Whole tokens purchasable for amount_usd at token_price."""
    if token_price <= 0:
        return 0
    return int((amount_usd / token_price).to_integral_value(rounding=ROUND_FLOOR))


def _award(entry: AllocationEntry, tokens: int, status: EntryStatus, ctx: DistributionContext) -> None:
    entry.allocated_tokens = tokens
    entry.allocated_value_usd = tokens * ctx.token_price
    entry.status = status
    entry.vesting_schedule = create_vesting_schedule(
        entry.allocated_value_usd,
        tokens,
        start=ctx.now,
        release_count=ctx.release_count,
    )
    logger.debug(
        "Allocation awarded",
        wallet=entry.wallet,
        pool=entry.pool.value,
        tokens=tokens,
        status=status.value,
    )


def _mark_losers(pool: PoolAllocation, outcome: DistributionOutcome) -> None:
    for entry in pool.participants:
        if entry.status == EntryStatus.PENDING:
            entry.status = EntryStatus.LOST
            outcome.lost += 1


def distribute_prorata(pool: PoolAllocation, ctx: DistributionContext) -> DistributionOutcome:
    """Split the pool by weight share, each share capped at the requested tokens.

    Surplus left by capped participants is not redistributed, so the pool
    may end with remaining tokens. Every participant is filled.
    """
    outcome = DistributionOutcome()
    total_weight = sum((p.weight for p in pool.participants), Decimal("0"))

    for entry in pool.participants:
        share = 0
        if total_weight > 0:
            share = int(
                (Decimal(pool.total_tokens) * entry.weight / total_weight)
                .to_integral_value(rounding=ROUND_FLOOR)
            )
        requested = tokens_for_usd(entry.requested_amount, ctx.token_price)
        tokens = min(share, requested)

        _award(entry, tokens, EntryStatus.FILLED, ctx)
        outcome.awarded.append(entry)
        outcome.allocated += tokens

    pool.allocated += outcome.allocated
    pool.remaining = pool.total_tokens - pool.allocated
    return outcome


def distribute_lottery(pool: PoolAllocation, ctx: DistributionContext) -> DistributionOutcome:
    """Draw winners from a shuffled ticket list.

    Every entry contributes `lottery_tickets` tickets. The first ticket drawn
    for a wallet wins it one award of min(wallet cap, requested, remaining);
    later tickets for that wallet are skipped. Drawing stops when the pool
    or the tickets run out and everyone still pending loses.
    """
    if ctx.random_source is None:
        raise ValueError("Lottery distribution requires a random source")

    outcome = DistributionOutcome()
    tickets: List[int] = []
    for index, entry in enumerate(pool.participants):
        tickets.extend([index] * entry.lottery_tickets)
    fisher_yates_shuffle(tickets, ctx.random_source)

    max_tokens = tokens_for_usd(ctx.pool_config.max_per_wallet, ctx.token_price)
    remaining = pool.total_tokens - pool.allocated
    winners: Set[str] = set()
    unawardable: Set[int] = set()

    for index in tickets:
        if remaining <= 0:
            break
        if index in unawardable:
            continue
        entry = pool.participants[index]
        if entry.wallet in winners:
            continue

        requested = tokens_for_usd(entry.requested_amount, ctx.token_price)
        tokens = min(max_tokens, requested, remaining)
        if tokens <= 0:
            unawardable.add(index)
            continue

        _award(entry, tokens, EntryStatus.WON, ctx)
        winners.add(entry.wallet)
        outcome.awarded.append(entry)
        outcome.allocated += tokens
        remaining -= tokens

    _mark_losers(pool, outcome)
    pool.allocated += outcome.allocated
    pool.remaining = remaining
    return outcome


def distribute_fcfs(pool: PoolAllocation, ctx: DistributionContext) -> DistributionOutcome:
    """Serve entries in intake order with the per-wallet cap until exhausted."""
    outcome = DistributionOutcome()
    max_tokens = tokens_for_usd(ctx.pool_config.max_per_wallet, ctx.token_price)
    remaining = pool.total_tokens - pool.allocated

    for entry in sorted(pool.participants, key=lambda e: e.sequence):
        if remaining <= 0:
            break
        tokens = min(max_tokens, remaining)
        if tokens <= 0:
            break

        _award(entry, tokens, EntryStatus.FILLED, ctx)
        outcome.awarded.append(entry)
        outcome.allocated += tokens
        remaining -= tokens

    _mark_losers(pool, outcome)
    pool.allocated += outcome.allocated
    pool.remaining = remaining
    return outcome


def reserve_pool(pool: PoolAllocation, ctx: DistributionContext, duration_days: int) -> DistributionOutcome:
    """Reserve the whole pool as one block for an external collaborator."""
    reservation = PoolReservation(
        pool=pool.pool,
        tokens=pool.total_tokens,
        duration_days=duration_days,
        release_date=ctx.now + timedelta(days=duration_days),
    )
    pool.reservation = reservation
    pool.allocated = pool.total_tokens
    pool.remaining = 0
    return DistributionOutcome(allocated=pool.total_tokens, reservation=reservation)

"""Launch allocation records.

A LaunchAllocation owns one PoolAllocation per pool; each pool collects
AllocationEntry records at intake and awards them at distribution.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional


class PoolName(str, Enum):
    """Allocation pools of a launch."""
    GUARANTEED = "guaranteed"
    WEIGHTED_LOTTERY = "weighted_lottery"
    PUBLIC_LOTTERY = "public_lottery"
    FCFS = "fcfs"
    FLIPPER = "flipper"
    LIQUIDITY = "liquidity"
    TRADER_REWARDS = "trader_rewards"


class Mechanism(str, Enum):
    """How a pool hands out its tokens."""
    PRORATA = "prorata"
    LOTTERY = "lottery"
    FCFS = "fcfs"
    AUTO = "auto"


class PoolStatus(str, Enum):
    """Pool lifecycle. Transitions only move forward."""
    PENDING = "pending"
    OPEN = "open"
    CLOSED = "closed"
    DISTRIBUTED = "distributed"

    @property
    def rank(self) -> int:
        return _POOL_STATUS_RANK[self]


_POOL_STATUS_RANK = {
    PoolStatus.PENDING: 0,
    PoolStatus.OPEN: 1,
    PoolStatus.CLOSED: 2,
    PoolStatus.DISTRIBUTED: 3,
}


class EntryStatus(str, Enum):
    """Outcome of a single allocation request."""
    PENDING = "pending"
    WON = "won"
    LOST = "lost"
    FILLED = "filled"


AWARDED_STATUSES = (EntryStatus.WON, EntryStatus.FILLED)


@dataclass
class VestingRelease:
    """One tranche of a vesting schedule."""
    date: datetime
    amount: int
    released: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "amount": self.amount,
            "released": self.released,
        }


@dataclass
class VestingSchedule:
    """Release plan for an award. Release amounts always sum to total_tokens."""
    total_tokens: int
    released_tokens: int
    cliff_days: int
    vesting_days: int
    start_date: datetime
    releases: List[VestingRelease] = field(default_factory=list)

    @property
    def locked_tokens(self) -> int:
        return self.total_tokens - self.released_tokens

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_tokens": self.total_tokens,
            "released_tokens": self.released_tokens,
            "cliff_days": self.cliff_days,
            "vesting_days": self.vesting_days,
            "start_date": self.start_date.isoformat(),
            "releases": [r.to_dict() for r in self.releases],
        }


@dataclass
class AllocationRequest:
    """Raw intake record, kept in the per-launch request log."""
    wallet: str
    launch_id: str
    pool: PoolName
    amount_usd: Decimal
    sequence: int
    submitted_at: datetime


@dataclass
class AllocationEntry:
    """A wallet's participation in one pool."""
    wallet: str
    pool: PoolName
    requested_amount: Decimal  # USD, already clamped to the pool cap
    weight: Decimal
    lottery_tickets: int
    sequence: int  # intake order, used by FCFS
    allocated_tokens: int = 0
    allocated_value_usd: Decimal = Decimal("0")
    vesting_schedule: Optional[VestingSchedule] = None
    status: EntryStatus = EntryStatus.PENDING

    @property
    def is_awarded(self) -> bool:
        return self.status in AWARDED_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wallet": self.wallet,
            "pool": self.pool.value,
            "requested_amount": str(self.requested_amount),
            "allocated_tokens": self.allocated_tokens,
            "allocated_value_usd": str(self.allocated_value_usd),
            "weight": str(self.weight),
            "lottery_tickets": self.lottery_tickets,
            "sequence": self.sequence,
            "vesting_schedule": self.vesting_schedule.to_dict() if self.vesting_schedule else None,
            "status": self.status.value,
        }


@dataclass
class PoolReservation:
    """Whole-pool block handed to an external collaborator (auto pools)."""
    pool: PoolName
    tokens: int
    duration_days: int
    release_date: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pool": self.pool.value,
            "tokens": self.tokens,
            "duration_days": self.duration_days,
            "release_date": self.release_date.isoformat(),
        }


@dataclass
class PoolAllocation:
    """Token budget and participants of one pool within a launch."""
    pool: PoolName
    total_tokens: int
    total_value_usd: Decimal
    allocated: int = 0
    remaining: int = 0
    participants: List[AllocationEntry] = field(default_factory=list)
    status: PoolStatus = PoolStatus.PENDING
    reservation: Optional[PoolReservation] = None

    def active_entry(self, wallet: str) -> Optional[AllocationEntry]:
        for entry in self.participants:
            if entry.wallet == wallet and entry.status != EntryStatus.LOST:
                return entry
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pool": self.pool.value,
            "total_tokens": self.total_tokens,
            "total_value_usd": str(self.total_value_usd),
            "allocated": self.allocated,
            "remaining": self.remaining,
            "participants": [p.to_dict() for p in self.participants],
            "status": self.status.value,
            "reservation": self.reservation.to_dict() if self.reservation else None,
        }


@dataclass
class LaunchAllocation:
    """All pools of one launch."""
    launch_id: str
    total_tokens: int
    token_price: Decimal
    pools: Dict[PoolName, PoolAllocation]
    participant_count: int = 0
    oversubscribed: bool = False
    oversubscription_ratio: Decimal = Decimal("1")
    # Tokens lost to per-pool flooring (at most one per pool)
    unallocated_dust: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "launch_id": self.launch_id,
            "total_tokens": self.total_tokens,
            "token_price": str(self.token_price),
            "pools": {name.value: p.to_dict() for name, p in self.pools.items()},
            "participant_count": self.participant_count,
            "oversubscribed": self.oversubscribed,
            "oversubscription_ratio": str(self.oversubscription_ratio),
            "unallocated_dust": self.unallocated_dust,
        }

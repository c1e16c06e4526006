"""Domain records."""

from diamondpad.models.staking import StakerPosition, Tier
from diamondpad.models.allocation import (
    AWARDED_STATUSES,
    AllocationEntry,
    AllocationRequest,
    EntryStatus,
    LaunchAllocation,
    Mechanism,
    PoolAllocation,
    PoolName,
    PoolReservation,
    PoolStatus,
    VestingRelease,
    VestingSchedule,
)

__all__ = [
    "Tier",
    "StakerPosition",
    "AWARDED_STATUSES",
    "AllocationEntry",
    "AllocationRequest",
    "EntryStatus",
    "LaunchAllocation",
    "Mechanism",
    "PoolAllocation",
    "PoolName",
    "PoolReservation",
    "PoolStatus",
    "VestingRelease",
    "VestingSchedule",
]

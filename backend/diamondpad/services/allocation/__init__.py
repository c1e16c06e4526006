"""Launch allocation pools, distribution and vesting."""

from diamondpad.services.allocation.vesting import (
    create_vesting_schedule,
    release_due,
    select_vesting_rule,
)
from diamondpad.services.allocation.distribution import (
    DistributionContext,
    DistributionOutcome,
    distribute_fcfs,
    distribute_lottery,
    distribute_prorata,
    reserve_pool,
    tokens_for_usd,
)
from diamondpad.services.allocation.settlement import (
    LoggingSettlementGateway,
    SettlementGateway,
)
from diamondpad.services.allocation.pool_engine import (
    AllocationPoolEngine,
    ClaimResult,
    UserAllocation,
)

__all__ = [
    # Vesting
    "create_vesting_schedule",
    "release_due",
    "select_vesting_rule",
    # Distribution
    "DistributionContext",
    "DistributionOutcome",
    "distribute_fcfs",
    "distribute_lottery",
    "distribute_prorata",
    "reserve_pool",
    "tokens_for_usd",
    # Settlement
    "LoggingSettlementGateway",
    "SettlementGateway",
    # Engine
    "AllocationPoolEngine",
    "ClaimResult",
    "UserAllocation",
]

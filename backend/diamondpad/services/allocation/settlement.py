"""Hand-off to the settlement collaborator.

Settlement (token transfer, mint, lock) runs outside this engine. Calls are
fire-and-forget: a failing gateway is logged and never rolls back the
allocation state that produced the call.
"""

from typing import Protocol

import structlog

from diamondpad.models.allocation import AllocationEntry, PoolReservation

logger = structlog.get_logger()


class SettlementGateway(Protocol):
    """Receives finished awards and pool reservations."""

    def submit_allocation(self, launch_id: str, entry: AllocationEntry) -> None:
        ...

    def reserve_pool(self, launch_id: str, reservation: PoolReservation) -> None:
        ...


class LoggingSettlementGateway:
    """Default gateway that only records what would be settled."""

    def submit_allocation(self, launch_id: str, entry: AllocationEntry) -> None:
        logger.info(
            "Allocation ready for settlement",
            launch_id=launch_id,
            wallet=entry.wallet,
            pool=entry.pool.value,
            tokens=entry.allocated_tokens,
        )

    def reserve_pool(self, launch_id: str, reservation: PoolReservation) -> None:
        logger.info(
            "Pool reserved for settlement",
            launch_id=launch_id,
            pool=reservation.pool.value,
            tokens=reservation.tokens,
            release_date=reservation.release_date.isoformat(),
        )


def dispatch_allocation(gateway: SettlementGateway, launch_id: str, entry: AllocationEntry) -> bool:
    """Send one award to the gateway. Returns False if the gateway failed."""
    try:
        gateway.submit_allocation(launch_id, entry)
    except Exception as e:
        logger.warning(
            "Settlement submit failed",
            launch_id=launch_id,
            wallet=entry.wallet,
            pool=entry.pool.value,
            error=str(e),
        )
        return False
    return True


def dispatch_reservation(gateway: SettlementGateway, launch_id: str, reservation: PoolReservation) -> bool:
    """Send one pool reservation to the gateway. Returns False if the gateway failed."""
    try:
        gateway.reserve_pool(launch_id, reservation)
    except Exception as e:
        logger.warning(
            "Settlement reservation failed",
            launch_id=launch_id,
            pool=reservation.pool.value,
            error=str(e),
        )
        return False
    return True

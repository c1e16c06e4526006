"""Pytest configuration and fixtures for DiamondPad tests."""

import os
import pytest
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add backend to Python path
backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))

# Keep tests independent of any developer .env overrides
os.environ.setdefault("DIAMONDPAD_ENVIRONMENT", "test")

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = T0):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, days: float = 0, hours: float = 0) -> None:
        self.current = self.current + timedelta(days=days, hours=hours)


class RecordingGateway:
    """Settlement gateway that remembers every hand-off."""

    def __init__(self):
        self.allocations = []
        self.reservations = []

    def submit_allocation(self, launch_id, entry):
        self.allocations.append((launch_id, entry))

    def reserve_pool(self, launch_id, reservation):
        self.reservations.append((launch_id, reservation))


@pytest.fixture
def clock():
    """Manual clock starting at 2026-01-01 UTC."""
    return ManualClock()


@pytest.fixture
def settings():
    """Default settings, ignoring any .env file."""
    from diamondpad.core.config import Settings

    return Settings(_env_file=None)


@pytest.fixture
def store():
    from diamondpad.core.store import LedgerStore

    return LedgerStore()


@pytest.fixture
def staking(store, clock, settings):
    """StakingTierManager over a fresh ledger."""
    from diamondpad.services.staking.tier_manager import StakingTierManager

    return StakingTierManager(store, clock=clock, settings=settings)


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def engine(store, staking, clock, settings, gateway):
    """AllocationPoolEngine with a seeded lottery and recording gateway."""
    from diamondpad.core.randomness import SeededRandomSource
    from diamondpad.services.allocation.pool_engine import AllocationPoolEngine

    return AllocationPoolEngine(
        store,
        staking,
        clock=clock,
        random_source=SeededRandomSource(42),
        settlement=gateway,
        settings=settings,
    )

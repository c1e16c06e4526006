"""Composition root for the engine.

Builds one LedgerStore, clock, random source and metrics collector and
hands the same instances to both managers.
"""

from dataclasses import dataclass, field
from typing import Optional

import structlog

from diamondpad.core.clock import Clock, SystemClock
from diamondpad.core.config import Settings, get_settings
from diamondpad.core.metrics import MetricsCollector
from diamondpad.core.randomness import RandomSource, SeededRandomSource
from diamondpad.core.store import LedgerStore
from diamondpad.services.allocation.pool_engine import AllocationPoolEngine
from diamondpad.services.allocation.settlement import SettlementGateway
from diamondpad.services.staking.tier_manager import StakingTierManager

logger = structlog.get_logger()


@dataclass
class Launchpad:
    """Staking manager and pool engine sharing one ledger."""
    store: LedgerStore
    staking: StakingTierManager
    allocation: AllocationPoolEngine
    metrics: MetricsCollector = field(default_factory=MetricsCollector)


def create_launchpad(
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
    random_source: Optional[RandomSource] = None,
    settlement: Optional[SettlementGateway] = None,
    store: Optional[LedgerStore] = None,
) -> Launchpad:
    """Build a fully wired engine. Every dependency can be injected."""
    settings = settings or get_settings()
    store = store or LedgerStore()
    clock = clock or SystemClock()
    random_source = random_source or SeededRandomSource(settings.lottery_seed)
    metrics = MetricsCollector()

    staking = StakingTierManager(store, clock=clock, settings=settings, metrics=metrics)
    allocation = AllocationPoolEngine(
        store,
        staking,
        clock=clock,
        random_source=random_source,
        settlement=settlement,
        settings=settings,
        metrics=metrics,
    )

    logger.info(
        "Launchpad created",
        environment=settings.environment,
        lottery_seeded=settings.lottery_seed is not None,
    )
    return Launchpad(store=store, staking=staking, allocation=allocation, metrics=metrics)

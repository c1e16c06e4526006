# Core module
from diamondpad.core.config import get_settings, Settings
from diamondpad.core.errors import ErrorKind, LaunchpadError, OperationResult
from diamondpad.core.clock import Clock, SystemClock
from diamondpad.core.randomness import RandomSource, SeededRandomSource, SequenceCounter
from diamondpad.core.store import LedgerStore
from diamondpad.core.metrics import MetricsCollector

__all__ = [
    "get_settings",
    "Settings",
    "ErrorKind",
    "LaunchpadError",
    "OperationResult",
    "Clock",
    "SystemClock",
    "RandomSource",
    "SeededRandomSource",
    "SequenceCounter",
    "LedgerStore",
    "MetricsCollector",
]

"""Randomness and ordering primitives for lottery and FCFS pools.

Lottery draws take a RandomSource so tests can pin the outcome with a seed.
FCFS relies on SequenceCounter to stamp intake order.
"""

import itertools
import random
import threading
from typing import MutableSequence, Optional, Protocol, TypeVar

T = TypeVar("T")


class RandomSource(Protocol):
    """Uniform integer source used by the shuffle."""

    def randbelow(self, n: int) -> int:
        """Return a uniform integer in [0, n)."""
        ...


class SeededRandomSource:
    """RandomSource backed by random.Random.

    A fixed seed makes every draw reproducible; seed=None draws from OS entropy.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._rng = random.Random(seed)

    def randbelow(self, n: int) -> int:
        if n <= 0:
            raise ValueError("n must be positive")
        return self._rng.randrange(n)


def fisher_yates_shuffle(items: MutableSequence[T], source: RandomSource) -> MutableSequence[T]:
    """Shuffle items in place (Fisher-Yates) and return them."""
    for i in range(len(items) - 1, 0, -1):
        j = source.randbelow(i + 1)
        items[i], items[j] = items[j], items[i]
    return items


class SequenceCounter:
    """Thread-safe monotonic counter starting at 1."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            return next(self._counter)

"""In-memory ledger shared by the staking and allocation managers.

One LedgerStore is built per engine and passed to both managers; nothing
here is process-global.
"""

import threading
from collections import defaultdict
from typing import Dict, List

from diamondpad.core.randomness import SequenceCounter
from diamondpad.models.allocation import AllocationRequest, LaunchAllocation
from diamondpad.models.staking import StakerPosition


class LedgerStore:
    """Wallet and launch ledgers plus the locks that serialize them."""

    def __init__(self) -> None:
        self.stakers: Dict[str, StakerPosition] = {}
        self.launches: Dict[str, LaunchAllocation] = {}
        self.requests: Dict[str, List[AllocationRequest]] = defaultdict(list)
        self.intake_sequence = SequenceCounter()

        self.staking_lock = threading.RLock()
        self._launch_locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def launch_lock(self, launch_id: str) -> threading.RLock:
        """Lock serializing intake, pool transitions and distribution of a launch."""
        with self._locks_guard:
            lock = self._launch_locks.get(launch_id)
            if lock is None:
                lock = threading.RLock()
                self._launch_locks[launch_id] = lock
            return lock

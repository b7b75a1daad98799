"""
Settle scheduler for two-phase deletion

Objects marked Terminating are removed after a fixed settle delay. Instead
of firing timers, removals are queued as tasks keyed by object id with a due
time, and run whenever the host calls tick() (or settle() to flush the queue).
"""

import time
import heapq
import logging
import itertools
from typing import Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class ManualClock:
    """Clock that only moves when told to"""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class SettleScheduler:
    """
    Queue of deferred removal tasks.

    Tasks are unconditional once scheduled. Scheduling a key that is already
    pending keeps the original due time, so repeated deletes of the same
    object do not postpone its removal.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._queue: List[Tuple[float, int, str]] = []
        self._tasks: Dict[str, Callable[[], None]] = {}
        self._counter = itertools.count()

    def schedule(self, key: str, delay: float, action: Callable[[], None]) -> bool:
        """
        Schedule ``action`` to run ``delay`` seconds from now.

        Args:
            key: Task key, usually "<kind>/<namespace>/<name>"
            delay: Seconds until the task is due
            action: Zero-argument callable performing the removal

        Returns:
            bool: False if a task with this key was already pending
        """
        if key in self._tasks:
            return False

        due = self.clock() + delay
        self._tasks[key] = action
        heapq.heappush(self._queue, (due, next(self._counter), key))
        logger.debug(f"Scheduled {key} for removal at {due:.3f}")
        return True

    def pending(self) -> List[str]:
        """Keys of tasks that have not run yet, in due order"""
        return [key for _, _, key in sorted(self._queue)]

    def is_pending(self, key: str) -> bool:
        return key in self._tasks

    def tick(self, now: Optional[float] = None) -> int:
        """
        Run every task whose due time has passed.

        Args:
            now: Override for the current time

        Returns:
            Number of tasks run
        """
        now = self.clock() if now is None else now
        ran = 0
        while self._queue and self._queue[0][0] <= now:
            _, _, key = heapq.heappop(self._queue)
            action = self._tasks.pop(key)
            logger.debug(f"Settling {key}")
            action()
            ran += 1
        return ran

    def settle(self) -> int:
        """Run all pending tasks regardless of due time"""
        ran = 0
        while self._queue:
            _, _, key = heapq.heappop(self._queue)
            action = self._tasks.pop(key)
            logger.debug(f"Settling {key} early")
            action()
            ran += 1
        return ran

    def clear(self):
        self._queue.clear()
        self._tasks.clear()

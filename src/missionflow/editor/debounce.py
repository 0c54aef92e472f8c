"""Keyed debounce timers driven by an explicit clock.

The editor is single-threaded: timers never fire on their own. The
owner calls ``poll()`` from its event loop (or ``flush()`` before an
operation that must observe pending work), and due callbacks run there.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Hashable

logger = logging.getLogger(__name__)


@dataclass
class _Pending:
    due: float
    callback: Callable[[], None]


class Debouncer:
    """Cancel-and-reschedule timers keyed by edit target.

    Args:
        delay: Quiet period in seconds before a callback runs.
        clock: Monotonic time source (injectable for tests).
    """

    def __init__(self, delay: float = 0.5, clock: Callable[[], float] = time.monotonic) -> None:
        self.delay = delay
        self._clock = clock
        self._pending: dict[Hashable, _Pending] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, key: object) -> bool:
        return key in self._pending

    def schedule(self, key: Hashable, callback: Callable[[], None]) -> None:
        """Schedule callback for key, replacing any pending one."""
        self._pending.pop(key, None)
        self._pending[key] = _Pending(due=self._clock() + self.delay, callback=callback)

    def cancel(self, key: Hashable) -> bool:
        """Drop the pending callback for key. Returns True if one existed."""
        return self._pending.pop(key, None) is not None

    def cancel_all(self) -> None:
        self._pending.clear()

    def poll(self) -> int:
        """Run every callback whose quiet period has elapsed.

        Returns:
            Number of callbacks run.
        """
        now = self._clock()
        due = [key for key, p in self._pending.items() if p.due <= now]
        for key in due:
            pending = self._pending.pop(key, None)
            if pending is not None:
                pending.callback()
        return len(due)

    def flush(self) -> int:
        """Run every pending callback now, in scheduling order."""
        ran = 0
        while self._pending:
            key = next(iter(self._pending))
            pending = self._pending.pop(key)
            pending.callback()
            ran += 1
        if ran:
            logger.debug("Flushed %d pending callbacks", ran)
        return ran


__all__ = ["Debouncer"]

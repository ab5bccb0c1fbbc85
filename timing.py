from __future__ import annotations

import time
from typing import Callable


class TimingSession:
    """
    Start/stop bookkeeping for one traversal. A fresh session is built on every reset.
    """

    def __init__(self, clock: Callable[[], float] | None = None):
        self._clock = clock or time.monotonic
        self._started_at: float | None = None
        self._frozen: float | None = None
        self.running = False

    @property
    def started(self) -> bool:
        return self._started_at is not None

    def start(self) -> None:
        if self.running:
            return
        # A stopped session stays stopped; only the first start counts.
        if self.started:
            return
        self._started_at = self._clock()
        self.running = True

    def stop(self) -> None:
        if not self.running:
            return
        self._frozen = self._clock() - self._started_at
        self.running = False

    def elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        if self.running:
            return max(0.0, self._clock() - self._started_at)
        return max(0.0, self._frozen or 0.0)

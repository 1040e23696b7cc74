"""Run lock with a staleness timestamp."""

from __future__ import annotations

import itertools
import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


class SyncLock:
    """Marks a reconciliation run as in progress.

    Each acquisition hands out a token. Releasing with an old token is a
    no-op, so a run that was forcibly superseded cannot clear the lock of
    the run that replaced it.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._tokens = itertools.count(1)
        self._token: int | None = None
        self._started_at: float | None = None

    @property
    def in_progress(self) -> bool:
        return self._token is not None

    @property
    def started_at(self) -> float | None:
        return self._started_at

    def elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        return self._clock() - self._started_at

    def is_stale(self, max_age_seconds: float) -> bool:
        return self.in_progress and self.elapsed() >= max_age_seconds

    def acquire(self) -> int:
        token = next(self._tokens)
        self._token = token
        self._started_at = self._clock()
        return token

    def release(self, token: int | None = None) -> bool:
        """Clear the lock. With a token, only if it still belongs to that run."""
        if token is not None and token != self._token:
            logger.debug("Ignoring release from superseded run %d", token)
            return False
        self._token = None
        self._started_at = None
        return True

"""Single-flight scheduling of reconciliation runs."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from catalog_sync.config import SyncConfig
from catalog_sync.sync.lock import SyncLock
from catalog_sync.sync.protocol import CoordinatorState, SyncReport, SyncStatus, SyncTrigger

if TYPE_CHECKING:
    from catalog_sync.sync.connectivity import ConnectivitySignal
    from catalog_sync.sync.reconciler import Reconciler

logger = logging.getLogger(__name__)


class SyncCoordinator:
    """Owns the run lock and decides when the reconciler runs.

    Triggers (connectivity restored, focus, visibility, startup) go through
    a trailing debounce, so a burst of them becomes one run. A trigger that
    arrives while a run is in progress is dropped unless that run has held
    the lock longer than ``max_run_seconds``, in which case it is presumed
    crashed and the lock is taken over.

    States: IDLE -> RUNNING -> IDLE, or RUNNING -> DEFERRED when categories
    did not settle, with a retry scheduled after ``deferred_retry_seconds``.
    """

    def __init__(
        self,
        reconciler: Reconciler,
        connectivity: ConnectivitySignal,
        config: SyncConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._reconciler = reconciler
        self._connectivity = connectivity
        self._config = config or SyncConfig()
        self._lock = SyncLock(clock)
        self._state = CoordinatorState.IDLE
        self._last_report: SyncReport | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._scheduled_trigger: SyncTrigger | None = None
        self._tasks: set[asyncio.Task[SyncReport]] = set()
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def last_report(self) -> SyncReport | None:
        """Report of the last run that reached the reconciler.

        Skipped triggers (offline, lock held) return their report to the
        caller but do not replace this one.
        """
        return self._last_report

    @property
    def lock(self) -> SyncLock:
        return self._lock

    @property
    def has_scheduled_run(self) -> bool:
        return self._timer is not None

    # ========== Lifecycle ==========

    def start(self) -> None:
        """Subscribe to connectivity and schedule the startup run if online."""
        if self._unsubscribe is None:
            self._unsubscribe = self._connectivity.subscribe(self._on_connectivity_changed)
        if self._connectivity.is_online:
            self.schedule(SyncTrigger.STARTUP)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.cancel_scheduled()

    async def join(self) -> None:
        """Wait for every run started by the scheduler."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ========== Triggers ==========

    def notify_focus(self) -> None:
        self.schedule(SyncTrigger.FOCUS)

    def notify_visibility(self, visible: bool) -> None:
        if visible:
            self.schedule(SyncTrigger.VISIBILITY)

    def _on_connectivity_changed(self, online: bool) -> None:
        if online:
            self.schedule(SyncTrigger.ONLINE)
            return
        self.cancel_scheduled()
        if self._lock.in_progress:
            logger.info("Went offline during a sync run; releasing lock")
            self._lock.release()
        if self._state == CoordinatorState.DEFERRED:
            self._state = CoordinatorState.IDLE

    def schedule(self, trigger: SyncTrigger, delay: float | None = None) -> None:
        """(Re)start the debounce timer; the latest trigger wins."""
        if delay is None:
            delay = self._config.debounce_seconds
        if self._timer is not None:
            self._timer.cancel()
        self._scheduled_trigger = trigger
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(delay, self._fire)
        logger.debug("Sync scheduled in %.2fs (trigger=%s)", delay, trigger)

    def cancel_scheduled(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._scheduled_trigger = None

    def _fire(self) -> None:
        trigger = self._scheduled_trigger or SyncTrigger.MANUAL
        self._timer = None
        self._scheduled_trigger = None
        task = asyncio.create_task(self.run_once(trigger))
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[SyncReport]) -> None:
        self._tasks.discard(task)
        _log_run_exception(task)

    # ========== Running ==========

    async def run_once(self, trigger: SyncTrigger = SyncTrigger.MANUAL) -> SyncReport:
        """Run the reconciler now, unless offline or another run holds the lock."""
        if not self._connectivity.is_online:
            logger.debug("Sync skipped (offline, trigger=%s)", trigger)
            return SyncReport(status=SyncStatus.SKIPPED, trigger=trigger, message="offline")

        if self._lock.in_progress:
            elapsed = self._lock.elapsed()
            if elapsed < self._config.max_run_seconds:
                logger.debug("Sync already running for %.1fs; dropping %s", elapsed, trigger)
                return SyncReport(
                    status=SyncStatus.SKIPPED,
                    trigger=trigger,
                    message="run in progress",
                )
            logger.warning("Sync lock held for %.1fs; presuming crashed, forcing release", elapsed)
            self._lock.release()

        token = self._lock.acquire()
        self._state = CoordinatorState.RUNNING
        try:
            report = await self._reconciler.run(trigger)
        except Exception as e:
            logger.error("Sync run failed (trigger=%s)", trigger, exc_info=True)
            report = SyncReport(status=SyncStatus.ERROR, trigger=trigger, message=str(e))
        finally:
            self._lock.release(token)
            if not self._lock.in_progress:
                self._state = CoordinatorState.IDLE

        self._last_report = report
        if report.status == SyncStatus.DEFERRED and self._connectivity.is_online:
            if not self._lock.in_progress:
                self._state = CoordinatorState.DEFERRED
            self.schedule(SyncTrigger.DEFERRED_RETRY, self._config.deferred_retry_seconds)
        return report


def _log_run_exception(task: asyncio.Task[SyncReport]) -> None:
    """Log unhandled exceptions from a scheduled sync run."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Scheduled sync run raised unhandled exception: %s", exc)

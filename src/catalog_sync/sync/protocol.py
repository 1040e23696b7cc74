"""Data structures shared by the reconciler and the coordinator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from catalog_sync.core.category import Category
from catalog_sync.core.product import Product


class SyncStatus(StrEnum):
    """Outcome of one reconciliation run."""

    SUCCESS = "success"
    PARTIAL = "partial"  # some items failed and stay pending
    DEFERRED = "deferred"  # categories not ready, products phase skipped
    SKIPPED = "skipped"  # offline, or another run in progress
    ERROR = "error"


class SyncTrigger(StrEnum):
    """What asked for a run."""

    ONLINE = "online"
    FOCUS = "focus"
    VISIBILITY = "visibility"
    STARTUP = "startup"
    DEFERRED_RETRY = "deferred_retry"
    MANUAL = "manual"


class CoordinatorState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    DEFERRED = "deferred"


@dataclass(frozen=True)
class SyncReport:
    """Summary of one reconciliation run."""

    status: SyncStatus
    trigger: SyncTrigger | None = None
    deletions_acknowledged: int = 0
    deletions_failed: int = 0
    categories_resolved: int = 0
    categories_failed: int = 0
    products_created: int = 0
    products_updated: int = 0
    products_pending: int = 0
    products_total: int = 0
    message: str = ""
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == SyncStatus.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "trigger": self.trigger.value if self.trigger else None,
            "deletions_acknowledged": self.deletions_acknowledged,
            "deletions_failed": self.deletions_failed,
            "categories_resolved": self.categories_resolved,
            "categories_failed": self.categories_failed,
            "products_created": self.products_created,
            "products_updated": self.products_updated,
            "products_pending": self.products_pending,
            "products_total": self.products_total,
            "message": self.message,
            "duration_seconds": round(self.duration_seconds, 3),
        }

    def summary(self) -> str:
        return (
            f"{self.status.value}: {self.deletions_acknowledged} deletions, "
            f"{self.categories_resolved} categories resolved, "
            f"{self.products_created} created, {self.products_updated} updated, "
            f"{self.products_pending} pending"
        )


@dataclass(frozen=True)
class DataSyncedEvent:
    """Emitted after the merge refresh so views can re-read their lists."""

    products: list[Product] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)

"""Offline-first reconciliation: resolver, gate, reconciler and coordinator."""

from catalog_sync.sync.connectivity import ConnectivityProbe, ConnectivitySignal
from catalog_sync.sync.coordinator import SyncCoordinator
from catalog_sync.sync.gate import CategoryGate, GateOutcome, ready_for_primary_sync
from catalog_sync.sync.identity_resolver import IdentityResolver, ResolutionResult
from catalog_sync.sync.lock import SyncLock
from catalog_sync.sync.matching import match_created_product
from catalog_sync.sync.observers import SyncObservers
from catalog_sync.sync.protocol import (
    CoordinatorState,
    DataSyncedEvent,
    SyncReport,
    SyncStatus,
    SyncTrigger,
)
from catalog_sync.sync.reconciler import Reconciler

__all__ = [
    "CategoryGate",
    "ConnectivityProbe",
    "ConnectivitySignal",
    "CoordinatorState",
    "DataSyncedEvent",
    "GateOutcome",
    "IdentityResolver",
    "Reconciler",
    "ResolutionResult",
    "SyncCoordinator",
    "SyncLock",
    "SyncObservers",
    "SyncReport",
    "SyncStatus",
    "SyncTrigger",
    "match_created_product",
    "ready_for_primary_sync",
]

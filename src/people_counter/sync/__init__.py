"""
Synchronization of local totals with the counter store.
"""

from .client import CounterStoreClient, HttpCounterClient
from .reconciler import SyncReconciler, DEFAULT_DEBOUNCE_SECONDS

__all__ = [
    "CounterStoreClient",
    "HttpCounterClient",
    "SyncReconciler",
    "DEFAULT_DEBOUNCE_SECONDS",
]

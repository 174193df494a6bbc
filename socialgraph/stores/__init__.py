"""Account store backends and the configured-store factory."""

from django.core.exceptions import ImproperlyConfigured

from socialgraph.conf import get_setting
from .base import (
    AccountSnapshot,
    AccountStore,
    RetryableStoreError,
    StoreTransaction,
    StoreUnavailable,
    TransactionConflict,
)
from .memory_store import InMemoryAccountStore
from .orm_store import OrmAccountStore

_memory_store = None


def get_account_store() -> AccountStore:
    """Return the store named by ``SOCIALGRAPH["STORE_BACKEND"]``."""
    global _memory_store
    backend = get_setting("STORE_BACKEND")
    if backend == "orm":
        return OrmAccountStore()
    if backend == "memory":
        if _memory_store is None:
            _memory_store = InMemoryAccountStore()
        return _memory_store
    if backend == "firestore":
        from socialgraph.firebase_admin_client import get_firestore_client
        from .firestore_store import FirestoreAccountStore

        client = get_firestore_client()
        if client is None:
            raise ImproperlyConfigured(
                "STORE_BACKEND is 'firestore' but no Firestore client is available; "
                "check FIREBASE_SERVICE_ACCOUNT_FILE and FIREBASE_ENABLE_FIRESTORE."
            )
        return FirestoreAccountStore(client)
    raise ImproperlyConfigured(f"Unknown SOCIALGRAPH STORE_BACKEND: {backend!r}")


__all__ = [
    "AccountSnapshot",
    "AccountStore",
    "InMemoryAccountStore",
    "OrmAccountStore",
    "RetryableStoreError",
    "StoreTransaction",
    "StoreUnavailable",
    "TransactionConflict",
    "get_account_store",
]

"""Process-local account store with the same optimistic semantics as the real backends."""

import threading
from dataclasses import replace
from typing import Dict, Iterator, Optional

from .base import AccountSnapshot, AccountStore, StoreTransaction, TransactionConflict


class _MemoryTransaction(StoreTransaction):
    def __init__(self, store):
        super().__init__()
        self.store = store

    def _read(self, account_id):
        return self.store.get_account(account_id)


class InMemoryAccountStore(AccountStore):
    """Dictionary of snapshots keyed by account id.

    Reads are lock-free copies of immutable snapshots. Commit validates
    that every account read by the transaction is still at the version it
    was read at, then installs the writes with bumped versions; the lock
    only covers that validate-and-install step.
    """

    def __init__(self):
        self._records: Dict[str, AccountSnapshot] = {}
        self._names: Dict[str, str] = {}
        self._commit_lock = threading.Lock()

    def get_account(self, account_id) -> Optional[AccountSnapshot]:
        return self._records.get(account_id)

    def create_account(self, account_id, *, email="", display_name="") -> AccountSnapshot:
        with self._commit_lock:
            if account_id in self._records:
                raise ValueError(f"Account {account_id} already exists")
            snapshot = AccountSnapshot(id=account_id)
            self._records[account_id] = snapshot
            self._names[account_id] = display_name or email or account_id
            return snapshot

    def put_account(self, snapshot: AccountSnapshot) -> None:
        """Install a snapshot verbatim, bypassing transactions (fixtures only)."""
        with self._commit_lock:
            self._records[snapshot.id] = snapshot

    def delete_account(self, account_id) -> None:
        with self._commit_lock:
            self._records.pop(account_id, None)
            self._names.pop(account_id, None)

    def iter_account_ids(self) -> Iterator[str]:
        return iter(sorted(self._records))

    def display_names(self, account_ids) -> Dict[str, str]:
        return {
            account_id: self._names.get(account_id, account_id)
            for account_id in account_ids if account_id in self._records
        }

    def begin(self) -> _MemoryTransaction:
        return _MemoryTransaction(self)

    def run_transaction(self, fn):
        txn = self.begin()
        result = fn(txn)
        self._commit(txn)
        return result

    def _commit(self, txn: _MemoryTransaction) -> None:
        with self._commit_lock:
            for account_id, seen in txn.reads.items():
                current = self._records.get(account_id)
                if _version_of(current) != _version_of(seen):
                    raise TransactionConflict(f"Account {account_id} changed during transaction")
            for snapshot in txn.writes.values():
                self._records[snapshot.id] = replace(snapshot, version=snapshot.version + 1)


def _version_of(snapshot):
    return None if snapshot is None else snapshot.version

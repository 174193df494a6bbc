"""
Account store contract shared by every backend.

A store hands out immutable ``AccountSnapshot`` values and runs a
callable inside one optimistic transaction::

    def mutate(txn):
        actor = txn.get("u1")
        txn.put(replace(actor, following=actor.following | {"u2"}, ...))
        return actor

    store.run_transaction(mutate)

All reads in ``mutate`` happen before its writes. If another transaction
committed a conflicting write to any account read here, commit raises
``TransactionConflict`` and nothing from this attempt is persisted; the
caller decides whether to run ``mutate`` again.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Iterable, Iterator, Optional


class RetryableStoreError(Exception):
    """A transaction attempt failed in a way that is safe to re-run."""


class TransactionConflict(RetryableStoreError):
    """A concurrent commit touched an account this transaction read."""


class StoreUnavailable(RetryableStoreError):
    """The backend timed out or was temporarily unreachable."""


@dataclass(frozen=True)
class AccountSnapshot:
    """Follow state of one account as read inside (or outside) a transaction."""
    id: str
    followers: FrozenSet[str] = field(default_factory=frozenset)
    following: FrozenSet[str] = field(default_factory=frozenset)
    follower_count: int = 0
    following_count: int = 0
    version: int = 0

    @classmethod
    def from_fields(cls, account_id, *, followers=None, following=None,
                    follower_count=0, following_count=0, version=0) -> "AccountSnapshot":
        """Build a snapshot from raw stored fields (lists, None, ints)."""
        return cls(
            id=account_id,
            followers=frozenset(followers or ()),
            following=frozenset(following or ()),
            follower_count=int(follower_count or 0),
            following_count=int(following_count or 0),
            version=int(version or 0),
        )


class StoreTransaction(ABC):
    """Read/write handle passed to the callable given to ``run_transaction``."""

    def __init__(self) -> None:
        self.reads: Dict[str, Optional[AccountSnapshot]] = {}
        self.writes: Dict[str, AccountSnapshot] = {}

    def get(self, account_id: str) -> Optional[AccountSnapshot]:
        """Return the account's snapshot, or None when it does not exist."""
        if account_id not in self.reads:
            self.reads[account_id] = self._read(account_id)
        return self.reads[account_id]

    def put(self, snapshot: AccountSnapshot) -> None:
        """Stage a write of an account previously read in this transaction."""
        if self.reads.get(snapshot.id) is None:
            raise ValueError(f"Account {snapshot.id} must be read before it is written")
        self.writes[snapshot.id] = snapshot

    @abstractmethod
    def _read(self, account_id: str) -> Optional[AccountSnapshot]:
        ...


class AccountStore(ABC):
    """Pluggable persistence for account follow state."""

    @abstractmethod
    def get_account(self, account_id: str) -> Optional[AccountSnapshot]:
        """Single non-transactional read."""

    @abstractmethod
    def run_transaction(self, fn: Callable[[StoreTransaction], Any]) -> Any:
        """Run fn in one transaction and commit its staged writes atomically."""

    @abstractmethod
    def create_account(self, account_id: str, *, email: str = "", display_name: str = "") -> AccountSnapshot:
        """Create an empty account record (used by seeding and tests)."""

    @abstractmethod
    def iter_account_ids(self) -> Iterator[str]:
        """Yield every account id in the store."""

    @abstractmethod
    def display_names(self, account_ids: Iterable[str]) -> Dict[str, str]:
        """Map each existing account id to a human-readable label; unknown ids are left out."""

    def after_commit(self, callback: Callable[[], None]) -> None:
        """Run callback once the current transaction is durably committed."""
        callback()

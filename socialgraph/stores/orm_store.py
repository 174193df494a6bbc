"""Account store backed by the Django ORM ``Account`` table."""

import logging
from typing import Dict, Iterator, Optional

from django.db import OperationalError, transaction
from django.utils import timezone

from socialgraph.models import Account
from socialgraph.repos import AccountRepo
from .base import AccountSnapshot, AccountStore, StoreTransaction, TransactionConflict

logger = logging.getLogger(__name__)

_SNAPSHOT_FIELDS = ("id", "followers", "following", "follower_count", "following_count", "version")


def _snapshot_from_row(row) -> AccountSnapshot:
    return AccountSnapshot.from_fields(
        row["id"],
        followers=row["followers"],
        following=row["following"],
        follower_count=row["follower_count"],
        following_count=row["following_count"],
        version=row["version"],
    )


class _OrmTransaction(StoreTransaction):
    def __init__(self, using):
        super().__init__()
        self.using = using

    def _read(self, account_id):
        row = (
            Account.objects.using(self.using)
            .filter(pk=account_id)
            .values(*_SNAPSHOT_FIELDS)
            .first()
        )
        return _snapshot_from_row(row) if row else None

    def commit(self):
        """Compare-and-swap every staged row on the version it was read at."""
        now = timezone.now()
        for snapshot in self.writes.values():
            updated = (
                Account.objects.using(self.using)
                .filter(pk=snapshot.id, version=snapshot.version)
                .update(
                    followers=sorted(snapshot.followers),
                    following=sorted(snapshot.following),
                    follower_count=snapshot.follower_count,
                    following_count=snapshot.following_count,
                    version=snapshot.version + 1,
                    last_updated=now,
                )
            )
            if updated != 1:
                logger.debug("Version check failed for account %s at version %s", snapshot.id, snapshot.version)
                raise TransactionConflict(
                    f"Account {snapshot.id} changed since version {snapshot.version}"
                )


class OrmAccountStore(AccountStore):
    """Optimistic transactions over ``Account`` rows.

    Each attempt runs in ``transaction.atomic``; a failed version check
    raises inside the block so every row written by the attempt is rolled
    back together.
    """

    def __init__(self, using="default"):
        self.using = using

    def get_account(self, account_id) -> Optional[AccountSnapshot]:
        return _OrmTransaction(self.using)._read(account_id)

    def run_transaction(self, fn):
        try:
            with transaction.atomic(using=self.using):
                txn = _OrmTransaction(self.using)
                result = fn(txn)
                txn.commit()
                return result
        except OperationalError as error:
            # Lock timeouts and serialization failures surface here.
            raise TransactionConflict(str(error)) from error

    def create_account(self, account_id, *, email="", display_name="") -> AccountSnapshot:
        account = Account.objects.using(self.using).create(
            id=account_id, email=email, display_name=display_name
        )
        return AccountSnapshot.from_fields(account.id, version=account.version)

    def iter_account_ids(self) -> Iterator[str]:
        return Account.objects.using(self.using).order_by("id").values_list("id", flat=True).iterator()

    def display_names(self, account_ids) -> Dict[str, str]:
        return AccountRepo(using=self.using).display_names(account_ids)

    def after_commit(self, callback):
        transaction.on_commit(callback, using=self.using)

"""Read-only helpers for follow status, counts and follower/following pages."""

import logging

from socialgraph.exceptions import TransientStoreError
from socialgraph.identity import caller_account_id
from socialgraph.stores import RetryableStoreError, get_account_store
from .results import AccountCounts

logger = logging.getLogger(__name__)


class FollowReadService:
    """Answer follow questions from a single read of one account record."""

    def __init__(self, store=None):
        self.store = store or get_account_store()

    def _read(self, account_id):
        try:
            return self.store.get_account(account_id)
        except RetryableStoreError as error:
            raise TransientStoreError(f"Could not read account {account_id}") from error

    def get_following_status(self, actor_id, candidate_ids):
        """Map every candidate id to whether actor_id currently follows it.

        Anonymous actors (None) and unknown actors get an all-False map;
        the actor's own id is always False.
        """
        candidates = list(dict.fromkeys(candidate_ids or ()))
        status = dict.fromkeys(candidates, False)
        if not actor_id or not candidates:
            return status
        actor = self._read(actor_id)
        if actor is None:
            logger.debug("Following status requested for unknown account %s", actor_id)
            return status
        for candidate_id in candidates:
            status[candidate_id] = candidate_id != actor_id and candidate_id in actor.following
        return status

    def status_for_caller(self, caller, candidate_ids):
        """Following status as seen by the request's caller."""
        return self.get_following_status(caller_account_id(caller), candidate_ids)

    def get_counts(self, account_id) -> AccountCounts:
        """Return stored follower/following counts; zeros for unknown accounts."""
        account = self._read(account_id) if account_id else None
        if account is None:
            return AccountCounts()
        return AccountCounts(followers=account.follower_count, following=account.following_count)

    def follower_ids(self, account_id, page=1, page_size=20):
        """Return one sorted page of ids following the account."""
        account = self._read(account_id)
        return _page(account.followers if account else (), page, page_size)

    def following_ids(self, account_id, page=1, page_size=20):
        """Return one sorted page of ids the account follows."""
        account = self._read(account_id)
        return _page(account.following if account else (), page, page_size)

    def display_names(self, account_ids):
        """Labels for the given accounts from the configured store; unknown ids are left out."""
        account_ids = list(account_ids)
        if not account_ids:
            return {}
        try:
            return self.store.display_names(account_ids)
        except RetryableStoreError as error:
            raise TransientStoreError("Could not read account names") from error


def _page(ids, page, page_size):
    start = (max(1, int(page)) - 1) * max(0, int(page_size))
    return sorted(ids)[start:start + max(0, int(page_size))]

"""Audit, repair and account-deletion cleanup for the follow graph.

Deleting an account cascades explicitly: ``detach_account`` removes the
account from every neighbour's sets and decrements the matching counter.
``audit``/``repair`` are the safety net for records corrupted outside the
engine (manual edits, legacy batch writes).
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional

from socialgraph.conf import get_setting
from socialgraph.exceptions import InvariantViolationError
from socialgraph.stores import get_account_store
from . import edges
from .retry import run_with_retry

logger = logging.getLogger(__name__)

COUNTER_DRIFT = "counter_drift"
HALF_EDGE = "half_edge"
DANGLING_REFERENCE = "dangling_reference"
SELF_EDGE = "self_edge"


@dataclass(frozen=True)
class GraphIssue:
    kind: str
    account_id: str
    detail: str
    other_id: Optional[str] = None

    def __str__(self):
        return f"{self.kind} on {self.account_id}: {self.detail}"


class GraphMaintenanceService:
    def __init__(self, store=None, max_attempts=None, backoff=None):
        self.store = store or get_account_store()
        self.max_attempts = max(1, int(max_attempts or get_setting("MAX_TRANSACTION_ATTEMPTS")))
        self.backoff = get_setting("RETRY_BACKOFF_SECONDS") if backoff is None else backoff

    def detach_account(self, account_id) -> int:
        """Remove every reference to account_id from its neighbours.

        Uses the account's own sets when the record still exists, otherwise
        scans the whole store. Returns the number of neighbours changed.
        A neighbour with corrupt counters raises InvariantViolationError;
        neighbours already detached stay detached (re-running is safe).
        """
        account = self.store.get_account(account_id)
        if account is None:
            neighbours = [other for other in self.store.iter_account_ids() if other != account_id]
            return sum(self._detach_from(other, account_id) for other in neighbours)
        changed = 0
        for neighbour_id in sorted(account.followers | account.following):
            if neighbour_id != account_id:
                changed += self._detach_from(neighbour_id, account_id)
        logger.info("Detached account %s from %d neighbours", account_id, changed)
        return changed

    def _detach_from(self, neighbour_id, account_id) -> int:
        def mutate(txn):
            neighbour = txn.get(neighbour_id)
            if neighbour is None:
                return False
            updated = edges.drop_follower(edges.drop_following(neighbour, account_id), account_id)
            if updated == neighbour:
                return False
            edges.check_counters(neighbour)
            txn.put(updated)
            return True

        try:
            return int(self._run(mutate, f"detach {account_id} from {neighbour_id}"))
        except InvariantViolationError as error:
            logger.critical("Could not detach %s from %s (run audit_follow_graph --repair first): %s",
                            account_id, neighbour_id, error)
            raise

    def audit(self, account_ids=None) -> List[GraphIssue]:
        """Check symmetry, counter accuracy, self edges and dangling ids."""
        ids = list(account_ids) if account_ids else list(self.store.iter_account_ids())
        loaded = {}

        def load(account_id):
            if account_id not in loaded:
                loaded[account_id] = self.store.get_account(account_id)
            return loaded[account_id]

        issues = []
        for account_id in ids:
            account = load(account_id)
            if account is not None:
                issues.extend(_issues_for(account, load))
        for issue in issues:
            logger.error("Follow graph issue: %s", issue)
        return issues

    def repair(self, issues) -> int:
        """Rebuild each affected account from consistent edges; returns accounts changed."""
        repaired = 0
        for account_id in sorted({issue.account_id for issue in issues}):
            if self._run(lambda txn, account_id=account_id: _repair_account(txn, account_id),
                         f"repair {account_id}"):
                logger.warning("Repaired follow state of account %s", account_id)
                repaired += 1
        return repaired

    def _run(self, fn, description):
        return run_with_retry(
            self.store, fn, max_attempts=self.max_attempts, backoff=self.backoff, description=description
        )


def _issues_for(account, load):
    issues = []
    if account.follower_count != len(account.followers):
        issues.append(GraphIssue(COUNTER_DRIFT, account.id,
                                 f"followerCount={account.follower_count} but {len(account.followers)} followers"))
    if account.following_count != len(account.following):
        issues.append(GraphIssue(COUNTER_DRIFT, account.id,
                                 f"followingCount={account.following_count} but {len(account.following)} followed"))
    if account.id in account.following or account.id in account.followers:
        issues.append(GraphIssue(SELF_EDGE, account.id, "account references itself", account.id))
    for followed_id in sorted(account.following - {account.id}):
        other = load(followed_id)
        if other is None:
            issues.append(GraphIssue(DANGLING_REFERENCE, account.id, f"follows missing account {followed_id}", followed_id))
        elif account.id not in other.followers:
            issues.append(GraphIssue(HALF_EDGE, account.id, f"follows {followed_id} but is not in its followers", followed_id))
    for follower_id in sorted(account.followers - {account.id}):
        other = load(follower_id)
        if other is None:
            issues.append(GraphIssue(DANGLING_REFERENCE, account.id, f"followed by missing account {follower_id}", follower_id))
        elif account.id not in other.following:
            issues.append(GraphIssue(HALF_EDGE, account.id, f"lists follower {follower_id} that does not follow it", follower_id))
    return issues


def _repair_account(txn, account_id):
    """Keep only edges recorded on both ends, then recount."""
    account = txn.get(account_id)
    if account is None:
        return False
    following = frozenset(
        other_id for other_id in account.following
        if other_id != account_id and _has(txn.get(other_id), "followers", account_id)
    )
    followers = frozenset(
        other_id for other_id in account.followers
        if other_id != account_id and _has(txn.get(other_id), "following", account_id)
    )
    updated = edges.recount(replace(account, followers=followers, following=following))
    if updated == account:
        return False
    txn.put(updated)
    return True


def _has(snapshot, field, account_id):
    return snapshot is not None and account_id in getattr(snapshot, field)

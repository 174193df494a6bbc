"""Relationship mutator: create and remove follow edges atomically."""

import logging

from socialgraph.conf import get_setting
from socialgraph.exceptions import (
    ActorNotFoundError,
    InvalidRequestError,
    InvariantViolationError,
    SelfFollowError,
    TargetNotFoundError,
    UnauthorizedError,
)
from socialgraph.identity import may_act_as
from socialgraph.stores import get_account_store
from . import edges
from .notifications import FollowNotifier
from .results import FollowOutcome, FollowResult
from .retry import run_with_retry

logger = logging.getLogger(__name__)


class FollowService:
    """Follow/unfollow on behalf of ``caller``.

    Every mutation is one read-check-write store transaction over both
    account records. A transaction that loses a race with a concurrent
    writer is re-run from scratch, up to ``max_attempts`` times with
    exponential backoff, and only then reported as ``TransientStoreError``.
    """

    def __init__(self, caller, store=None, notifier=None, max_attempts=None, backoff=None):
        self.caller = caller
        self.store = store or get_account_store()
        self.notifier = notifier or FollowNotifier()
        self.max_attempts = max(1, int(max_attempts or get_setting("MAX_TRANSACTION_ATTEMPTS")))
        self.backoff = get_setting("RETRY_BACKOFF_SECONDS") if backoff is None else backoff

    def follow(self, actor_id, target_id) -> FollowResult:
        """Make actor follow target; ALREADY_FOLLOWING when the edge exists."""
        self._check_request(actor_id, target_id)
        result = self._run("follow", actor_id, target_id, self._follow_in_transaction)
        if result.changed:
            logger.info("Account %s followed %s", actor_id, target_id)
            self.store.after_commit(lambda: self.notifier.notify_followed(actor_id, target_id))
        else:
            logger.debug("Account %s already follows %s", actor_id, target_id)
        return result

    def unfollow(self, actor_id, target_id) -> FollowResult:
        """Remove actor -> target; NOT_FOLLOWING when there is no edge."""
        self._check_request(actor_id, target_id)
        result = self._run("unfollow", actor_id, target_id, self._unfollow_in_transaction)
        if result.changed:
            logger.info("Account %s unfollowed %s", actor_id, target_id)
        else:
            logger.debug("Account %s does not follow %s", actor_id, target_id)
        return result

    def toggle_follow(self, actor_id, target_id, currently_following) -> FollowResult:
        """Flip the edge the caller believes is in place.

        A stale belief is harmless: the call lands on the idempotent
        ALREADY_FOLLOWING / NOT_FOLLOWING outcome instead.
        """
        if currently_following:
            return self.unfollow(actor_id, target_id)
        return self.follow(actor_id, target_id)

    def _check_request(self, actor_id, target_id):
        if not actor_id or not target_id:
            raise InvalidRequestError("Both actor and target account ids are required")
        if actor_id == target_id:
            raise SelfFollowError(actor_id)
        if not may_act_as(self.caller, actor_id):
            raise UnauthorizedError(f"Caller may not act as account {actor_id}")

    def _run(self, operation, actor_id, target_id, mutate):
        try:
            return run_with_retry(
                self.store,
                lambda txn: mutate(txn, actor_id, target_id),
                max_attempts=self.max_attempts,
                backoff=self.backoff,
                description=f"{operation} {actor_id} -> {target_id}",
            )
        except InvariantViolationError as error:
            logger.critical("%s %s -> %s found corrupt follow state: %s",
                            operation, actor_id, target_id, error)
            raise

    def _load_pair(self, txn, actor_id, target_id):
        actor = txn.get(actor_id)
        target = txn.get(target_id)
        if actor is None:
            raise ActorNotFoundError(actor_id)
        if target is None:
            raise TargetNotFoundError(target_id)
        return actor, target

    def _follow_in_transaction(self, txn, actor_id, target_id):
        actor, target = self._load_pair(txn, actor_id, target_id)
        edges.check_counters(actor)
        edges.check_counters(target)
        if edges.is_following(actor, target):
            return _result(FollowOutcome.ALREADY_FOLLOWING, actor, target)
        actor, target = edges.add_edge(actor, target)
        txn.put(actor)
        txn.put(target)
        return _result(FollowOutcome.FOLLOWED, actor, target)

    def _unfollow_in_transaction(self, txn, actor_id, target_id):
        actor, target = self._load_pair(txn, actor_id, target_id)
        if not edges.is_following(actor, target):
            edges.check_counters(actor)
            edges.check_counters(target)
            return _result(FollowOutcome.NOT_FOLLOWING, actor, target)
        # A decrement below zero is reported as underflow before any other drift.
        updated_actor, updated_target = edges.remove_edge(actor, target)
        edges.check_counters(actor)
        edges.check_counters(target)
        txn.put(updated_actor)
        txn.put(updated_target)
        return _result(FollowOutcome.UNFOLLOWED, updated_actor, updated_target)


def _result(outcome, actor, target):
    return FollowResult(
        outcome=outcome,
        actor_id=actor.id,
        target_id=target.id,
        actor_following_count=actor.following_count,
        target_follower_count=target.follower_count,
    )

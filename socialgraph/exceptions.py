"""
Typed errors raised by the follow engine.

Every error carries a ``category`` so callers (API views, commands) can
translate it without inspecting the concrete class:

- ``invalid_request``: self-follow, blank ids
- ``not_found``: actor or target account absent
- ``unauthorized``: caller may not act as the claimed actor
- ``transient``: store contention or unavailability after retries
- ``invariant``: stored state already violates the graph invariants
  (half edge, counter drift, counter underflow)

"Already following" and "not following" are outcomes, not errors; see
``socialgraph.services.results.FollowOutcome``.
"""


class FollowError(Exception):
    """Base class for all follow engine errors."""
    category = "error"
    default_message = "Follow operation failed"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)


class InvalidRequestError(FollowError):
    category = "invalid_request"
    default_message = "Invalid follow request"


class SelfFollowError(InvalidRequestError):
    default_message = "Accounts cannot follow themselves"

    def __init__(self, account_id):
        self.account_id = account_id
        super().__init__(f"Account {account_id} cannot follow itself")


class AccountNotFoundError(FollowError):
    """An endpoint of the edge has no account record."""
    category = "not_found"
    side = "account"

    def __init__(self, account_id):
        self.account_id = account_id
        super().__init__(f"{self.side.capitalize()} account {account_id} was not found")


class ActorNotFoundError(AccountNotFoundError):
    side = "actor"


class TargetNotFoundError(AccountNotFoundError):
    side = "target"


class UnauthorizedError(FollowError):
    category = "unauthorized"
    default_message = "Caller is not allowed to act as this account"


class TransientStoreError(FollowError):
    """The store kept aborting or timing out; safe to retry later."""
    category = "transient"
    default_message = "The account store is busy, please retry"
    retryable = True


class InvariantViolationError(FollowError):
    """Stored follow state is already corrupt; never expected in normal operation."""
    category = "invariant"
    default_message = "Follow graph invariant violated"


class CounterUnderflowError(InvariantViolationError):
    def __init__(self, account_id, field):
        self.account_id = account_id
        self.field = field
        super().__init__(f"{field} of account {account_id} would drop below zero")


class EdgeMismatchError(InvariantViolationError):
    """Only one half of an edge is recorded."""

    def __init__(self, actor_id, target_id):
        self.actor_id = actor_id
        self.target_id = target_id
        super().__init__(
            f"Edge {actor_id} -> {target_id} is recorded on one account but not the other"
        )


class CounterMismatchError(InvariantViolationError):
    """A stored counter disagrees with the size of the set it counts."""

    def __init__(self, account_id, field, stored, actual):
        self.account_id = account_id
        self.field = field
        self.stored = stored
        self.actual = actual
        super().__init__(f"{field} of account {account_id} is {stored} but the set holds {actual}")

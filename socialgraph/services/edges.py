"""Pure rules for adding and removing one follow edge on two snapshots.

Nothing here touches a store; the follow service feeds these functions
the snapshots read inside a transaction and writes back what they return.
"""

from dataclasses import replace
from typing import Tuple

from socialgraph.exceptions import CounterMismatchError, CounterUnderflowError, EdgeMismatchError
from socialgraph.stores import AccountSnapshot

SnapshotPair = Tuple[AccountSnapshot, AccountSnapshot]


def is_following(actor: AccountSnapshot, target: AccountSnapshot) -> bool:
    """Return whether actor follows target; both halves of the edge must agree."""
    forward = target.id in actor.following
    backward = actor.id in target.followers
    if forward != backward:
        raise EdgeMismatchError(actor.id, target.id)
    return forward


def check_counters(account: AccountSnapshot) -> AccountSnapshot:
    """Raise CounterMismatchError unless both counters equal their set sizes."""
    if account.follower_count != len(account.followers):
        raise CounterMismatchError(account.id, "followerCount", account.follower_count, len(account.followers))
    if account.following_count != len(account.following):
        raise CounterMismatchError(account.id, "followingCount", account.following_count, len(account.following))
    return account


def add_edge(actor: AccountSnapshot, target: AccountSnapshot) -> SnapshotPair:
    """Record actor -> target on both accounts and bump both counters by one."""
    return (
        replace(
            actor,
            following=actor.following | {target.id},
            following_count=actor.following_count + 1,
        ),
        replace(
            target,
            followers=target.followers | {actor.id},
            follower_count=target.follower_count + 1,
        ),
    )


def remove_edge(actor: AccountSnapshot, target: AccountSnapshot) -> SnapshotPair:
    """Drop actor -> target from both accounts and decrement both counters."""
    if actor.following_count < 1:
        raise CounterUnderflowError(actor.id, "followingCount")
    if target.follower_count < 1:
        raise CounterUnderflowError(target.id, "followerCount")
    return (
        replace(
            actor,
            following=actor.following - {target.id},
            following_count=actor.following_count - 1,
        ),
        replace(
            target,
            followers=target.followers - {actor.id},
            follower_count=target.follower_count - 1,
        ),
    )


def drop_follower(account: AccountSnapshot, follower_id: str) -> AccountSnapshot:
    """Remove a single follower reference (the other endpoint is gone)."""
    if follower_id not in account.followers:
        return account
    if account.follower_count < 1:
        raise CounterUnderflowError(account.id, "followerCount")
    return replace(
        account,
        followers=account.followers - {follower_id},
        follower_count=account.follower_count - 1,
    )


def drop_following(account: AccountSnapshot, followed_id: str) -> AccountSnapshot:
    """Remove a single following reference (the other endpoint is gone)."""
    if followed_id not in account.following:
        return account
    if account.following_count < 1:
        raise CounterUnderflowError(account.id, "followingCount")
    return replace(
        account,
        following=account.following - {followed_id},
        following_count=account.following_count - 1,
    )


def recount(account: AccountSnapshot) -> AccountSnapshot:
    """Reset both counters to the sizes of their sets."""
    return replace(
        account,
        follower_count=len(account.followers),
        following_count=len(account.following),
    )

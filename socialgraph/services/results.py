"""Outcome values returned by follow/unfollow and the counts read model."""

from dataclasses import dataclass
from enum import Enum


class FollowOutcome(str, Enum):
    FOLLOWED = "followed"
    ALREADY_FOLLOWING = "already_following"
    UNFOLLOWED = "unfollowed"
    NOT_FOLLOWING = "not_following"


@dataclass(frozen=True)
class FollowResult:
    """Outcome of one follow/unfollow call plus the counts it left behind."""
    outcome: FollowOutcome
    actor_id: str
    target_id: str
    actor_following_count: int
    target_follower_count: int

    @property
    def changed(self) -> bool:
        """True when the call created or removed the edge."""
        return self.outcome in (FollowOutcome.FOLLOWED, FollowOutcome.UNFOLLOWED)

    @property
    def is_following(self) -> bool:
        return self.outcome in (FollowOutcome.FOLLOWED, FollowOutcome.ALREADY_FOLLOWING)

    def as_dict(self):
        return {
            "status": self.outcome.value,
            "actor_id": self.actor_id,
            "target_id": self.target_id,
            "actor_following_count": self.actor_following_count,
            "target_follower_count": self.target_follower_count,
        }


@dataclass(frozen=True)
class AccountCounts:
    followers: int = 0
    following: int = 0

"""Account record carrying the denormalised follow state."""

from __future__ import annotations
from django.db import models


class Account(models.Model):
    """One account document: follower/following id sets plus their counters.

    ``followers`` and ``following`` are stored as sorted JSON arrays of
    account ids. ``version`` is bumped on every write made through the
    account store and is the compare-and-swap token for concurrent
    follow/unfollow transactions.
    """
    id = models.CharField(primary_key=True, max_length=128)
    email = models.EmailField(blank=True, db_index=True)
    display_name = models.CharField(max_length=150, blank=True)

    followers = models.JSONField(default=list, blank=True)
    following = models.JSONField(default=list, blank=True)
    follower_count = models.PositiveIntegerField(default=0)
    following_count = models.PositiveIntegerField(default=0)

    version = models.PositiveIntegerField(default=0)
    last_updated = models.DateTimeField(auto_now=True)

    class Meta:
        """DB metadata for account follow state."""
        db_table = "accounts"
        ordering = ["id"]

    def __str__(self) -> str:
        """Readable representation for admin/debugging."""
        return f"Account({self.id}, followers={self.follower_count}, following={self.following_count})"

    @property
    def name(self) -> str:
        """Best human-readable label for messages."""
        return self.display_name or self.email or self.id

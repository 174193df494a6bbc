from django.contrib.auth import get_user_model

from socialgraph.models import Account

User = get_user_model()


def make_user(account_id, **kwargs):
    """Create the Django user that acts as account_id."""
    return User.objects.create_user(
        username=account_id,
        email=kwargs.pop("email", f"{account_id}@example.org"),
        password=kwargs.pop("password", "Password123"),
        **kwargs,
    )


def make_account(account_id, *, followers=(), following=(), follower_count=None, following_count=None, **extra):
    """
    Create an Account row. Counters default to the set sizes; pass them
    explicitly to build deliberately corrupt records.
    """
    return Account.objects.create(
        id=account_id,
        email=extra.pop("email", f"{account_id}@example.org"),
        display_name=extra.pop("display_name", f"User {account_id}"),
        followers=sorted(followers),
        following=sorted(following),
        follower_count=len(followers) if follower_count is None else follower_count,
        following_count=len(following) if following_count is None else following_count,
        **extra,
    )


class RecordingSink:
    """Notification sink that remembers what it was asked to append."""

    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def append_follow(self, actor_id, target_id):
        self.calls.append((actor_id, target_id))
        if self.error:
            raise self.error

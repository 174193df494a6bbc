from .api_views import (
    FollowEdgeApi,
    account_counts_api,
    follow_list_api,
    following_status_api,
)

__all__ = [
    "FollowEdgeApi",
    "account_counts_api",
    "follow_list_api",
    "following_status_api",
]

from .follow import FollowService
from .follow_read import FollowReadService
from .maintenance import GraphIssue, GraphMaintenanceService
from .notifications import FollowNotifier, NotificationService
from .results import AccountCounts, FollowOutcome, FollowResult

__all__ = [
    "AccountCounts",
    "FollowNotifier",
    "FollowOutcome",
    "FollowReadService",
    "FollowResult",
    "FollowService",
    "GraphIssue",
    "GraphMaintenanceService",
    "NotificationService",
]

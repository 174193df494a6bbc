from .account import Account
from .notification import Notification

__all__ = [
    "Account",
    "Notification",
]

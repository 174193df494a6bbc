"""Access to the ``SOCIALGRAPH`` settings dict with package defaults."""

from django.conf import settings

DEFAULTS = {
    "STORE_BACKEND": "orm",
    "NOTIFICATION_BACKEND": "orm",
    "FIRESTORE_ACCOUNTS_COLLECTION": "users",
    "FIRESTORE_NOTIFICATIONS_COLLECTION": "notifications",
    "MAX_TRANSACTION_ATTEMPTS": 5,
    "RETRY_BACKOFF_SECONDS": 0.05,
    "NOTIFY_ASYNC": True,
    "NOTIFY_MAX_PENDING": 1000,
    "NOTIFICATION_HISTORY_LIMIT": 100,
}


def get_setting(name):
    """Return the configured value for name, falling back to DEFAULTS."""
    configured = getattr(settings, "SOCIALGRAPH", None) or {}
    if name in configured:
        return configured[name]
    return DEFAULTS[name]

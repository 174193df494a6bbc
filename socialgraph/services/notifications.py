"""Follow notifications: best-effort dispatch after commit, and read helpers for the bell."""

import atexit
import logging
import threading
from concurrent.futures import ThreadPoolExecutor

from django.core.exceptions import ImproperlyConfigured
from django.db import connections, transaction
from firebase_admin import firestore

from socialgraph.conf import get_setting
from socialgraph.models import Account, Notification
from socialgraph.stores.firestore_store import display_name_of

logger = logging.getLogger(__name__)

_executor = None
_pending = None
_executor_lock = threading.Lock()


def _background_executor():
    """Return the shared executor and the semaphore bounding its queue."""
    global _executor, _pending
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="follow-notify")
            _pending = threading.BoundedSemaphore(get_setting("NOTIFY_MAX_PENDING"))
            atexit.register(shutdown_background_executor)
        return _executor, _pending


def shutdown_background_executor(wait=True):
    """Stop the shared executor, letting queued notifications finish when wait is set."""
    global _executor
    with _executor_lock:
        executor, _executor = _executor, None
    if executor is not None:
        logger.debug("Shutting down follow notification executor")
        executor.shutdown(wait=wait)


def _follow_message(name):
    return f"{name} started following you"


class OrmNotificationSink:
    """Append follow notifications as ``Notification`` rows."""

    def append_follow(self, actor_id, target_id):
        sender = Account.objects.filter(pk=actor_id).only("id", "email", "display_name").first()
        name = sender.name if sender else actor_id
        # Savepoint keeps a failed insert from poisoning an enclosing transaction.
        with transaction.atomic():
            Notification.objects.create(
                recipient_id=target_id,
                sender_id=actor_id,
                notification_type=Notification.TYPE_FOLLOW,
                message=_follow_message(name),
            )


class FirestoreNotificationSink:
    """Append follow notifications to the Firestore ``notifications`` collection."""

    def __init__(self, client, collection=None, accounts_collection=None):
        self.client = client
        self.collection = collection or get_setting("FIRESTORE_NOTIFICATIONS_COLLECTION")
        self.accounts_collection = accounts_collection or get_setting("FIRESTORE_ACCOUNTS_COLLECTION")

    def append_follow(self, actor_id, target_id):
        sender = self.client.collection(self.accounts_collection).document(actor_id).get()
        name = (display_name_of(sender.to_dict() or {}) if sender.exists else "") or actor_id
        self.client.collection(self.collection).add({
            "userId": target_id,
            "type": Notification.TYPE_FOLLOW,
            "followedBy": actor_id,
            "followedByName": name,
            "message": _follow_message(name),
            "isRead": False,
            "createdAt": firestore.SERVER_TIMESTAMP,
        })


def get_notification_sink():
    """Return the sink named by ``SOCIALGRAPH["NOTIFICATION_BACKEND"]``."""
    backend = get_setting("NOTIFICATION_BACKEND")
    if backend == "orm":
        return OrmNotificationSink()
    if backend == "firestore":
        from socialgraph.firebase_admin_client import get_firestore_client

        client = get_firestore_client()
        if client is None:
            raise ImproperlyConfigured("NOTIFICATION_BACKEND is 'firestore' but Firestore is unavailable")
        return FirestoreNotificationSink(client)
    raise ImproperlyConfigured(f"Unknown SOCIALGRAPH NOTIFICATION_BACKEND: {backend!r}")


class FollowNotifier:
    """Record "you were followed" for the target of a committed follow.

    Delivery failures are logged and dropped: a notification is never
    allowed to fail or retry the follow that triggered it. Asynchronous
    delivery keeps at most ``NOTIFY_MAX_PENDING`` notifications queued;
    anything beyond that is dropped with a warning.
    """

    def __init__(self, sink=None, run_async=None, executor=None, max_pending=None):
        self._sink = sink
        self.run_async = get_setting("NOTIFY_ASYNC") if run_async is None else run_async
        self.executor = executor
        self._slots = None
        if executor is not None:
            self._slots = threading.BoundedSemaphore(max_pending or get_setting("NOTIFY_MAX_PENDING"))

    def notify_followed(self, actor_id, target_id) -> None:
        if not self.run_async:
            self._deliver(actor_id, target_id)
            return
        if self.executor is not None:
            executor, slots = self.executor, self._slots
        else:
            executor, slots = _background_executor()
        if not slots.acquire(blocking=False):
            logger.warning("Notification queue is full; dropping follow notification %s -> %s",
                           actor_id, target_id)
            return
        try:
            future = executor.submit(self._deliver_in_thread, actor_id, target_id)
        except RuntimeError:
            slots.release()
            logger.warning("Notification executor unavailable; dropping follow notification %s -> %s",
                           actor_id, target_id)
            return
        future.add_done_callback(lambda _: slots.release())

    def _deliver_in_thread(self, actor_id, target_id):
        try:
            self._deliver(actor_id, target_id)
        finally:
            connections.close_all()

    def _deliver(self, actor_id, target_id):
        try:
            sink = self._sink or get_notification_sink()
            sink.append_follow(actor_id, target_id)
        except Exception:
            logger.warning("Follow notification %s -> %s failed", actor_id, target_id, exc_info=True)
            return
        logger.debug("Follow notification recorded for %s (from %s)", target_id, actor_id)


class NotificationService:
    """Encapsulate notification querying and read-state updates."""

    def __init__(self, notification_model=Notification):
        self.notification_model = notification_model

    def fetch(self, account_id, limit=50):
        """Fetch the newest notifications for an account."""
        return list(
            self.notification_model.objects.filter(recipient_id=account_id)
            .select_related("sender")
            .order_by("-created_at", "-id")[:limit]
        )

    def filter_notifications(self, notifs):
        """Collapse repeated follow notifications from the same sender (newest wins)."""
        seen_follow_senders = set()
        filtered = []
        for notif in notifs:
            if notif.notification_type != Notification.TYPE_FOLLOW:
                filtered.append(notif)
                continue
            if notif.sender_id in seen_follow_senders:
                continue
            seen_follow_senders.add(notif.sender_id)
            filtered.append(notif)
        return filtered

    def visible_notifications(self, account_id, limit=50):
        """Return deduplicated notifications for an account."""
        return self.filter_notifications(self.fetch(account_id, limit=limit))

    def unread_count(self, account_id):
        return self.notification_model.objects.filter(recipient_id=account_id, is_read=False).count()

    def mark_read(self, notification_id, account_id):
        """Mark one of the account's notifications read; False if it is not theirs."""
        updated = self.notification_model.objects.filter(
            id=notification_id, recipient_id=account_id
        ).update(is_read=True)
        return updated == 1

    def mark_all_read(self, account_id):
        """Mark all unread notifications for the account as read."""
        return self.notification_model.objects.filter(recipient_id=account_id, is_read=False).update(is_read=True)

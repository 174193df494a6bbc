import logging

from django.db.models.signals import post_save, pre_delete
from django.dispatch import receiver

from socialgraph.conf import get_setting
from socialgraph.models import Account, Notification
from socialgraph.services.maintenance import GraphMaintenanceService
from socialgraph.stores import OrmAccountStore

logger = logging.getLogger(__name__)


@receiver(pre_delete, sender=Account)
def detach_deleted_account(sender, instance, using, **kwargs):
    """Remove a deleted account from its neighbours' follower/following sets.

    Corrupt neighbour state raises out of here, which aborts the delete
    (and rolls back the detaches already made) inside Django's delete
    transaction.
    """
    GraphMaintenanceService(store=OrmAccountStore(using=using)).detach_account(instance.pk)


@receiver(post_save, sender=Notification)
def trim_notification_history(sender, instance, created, **kwargs):
    """Keep a reasonable cap on notification history without nuking recent items."""
    if not created:
        return

    limit = get_setting("NOTIFICATION_HISTORY_LIMIT")
    keep_ids = list(
        Notification.objects.filter(recipient_id=instance.recipient_id)
        .order_by("-created_at", "-id")
        .values_list("id", flat=True)[:limit]
    )
    if keep_ids:
        trimmed, _ = (
            Notification.objects.filter(recipient_id=instance.recipient_id)
            .exclude(id__in=keep_ids)
            .delete()
        )
        if trimmed:
            logger.debug("Trimmed %d old notifications for %s", trimmed, instance.recipient_id)

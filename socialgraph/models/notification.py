from django.db import models
from .account import Account

"""
Notification model

Append-only in-app notifications for accounts (the "bell").

- `recipient`: the account being notified (the followed account)
- `sender`: the account that triggered it (the follower)
- `notification_type`: only "follow" is produced by the follow engine
- `message`: pre-rendered text, e.g. "Ada started following you"

Notifications are best-effort: a missing or duplicated row never affects
follow correctness. Ordered newest-first.
"""

class Notification(models.Model):
    TYPE_FOLLOW = 'follow'
    TYPES = [
        (TYPE_FOLLOW, 'Follow'),
    ]

    recipient = models.ForeignKey(Account, related_name='notifications', on_delete=models.CASCADE)
    sender = models.ForeignKey(Account, related_name='sent_notifications', on_delete=models.CASCADE)
    notification_type = models.CharField(max_length=20, choices=TYPES, default=TYPE_FOLLOW)
    message = models.CharField(max_length=255, blank=True)

    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['recipient', 'is_read'], name='notif_recipient_read_idx'),
        ]

    def __str__(self):
        return f"Notification for {self.recipient_id}: {self.notification_type}"

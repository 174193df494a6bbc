from django.contrib import admin

from socialgraph.models import Account, Notification


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    """Follow fields are read-only here; they change only through FollowService."""
    list_display = ("id", "display_name", "email", "follower_count", "following_count", "last_updated")
    search_fields = ("id", "display_name", "email")
    readonly_fields = ("followers", "following", "follower_count", "following_count", "version", "last_updated")


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("recipient", "sender", "notification_type", "is_read", "created_at")
    list_filter = ("notification_type", "is_read")
    raw_id_fields = ("recipient", "sender")

"""
Django admin configuration for notification models.
"""

from django.contrib import admin

from notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    """Read-mostly view over handed-off notifications."""

    list_display = ("kind", "recipient", "title", "is_read", "created_at")
    list_filter = ("kind", "is_read")
    search_fields = ("title", "recipient__email")
    raw_id_fields = ("recipient", "actor")
    readonly_fields = ("created_at", "updated_at")

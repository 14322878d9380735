"""Django app configuration for recurring services."""

from django.apps import AppConfig


class RecurringConfig(AppConfig):
    """Configuration for the recurring app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "recurring"
    verbose_name = "Recurring Services"

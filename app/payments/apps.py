"""
Payments app configuration.

This app provides the escrow engine:
- Payment custody ledger (django-fsm state machine)
- Disputes and refunds
- Scheduled escrow release (Celery)
- Payment provider webhook handling
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"

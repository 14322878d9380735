"""
Payment admin configuration.

Payments, their audit events and disputes are read-mostly in the admin.
State changes go through the service layer; the only state actions exposed
here are picking a dispute up for review and recording the outcome of a
withdrawal's bank transfer.
"""

from django.contrib import admin, messages
from django_fsm import TransitionNotAllowed

from payments.models import Dispute, Payment, PaymentEvent, Withdrawal


class PaymentEventInline(admin.TabularInline):
    model = PaymentEvent
    extra = 0
    can_delete = False
    fields = ["event_type", "data", "processed", "created_at"]
    readonly_fields = fields
    ordering = ["-created_at"]

    def has_add_permission(self, request, obj=None) -> bool:
        return False


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    """
    Admin configuration for Payment.

    Provides visibility into custody state and amounts.
    """

    list_display = [
        "id",
        "client",
        "professional",
        "amount_display",
        "state",
        "scheduled_release_at",
        "created_at",
    ]
    list_filter = ["state", "currency", "created_at"]
    search_fields = [
        "id",
        "provider_payment_id",
        "client__email",
        "professional__email",
    ]
    readonly_fields = [
        "id",
        "state",
        "booking",
        "client",
        "professional",
        "amount_total",
        "platform_commission",
        "professional_amount",
        "amount_refunded",
        "provider_payment_id",
        "created_at",
        "updated_at",
        "version",
        "scheduled_release_at",
        "approved_at",
        "released_at",
        "disputed_at",
        "refunded_at",
        "failed_at",
        "receipt_url",
        "receipt_generated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
    inlines = [PaymentEventInline]

    fieldsets = (
        (None, {"fields": ("id", "booking", "client", "professional", "state")}),
        (
            "Amounts",
            {
                "fields": (
                    "amount_total",
                    "platform_commission",
                    "professional_amount",
                    "amount_refunded",
                    "currency",
                ),
            },
        ),
        (
            "Provider",
            {"fields": ("provider_payment_id", "preference_id", "failure_reason")},
        ),
        ("Receipt", {"fields": ("receipt_url", "receipt_generated_at")}),
        (
            "State Timestamps",
            {
                "fields": (
                    "scheduled_release_at",
                    "approved_at",
                    "released_at",
                    "disputed_at",
                    "refunded_at",
                    "failed_at",
                ),
                "classes": ("collapse",),
            },
        ),
        ("Metadata", {"fields": ("metadata", "version"), "classes": ("collapse",)}),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )

    @admin.display(description="Amount")
    def amount_display(self, obj: Payment) -> str:
        return f"{obj.amount_total} {obj.currency.upper()}"

    def has_delete_permission(self, request, obj=None) -> bool:
        """Payments are never deleted (audit trail)."""
        return False


@admin.register(PaymentEvent)
class PaymentEventAdmin(admin.ModelAdmin):
    list_display = ["id", "payment", "event_type", "processed", "created_at"]
    list_filter = ["event_type", "processed"]
    search_fields = ["payment__id", "event_type"]
    readonly_fields = ["id", "payment", "event_type", "data", "processed", "created_at"]
    ordering = ["-created_at"]

    def has_add_permission(self, request) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(Dispute)
class DisputeAdmin(admin.ModelAdmin):
    """
    Admin configuration for Dispute.

    Actions:
        start_review: Move open disputes to UNDER_REVIEW
    """

    list_display = ["id", "payment", "opened_by", "reason", "state", "created_at"]
    list_filter = ["state", "reason", "created_at"]
    search_fields = ["id", "payment__id", "opened_by__email"]
    readonly_fields = [
        "id",
        "payment",
        "opened_by",
        "reason",
        "description",
        "state",
        "resolution",
        "resolved_at",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]
    actions = ["start_review"]

    @admin.action(description="Start review of selected disputes")
    def start_review(self, request, queryset):
        reviewed = 0
        for dispute in queryset:
            try:
                dispute.start_review()
            except TransitionNotAllowed:
                continue
            dispute.save()
            reviewed += 1

        skipped = queryset.count() - reviewed
        self.message_user(request, f"{reviewed} dispute(s) moved to review.")
        if skipped:
            self.message_user(
                request,
                f"{skipped} dispute(s) were not open and were skipped.",
                level=messages.WARNING,
            )


@admin.register(Withdrawal)
class WithdrawalAdmin(admin.ModelAdmin):
    """
    Admin configuration for Withdrawal.

    Actions:
        mark_completed: Record that the bank transfer landed
        mark_failed: Record that the transfer bounced; the amount becomes
            withdrawable again
    """

    list_display = ["id", "professional", "amount", "alias", "state", "created_at"]
    list_filter = ["state", "created_at"]
    search_fields = ["id", "professional__email", "alias"]
    readonly_fields = [
        "id",
        "professional",
        "amount",
        "currency",
        "cvu",
        "alias",
        "state",
        "estimated_arrival",
        "completed_at",
        "failure_reason",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]
    actions = ["mark_completed", "mark_failed"]

    def _apply(self, request, queryset, transition_name: str, label: str):
        applied = 0
        for withdrawal in queryset:
            try:
                getattr(withdrawal, transition_name)()
            except TransitionNotAllowed:
                continue
            withdrawal.save()
            applied += 1

        skipped = queryset.count() - applied
        self.message_user(request, f"{applied} withdrawal(s) marked {label}.")
        if skipped:
            self.message_user(
                request,
                f"{skipped} withdrawal(s) were not processing and were skipped.",
                level=messages.WARNING,
            )

    @admin.action(description="Mark selected withdrawals as completed")
    def mark_completed(self, request, queryset):
        self._apply(request, queryset, "complete", "completed")

    @admin.action(description="Mark selected withdrawals as failed")
    def mark_failed(self, request, queryset):
        self._apply(request, queryset, "fail", "failed")

    def has_add_permission(self, request) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False

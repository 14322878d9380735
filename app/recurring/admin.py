"""
Django admin configuration for recurring services.
"""

from django.contrib import admin, messages

from bookings.models import Booking
from recurring.generator import RecurringServiceGenerator
from recurring.models import RecurrenceSchedule


class GeneratedBookingInline(admin.TabularInline):
    model = Booking
    fk_name = "recurring_schedule"
    fields = ("scheduled_at", "state", "description")
    readonly_fields = fields
    extra = 0
    can_delete = False
    ordering = ("-scheduled_at",)
    show_change_link = True

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(RecurrenceSchedule)
class RecurrenceScheduleAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "client",
        "professional",
        "frequency",
        "start_date",
        "end_date",
        "is_active",
    )
    list_filter = ("frequency", "is_active")
    search_fields = ("id", "client__email", "professional__email", "description")
    raw_id_fields = ("client", "professional")
    readonly_fields = ("created_at", "updated_at")
    inlines = [GeneratedBookingInline]
    actions = ["generate_bookings"]

    @admin.action(description="Generate upcoming bookings now")
    def generate_bookings(self, request, queryset):
        created = 0
        for schedule in queryset.filter(is_active=True):
            created += RecurringServiceGenerator.generate_for_schedule(schedule)
        self.message_user(request, f"Created {created} bookings.", messages.SUCCESS)

    def has_delete_permission(self, request, obj=None):
        return False

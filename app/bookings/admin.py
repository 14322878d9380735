"""
Django admin configuration for bookings.
"""

from django.contrib import admin

from bookings.models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "client", "professional", "state", "scheduled_at")
    list_filter = ("state",)
    search_fields = ("id", "client__email", "professional__email", "description")
    raw_id_fields = ("client", "professional", "recurring_schedule")
    date_hierarchy = "scheduled_at"

"""
Recurring app: standing service arrangements between a client and a professional.

This app handles:
- RecurrenceSchedule storage and CRUD for the two parties
- Daily materialization of schedules into dated bookings
- Cancellation of a schedule and its future bookings

Related apps:
    - bookings: Generated occurrences are ordinary Booking rows
    - notifications: Both parties hear about new and cancelled services

Usage:
    from recurring.generator import RecurringServiceGenerator

    summary = RecurringServiceGenerator.generate_recurring_services()
"""

"""
Add celery-beat schedule for upcoming escrow release reminders.

Runs hourly so every professional hears about a release at least a day
before it happens, whatever hour the payment was approved.
"""

from django.db import migrations

TASK_NAME = "Notify Upcoming Escrow Releases"


def create_periodic_task(apps, schema_editor):
    """Create the hourly upcoming release reminder task."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=1,
        period="hours",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "payments.tasks.notify_upcoming_releases",
            "interval": schedule,
            "enabled": True,
            "description": (
                "Notifies professionals about approved payments whose funds "
                "are released within the next 24 hours."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("payments", "0003_withdrawal_receipt_live_payment"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]

"""
Add celery-beat schedule for materializing recurring services.

Runs the generator every day at 02:00 (CELERY_TIMEZONE), outside the
hours clients and professionals are usually booking.
"""

from django.db import migrations

TASK_NAME = "Generate Recurring Services"


def create_periodic_task(apps, schema_editor):
    """Create the daily generation task."""
    CrontabSchedule = apps.get_model("django_celery_beat", "CrontabSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    crontab_daily_2am, _ = CrontabSchedule.objects.get_or_create(
        minute="0",
        hour="2",
        day_of_week="*",
        day_of_month="*",
        month_of_year="*",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "recurring.tasks.generate_recurring_services",
            "crontab": crontab_daily_2am,
            "enabled": True,
            "description": (
                "Creates pending bookings for the next days of every active "
                "recurrence schedule. Days that already have a booking are skipped."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("recurring", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]

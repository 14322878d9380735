"""
Add celery-beat schedule for releasing escrow custody.

Runs the escrow release pass every hour. Payments become due 24 hours
after approval, so an hourly cadence keeps custody from overrunning by
more than an hour.
"""

from django.db import migrations

TASK_NAME = "Process Escrow Releases"


def create_periodic_task(apps, schema_editor):
    """Create the hourly escrow release task."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=1,
        period="hours",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "payments.tasks.process_escrow_releases",
            "interval": schedule,
            "enabled": True,
            "description": (
                "Releases approved payments whose scheduled release time has "
                "passed. Disputed and refunded payments are never released."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("payments", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]

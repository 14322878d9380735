"""
Celery configuration for the Django application.

Two periodic jobs run on Celery workers, scheduled by celery-beat's
DatabaseScheduler (rows installed by data migrations):

- payments.tasks.process_escrow_releases: hourly escrow release pass
- recurring.tasks.generate_recurring_services: daily at 02:00, materializes
  bookings from recurring schedules

Redis is both the message broker and result backend. Tasks are
auto-discovered from the tasks.py module of every installed app.

Usage:
    # Run a worker and the scheduler
    celery -A config worker -l info
    celery -A config beat -l info

    # Trigger a pass by hand
    from payments.tasks import process_escrow_releases
    process_escrow_releases.delay()

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()

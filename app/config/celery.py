"""
Celery configuration for the Orbit backend.

Celery runs the periodic housekeeping jobs (for example purging expired
typing indicators). Redis is both the message broker and result backend;
schedules live in django-celery-beat's database tables and are seeded from
CELERY_BEAT_SCHEDULE in settings.

Usage:
    from celery import shared_task

    @shared_task
    def purge_something():
        ...

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("orbit")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Looks for a tasks.py module in each installed app
app.autodiscover_tasks()

"""
Project configuration: settings, URL routing, WSGI/ASGI entry points and
the Celery application.

The Celery app is imported here so shared_task functions bind to it as
soon as Django loads.
"""

from config.celery import app as celery_app

__all__ = ("celery_app",)

"""Celery app factory."""

from celery import Celery

celery_app = Celery("hirestage", include=["workers.tasks.emails", "workers.tasks.bulk"])
celery_app.config_from_object("workers.celery_config")

"""
Celery Application Instance

Creates the Celery app instance for use by workers and beat scheduler.
Uses the app factory so tasks resolve services from the same container
as the API.
"""

from burnbox.app_factory import create_app
from burnbox.config.logging_config import setup_logging

setup_logging()

flask_app = create_app()

celery_app = flask_app.celery

# Task modules are imported by name when the worker starts, after
# celery_app exists, so the task decorators can bind to it.
celery_app.conf.imports = ("burnbox.tasks.expiry_tasks",)

"""
Celery tasks package for the office-hours platform.
"""

from officehours.tasks.celery_app import celery_app
from officehours.tasks.sync_tasks import dispatch_pending, release_stale

__all__ = ["celery_app", "dispatch_pending", "release_stale"]

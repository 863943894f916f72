# officehours/tasks/beat_schedule.py
"""
Celery Beat schedule for the office-hours platform.
"""

from datetime import timedelta
from typing import Any, Dict

from officehours.core.config import settings


def get_beat_schedule() -> Dict[str, Dict[str, Any]]:
    """Periodic tasks: drain the sync outbox and reclaim stale claims."""
    return {
        "sync-outbox-dispatch": {
            "task": "sync_outbox.dispatch_pending",
            "schedule": timedelta(seconds=settings.outbox_dispatch_interval_seconds),
            "options": {"queue": "sync", "expires": settings.outbox_dispatch_interval_seconds},
        },
        "sync-outbox-release-stale": {
            "task": "sync_outbox.release_stale",
            # Sweep at half the staleness window
            "schedule": timedelta(seconds=max(settings.outbox_stale_after_seconds // 2, 30)),
            "options": {"queue": "sync"},
        },
    }

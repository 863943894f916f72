# officehours/tasks/sync_tasks.py
"""
Celery tasks for the sync outbox.

1. `sync_outbox.dispatch_pending` delivers one batch of pending tasks.
2. `sync_outbox.release_stale` returns claims abandoned by crashed workers
   to the queue.

Retries are tracked on the outbox rows themselves, so these tasks never use
Celery's own retry machinery.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from celery.utils.log import get_task_logger
from sqlalchemy.orm import Session

from officehours.core.config import settings
from officehours.database import SessionLocal
from officehours.integrations.airtable_client import SyncTargetClient, get_sync_client
from officehours.services.sync_outbox_service import SyncOutboxService
from officehours.tasks.celery_app import celery_app

logger = get_task_logger(__name__)


@contextmanager
def _session_scope() -> Iterator[Session]:
    """Provide transactional scope for use in tasks."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def run_dispatch(
    session: Session,
    client: SyncTargetClient,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    """Run one dispatcher pass on ``session`` and return its counters."""
    service = SyncOutboxService(session)
    result = service.process_pending(client, limit=limit)
    return result.to_dict()


@celery_app.task(name="sync_outbox.dispatch_pending", max_retries=0, queue="sync")
def dispatch_pending(limit: Optional[int] = None) -> Dict[str, Any]:
    """
    Deliver pending outbox tasks to the configured sync target.

    Returns the batch counters.
    """
    client = get_sync_client(settings)
    with _session_scope() as session:
        summary = run_dispatch(session, client, limit=limit)
    if summary["processed"]:
        logger.info(
            "Sync outbox batch processed=%s succeeded=%s retried=%s failed=%s",
            summary["processed"],
            summary["succeeded"],
            summary["retried"],
            summary["failed"],
        )
    return summary


@celery_app.task(name="sync_outbox.release_stale", max_retries=0, queue="sync")
def release_stale(older_than_seconds: Optional[int] = None) -> int:
    """Return processing tasks older than the staleness timeout to pending."""
    with _session_scope() as session:
        released = SyncOutboxService(session).release_stale_claims(older_than_seconds)
    if released:
        logger.warning("Released %s stale sync outbox claims", released)
    return released

# officehours/repositories/sync_outbox_repository.py
"""
Repository for sync outbox operations.

Implements enqueue, oldest-first pending fetch, the atomic claim that lets
several workers drain the queue safely, and the retry/terminal state
updates used by the dispatcher.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any, Dict, Iterable, List, Optional, cast

from sqlalchemy import Select, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.constants import MAX_ERROR_MESSAGE_LENGTH
from ..core.enums import OutboxAction, OutboxEntityType, OutboxStatus
from ..core.exceptions import RepositoryException
from ..models.sync_outbox import OutboxTask
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    """Return timezone-aware utcnow suitable for DB comparisons."""
    return datetime.now(timezone.utc)


class SyncOutboxRepository(BaseRepository[OutboxTask]):
    """Data access helpers for sync outbox rows."""

    def __init__(self, db: Session):
        super().__init__(db, OutboxTask)

    # ------------------------------------------------------------------ enqueue
    def enqueue(
        self,
        entity_type: OutboxEntityType | str,
        entity_id: str,
        action: OutboxAction | str = OutboxAction.UPSERT,
        payload: Optional[Dict[str, Any]] = None,
    ) -> OutboxTask:
        """Insert a new pending outbox row and return it."""
        now = _now_utc()
        return self.create(
            entity_type=OutboxEntityType(entity_type).value,
            entity_id=entity_id,
            action=OutboxAction(action).value,
            payload=payload or {},
            status=OutboxStatus.PENDING.value,
            attempts=0,
            created_at=now,
            updated_at=now,
        )

    # ---------------------------------------------------------------- fetchers
    def fetch_pending(self, limit: int = 50) -> List[OutboxTask]:
        """Return pending tasks, oldest first."""
        stmt: Select[Any] = (
            select(OutboxTask)
            .where(OutboxTask.status == OutboxStatus.PENDING.value)
            .order_by(OutboxTask.created_at.asc(), OutboxTask.id.asc())
            .limit(limit)
        )
        if self.supports_row_locks:
            stmt = stmt.with_for_update(skip_locked=True)
        try:
            result = self.db.execute(stmt)
            return cast(List[OutboxTask], result.scalars().all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error fetching pending outbox tasks: {str(e)}")
            raise RepositoryException(f"Failed to fetch pending outbox tasks: {str(e)}")

    def list_by_status(self, status: OutboxStatus, limit: int = 100) -> List[OutboxTask]:
        """Return tasks in ``status``, most recently updated first."""
        stmt = (
            select(OutboxTask)
            .where(OutboxTask.status == status.value)
            .order_by(OutboxTask.updated_at.desc(), OutboxTask.id.desc())
            .limit(limit)
        )
        return cast(List[OutboxTask], self.db.execute(stmt).scalars().all())

    def count_by_status(self) -> Dict[str, int]:
        """Return a count for every outbox status (zero-filled)."""
        rows = self.db.execute(
            select(OutboxTask.status, func.count(OutboxTask.id)).group_by(OutboxTask.status)
        ).all()
        counts = {status.value: 0 for status in OutboxStatus}
        for status, total in rows:
            counts[status] = int(total)
        return counts

    # ------------------------------------------------------------- state updates
    def claim(self, task_id: str, worker_id: str) -> bool:
        """
        Atomically move a task from pending to processing.

        The conditional UPDATE only matches a row that is still pending, so
        exactly one of several racing workers wins. Returns False for the
        losers and for tasks that are no longer pending.
        """
        now = _now_utc()
        result = self.db.execute(
            update(OutboxTask)
            .where(OutboxTask.id == task_id)
            .where(OutboxTask.status == OutboxStatus.PENDING.value)
            .values(
                status=OutboxStatus.PROCESSING.value,
                claimed_by=worker_id,
                claimed_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session="fetch")
        )
        self.db.flush()
        return bool(getattr(result, "rowcount", 0))

    def mark_completed(self, task_id: str, *, worker_id: str) -> bool:
        """
        Move a task processing under ``worker_id``'s claim to completed.

        Returns False when the task is not processing or the claim now
        belongs to another worker.
        """
        now = _now_utc()
        result = self.db.execute(
            update(OutboxTask)
            .where(OutboxTask.id == task_id)
            .where(OutboxTask.status == OutboxStatus.PROCESSING.value)
            .where(OutboxTask.claimed_by == worker_id)
            .values(
                status=OutboxStatus.COMPLETED.value,
                error_message=None,
                updated_at=now,
            )
            .execution_options(synchronize_session="fetch")
        )
        self.db.flush()
        return bool(getattr(result, "rowcount", 0))

    def mark_failed(
        self,
        task_id: str,
        error_message: str,
        *,
        worker_id: str,
        max_attempts: int,
    ) -> Optional[OutboxStatus]:
        """
        Record a failed delivery attempt.

        Increments ``attempts``; the task returns to pending while
        ``attempts < max_attempts`` and becomes failed otherwise. Only rows
        processing under ``worker_id``'s claim are updated. Returns the
        resulting status, or None when the task was missing, not processing,
        or claimed by another worker.
        """
        stmt = (
            select(OutboxTask)
            .where(OutboxTask.id == task_id)
            .execution_options(populate_existing=True)
        )
        if self.supports_row_locks:
            stmt = stmt.with_for_update()
        task = cast(Optional[OutboxTask], self.db.execute(stmt).scalar_one_or_none())
        if (
            task is None
            or task.status != OutboxStatus.PROCESSING.value
            or task.claimed_by != worker_id
        ):
            return None

        attempts = (task.attempts or 0) + 1
        new_status = OutboxStatus.FAILED if attempts >= max_attempts else OutboxStatus.PENDING
        values: Dict[str, Any] = {
            "attempts": attempts,
            "status": new_status.value,
            "error_message": (error_message or "")[:MAX_ERROR_MESSAGE_LENGTH] or None,
            "updated_at": _now_utc(),
        }
        if new_status == OutboxStatus.PENDING:
            values["claimed_by"] = None
            values["claimed_at"] = None

        self.db.execute(
            update(OutboxTask)
            .where(OutboxTask.id == task_id)
            .where(OutboxTask.status == OutboxStatus.PROCESSING.value)
            .where(OutboxTask.claimed_by == worker_id)
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        self.db.flush()
        return new_status

    def release_stale_claims(self, claimed_before: datetime) -> int:
        """
        Return processing tasks claimed before ``claimed_before`` to pending.

        Attempts are left untouched: a crashed worker never reported an
        outcome, so the delivery is simply retried.
        """
        result = self.db.execute(
            update(OutboxTask)
            .where(OutboxTask.status == OutboxStatus.PROCESSING.value)
            .where(OutboxTask.claimed_at < claimed_before)
            .values(
                status=OutboxStatus.PENDING.value,
                claimed_by=None,
                claimed_at=None,
                updated_at=_now_utc(),
            )
            .execution_options(synchronize_session="fetch")
        )
        self.db.flush()
        return int(getattr(result, "rowcount", 0) or 0)

    def replay_failed(self, task_ids: Iterable[str]) -> int:
        """Operator replay: move failed rows back to pending. Attempts are preserved."""
        ids = list(task_ids)
        if not ids:
            return 0
        result = self.db.execute(
            update(OutboxTask)
            .where(OutboxTask.id.in_(ids))
            .where(OutboxTask.status == OutboxStatus.FAILED.value)
            .values(
                status=OutboxStatus.PENDING.value,
                claimed_by=None,
                claimed_at=None,
                updated_at=_now_utc(),
            )
            .execution_options(synchronize_session="fetch")
        )
        self.db.flush()
        return int(getattr(result, "rowcount", 0) or 0)

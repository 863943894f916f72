# officehours/services/sync_outbox_service.py
"""
Sync Outbox Service

Producer and consumer sides of the outbox that mirrors mentor and mentee
profiles to the external sync target.

Producer: ``enqueue`` runs in a SAVEPOINT inside the caller's transaction
and never raises. A failed insert rolls back only itself, so sync queueing
can never undo or block the primary write.

Consumer: ``process_pending`` claims a batch with an atomic conditional
update, delivers each task, and records the outcome. Delivery errors become
retry/terminal transitions and never escape the loop. A task is retried
until ``outbox_max_attempts`` failures, then parked as ``failed`` until an
operator replays it.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
import logging
import os
import socket
from time import monotonic
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from celery.exceptions import SoftTimeLimitExceeded
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import UTILIZATION_WINDOW_DAYS
from ..core.enums import OutboxAction, OutboxEntityType, OutboxStatus
from ..integrations.airtable_client import SyncTargetClient
from ..integrations.airtable_mappings import build_fields
from ..models.sync_outbox import OutboxTask
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.mentor_repository import MentorRepository
from ..repositories.sync_outbox_repository import SyncOutboxRepository
from ..utils.time_utils import utilization_rate
from .base import BaseService

logger = logging.getLogger(__name__)


def default_worker_id() -> str:
    return f"{socket.gethostname()}:{os.getpid()}:{uuid4().hex[:8]}"


@dataclass
class OutboxBatchResult:
    """Counters for one dispatcher pass."""

    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    retried: int = 0
    skipped: int = 0
    errors: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SyncOutboxService(BaseService):
    """Enqueue, dispatch and administer sync outbox tasks."""

    def __init__(
        self,
        db: Session,
        repository: Optional[SyncOutboxRepository] = None,
        mentor_repository: Optional[MentorRepository] = None,
        *,
        max_attempts: Optional[int] = None,
        worker_id: Optional[str] = None,
    ):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_sync_outbox_repository(db)
        self.mentor_repository = (
            mentor_repository or RepositoryFactory.create_mentor_repository(db)
        )
        self.session_repository = RepositoryFactory.create_office_session_repository(db)
        self.availability_repository = RepositoryFactory.create_availability_repository(db)
        self.max_attempts = max_attempts or settings.outbox_max_attempts
        self.worker_id = worker_id or default_worker_id()

    # ------------------------------------------------------------------ producer
    def enqueue(
        self,
        entity_type: OutboxEntityType | str,
        entity_id: str,
        action: OutboxAction | str = OutboxAction.UPSERT,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Optional[OutboxTask]:
        """
        Queue a sync task inside the caller's transaction.

        Never raises. Returns the new task, or None when the insert failed
        (the failure is logged and counted).
        """
        entity_label = getattr(entity_type, "value", str(entity_type))
        try:
            with self.db.begin_nested():
                task = self.repository.enqueue(
                    entity_type=entity_type,
                    entity_id=entity_id,
                    action=action,
                    payload=payload,
                )
        except Exception:
            logger.exception(
                "Failed to enqueue sync task for %s %s",
                entity_label,
                entity_id,
                extra={"entity_type": entity_label, "entity_id": entity_id},
            )
            try:
                prometheus_metrics.record_enqueue_error(entity_label)
            except Exception:
                pass
            return None

        logger.debug(
            "Enqueued sync task %s for %s %s", task.id, entity_label, entity_id
        )
        return task

    # ------------------------------------------------------------------ consumer
    def fetch_pending(self, limit: Optional[int] = None) -> List[OutboxTask]:
        return self.repository.fetch_pending(limit=limit or settings.outbox_batch_size)

    def claim(self, task_id: str) -> bool:
        """Claim ``task_id`` for this worker and commit the claim."""
        with self.transaction():
            return self.repository.claim(task_id, self.worker_id)

    def mark_completed(self, task_id: str) -> bool:
        """Complete ``task_id`` if this worker still holds its claim."""
        with self.transaction():
            return self.repository.mark_completed(task_id, worker_id=self.worker_id)

    def mark_failed(self, task_id: str, error_message: str) -> Optional[OutboxStatus]:
        """Record a failure if this worker still holds the claim; None otherwise."""
        with self.transaction():
            return self.repository.mark_failed(
                task_id,
                error_message,
                worker_id=self.worker_id,
                max_attempts=self.max_attempts,
            )

    @BaseService.measure_operation("process_pending")
    def process_pending(
        self, client: SyncTargetClient, limit: Optional[int] = None
    ) -> OutboxBatchResult:
        """
        Run one dispatcher pass.

        Args:
            client: Sync target implementing ``upsert`` and ``delete``
            limit: Batch size (defaults to ``outbox_batch_size``)

        Returns:
            OutboxBatchResult with per-outcome counters
        """
        result = OutboxBatchResult()

        with self.transaction():
            pending = self.fetch_pending(limit)
            claimed: List[OutboxTask] = []
            for task in pending:
                if self.repository.claim(task.id, self.worker_id):
                    claimed.append(task)
                else:
                    result.skipped += 1

        for task in claimed:
            self._process_task(task, client, result)

        if result.processed or result.skipped:
            logger.info(
                "Sync outbox pass: processed=%s succeeded=%s retried=%s failed=%s skipped=%s",
                result.processed,
                result.succeeded,
                result.retried,
                result.failed,
                result.skipped,
            )
        return result

    def _process_task(
        self, task: OutboxTask, client: SyncTargetClient, result: OutboxBatchResult
    ) -> None:
        task_id = task.id
        entity_type = task.entity_type
        entity_id = task.entity_id
        result.processed += 1
        start = monotonic()
        try:
            self._deliver(task, client)
            self.db.commit()
        except SoftTimeLimitExceeded:
            # Claimed tasks stay processing and are reclaimed by the stale sweep.
            self.db.rollback()
            logger.warning("Sync outbox pass hit the soft time limit at task %s", task_id)
            raise
        except Exception as exc:
            self.db.rollback()
            prometheus_metrics.observe_sync_dispatch(entity_type, monotonic() - start)
            message = str(exc) or type(exc).__name__
            status = self.mark_failed(task_id, message)
            if status is None:
                self._record_lost_claim(task_id, entity_type, result)
                return
            result.errors.append({"task_id": task_id, "error": message})
            if status == OutboxStatus.FAILED:
                result.failed += 1
                prometheus_metrics.record_sync_outcome(entity_type, "failed")
                logger.error(
                    "Sync task %s for %s %s failed permanently after %s attempts: %s",
                    task_id,
                    entity_type,
                    entity_id,
                    self.max_attempts,
                    message,
                )
            else:
                result.retried += 1
                prometheus_metrics.record_sync_outcome(entity_type, "retry")
                logger.warning(
                    "Sync task %s for %s %s failed; will retry: %s",
                    task_id,
                    entity_type,
                    entity_id,
                    message,
                )
            return

        prometheus_metrics.observe_sync_dispatch(entity_type, monotonic() - start)
        if self.mark_completed(task_id):
            result.succeeded += 1
            prometheus_metrics.record_sync_outcome(entity_type, "completed")
            logger.info("Synced %s %s (task %s)", entity_type, entity_id, task_id)
        else:
            self._record_lost_claim(task_id, entity_type, result)

    def _record_lost_claim(
        self, task_id: str, entity_type: str, result: OutboxBatchResult
    ) -> None:
        # Claim released as stale during delivery, possibly re-claimed elsewhere.
        result.skipped += 1
        prometheus_metrics.record_sync_outcome(entity_type, "skipped")
        logger.warning(
            "Sync task %s is no longer claimed by %s; outcome not recorded",
            task_id,
            self.worker_id,
        )

    def _deliver(self, task: OutboxTask, client: SyncTargetClient) -> None:
        if task.action == OutboxAction.DELETE.value:
            client.delete(task.entity_type, task.entity_id)
            return

        snapshot = self._resolve_snapshot(task)
        fields = build_fields(task.entity_type, snapshot)
        record_id = client.upsert(task.entity_type, task.entity_id, fields)

        if task.entity_type == OutboxEntityType.MENTOR.value:
            mentor = self.mentor_repository.get_by_id(task.entity_id)
            if mentor is not None and mentor.external_record_id != record_id:
                mentor.external_record_id = record_id
                self.mentor_repository.flush()

    def _resolve_snapshot(self, task: OutboxTask) -> Dict[str, Any]:
        """Current mentor row for mentor upserts; the stored payload otherwise."""
        if task.entity_type == OutboxEntityType.MENTOR.value:
            mentor = self.mentor_repository.get_by_id(task.entity_id)
            if mentor is None:
                raise LookupError(f"Mentor {task.entity_id} not found")
            snapshot = mentor.to_sync_snapshot()
            synced_at = datetime.now(timezone.utc)
            snapshot["utilization"] = self._mentor_utilization(mentor.id, synced_at)
            snapshot["last_synced"] = synced_at.isoformat()
            return snapshot

        if task.payload:
            return dict(task.payload)
        mentee = self.mentor_repository.get_mentee(task.entity_id)
        if mentee is None:
            raise LookupError(f"Mentee {task.entity_id} not found")
        return mentee.to_sync_snapshot()

    def _mentor_utilization(self, mentor_id: str, end: datetime) -> float:
        """Percent of offered minutes that were booked over the trailing window."""
        start = end - timedelta(days=UTILIZATION_WINDOW_DAYS)
        booked = self.session_repository.sum_booked_minutes(mentor_id, start, end)
        # Booking consumes its block, so booked minutes count as offered too
        still_open = self.availability_repository.sum_open_minutes(mentor_id, start, end)
        return utilization_rate(booked, booked + still_open)

    # -------------------------------------------------------------------- admin
    @BaseService.measure_operation("release_stale_claims")
    def release_stale_claims(self, older_than_seconds: Optional[int] = None) -> int:
        """Return tasks stuck in processing past the staleness timeout to pending."""
        age = older_than_seconds or settings.outbox_stale_after_seconds
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=age)
        with self.transaction():
            released = self.repository.release_stale_claims(cutoff)
        if released:
            logger.warning("Released %s stale sync outbox claims", released)
        return released

    @BaseService.measure_operation("replay_failed")
    def replay_failed(self, task_ids: Iterable[str]) -> int:
        ids = list(dict.fromkeys(task_ids))
        with self.transaction():
            replayed = self.repository.replay_failed(ids)
        self.log_operation("replay_failed", requested=len(ids), replayed=replayed)
        return replayed

    def count_by_status(self) -> Dict[str, int]:
        return self.repository.count_by_status()

    def list_by_status(self, status: OutboxStatus, limit: int = 100) -> List[OutboxTask]:
        return self.repository.list_by_status(status, limit=limit)

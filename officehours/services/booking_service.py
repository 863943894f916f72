# officehours/services/booking_service.py
"""
Booking Service for the office-hours platform

Handles the session lifecycle:
- Creating sessions (conflict-checked, serialised per mentor)
- Cancelling and completing sessions
- Rescheduling by creating a new session and retiring the old one

Conflict check and insert always run inside one transaction while holding
the mentor's calendar lock.
"""

from datetime import datetime, timedelta
import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import (
    DEFAULT_SESSION_DURATION,
    MAX_SESSION_DURATION,
    MIN_SESSION_DURATION,
)
from ..core.enums import MeetingType, OutboxAction, OutboxEntityType, SessionStatus
from ..core.exceptions import (
    BookingConflictException,
    BusinessRuleException,
    NotFoundException,
    ValidationException,
)
from ..core.mentor_lock import mentor_lock
from ..core.ulid_helper import generate_ulid
from ..models.mentor import MentorProfile
from ..models.office_session import BookedSession
from ..models.types import ensure_utc
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.office_session_repository import OfficeSessionRepository
from ..schemas.booking import BookingCreate, BookingReschedule
from ..utils.time_utils import minutes_between
from .base import BaseService
from .conflict_checker import ConflictChecker
from .sync_outbox_service import SyncOutboxService

logger = logging.getLogger(__name__)


class BookingService(BaseService):
    """
    Service layer for booking operations.

    Status transitions are the only mutation of an existing session.
    """

    def __init__(
        self,
        db: Session,
        repository: Optional[OfficeSessionRepository] = None,
        conflict_checker: Optional[ConflictChecker] = None,
        sync_outbox_service: Optional[SyncOutboxService] = None,
    ):
        """
        Initialize booking service.

        Args:
            db: Database session
            repository: Optional OfficeSessionRepository instance
            conflict_checker: Optional conflict checker instance
            sync_outbox_service: Optional outbox producer sharing ``db``
        """
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_office_session_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db)
        self.sync_outbox_service = sync_outbox_service or SyncOutboxService(db)
        self.availability_repository = RepositoryFactory.create_availability_repository(db)
        self.mentor_repository = RepositoryFactory.create_mentor_repository(db)

    # ------------------------------------------------------------------ helpers
    @staticmethod
    def resolve_interval(
        start: datetime,
        end: Optional[datetime] = None,
        duration_minutes: Optional[int] = None,
    ) -> Tuple[datetime, datetime, int]:
        """
        Normalise a requested interval to UTC and validate it.

        ``end`` wins when given; otherwise ``duration_minutes`` (default 60)
        is added to ``start``. When both are given they must agree.

        Returns:
            ``(start, end, duration_minutes)``
        """
        start_utc = ensure_utc(start)
        if end is not None:
            end_utc = ensure_utc(end)
            ConflictChecker.validate_time_range(start_utc, end_utc)
            duration = minutes_between(start_utc, end_utc)
            if duration_minutes is not None and duration_minutes != duration:
                raise ValidationException(
                    "duration_minutes does not match start and end",
                    code="DURATION_MISMATCH",
                    details={"duration_minutes": duration_minutes, "computed": duration},
                )
        else:
            duration = (
                duration_minutes if duration_minutes is not None else DEFAULT_SESSION_DURATION
            )
            if duration <= 0:
                raise ValidationException(
                    "Duration must be positive",
                    code="INVALID_DURATION",
                    details={"duration_minutes": duration},
                )
            end_utc = start_utc + timedelta(minutes=duration)

        if not MIN_SESSION_DURATION <= duration <= MAX_SESSION_DURATION:
            raise ValidationException(
                f"Session length must be between {MIN_SESSION_DURATION} and "
                f"{MAX_SESSION_DURATION} minutes",
                code="INVALID_DURATION",
                details={"duration_minutes": duration},
            )
        return start_utc, end_utc, duration

    def _lock_active_mentor(self, mentor_id: str) -> MentorProfile:
        mentor = self.mentor_repository.lock_mentor(mentor_id)
        if mentor is None:
            raise NotFoundException("Mentor not found", code="MENTOR_NOT_FOUND")
        return mentor

    def _require_session(self, session_id: str, *, for_update: bool = False) -> BookedSession:
        session = (
            self.repository.get_for_update(session_id)
            if for_update
            else self.repository.get_by_id(session_id)
        )
        if session is None:
            raise NotFoundException("Session not found", code="SESSION_NOT_FOUND")
        return session

    @staticmethod
    def _require_scheduled(session: BookedSession, action: str) -> None:
        if not session.is_scheduled:
            raise BusinessRuleException(
                f"Cannot {action} a session with status '{session.status}'",
                code="INVALID_SESSION_STATUS",
                details={"session_id": session.id, "status": session.status},
            )

    def _meeting_url(self, session_id: str, meeting_type: str) -> Optional[str]:
        if meeting_type != MeetingType.VIDEO.value:
            return None
        return f"{settings.meeting_url_base.rstrip('/')}/{session_id}"

    def _enqueue_mentor_sync(self, mentor: MentorProfile) -> None:
        """Queue a mentor sync inside the current transaction (never raises)."""
        self.sync_outbox_service.enqueue(
            OutboxEntityType.MENTOR,
            mentor.id,
            OutboxAction.UPSERT,
            mentor.to_sync_snapshot(),
        )

    def _insert_session(
        self,
        *,
        mentor_id: str,
        mentee_id: str,
        start: datetime,
        end: datetime,
        duration_minutes: int,
        meeting_type: str,
        goals: Optional[str],
        operation: str,
        rescheduled_from_id: Optional[str] = None,
    ) -> BookedSession:
        """
        Conflict-check ``[start, end)`` and insert a scheduled session.

        Must run inside a transaction while holding the mentor lock. An
        availability block matching the interval exactly is consumed: it is
        ignored by the conflict check and deleted with the insert.
        """
        block = self.availability_repository.find_exact_block(mentor_id, start, end)
        exclude_block_id = block.id if block is not None else None

        if self.conflict_checker.has_conflict(
            mentor_id,
            start,
            end,
            exclude_session_id=rescheduled_from_id,
            exclude_block_id=exclude_block_id,
        ):
            conflicts = self.conflict_checker.find_conflicts(
                mentor_id,
                start,
                end,
                exclude_session_id=rescheduled_from_id,
                exclude_block_id=exclude_block_id,
            )
            prometheus_metrics.record_booking_conflict(operation)
            self.logger.info(
                f"Booking conflict for mentor {mentor_id}",
                extra={"mentor_id": mentor_id, "operation": operation},
            )
            raise BookingConflictException(
                details={
                    "mentor_id": mentor_id,
                    "start": start.isoformat(),
                    "end": end.isoformat(),
                    "conflicts": conflicts,
                }
            )

        if block is not None:
            self.availability_repository.delete(block.id)

        session_id = generate_ulid()
        return self.repository.create(
            id=session_id,
            mentor_id=mentor_id,
            mentee_id=mentee_id,
            starts_at=start,
            ends_at=end,
            duration_minutes=duration_minutes,
            status=SessionStatus.SCHEDULED.value,
            meeting_type=meeting_type,
            meeting_url=self._meeting_url(session_id, meeting_type),
            goals=goals,
            rescheduled_from_id=rescheduled_from_id,
        )

    # --------------------------------------------------------------- operations
    @BaseService.measure_operation("create_booking")
    def create_booking(self, booking_data: BookingCreate) -> BookedSession:
        """
        Book a session.

        Raises:
            InvalidTimeRangeException / ValidationException: bad interval
            NotFoundException: unknown mentor or mentee
            BookingConflictException: overlaps a block or scheduled session
            MentorBusyException: calendar lock not acquired in time
        """
        start, end, duration = self.resolve_interval(
            booking_data.start, booking_data.end, booking_data.duration_minutes
        )
        mentor_id = booking_data.mentor_id

        with mentor_lock(mentor_id):
            with self.transaction():
                mentor = self._lock_active_mentor(mentor_id)
                if self.mentor_repository.get_mentee(booking_data.mentee_id) is None:
                    raise NotFoundException("Mentee not found", code="MENTEE_NOT_FOUND")
                session = self._insert_session(
                    mentor_id=mentor_id,
                    mentee_id=booking_data.mentee_id,
                    start=start,
                    end=end,
                    duration_minutes=duration,
                    meeting_type=MeetingType(booking_data.meeting_type).value,
                    goals=booking_data.goals,
                    operation="create_booking",
                )
                self._enqueue_mentor_sync(mentor)

        self.log_operation(
            "create_booking",
            session_id=session.id,
            mentor_id=mentor_id,
            mentee_id=booking_data.mentee_id,
            start=start.isoformat(),
            end=end.isoformat(),
        )
        return session

    def get_booking(self, session_id: str) -> BookedSession:
        return self._require_session(session_id)

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(self, session_id: str) -> BookedSession:
        """Cancel a scheduled session. Its interval stops blocking immediately."""
        with self.transaction():
            session = self._require_session(session_id, for_update=True)
            self._require_scheduled(session, "cancel")
            session.transition_to(SessionStatus.CANCELLED)
            self.repository.flush()
            mentor = self.mentor_repository.get_by_id(session.mentor_id)
            if mentor is not None:
                self._enqueue_mentor_sync(mentor)

        self.log_operation("cancel_booking", session_id=session_id, mentor_id=session.mentor_id)
        return session

    @BaseService.measure_operation("complete_booking")
    def complete_booking(self, session_id: str) -> BookedSession:
        """Mark a scheduled session as completed."""
        with self.transaction():
            session = self._require_session(session_id, for_update=True)
            self._require_scheduled(session, "complete")
            session.transition_to(SessionStatus.COMPLETED)
            self.repository.flush()
            mentor = self.mentor_repository.get_by_id(session.mentor_id)
            if mentor is not None:
                self._enqueue_mentor_sync(mentor)

        self.log_operation("complete_booking", session_id=session_id, mentor_id=session.mentor_id)
        return session

    @BaseService.measure_operation("reschedule_booking")
    def reschedule_booking(
        self, session_id: str, reschedule_data: BookingReschedule
    ) -> BookedSession:
        """
        Move a scheduled session to a new interval.

        The original row is never edited in place: a new scheduled session is
        created (linked through ``rescheduled_from_id``) and the original
        moves to ``rescheduled``. The original's own interval is ignored by
        the conflict check so overlapping moves are allowed.
        """
        start, end, duration = self.resolve_interval(
            reschedule_data.start, reschedule_data.end, reschedule_data.duration_minutes
        )
        with self.transaction():
            original = self._require_session(session_id)
            self._require_scheduled(original, "reschedule")
            mentor_id = original.mentor_id

        with mentor_lock(mentor_id):
            with self.transaction():
                original = self._require_session(session_id, for_update=True)
                self._require_scheduled(original, "reschedule")
                mentor = self._lock_active_mentor(mentor_id)

                new_session = self._insert_session(
                    mentor_id=mentor_id,
                    mentee_id=original.mentee_id,
                    start=start,
                    end=end,
                    duration_minutes=duration,
                    meeting_type=original.meeting_type,
                    goals=original.goals,
                    operation="reschedule_booking",
                    rescheduled_from_id=original.id,
                )
                original.transition_to(SessionStatus.RESCHEDULED)
                self.repository.flush()
                self._enqueue_mentor_sync(mentor)

        self.log_operation(
            "reschedule_booking",
            session_id=new_session.id,
            rescheduled_from_id=session_id,
            mentor_id=mentor_id,
        )
        return new_session

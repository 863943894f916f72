# officehours/services/availability_service.py
"""
Availability Service for the office-hours platform

Handles mentor availability blocks and the derived calendar view:
- Publishing and revoking open blocks
- Building available/booked slot lists for a date range

Blocks are absolute UTC intervals. Publishing a block goes through the same
per-mentor critical section and conflict rule as booking, so a block never
overlaps another block or a scheduled session.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import DEFAULT_LOCATION
from ..core.exceptions import AvailabilityConflictException, NotFoundException
from ..core.mentor_lock import mentor_lock
from ..models.availability import AvailabilityBlock
from ..models.types import ensure_utc
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.availability_repository import AvailabilityRepository
from .base import BaseService
from .conflict_checker import ConflictChecker
from .slot_generator import TimeSlot, generate_time_slots

logger = logging.getLogger(__name__)


@dataclass
class MentorCalendar:
    """Calendar view returned by ``get_mentor_availability``."""

    mentor_id: str
    range_start: datetime
    range_end: datetime
    timezone: str
    available_slots: List[TimeSlot]
    booked_slots: List[TimeSlot]


class AvailabilityService(BaseService):
    """
    Service layer for availability operations.

    Owns the transaction boundaries; repositories only flush.
    """

    def __init__(
        self,
        db: Session,
        repository: Optional[AvailabilityRepository] = None,
        conflict_checker: Optional[ConflictChecker] = None,
    ):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_availability_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db)
        self.session_repository = RepositoryFactory.create_office_session_repository(db)
        self.mentor_repository = RepositoryFactory.create_mentor_repository(db)

    def _require_mentor(self, mentor_id: str):
        mentor = self.mentor_repository.get_active_mentor(mentor_id)
        if mentor is None:
            raise NotFoundException("Mentor not found", code="MENTOR_NOT_FOUND")
        return mentor

    @BaseService.measure_operation("create_block")
    def create_block(
        self,
        mentor_id: str,
        start: datetime,
        end: datetime,
        location: str = DEFAULT_LOCATION,
    ) -> AvailabilityBlock:
        """
        Publish an open block for a mentor.

        Raises:
            InvalidTimeRangeException: ``start >= end``
            NotFoundException: unknown or inactive mentor
            AvailabilityConflictException: overlaps a block or scheduled session
        """
        start_utc = ensure_utc(start)
        end_utc = ensure_utc(end)
        ConflictChecker.validate_time_range(start_utc, end_utc)

        with mentor_lock(mentor_id):
            with self.transaction():
                if self.mentor_repository.lock_mentor(mentor_id) is None:
                    raise NotFoundException("Mentor not found", code="MENTOR_NOT_FOUND")
                if self.conflict_checker.has_conflict(mentor_id, start_utc, end_utc):
                    conflicts = self.conflict_checker.find_conflicts(mentor_id, start_utc, end_utc)
                    prometheus_metrics.record_booking_conflict("create_block")
                    raise AvailabilityConflictException(
                        details={"mentor_id": mentor_id, "conflicts": conflicts}
                    )
                block = self.repository.create(
                    mentor_id=mentor_id,
                    starts_at=start_utc,
                    ends_at=end_utc,
                    location=location or DEFAULT_LOCATION,
                )

        self.log_operation(
            "create_block",
            mentor_id=mentor_id,
            block_id=block.id,
            start=start_utc.isoformat(),
            end=end_utc.isoformat(),
        )
        return block

    @BaseService.measure_operation("delete_block")
    def delete_block(self, mentor_id: str, block_id: str) -> None:
        """Revoke a block. Missing blocks and blocks of other mentors are not found."""
        with mentor_lock(mentor_id):
            with self.transaction():
                block = self.repository.get_block_for_mentor(mentor_id, block_id)
                if block is None:
                    raise NotFoundException(
                        "Availability block not found", code="AVAILABILITY_BLOCK_NOT_FOUND"
                    )
                self.repository.delete(block.id)

        self.log_operation("delete_block", mentor_id=mentor_id, block_id=block_id)

    @BaseService.measure_operation("get_mentor_availability")
    def get_mentor_availability(
        self,
        mentor_id: str,
        range_start: Optional[datetime] = None,
        range_end: Optional[datetime] = None,
    ) -> MentorCalendar:
        """
        Build the available/booked slot lists for a mentor.

        Defaults to now through ``availability_default_days`` days ahead.
        Only blocks and sessions whose start falls inside the range appear.
        """
        start_utc = ensure_utc(range_start) or datetime.now(timezone.utc)
        end_utc = ensure_utc(range_end) or start_utc + timedelta(
            days=settings.availability_default_days
        )
        ConflictChecker.validate_time_range(start_utc, end_utc)
        mentor = self._require_mentor(mentor_id)

        blocks = self.repository.get_blocks_for_range(mentor_id, start_utc, end_utc)
        sessions = self.session_repository.get_scheduled_for_range(mentor_id, start_utc, end_utc)
        available, booked = generate_time_slots(blocks, sessions, start_utc, end_utc)

        return MentorCalendar(
            mentor_id=mentor_id,
            range_start=start_utc,
            range_end=end_utc,
            timezone=mentor.timezone or settings.default_timezone,
            available_slots=available,
            booked_slots=booked,
        )

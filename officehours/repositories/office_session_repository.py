# officehours/repositories/office_session_repository.py
"""
Office Session Repository

Data access for booked sessions. Status transitions are applied by the
booking service on loaded rows; this repository only reads and inserts.
"""

from datetime import datetime
import logging
from typing import List, Optional, Set, cast

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import SessionStatus
from ..core.exceptions import RepositoryException
from ..models.office_session import BookedSession
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class OfficeSessionRepository(BaseRepository[BookedSession]):
    """Repository for booked sessions."""

    def __init__(self, db: Session):
        super().__init__(db, BookedSession)

    def get_for_update(self, session_id: str) -> Optional[BookedSession]:
        """Fetch a session, taking a row lock where the dialect supports it."""
        try:
            query = (
                self.db.query(BookedSession)
                .filter(BookedSession.id == session_id)
                .populate_existing()
            )
            if self.supports_row_locks:
                query = query.with_for_update()
            return cast(Optional[BookedSession], query.first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading session {session_id}: {str(e)}")
            raise RepositoryException(f"Failed to load session: {str(e)}")

    def get_scheduled_for_range(
        self, mentor_id: str, range_start: datetime, range_end: datetime
    ) -> List[BookedSession]:
        """Get scheduled sessions touching ``[range_start, range_end]`` ordered by start."""
        try:
            return cast(
                List[BookedSession],
                self.db.query(BookedSession)
                .filter(
                    BookedSession.mentor_id == mentor_id,
                    BookedSession.status == SessionStatus.SCHEDULED.value,
                    BookedSession.ends_at >= range_start,
                    BookedSession.starts_at <= range_end,
                )
                .order_by(BookedSession.starts_at, BookedSession.id)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting scheduled sessions for range: {str(e)}")
            raise RepositoryException(f"Failed to get scheduled sessions: {str(e)}")

    def get_mentor_ids_booked_by_mentee(self, mentee_id: str) -> Set[str]:
        """Return ids of every mentor the mentee has ever booked, whatever the status."""
        try:
            rows = (
                self.db.query(BookedSession.mentor_id)
                .filter(BookedSession.mentee_id == mentee_id)
                .distinct()
                .all()
            )
            return {row[0] for row in rows}
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting past mentors for mentee {mentee_id}: {str(e)}")
            raise RepositoryException(f"Failed to get past interactions: {str(e)}")

    def get_mentee_ids_booked_with_mentor(self, mentor_id: str) -> Set[str]:
        """Return ids of every mentee who has booked the mentor, whatever the status."""
        try:
            rows = (
                self.db.query(BookedSession.mentee_id)
                .filter(BookedSession.mentor_id == mentor_id)
                .distinct()
                .all()
            )
            return {row[0] for row in rows}
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting past mentees for mentor {mentor_id}: {str(e)}")
            raise RepositoryException(f"Failed to get past interactions: {str(e)}")

    def sum_booked_minutes(
        self, mentor_id: str, range_start: datetime, range_end: datetime
    ) -> int:
        """
        Total minutes of scheduled and completed sessions starting in
        ``[range_start, range_end]``.

        Cancelled sessions are excluded, and so are rescheduled originals
        since their replacement carries the booking.
        """
        try:
            total = (
                self.db.query(func.coalesce(func.sum(BookedSession.duration_minutes), 0))
                .filter(
                    BookedSession.mentor_id == mentor_id,
                    BookedSession.status.in_(
                        [SessionStatus.SCHEDULED.value, SessionStatus.COMPLETED.value]
                    ),
                    BookedSession.starts_at >= range_start,
                    BookedSession.starts_at <= range_end,
                )
                .scalar()
            )
            return int(total or 0)
        except SQLAlchemyError as e:
            self.logger.error(f"Error summing booked minutes for mentor {mentor_id}: {str(e)}")
            raise RepositoryException(f"Failed to sum booked minutes: {str(e)}")

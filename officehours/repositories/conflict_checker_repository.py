# officehours/repositories/conflict_checker_repository.py
"""
ConflictChecker Repository

Overlap queries for the two interval sets a mentor owns: open availability
blocks and scheduled sessions. Both use half-open semantics:
``[a, b)`` and ``[c, d)`` overlap iff ``a < d AND c < b``.
"""

from datetime import datetime
import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import SessionStatus
from ..core.exceptions import RepositoryException
from ..models.availability import AvailabilityBlock
from ..models.office_session import BookedSession
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ConflictCheckerRepository(BaseRepository[BookedSession]):
    """
    Repository for conflict checking data access.

    Read-only. Callers run these queries inside the same transaction as the
    insert they guard.
    """

    def __init__(self, db: Session):
        """Initialize with BookedSession model as primary."""
        super().__init__(db, BookedSession)

    def find_overlapping_blocks(
        self,
        mentor_id: str,
        start: datetime,
        end: datetime,
        exclude_block_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[AvailabilityBlock]:
        """
        Get availability blocks overlapping ``[start, end)``.

        Args:
            mentor_id: The mentor to check
            start: Candidate interval start
            end: Candidate interval end
            exclude_block_id: Optional block to ignore (e.g. one being consumed)
            limit: Optional cap on returned rows

        Returns:
            Overlapping blocks ordered by start
        """
        try:
            query = self.db.query(AvailabilityBlock).filter(
                AvailabilityBlock.mentor_id == mentor_id,
                AvailabilityBlock.starts_at < end,
                AvailabilityBlock.ends_at > start,
            )
            if exclude_block_id:
                query = query.filter(AvailabilityBlock.id != exclude_block_id)
            query = query.order_by(AvailabilityBlock.starts_at)
            if limit:
                query = query.limit(limit)
            return cast(List[AvailabilityBlock], query.all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting overlapping availability blocks: {str(e)}")
            raise RepositoryException(f"Failed to get overlapping blocks: {str(e)}")

    def find_overlapping_scheduled_sessions(
        self,
        mentor_id: str,
        start: datetime,
        end: datetime,
        exclude_session_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[BookedSession]:
        """
        Get ``scheduled`` sessions overlapping ``[start, end)``.

        Cancelled, completed and rescheduled sessions never block.
        """
        try:
            query = self.db.query(BookedSession).filter(
                BookedSession.mentor_id == mentor_id,
                BookedSession.status == SessionStatus.SCHEDULED.value,
                BookedSession.starts_at < end,
                BookedSession.ends_at > start,
            )
            if exclude_session_id:
                query = query.filter(BookedSession.id != exclude_session_id)
            query = query.order_by(BookedSession.starts_at)
            if limit:
                query = query.limit(limit)
            return cast(List[BookedSession], query.all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting overlapping sessions: {str(e)}")
            raise RepositoryException(f"Failed to get overlapping sessions: {str(e)}")

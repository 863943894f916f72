# officehours/services/conflict_checker.py
"""
Conflict Checker Service for the office-hours platform

Decides whether a candidate interval overlaps anything already on a mentor's
calendar. A mentor owns two interval sets that are maintained
independently: open availability blocks and booked sessions. A candidate
conflicts with either one under half-open semantics, so an interval ending
exactly when another begins is not a conflict.

Only ``scheduled`` sessions block. Cancelled, completed and rescheduled
sessions never do.

The checker is read-only. Callers must run it inside the same transaction
(and per-mentor critical section) as the insert it guards.
"""

from datetime import datetime
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import InvalidTimeRangeException
from ..repositories import RepositoryFactory
from ..repositories.conflict_checker_repository import ConflictCheckerRepository
from .base import BaseService

logger = logging.getLogger(__name__)


def intervals_overlap(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    """Half-open overlap test: ``[a, b)`` and ``[c, d)`` overlap iff ``a < d and c < b``."""
    return start_a < end_b and start_b < end_a


class ConflictChecker(BaseService):
    """
    Service for checking calendar conflicts.

    Centralizes overlap detection so booking creation, rescheduling and
    availability publishing all apply the same rule.
    """

    def __init__(self, db: Session, repository: Optional[ConflictCheckerRepository] = None):
        """
        Initialize conflict checker service.

        Args:
            db: Database session
            repository: Optional ConflictCheckerRepository instance
        """
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_conflict_checker_repository(db)

    @staticmethod
    def validate_time_range(start: datetime, end: datetime) -> None:
        """Reject empty or inverted intervals."""
        if start >= end:
            raise InvalidTimeRangeException(start, end)

    @BaseService.measure_operation("has_conflict")
    def has_conflict(
        self,
        mentor_id: str,
        start: datetime,
        end: datetime,
        *,
        exclude_session_id: Optional[str] = None,
        exclude_block_id: Optional[str] = None,
    ) -> bool:
        """
        Check whether ``[start, end)`` overlaps the mentor's calendar.

        Args:
            mentor_id: The mentor to check
            start: Candidate start (must be before ``end``; callers validate)
            end: Candidate end
            exclude_session_id: Session to ignore (the one being rescheduled)
            exclude_block_id: Block to ignore (the one being consumed by a booking)

        Returns:
            True if any availability block or scheduled session overlaps
        """
        blocks = self.repository.find_overlapping_blocks(
            mentor_id, start, end, exclude_block_id=exclude_block_id, limit=1
        )
        if blocks:
            return True

        sessions = self.repository.find_overlapping_scheduled_sessions(
            mentor_id, start, end, exclude_session_id=exclude_session_id, limit=1
        )
        return bool(sessions)

    @BaseService.measure_operation("find_conflicts")
    def find_conflicts(
        self,
        mentor_id: str,
        start: datetime,
        end: datetime,
        *,
        exclude_session_id: Optional[str] = None,
        exclude_block_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Describe everything overlapping ``[start, end)``.

        Returns:
            List of ``{"kind", "id", "start", "end"}`` dicts, blocks first,
            each group ordered by start
        """
        conflicts: List[Dict[str, Any]] = []

        for block in self.repository.find_overlapping_blocks(
            mentor_id, start, end, exclude_block_id=exclude_block_id
        ):
            conflicts.append(
                {
                    "kind": "availability_block",
                    "id": block.id,
                    "start": block.starts_at.isoformat(),
                    "end": block.ends_at.isoformat(),
                }
            )

        for session in self.repository.find_overlapping_scheduled_sessions(
            mentor_id, start, end, exclude_session_id=exclude_session_id
        ):
            conflicts.append(
                {
                    "kind": "session",
                    "id": session.id,
                    "start": session.starts_at.isoformat(),
                    "end": session.ends_at.isoformat(),
                }
            )

        if conflicts:
            self.logger.info(
                f"Found {len(conflicts)} conflicts for mentor {mentor_id}",
                extra={"mentor_id": mentor_id, "conflict_count": len(conflicts)},
            )
        return conflicts

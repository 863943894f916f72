# officehours/repositories/availability_repository.py
"""
Availability Repository

Storage and retrieval of availability blocks by mentor and time range.
No business rules live here; overlap policy is owned by the
ConflictChecker service.
"""

from datetime import datetime
import logging
from typing import Iterable, List, Optional, Set, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.availability import AvailabilityBlock
from ..utils.time_utils import minutes_between
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class AvailabilityRepository(BaseRepository[AvailabilityBlock]):
    """Repository for availability blocks."""

    def __init__(self, db: Session):
        super().__init__(db, AvailabilityBlock)

    def get_blocks_for_range(
        self, mentor_id: str, range_start: datetime, range_end: datetime
    ) -> List[AvailabilityBlock]:
        """
        Get blocks touching ``[range_start, range_end]`` ordered by start.

        Inclusive on both ends; the slot generator applies the final
        start-in-range filter.
        """
        try:
            return cast(
                List[AvailabilityBlock],
                self.db.query(AvailabilityBlock)
                .filter(
                    AvailabilityBlock.mentor_id == mentor_id,
                    AvailabilityBlock.ends_at >= range_start,
                    AvailabilityBlock.starts_at <= range_end,
                )
                .order_by(AvailabilityBlock.starts_at, AvailabilityBlock.id)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting availability blocks for range: {str(e)}")
            raise RepositoryException(f"Failed to get availability blocks: {str(e)}")

    def find_exact_block(
        self, mentor_id: str, starts_at: datetime, ends_at: datetime
    ) -> Optional[AvailabilityBlock]:
        """Return the block whose interval is exactly ``[starts_at, ends_at)``."""
        try:
            return cast(
                Optional[AvailabilityBlock],
                self.db.query(AvailabilityBlock)
                .filter(
                    AvailabilityBlock.mentor_id == mentor_id,
                    AvailabilityBlock.starts_at == starts_at,
                    AvailabilityBlock.ends_at == ends_at,
                )
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error finding exact availability block: {str(e)}")
            raise RepositoryException(f"Failed to find availability block: {str(e)}")

    def get_block_for_mentor(self, mentor_id: str, block_id: str) -> Optional[AvailabilityBlock]:
        """Fetch a block only if it belongs to ``mentor_id``."""
        try:
            return cast(
                Optional[AvailabilityBlock],
                self.db.query(AvailabilityBlock)
                .filter(
                    AvailabilityBlock.id == block_id,
                    AvailabilityBlock.mentor_id == mentor_id,
                )
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting availability block {block_id}: {str(e)}")
            raise RepositoryException(f"Failed to get availability block: {str(e)}")

    def get_mentor_ids_with_upcoming_availability(
        self, mentor_ids: Iterable[str], after: datetime
    ) -> Set[str]:
        """Return the subset of ``mentor_ids`` with at least one block starting at/after ``after``."""
        ids = list(mentor_ids)
        if not ids:
            return set()
        try:
            rows = (
                self.db.query(AvailabilityBlock.mentor_id)
                .filter(
                    AvailabilityBlock.mentor_id.in_(ids),
                    AvailabilityBlock.starts_at >= after,
                )
                .distinct()
                .all()
            )
            return {row[0] for row in rows}
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking upcoming availability: {str(e)}")
            raise RepositoryException(f"Failed to check upcoming availability: {str(e)}")

    def sum_open_minutes(
        self, mentor_id: str, range_start: datetime, range_end: datetime
    ) -> int:
        """Total minutes of blocks lying entirely inside ``[range_start, range_end]``."""
        try:
            rows = (
                self.db.query(AvailabilityBlock.starts_at, AvailabilityBlock.ends_at)
                .filter(
                    AvailabilityBlock.mentor_id == mentor_id,
                    AvailabilityBlock.starts_at >= range_start,
                    AvailabilityBlock.ends_at <= range_end,
                )
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error summing open minutes for mentor {mentor_id}: {str(e)}")
            raise RepositoryException(f"Failed to sum open minutes: {str(e)}")
        return sum(minutes_between(starts_at, ends_at) for starts_at, ends_at in rows)

# officehours/repositories/mentor_repository.py
"""
Mentor Repository

Read access to mentor and mentee profiles for the booking core, plus the
mentor row lock used to serialise calendar writes on PostgreSQL.
"""

import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..core.exceptions import RepositoryException
from ..models.mentor import MenteeProfile, MentorProfile
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class MentorRepository(BaseRepository[MentorProfile]):
    """Repository for mentor/mentee profile lookups."""

    def __init__(self, db: Session):
        super().__init__(db, MentorProfile)

    def get_active_mentor(self, mentor_id: str) -> Optional[MentorProfile]:
        """Fetch an active mentor by id."""
        try:
            return cast(
                Optional[MentorProfile],
                self.db.query(MentorProfile)
                .filter(MentorProfile.id == mentor_id, MentorProfile.active.is_(True))
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting mentor {mentor_id}: {str(e)}")
            raise RepositoryException(f"Failed to get mentor: {str(e)}")

    def lock_mentor(self, mentor_id: str) -> Optional[MentorProfile]:
        """
        Load an active mentor with ``SELECT ... FOR UPDATE`` where supported.

        Holding this row lock until commit serialises conflict-check+insert
        across processes on PostgreSQL.
        """
        try:
            query = self.db.query(MentorProfile).filter(
                MentorProfile.id == mentor_id, MentorProfile.active.is_(True)
            )
            if self.supports_row_locks:
                query = query.with_for_update()
            return cast(Optional[MentorProfile], query.first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking mentor {mentor_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock mentor: {str(e)}")

    def get_mentee(self, mentee_id: str) -> Optional[MenteeProfile]:
        try:
            return cast(Optional[MenteeProfile], self.db.get(MenteeProfile, mentee_id))
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting mentee {mentee_id}: {str(e)}")
            raise RepositoryException(f"Failed to get mentee: {str(e)}")

    def list_active_mentors(self) -> List[MentorProfile]:
        """All active mentors with expertise loaded, in stable creation order."""
        try:
            return cast(
                List[MentorProfile],
                self.db.query(MentorProfile)
                .options(selectinload(MentorProfile.expertise))
                .filter(MentorProfile.active.is_(True))
                .order_by(MentorProfile.created_at, MentorProfile.id)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing active mentors: {str(e)}")
            raise RepositoryException(f"Failed to list mentors: {str(e)}")

    def list_mentees(self) -> List[MenteeProfile]:
        """All mentees in stable creation order."""
        try:
            return cast(
                List[MenteeProfile],
                self.db.query(MenteeProfile)
                .order_by(MenteeProfile.created_at, MenteeProfile.id)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing mentees: {str(e)}")
            raise RepositoryException(f"Failed to list mentees: {str(e)}")

# officehours/repositories/factory.py
"""
Repository Factory

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .availability_repository import AvailabilityRepository
    from .conflict_checker_repository import ConflictCheckerRepository
    from .mentor_repository import MentorRepository
    from .office_session_repository import OfficeSessionRepository
    from .sync_outbox_repository import SyncOutboxRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_availability_repository(db: Session) -> "AvailabilityRepository":
        """Create repository for availability blocks."""
        from .availability_repository import AvailabilityRepository

        return AvailabilityRepository(db)

    @staticmethod
    def create_office_session_repository(db: Session) -> "OfficeSessionRepository":
        """Create repository for booked sessions."""
        from .office_session_repository import OfficeSessionRepository

        return OfficeSessionRepository(db)

    @staticmethod
    def create_conflict_checker_repository(db: Session) -> "ConflictCheckerRepository":
        """Create repository for conflict checking queries."""
        from .conflict_checker_repository import ConflictCheckerRepository

        return ConflictCheckerRepository(db)

    @staticmethod
    def create_mentor_repository(db: Session) -> "MentorRepository":
        """Create repository for mentor/mentee lookups."""
        from .mentor_repository import MentorRepository

        return MentorRepository(db)

    @staticmethod
    def create_sync_outbox_repository(db: Session) -> "SyncOutboxRepository":
        """Create repository for the sync outbox."""
        from .sync_outbox_repository import SyncOutboxRepository

        return SyncOutboxRepository(db)

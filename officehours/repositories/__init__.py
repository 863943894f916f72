"""
Repository layer for the office-hours platform.

Repositories encapsulate data access; services own transactions.
"""

from .availability_repository import AvailabilityRepository
from .base_repository import BaseRepository
from .conflict_checker_repository import ConflictCheckerRepository
from .factory import RepositoryFactory
from .mentor_repository import MentorRepository
from .office_session_repository import OfficeSessionRepository
from .sync_outbox_repository import SyncOutboxRepository

__all__ = [
    "AvailabilityRepository",
    "BaseRepository",
    "ConflictCheckerRepository",
    "MentorRepository",
    "OfficeSessionRepository",
    "RepositoryFactory",
    "SyncOutboxRepository",
]

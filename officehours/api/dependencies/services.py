# officehours/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Each provider builds a request-scoped service around the request's
database session.
"""

import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.conflict_checker import ConflictChecker
from ...services.search.match_service import MatchService
from ...services.search.mentee_match_service import MenteeMatchService
from ...services.sync_outbox_service import SyncOutboxService
from .database import get_db

logger = logging.getLogger(__name__)


def get_conflict_checker(db: Session = Depends(get_db)) -> ConflictChecker:
    """Get conflict checker service instance."""
    return ConflictChecker(db)


def get_sync_outbox_service(db: Session = Depends(get_db)) -> SyncOutboxService:
    """Get sync outbox service instance."""
    return SyncOutboxService(db)


def get_booking_service(
    db: Session = Depends(get_db),
    conflict_checker: ConflictChecker = Depends(get_conflict_checker),
    sync_outbox_service: SyncOutboxService = Depends(get_sync_outbox_service),
) -> BookingService:
    """
    Get booking service instance.

    Args:
        db: Database session
        conflict_checker: Conflict checker sharing the session
        sync_outbox_service: Outbox producer sharing the session

    Returns:
        BookingService instance
    """
    return BookingService(
        db,
        conflict_checker=conflict_checker,
        sync_outbox_service=sync_outbox_service,
    )


def get_availability_service(
    db: Session = Depends(get_db),
    conflict_checker: ConflictChecker = Depends(get_conflict_checker),
) -> AvailabilityService:
    """Get availability service instance."""
    return AvailabilityService(db, conflict_checker=conflict_checker)


def get_match_service(db: Session = Depends(get_db)) -> MatchService:
    """Get match service instance."""
    return MatchService(db)


def get_mentee_match_service(db: Session = Depends(get_db)) -> MenteeMatchService:
    return MenteeMatchService(db)

"""
FastAPI dependency providers.
"""

from .database import get_db
from .services import (
    get_availability_service,
    get_booking_service,
    get_conflict_checker,
    get_match_service,
    get_mentee_match_service,
    get_sync_outbox_service,
)

__all__ = [
    "get_availability_service",
    "get_booking_service",
    "get_conflict_checker",
    "get_db",
    "get_match_service",
    "get_mentee_match_service",
    "get_sync_outbox_service",
]

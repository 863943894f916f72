"""Service layer for the office-hours platform."""

from .availability_service import AvailabilityService, MentorCalendar
from .base import BaseService
from .booking_service import BookingService
from .conflict_checker import ConflictChecker
from .slot_generator import TimeSlot, generate_time_slots, is_slot_available
from .sync_outbox_service import OutboxBatchResult, SyncOutboxService

__all__ = [
    "AvailabilityService",
    "BaseService",
    "BookingService",
    "ConflictChecker",
    "MentorCalendar",
    "OutboxBatchResult",
    "SyncOutboxService",
    "TimeSlot",
    "generate_time_slots",
    "is_slot_available",
]

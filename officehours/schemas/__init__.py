"""
Pydantic schemas for the office-hours platform.
"""

from .availability import (
    AvailabilityBlockCreate,
    AvailabilityBlockResponse,
    MentorAvailabilityResponse,
    TimeSlotResponse,
)
from .booking import BookingCreate, BookingReschedule, BookingResponse
from .health import HealthResponse
from .match import (
    MatchFilters,
    MatchRequest,
    MatchResponse,
    MatchResultResponse,
    MatchScoresResponse,
)
from .sync_outbox import (
    OutboxReplayRequest,
    OutboxReplayResponse,
    OutboxStatsResponse,
    OutboxTaskListResponse,
    OutboxTaskResponse,
)

__all__ = [
    "AvailabilityBlockCreate",
    "AvailabilityBlockResponse",
    "BookingCreate",
    "BookingReschedule",
    "BookingResponse",
    "HealthResponse",
    "MatchFilters",
    "MatchRequest",
    "MatchResponse",
    "MatchResultResponse",
    "MatchScoresResponse",
    "MentorAvailabilityResponse",
    "OutboxReplayRequest",
    "OutboxReplayResponse",
    "OutboxStatsResponse",
    "OutboxTaskListResponse",
    "OutboxTaskResponse",
    "TimeSlotResponse",
]

# officehours/schemas/availability.py
"""
Availability schemas for the office-hours platform.

Blocks are absolute UTC intervals. The calendar view is derived per request
and never stored.
"""

from datetime import datetime
from typing import List

from pydantic import Field

from ..core.constants import DEFAULT_LOCATION
from ._strict_base import ORMResponseModel, StrictModel, StrictRequestModel


class AvailabilityBlockCreate(StrictRequestModel):
    """Publish an open window on a mentor's calendar."""

    mentor_id: str
    start: datetime
    end: datetime
    location: str = Field(DEFAULT_LOCATION, min_length=1, max_length=120)


class AvailabilityBlockResponse(ORMResponseModel):
    id: str
    mentor_id: str
    starts_at: datetime
    ends_at: datetime
    location: str


class TimeSlotResponse(StrictModel):
    start: datetime
    end: datetime
    available: bool
    duration_minutes: int


class MentorAvailabilityResponse(StrictModel):
    """Calendar view of one mentor for a range."""

    mentor_id: str
    range_start: datetime
    range_end: datetime
    timezone: str
    available_slots: List[TimeSlotResponse]
    booked_slots: List[TimeSlotResponse]

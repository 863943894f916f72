# officehours/schemas/booking.py
"""
Booking schemas for the office-hours platform.

Interval rules (``start < end``, duration bounds) are enforced by the
booking service so they surface as domain validation errors rather than
request-parsing errors.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from ..core.constants import MAX_GOALS_LENGTH
from ..core.enums import MeetingType
from ._strict_base import ORMResponseModel, StrictRequestModel


class BookingCreate(StrictRequestModel):
    """
    Book a session with a mentor.

    Either ``end`` or ``duration_minutes`` determines the interval. When
    both are given they must agree.
    """

    mentor_id: str = Field(..., description="Mentor to book")
    mentee_id: str = Field(..., description="Mentee making the booking")
    start: datetime = Field(..., description="Session start (timezone-aware; naive is UTC)")
    end: Optional[datetime] = Field(None, description="Session end")
    duration_minutes: Optional[int] = Field(None, description="Length in minutes (15-120)")
    meeting_type: MeetingType = Field(MeetingType.VIDEO, description="video or in-person")
    goals: Optional[str] = Field(None, max_length=MAX_GOALS_LENGTH)

    @field_validator("goals")
    @classmethod
    def clean_goals(cls, v: Optional[str]) -> Optional[str]:
        """Strip surrounding whitespace; blank goals become None."""
        if v is None:
            return v
        stripped = v.strip()
        return stripped or None


class BookingReschedule(StrictRequestModel):
    """Move a scheduled session to a new interval."""

    start: datetime
    end: Optional[datetime] = None
    duration_minutes: Optional[int] = None


class BookingResponse(ORMResponseModel):
    id: str
    mentor_id: str
    mentee_id: str
    starts_at: datetime
    ends_at: datetime
    duration_minutes: int
    status: str
    meeting_type: str
    meeting_url: Optional[str] = None
    goals: Optional[str] = None
    rescheduled_from_id: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime

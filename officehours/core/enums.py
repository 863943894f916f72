# officehours/core/enums.py
"""
Core enums for the office-hours platform.

String-valued so they serialise directly into JSON payloads and database
columns.
"""

from enum import Enum


class SessionStatus(str, Enum):
    """Lifecycle statuses of a booked session."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


class MeetingType(str, Enum):
    """How a session takes place."""

    VIDEO = "video"
    IN_PERSON = "in-person"


class OutboxStatus(str, Enum):
    """
    Delivery states of a sync outbox task.

    pending <-> processing -> completed | failed. ``failed`` is terminal until
    an operator replays the task.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class OutboxAction(str, Enum):
    """Operation requested of the external sync target."""

    UPSERT = "upsert"
    DELETE = "delete"


class OutboxEntityType(str, Enum):
    """Entities mirrored to the external sync target."""

    MENTOR = "mentor"
    MENTEE = "mentee"


class PastInteractionFilter(str, Enum):
    """Optional narrowing of match candidates by booking history."""

    PREVIOUSLY_BOOKED = "previously-booked"
    NEW_MENTORS_ONLY = "new-mentors-only"


class MenteeInteractionFilter(str, Enum):
    """Narrowing of mentee matches by booking history with the mentor."""

    PREVIOUSLY_BOOKED = "previously-booked"
    NEW_MENTEES_ONLY = "new-mentees-only"
    ALL = "all"

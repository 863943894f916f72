"""SQLAlchemy models for the office-hours platform."""

from .availability import AvailabilityBlock
from .mentor import MenteeProfile, MentorExpertise, MentorProfile
from .office_session import BookedSession
from .sync_outbox import OutboxTask

__all__ = [
    "AvailabilityBlock",
    "BookedSession",
    "MenteeProfile",
    "MentorExpertise",
    "MentorProfile",
    "OutboxTask",
]

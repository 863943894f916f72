# officehours/models/office_session.py
"""
Booked session model.

Sessions are created with ``scheduled`` status after a conflict check. Their
interval is never edited afterwards: status transitions are the only
mutation path, and a reschedule creates a new row pointing back at the old
one through ``rescheduled_from_id``.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.enums import MeetingType, SessionStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import UTCDateTime


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class BookedSession(Base):
    """A confirmed appointment between a mentor and a mentee."""

    __tablename__ = "office_sessions"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    mentor_id = Column(
        String(26), ForeignKey("mentor_profiles.id", ondelete="CASCADE"), nullable=False
    )
    mentee_id = Column(
        String(26), ForeignKey("mentee_profiles.id", ondelete="CASCADE"), nullable=False
    )
    starts_at = Column(UTCDateTime, nullable=False)
    ends_at = Column(UTCDateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=SessionStatus.SCHEDULED.value)
    meeting_type = Column(String(20), nullable=False, default=MeetingType.VIDEO.value)
    meeting_url = Column(String(500), nullable=True)
    goals = Column(Text, nullable=True)
    rescheduled_from_id = Column(
        String(26), ForeignKey("office_sessions.id", ondelete="SET NULL"), nullable=True
    )
    cancelled_at = Column(UTCDateTime, nullable=True)
    completed_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=_now_utc, server_default=func.now())
    updated_at = Column(
        UTCDateTime,
        nullable=False,
        default=_now_utc,
        server_default=func.now(),
        onupdate=_now_utc,
    )

    mentor = relationship("MentorProfile")
    mentee = relationship("MenteeProfile")

    __table_args__ = (
        CheckConstraint("starts_at < ends_at", name="ck_office_sessions_range"),
        CheckConstraint(
            "status IN ('scheduled', 'completed', 'cancelled', 'rescheduled')",
            name="ck_office_sessions_status",
        ),
        Index("idx_office_sessions_mentor_status_start", "mentor_id", "status", "starts_at"),
        Index("idx_office_sessions_mentee", "mentee_id"),
    )

    @property
    def is_scheduled(self) -> bool:
        return self.status == SessionStatus.SCHEDULED.value

    def transition_to(self, status: SessionStatus, at: Optional[datetime] = None) -> None:
        """Move the session to ``status`` and stamp the matching timestamp."""
        moment = at or _now_utc()
        self.status = status.value
        if status == SessionStatus.CANCELLED:
            self.cancelled_at = moment
        elif status == SessionStatus.COMPLETED:
            self.completed_at = moment
        self.updated_at = moment

    def __repr__(self) -> str:
        return f"<BookedSession {self.id} {self.status} {self.starts_at}-{self.ends_at}>"

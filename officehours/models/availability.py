# officehours/models/availability.py
"""
Availability block model.

A block is an open, not-yet-booked window declared by a mentor. It is
deleted when booked exactly or when the mentor revokes it.
"""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.constants import DEFAULT_LOCATION
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import UTCDateTime


class AvailabilityBlock(Base):
    """An open booking window for a mentor."""

    __tablename__ = "availability_blocks"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    mentor_id = Column(
        String(26), ForeignKey("mentor_profiles.id", ondelete="CASCADE"), nullable=False
    )
    starts_at = Column(UTCDateTime, nullable=False)
    ends_at = Column(UTCDateTime, nullable=False)
    location = Column(String(120), nullable=False, default=DEFAULT_LOCATION)
    created_at = Column(
        UTCDateTime,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    mentor = relationship("MentorProfile")

    __table_args__ = (
        CheckConstraint("starts_at < ends_at", name="ck_availability_blocks_range"),
        Index("idx_availability_blocks_mentor_start", "mentor_id", "starts_at"),
    )

    def __repr__(self) -> str:
        return f"<AvailabilityBlock {self.mentor_id} {self.starts_at}-{self.ends_at}>"

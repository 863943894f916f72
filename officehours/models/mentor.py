# officehours/models/mentor.py
"""
Mentor and mentee profile models.

Profile CRUD lives elsewhere; the booking core only reads these rows to
validate ids, build match candidates and produce sync snapshots.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import Boolean, Column, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import UTCDateTime


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class MentorProfile(Base):
    """A mentor offering office hours."""

    __tablename__ = "mentor_profiles"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    display_name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True)
    headline = Column(String(255), nullable=True)
    company = Column(String(255), nullable=True)
    industry = Column(String(120), nullable=True)
    stage = Column(String(120), nullable=True)
    timezone = Column(String(64), nullable=True)
    rating = Column(Float, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    external_record_id = Column(String(64), nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=_now_utc, server_default=func.now())
    updated_at = Column(
        UTCDateTime,
        nullable=False,
        default=_now_utc,
        server_default=func.now(),
        onupdate=_now_utc,
    )

    expertise = relationship(
        "MentorExpertise",
        back_populates="mentor",
        cascade="all, delete-orphan",
        order_by="MentorExpertise.position",
        lazy="selectin",
    )

    @property
    def expertise_tags(self) -> List[str]:
        return [item.area for item in self.expertise]

    def to_sync_snapshot(self) -> Dict[str, Any]:
        """JSON-safe snapshot pushed to the external sync target."""
        return {
            "id": self.id,
            "name": self.display_name,
            "email": self.email,
            "headline": self.headline,
            "company": self.company,
            "industry": self.industry,
            "stage": self.stage,
            "timezone": self.timezone,
            "rating": self.rating,
            "active": bool(self.active),
            "expertise": self.expertise_tags,
        }

    def __repr__(self) -> str:
        return f"<MentorProfile {self.id} {self.display_name}>"


class MentorExpertise(Base):
    """An expertise area declared by a mentor."""

    __tablename__ = "mentor_expertise"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    mentor_id = Column(
        String(26), ForeignKey("mentor_profiles.id", ondelete="CASCADE"), nullable=False
    )
    area = Column(String(120), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    mentor = relationship("MentorProfile", back_populates="expertise")

    __table_args__ = (Index("idx_mentor_expertise_mentor", "mentor_id"),)


class MenteeProfile(Base):
    """A mentee who books sessions."""

    __tablename__ = "mentee_profiles"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    display_name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True)
    goals = Column(Text, nullable=True)
    industry = Column(String(120), nullable=True)
    stage = Column(String(120), nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=_now_utc, server_default=func.now())
    updated_at = Column(
        UTCDateTime,
        nullable=False,
        default=_now_utc,
        server_default=func.now(),
        onupdate=_now_utc,
    )

    def to_sync_snapshot(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.display_name,
            "email": self.email,
            "goals": self.goals,
            "industry": self.industry,
            "stage": self.stage,
        }

    def __repr__(self) -> str:
        return f"<MenteeProfile {self.id} {self.display_name}>"

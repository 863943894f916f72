# officehours/models/sync_outbox.py
"""
Sync outbox persistence model.

Stores "push this entity to the external system" tasks. A worker claims a
task by moving it from ``pending`` to ``processing`` and stamping
``claimed_by``/``claimed_at``; the claim stamp lets stale claims from
crashed workers be detected and released.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import Column, Index, Integer, String, Text
from sqlalchemy.sql import func

from ..core.enums import OutboxStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import JSONType, UTCDateTime


def _now_utc() -> datetime:
    """Return timezone-aware UTC timestamp for default factories."""
    return datetime.now(timezone.utc)


class OutboxTask(Base):
    """Outbox entry pending delivery to the external sync target."""

    __tablename__ = "sync_outbox"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    entity_type = Column(String(32), nullable=False)
    entity_id = Column(String(64), nullable=False, index=True)
    action = Column(String(16), nullable=False)
    payload = Column(JSONType, nullable=False, default=dict)
    status = Column(String(20), nullable=False, default=OutboxStatus.PENDING.value)
    attempts = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
    claimed_by = Column(String(64), nullable=True)
    claimed_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=_now_utc, server_default=func.now())
    updated_at = Column(
        UTCDateTime,
        nullable=False,
        default=_now_utc,
        server_default=func.now(),
        onupdate=_now_utc,
    )

    __table_args__ = (Index("idx_sync_outbox_status_created", "status", "created_at"),)

    def claim_is_stale(self, stale_after: timedelta, now: Optional[datetime] = None) -> bool:
        """True when the task has been processing for longer than ``stale_after``."""
        if self.status != OutboxStatus.PROCESSING.value or self.claimed_at is None:
            return False
        return (now or _now_utc()) - self.claimed_at >= stale_after

    def __repr__(self) -> str:
        return (
            f"<OutboxTask {self.id} {self.entity_type}:{self.entity_id} "
            f"{self.action} {self.status} attempts={self.attempts}>"
        )

"""
Shared pytest configuration.

Environment defaults are set before any ``officehours`` import so the
module-level settings and engine pick up an in-memory SQLite database and
the in-process sync target.
"""

from datetime import datetime
import os
from typing import Callable, Iterable, Optional

os.environ.setdefault("CI", "1")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("SYNC_TARGET", "fake")
os.environ.setdefault("MENTOR_LOCK_BACKEND", "local")

import pytest
from sqlalchemy.orm import Session, sessionmaker

from officehours.core.enums import MeetingType, SessionStatus
from officehours.database import Base, create_db_engine
import officehours.models  # noqa: F401
from officehours.models import (
    AvailabilityBlock,
    BookedSession,
    MenteeProfile,
    MentorExpertise,
    MentorProfile,
)
from officehours.utils.time_utils import minutes_between


@pytest.fixture(scope="function")
def db_engine():
    engine = create_db_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine) -> Session:
    """Fresh session on a fresh in-memory database for every test."""
    TestingSessionLocal = sessionmaker(
        bind=db_engine, autocommit=False, autoflush=False, expire_on_commit=False
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def create_mentor(db: Session) -> Callable[..., MentorProfile]:
    def _create(
        *,
        name: str = "Ada Mentor",
        expertise: Iterable[str] = (),
        industry: Optional[str] = None,
        stage: Optional[str] = None,
        rating: Optional[float] = None,
        active: bool = True,
        tz: Optional[str] = "UTC",
        created_at: Optional[datetime] = None,
    ) -> MentorProfile:
        mentor = MentorProfile(
            display_name=name,
            email=f"{name.lower().replace(' ', '.')}@example.com",
            industry=industry,
            stage=stage,
            rating=rating,
            active=active,
            timezone=tz,
        )
        if created_at is not None:
            mentor.created_at = created_at
        mentor.expertise = [
            MentorExpertise(area=area, position=position)
            for position, area in enumerate(expertise)
        ]
        db.add(mentor)
        db.commit()
        return mentor

    return _create


@pytest.fixture
def create_mentee(db: Session) -> Callable[..., MenteeProfile]:
    def _create(
        *,
        name: str = "Grace Mentee",
        goals: Optional[str] = None,
        industry: Optional[str] = None,
        stage: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> MenteeProfile:
        mentee = MenteeProfile(
            display_name=name,
            email=f"{name.lower().replace(' ', '.')}@example.com",
            goals=goals,
            industry=industry,
            stage=stage,
        )
        if created_at is not None:
            mentee.created_at = created_at
        db.add(mentee)
        db.commit()
        return mentee

    return _create


@pytest.fixture
def create_block(db: Session) -> Callable[..., AvailabilityBlock]:
    def _create(mentor_id: str, start: datetime, end: datetime) -> AvailabilityBlock:
        block = AvailabilityBlock(mentor_id=mentor_id, starts_at=start, ends_at=end)
        db.add(block)
        db.commit()
        return block

    return _create


@pytest.fixture
def create_session(db: Session) -> Callable[..., BookedSession]:
    def _create(
        mentor_id: str,
        mentee_id: str,
        start: datetime,
        end: datetime,
        *,
        status: SessionStatus = SessionStatus.SCHEDULED,
    ) -> BookedSession:
        session = BookedSession(
            mentor_id=mentor_id,
            mentee_id=mentee_id,
            starts_at=start,
            ends_at=end,
            duration_minutes=minutes_between(start, end),
            status=status.value,
            meeting_type=MeetingType.VIDEO.value,
        )
        db.add(session)
        db.commit()
        return session

    return _create


@pytest.fixture
def mentor(create_mentor) -> MentorProfile:
    return create_mentor(
        expertise=["Fundraising", "Product Strategy"],
        industry="Fintech",
        stage="Seed",
        rating=4.8,
    )


@pytest.fixture
def mentee(create_mentee) -> MenteeProfile:
    return create_mentee(goals="Prepare for seed round")

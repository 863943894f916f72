"""
Concurrent booking tests.

Each thread gets its own session on a shared file-backed SQLite database, so
the per-mentor lock and the transaction it guards are exercised the way
separate requests would exercise them.
"""

from datetime import datetime, timedelta, timezone
import threading
from typing import List, Optional

import pytest
from sqlalchemy.orm import sessionmaker

from officehours.core.config import settings
from officehours.core.enums import SessionStatus
from officehours.core.exceptions import DomainException
from officehours.database import Base, create_db_engine
from officehours.models import BookedSession, MenteeProfile, MentorProfile
from officehours.schemas.booking import BookingCreate
from officehours.services.booking_service import BookingService

DAY = datetime(2030, 1, 7, tzinfo=timezone.utc)


def _at(hour: int, minute: int = 0) -> datetime:
    return DAY + timedelta(hours=hour, minutes=minute)


@pytest.fixture
def session_factory(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "mentor_lock_wait_seconds", 3.0)
    engine = create_db_engine(f"sqlite+pysqlite:///{tmp_path / 'calendar.db'}")
    Base.metadata.create_all(engine)
    factory = sessionmaker(
        bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
    )
    yield factory
    engine.dispose()


@pytest.fixture
def people(session_factory):
    session = session_factory()
    try:
        mentor = MentorProfile(display_name="Ada Mentor", timezone="UTC")
        mentees = [MenteeProfile(display_name=f"Mentee {index}") for index in range(4)]
        session.add(mentor)
        session.add_all(mentees)
        session.commit()
        return mentor.id, [mentee.id for mentee in mentees]
    finally:
        session.close()


def _book_concurrently(session_factory, mentor_id, mentee_ids, starts) -> List[Optional[str]]:
    barrier = threading.Barrier(len(starts))
    outcomes: List[Optional[str]] = [None] * len(starts)

    def book(index: int, start: datetime) -> None:
        session = session_factory()
        try:
            service = BookingService(session)
            barrier.wait()
            service.create_booking(
                BookingCreate(
                    mentor_id=mentor_id,
                    mentee_id=mentee_ids[index],
                    start=start,
                    duration_minutes=60,
                )
            )
            outcomes[index] = "ok"
        except DomainException as exc:
            outcomes[index] = exc.code
        finally:
            session.close()

    threads = [
        threading.Thread(target=book, args=(index, start)) for index, start in enumerate(starts)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return outcomes


def _scheduled_count(session_factory, mentor_id: str) -> int:
    session = session_factory()
    try:
        return (
            session.query(BookedSession)
            .filter_by(mentor_id=mentor_id, status=SessionStatus.SCHEDULED.value)
            .count()
        )
    finally:
        session.close()


class TestConcurrentBooking:
    def test_disjoint_windows_all_succeed(self, session_factory, people):
        mentor_id, mentee_ids = people

        outcomes = _book_concurrently(session_factory, mentor_id, mentee_ids, [_at(9), _at(11)])

        assert outcomes == ["ok", "ok"]
        assert _scheduled_count(session_factory, mentor_id) == 2

    def test_overlapping_windows_exactly_one_wins(self, session_factory, people):
        mentor_id, mentee_ids = people
        starts = [_at(9), _at(9, 15), _at(9, 30), _at(9, 45)]

        outcomes = _book_concurrently(session_factory, mentor_id, mentee_ids, starts)

        assert outcomes.count("ok") == 1
        assert sorted(code for code in outcomes if code != "ok") == ["BOOKING_CONFLICT"] * 3
        assert _scheduled_count(session_factory, mentor_id) == 1

# officehours/services/slot_generator.py
"""
Calendar slot derivation.

Reconciles a mentor's availability blocks against booked sessions to build
the public calendar view. Pure functions over interval records; nothing here
touches the database.

Range rule: a block or session is included only when its *start* falls in
``[range_start, range_end]``. A long block that starts before the range
but runs into it is left out.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Protocol, Set, Tuple

from ..utils.time_utils import minutes_between


class IntervalRecord(Protocol):
    """Anything with a start and an end (blocks and sessions both qualify)."""

    starts_at: datetime
    ends_at: datetime


@dataclass(frozen=True)
class TimeSlot:
    """A derived calendar slot. Never persisted."""

    start: datetime
    end: datetime
    available: bool
    duration_minutes: int

    @classmethod
    def from_interval(cls, start: datetime, end: datetime, *, available: bool) -> "TimeSlot":
        return cls(
            start=start,
            end=end,
            available=available,
            duration_minutes=minutes_between(start, end),
        )


def _in_range(moment: datetime, range_start: datetime, range_end: datetime) -> bool:
    return range_start <= moment <= range_end


def generate_time_slots(
    blocks: Iterable[IntervalRecord],
    sessions: Iterable[IntervalRecord],
    range_start: datetime,
    range_end: datetime,
) -> Tuple[List[TimeSlot], List[TimeSlot]]:
    """
    Split a mentor's calendar into available and booked slots.

    A block whose interval exactly matches a session is reported as booked.
    Sessions that were not emitted that way (their block was consumed or
    never existed) are added as standalone booked slots, deduplicated by
    start time.

    Args:
        blocks: Availability blocks for the mentor
        sessions: Scheduled sessions for the mentor
        range_start: Inclusive lower bound for slot starts
        range_end: Inclusive upper bound for slot starts

    Returns:
        ``(available_slots, booked_slots)``, each sorted ascending by start
    """
    session_list = list(sessions)
    booked_intervals: Set[Tuple[datetime, datetime]] = {
        (session.starts_at, session.ends_at) for session in session_list
    }

    available: List[TimeSlot] = []
    booked: List[TimeSlot] = []
    booked_starts: Set[datetime] = set()

    for block in blocks:
        if not _in_range(block.starts_at, range_start, range_end):
            continue
        if (block.starts_at, block.ends_at) in booked_intervals:
            if block.starts_at in booked_starts:
                continue
            booked.append(TimeSlot.from_interval(block.starts_at, block.ends_at, available=False))
            booked_starts.add(block.starts_at)
        else:
            available.append(TimeSlot.from_interval(block.starts_at, block.ends_at, available=True))

    for session in session_list:
        if not _in_range(session.starts_at, range_start, range_end):
            continue
        if session.starts_at in booked_starts:
            continue
        booked.append(TimeSlot.from_interval(session.starts_at, session.ends_at, available=False))
        booked_starts.add(session.starts_at)

    available.sort(key=lambda slot: slot.start)
    booked.sort(key=lambda slot: slot.start)
    return available, booked


def is_slot_available(slot: TimeSlot, booked_slots: Iterable[TimeSlot]) -> bool:
    """True unless a booked slot has exactly the same start and end."""
    return not any(
        booked.start == slot.start and booked.end == slot.end for booked in booked_slots
    )

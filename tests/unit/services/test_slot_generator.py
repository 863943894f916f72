"""Tests for calendar slot derivation."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from officehours.services.slot_generator import TimeSlot, generate_time_slots, is_slot_available

DAY = datetime(2030, 1, 7, tzinfo=timezone.utc)


def _at(hour: int, minute: int = 0) -> datetime:
    return DAY + timedelta(hours=hour, minutes=minute)


@dataclass
class Interval:
    starts_at: datetime
    ends_at: datetime


class TestGenerateTimeSlots:
    def test_free_block_is_available(self):
        available, booked = generate_time_slots(
            [Interval(_at(9), _at(10))], [], _at(0), _at(23)
        )

        assert available == [TimeSlot(_at(9), _at(10), True, 60)]
        assert booked == []

    def test_block_with_exact_session_is_booked(self):
        available, booked = generate_time_slots(
            [Interval(_at(9), _at(10))],
            [Interval(_at(9), _at(10))],
            _at(0),
            _at(23),
        )

        assert available == []
        assert booked == [TimeSlot(_at(9), _at(10), False, 60)]

    def test_partially_overlapping_session_does_not_book_block(self):
        available, booked = generate_time_slots(
            [Interval(_at(9), _at(10))],
            [Interval(_at(9), _at(9, 30))],
            _at(0),
            _at(23),
        )

        assert [slot.start for slot in available] == [_at(9)]
        assert booked == [TimeSlot(_at(9), _at(9, 30), False, 30)]

    def test_session_without_block_is_standalone_booked_slot(self):
        available, booked = generate_time_slots(
            [Interval(_at(9), _at(10))],
            [Interval(_at(10), _at(10, 30))],
            _at(0),
            _at(23),
        )

        assert [slot.start for slot in available] == [_at(9)]
        assert booked == [TimeSlot(_at(10), _at(10, 30), False, 30)]

    def test_booked_slots_deduplicated_by_start(self):
        _, booked = generate_time_slots(
            [],
            [Interval(_at(11), _at(12)), Interval(_at(11), _at(11, 30))],
            _at(0),
            _at(23),
        )

        assert len(booked) == 1
        assert booked[0].start == _at(11)

    def test_only_starts_inside_range_are_included(self):
        blocks = [
            Interval(_at(7), _at(10)),  # starts before range, runs into it
            Interval(_at(9), _at(10)),  # starts at range start
            Interval(_at(12), _at(13)),  # starts at range end
            Interval(_at(13), _at(14)),  # after range
        ]
        available, _ = generate_time_slots(blocks, [], _at(9), _at(12))

        assert [slot.start for slot in available] == [_at(9), _at(12)]

    def test_slots_sorted_by_start(self):
        available, booked = generate_time_slots(
            [Interval(_at(15), _at(16)), Interval(_at(9), _at(10))],
            [Interval(_at(13), _at(14)), Interval(_at(11), _at(12))],
            _at(0),
            _at(23),
        )

        assert [slot.start for slot in available] == [_at(9), _at(15)]
        assert [slot.start for slot in booked] == [_at(11), _at(13)]

    def test_duration_rounds_to_nearest_minute(self):
        slot = TimeSlot.from_interval(_at(9), _at(9, 44) + timedelta(seconds=31), available=True)
        assert slot.duration_minutes == 45

    def test_half_minute_duration_rounds_up(self):
        slot = TimeSlot.from_interval(_at(9), _at(9, 30) + timedelta(seconds=30), available=True)
        assert slot.duration_minutes == 31


class TestIsSlotAvailable:
    def test_exact_booked_match_makes_slot_unavailable(self):
        slot = TimeSlot(_at(9), _at(10), True, 60)
        booked = [TimeSlot(_at(9), _at(10), False, 60)]

        assert is_slot_available(slot, booked) is False

    def test_partial_overlap_does_not_count(self):
        slot = TimeSlot(_at(9), _at(10), True, 60)
        booked = [TimeSlot(_at(9), _at(9, 30), False, 30)]

        assert is_slot_available(slot, booked) is True

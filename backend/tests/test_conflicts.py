"""Tests for interval overlap and per-staff conflict detection."""

import pytest

from salon_booking.services.slots.conflicts import BusyIndex
from salon_booking.services.slots.records import Interval

from conftest import MONDAY, TUESDAY, make_booking


class TestInterval:
    def test_touching_boundaries_do_not_overlap(self):
        booking = Interval(600, 30)          # [10:00, 10:30)
        assert not Interval(570, 30).overlaps(booking)   # [9:30, 10:00)
        assert not Interval(630, 30).overlaps(booking)   # [10:30, 11:00)

    def test_true_overlap(self):
        booking = Interval(600, 30)
        assert Interval(585, 30).overlaps(booking)       # [9:45, 10:15)
        assert Interval(615, 60).overlaps(booking)

    def test_containment_overlaps_both_ways(self):
        assert Interval(540, 240).overlaps(Interval(600, 30))
        assert Interval(600, 30).overlaps(Interval(540, 240))

    def test_padding(self):
        padded = Interval(600, 30).padded(15)
        assert (padded.start_min, padded.end_min) == (585, 645)
        assert Interval(600, 30).padded(0) == Interval(600, 30)

    def test_negative_duration_rejected(self):
        with pytest.raises(ValueError):
            Interval(600, -1)


class TestBusyIndex:
    def test_staff_without_bookings_is_free(self):
        busy = BusyIndex([make_booking(["ana"], "10:00", 60)], TUESDAY)
        assert busy.is_free("ben", Interval(600, 30))

    def test_booked_staff_is_busy_for_whole_candidate(self):
        busy = BusyIndex([make_booking(["ana"], "10:00", 60)], TUESDAY)
        assert not busy.is_free("ana", Interval(630, 60))
        assert not busy.is_free("ana", Interval(570, 60))
        assert busy.is_free("ana", Interval(660, 30))
        assert busy.is_free("ana", Interval(570, 30))

    def test_every_assigned_staff_member_is_occupied(self):
        busy = BusyIndex([make_booking(["ana", "ben"], "13:00", 90)], TUESDAY)
        candidate = Interval(14 * 60, 30)
        assert busy.free_staff(["ana", "ben", "cara"], candidate) == ["cara"]

    def test_bookings_on_other_dates_are_ignored(self):
        busy = BusyIndex([make_booking(["ana"], "10:00", 60, on=MONDAY)], TUESDAY)
        assert busy.is_free("ana", Interval(600, 60))

    def test_buffer_blocks_adjacent_slots(self):
        bookings = [make_booking(["ana"], "10:00", 30)]
        assert BusyIndex(bookings, TUESDAY).is_free("ana", Interval(570, 30))
        assert not BusyIndex(bookings, TUESDAY, buffer_min=15).is_free("ana", Interval(570, 30))

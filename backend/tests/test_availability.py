"""Tests for the availability resolver."""

import json

import pytest

from salon_booking.services.slots.availability import (
    AvailabilityResolver,
    partition_by_period,
    select_best_fit,
)
from salon_booking.services.slots.config import BookingConfig
from salon_booking.services.slots.conflicts import BusyIndex
from salon_booking.services.slots.eligibility import eligible_staff
from salon_booking.services.slots.errors import DataAccessError, InputError, UnknownLocationError
from salon_booking.services.slots.records import AvailabilityRequest, Interval, LocationSchedule
from salon_booking.services.slots.redis_store import SlotsRedisStore

from conftest import LOCATION_ID, SATURDAY, SUNDAY, TUESDAY, InMemorySource, make_booking, make_staff


def _request(duration=30, on=TUESDAY, staff_ids=None, service_ids=None, location_id=LOCATION_ID):
    return AvailabilityRequest(
        location_id=location_id,
        date=on,
        duration_minutes=duration,
        staff_ids=frozenset(staff_ids) if staff_ids else None,
        service_ids=frozenset(service_ids) if service_ids else None,
    )


class TestResolver:
    def test_free_day_offers_whole_grid(self, config):
        source = InMemorySource(staff=[make_staff("ana")])
        result = AvailabilityResolver(source, config).compute_availability(_request())

        assert result.available_display[0] == "9:00 AM"
        assert result.available_display[-1] == "6:30 PM"
        assert len(result.available_slots) == 20
        assert result.to_dict()["locationHours"] == {"open": "09:00", "close": "19:00"}

    def test_saturday_hours(self, config):
        source = InMemorySource(staff=[make_staff("ana")])
        result = AvailabilityResolver(source, config).compute_availability(_request(on=SATURDAY))

        assert result.to_dict()["locationHours"] == {"open": "10:00", "close": "18:00"}
        assert result.available_display[0] == "10:00 AM"
        assert result.available_display[-1] == "5:30 PM"

    def test_long_service_drops_trailing_slots(self, config):
        source = InMemorySource(staff=[make_staff("ana")])
        result = AvailabilityResolver(source, config).compute_availability(_request(duration=120))
        assert result.available_display[-1] == "5:00 PM"

    def test_booked_staff_member_blocks_overlapping_slots(self, config):
        source = InMemorySource(
            staff=[make_staff("ana")],
            bookings=[make_booking(["ana"], "10:00", 60)],
        )
        slots = AvailabilityResolver(source, config).compute_availability(_request()).available_display

        assert "9:30 AM" in slots
        assert "10:00 AM" not in slots
        assert "10:30 AM" not in slots
        assert "11:00 AM" in slots

    def test_touching_booking_does_not_block(self, config):
        source = InMemorySource(
            staff=[make_staff("ana")],
            bookings=[make_booking(["ana"], "10:00", 30)],
        )
        slots = AvailabilityResolver(source, config).compute_availability(_request()).available_display
        assert "9:30 AM" in slots
        assert "10:30 AM" in slots

    def test_any_free_staff_member_is_enough(self, config):
        # ana is busy 10-11, ben is restricted to X but free
        source = InMemorySource(
            staff=[make_staff("ana"), make_staff("ben", ["X"])],
            bookings=[make_booking(["ana"], "10:00", 60)],
        )
        resolver = AvailabilityResolver(source, config)

        assert "10:00 AM" in resolver.compute_availability(_request()).available_display
        assert "10:00 AM" in resolver.compute_availability(_request(service_ids=["X"])).available_display
        assert "10:00 AM" not in resolver.compute_availability(_request(service_ids=["Y"])).available_display

    def test_slot_blocked_when_every_staff_member_busy(self, config):
        source = InMemorySource(
            staff=[make_staff("ana"), make_staff("ben", ["X"])],
            bookings=[make_booking(["ana"], "10:00", 60), make_booking(["ben"], "09:45", 30)],
        )
        slots = AvailabilityResolver(source, config).compute_availability(_request()).available_display
        assert "10:00 AM" not in slots
        assert "9:30 AM" in slots  # ana still free

    def test_explicit_staff_choice(self, config):
        source = InMemorySource(
            staff=[make_staff("ana"), make_staff("ben")],
            bookings=[make_booking(["ana"], "10:00", 60)],
        )
        resolver = AvailabilityResolver(source, config)
        assert "10:00 AM" not in resolver.compute_availability(_request(staff_ids=["ana"])).available_display
        assert "10:00 AM" in resolver.compute_availability(_request(staff_ids=["ana", "ben"])).available_display

    def test_empty_roster_is_not_an_error(self, config):
        result = AvailabilityResolver(InMemorySource(), config).compute_availability(_request())
        assert result.available_slots == ()
        assert result.best_fit_slots == ()

    def test_all_inactive_staff(self, config):
        source = InMemorySource(staff=[make_staff("ana", is_active=False)])
        result = AvailabilityResolver(source, config).compute_availability(_request())
        assert result.to_dict()["availableSlots"] == []
        assert result.to_dict()["bestFitSlots"] == []

    def test_inactive_location_yields_empty_result(self, config):
        source = InMemorySource(
            staff=[make_staff("ana")],
            locations={LOCATION_ID: LocationSchedule(LOCATION_ID, is_active=False)},
        )
        result = AvailabilityResolver(source, config).compute_availability(_request())
        assert result.available_slots == ()
        assert "list_confirmed_bookings" not in source.calls

    def test_closed_day(self, config):
        schedule = json.dumps({"sun": None})
        source = InMemorySource(
            staff=[make_staff("ana")],
            locations={LOCATION_ID: LocationSchedule(LOCATION_ID, work_schedule=schedule)},
        )
        result = AvailabilityResolver(source, config).compute_availability(_request(on=SUNDAY))
        assert result.available_slots == ()
        assert result.location_hours is None

    def test_location_hours_text(self, config):
        source = InMemorySource(
            staff=[make_staff("ana")],
            locations={LOCATION_ID: LocationSchedule(LOCATION_ID, hours_weekday="Mon-Fri: 12:00 PM - 2:00 PM")},
        )
        result = AvailabilityResolver(source, config).compute_availability(_request(duration=60))
        assert result.location_hours.to_dict() == {"open": "12:00", "close": "14:00"}
        assert result.available_display == ["12:00 PM", "12:30 PM", "1:00 PM"]

    def test_malformed_schedule_falls_back_to_default_hours(self, config):
        schedule = json.dumps({"tue": {"start": 900, "end": 1700}, "1": [None]})
        source = InMemorySource(
            staff=[make_staff("ana")],
            locations={LOCATION_ID: LocationSchedule(LOCATION_ID, work_schedule=schedule)},
        )
        result = AvailabilityResolver(source, config).compute_availability(_request())
        assert result.location_hours.to_dict() == {"open": "09:00", "close": "19:00"}
        assert result.available_slots

    def test_unknown_location(self, config):
        resolver = AvailabilityResolver(InMemorySource(staff=[make_staff("ana")]), config)
        with pytest.raises(UnknownLocationError):
            resolver.compute_availability(_request(location_id="nowhere"))

    @pytest.mark.parametrize("duration", [0, -30])
    def test_non_positive_duration(self, config, duration):
        resolver = AvailabilityResolver(InMemorySource(staff=[make_staff("ana")]), config)
        with pytest.raises(InputError):
            resolver.compute_availability(_request(duration=duration))

    @pytest.mark.parametrize("fail_on", ["staff", "bookings"])
    def test_data_access_failure_propagates(self, config, fail_on):
        source = InMemorySource(staff=[make_staff("ana")], fail_on=fail_on)
        with pytest.raises(DataAccessError):
            AvailabilityResolver(source, config).compute_availability(_request())

    def test_buffer_from_config(self):
        source = InMemorySource(
            staff=[make_staff("ana")],
            bookings=[make_booking(["ana"], "10:00", 30)],
        )
        slots = AvailabilityResolver(source, BookingConfig(buffer_minutes=15)).compute_availability(
            _request()
        ).available_display
        assert "9:30 AM" not in slots
        assert "10:30 AM" not in slots
        assert "11:00 AM" in slots


class TestProperties:
    def _busy_source(self):
        return InMemorySource(
            staff=[make_staff("ana"), make_staff("ben", ["A", "B"]), make_staff("cara", ["C"])],
            bookings=[
                make_booking(["ana"], "09:00", 90),
                make_booking(["ben"], "10:00", 120),
                make_booking(["cara"], "13:00", 60),
                make_booking(["ana", "cara"], "15:00", 45),
            ],
        )

    @pytest.mark.parametrize("duration", [30, 45, 60, 120])
    @pytest.mark.parametrize("service_ids", [None, ["A"], ["C"], ["Z"]])
    def test_best_fit_is_capped_subset(self, config, duration, service_ids):
        result = AvailabilityResolver(self._busy_source(), config).compute_availability(
            _request(duration=duration, service_ids=service_ids)
        )
        assert set(result.best_fit_slots) <= set(result.available_slots)
        assert len(result.best_fit_slots) <= 3

    @pytest.mark.parametrize("duration", [30, 60, 90])
    def test_excluded_slots_have_every_eligible_member_busy(self, config, duration):
        source = self._busy_source()
        result = AvailabilityResolver(source, config).compute_availability(_request(duration=duration))

        staff = eligible_staff(source.staff, LOCATION_ID)
        busy = BusyIndex(source.bookings, TUESDAY)
        candidates = range(540, 1140 - duration + 1, 30)
        for start in candidates:
            if start in result.available_slots:
                continue
            assert all(not busy.is_free(s.id, Interval(start, duration)) for s in staff)

    def test_deterministic(self, config):
        resolver = AvailabilityResolver(self._busy_source(), config)
        first = resolver.compute_availability(_request(duration=60))
        second = resolver.compute_availability(_request(duration=60))
        assert first == second

    def test_slots_are_chronological(self, config):
        result = AvailabilityResolver(self._busy_source(), config).compute_availability(_request())
        assert list(result.available_slots) == sorted(result.available_slots)


class TestBestFit:
    def test_preferred_times_in_order_capped(self, config):
        available = [540, 600, 630, 780, 810, 900]
        assert select_best_fit(available, config.best_fit_times, 3) == [600, 630, 780]

    def test_unavailable_preferred_times_are_skipped(self, config):
        available = [540, 570, 810, 930, 1000]
        assert select_best_fit(available, config.best_fit_times, 3) == [810, 930]

    def test_resolver_recommends_mid_morning_first(self, config):
        source = InMemorySource(staff=[make_staff("ana")])
        result = AvailabilityResolver(source, config).compute_availability(_request())
        assert result.best_fit_display == ["10:00 AM", "10:30 AM", "1:00 PM"]


class TestPeriods:
    def test_partition(self):
        slots = ["9:00 AM", "11:30 AM", "12:00 PM", "3:30 PM", "4:00 PM", "6:30 PM"]
        assert partition_by_period(slots) == {
            "morning": ["9:00 AM", "11:30 AM"],
            "afternoon": ["12:00 PM", "3:30 PM"],
            "evening": ["4:00 PM", "6:30 PM"],
        }

    def test_empty(self):
        assert partition_by_period([]) == {"morning": [], "afternoon": [], "evening": []}


class TestGridCache:
    def test_grid_is_cached_and_reused(self, config, fake_redis):
        store = SlotsRedisStore(fake_redis, config)
        source = InMemorySource(staff=[make_staff("ana")])
        resolver = AvailabilityResolver(source, config, store)

        first = resolver.compute_availability(_request())
        assert store.get_day_grid(LOCATION_ID, TUESDAY) is not None

        # a schedule change is invisible until the cache is invalidated
        source.locations[LOCATION_ID] = LocationSchedule(
            LOCATION_ID, work_schedule=json.dumps({"tue": {"start": "12:00", "end": "14:00"}})
        )
        assert resolver.compute_availability(_request()) == first

        store.delete_day_grids(LOCATION_ID)
        narrowed = resolver.compute_availability(_request())
        assert narrowed.available_display == ["12:00 PM", "12:30 PM", "1:00 PM", "1:30 PM"]

    def test_bookings_are_never_cached(self, config, fake_redis):
        store = SlotsRedisStore(fake_redis, config)
        source = InMemorySource(staff=[make_staff("ana")])
        resolver = AvailabilityResolver(source, config, store)

        assert "10:00 AM" in resolver.compute_availability(_request()).available_display
        source.bookings.append(make_booking(["ana"], "10:00", 30))
        assert "10:00 AM" not in resolver.compute_availability(_request()).available_display

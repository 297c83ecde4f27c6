# backend/salon_booking/services/slots/availability.py
"""
Level 2: bookable start times for a request.

Takes into account:
- Base location grid (Level 1, optionally cached in Redis)
- Requested duration (slots running past closing are dropped)
- Staff eligibility (services, explicit staff choice, active flag)
- Existing bookings of each staff member that day

A slot is available when at least one eligible staff member is free for
[slot, slot + duration). The result is a snapshot valid at read time only;
double-booking protection belongs to the booking write path.
"""

import logging
from datetime import date
from typing import Protocol

from redis.exceptions import RedisError

from .calculator import calculate_day_grid, fit_duration
from .config import BookingConfig, get_booking_config, time_str_to_minutes
from .conflicts import BusyIndex
from .eligibility import eligible_staff
from .errors import InputError, UnknownLocationError
from .records import (
    AvailabilityRequest,
    AvailabilityResult,
    DayHours,
    ExistingBooking,
    Interval,
    LocationSchedule,
    StaffMember,
)
from .redis_store import SlotsRedisStore

logger = logging.getLogger(__name__)

MORNING_END = 12 * 60
AFTERNOON_END = 16 * 60


class AvailabilitySource(Protocol):
    """Data access the resolver depends on. Failures raise DataAccessError."""

    def get_location(self, location_id: str) -> LocationSchedule | None: ...

    def list_active_staff(self, location_id: str) -> list[StaffMember]: ...

    def list_confirmed_bookings(self, location_id: str, target_date: date) -> list[ExistingBooking]: ...


class AvailabilityResolver:
    """Computes available and recommended slots for one request at a time."""

    def __init__(
        self,
        source: AvailabilitySource,
        config: BookingConfig | None = None,
        store: SlotsRedisStore | None = None,
    ):
        self.source = source
        self.config = config or get_booking_config()
        self.store = store

    def compute_availability(self, request: AvailabilityRequest) -> AvailabilityResult:
        """
        Raises:
            InputError: non-positive duration or unknown location
            DataAccessError: staff/booking lookup failed
        """
        if request.duration_minutes <= 0:
            raise InputError(f"durationMinutes must be > 0, got {request.duration_minutes}")

        location = self.source.get_location(request.location_id)
        if location is None:
            raise UnknownLocationError(request.location_id)

        logger.info(
            "Checking availability: location=%s date=%s duration=%s staff=%s services=%s",
            request.location_id,
            request.date.isoformat(),
            request.duration_minutes,
            sorted(request.staff_ids) if request.staff_ids else None,
            sorted(request.service_ids) if request.service_ids else None,
        )

        if not location.is_active:
            return AvailabilityResult()

        hours, grid = self._get_grid(location, request.date)
        if hours is None:
            return AvailabilityResult()

        staff = eligible_staff(
            self.source.list_active_staff(request.location_id),
            request.location_id,
            service_ids=request.service_ids,
            staff_ids=request.staff_ids,
        )
        if not staff:
            logger.info("No eligible staff at location %s", request.location_id)
            return AvailabilityResult(location_hours=hours)

        bookings = self.source.list_confirmed_bookings(request.location_id, request.date)
        busy = BusyIndex(bookings, request.date, self.config.buffer_minutes)

        available = available_starts(
            fit_duration(grid, hours, request.duration_minutes),
            request.duration_minutes,
            [s.id for s in staff],
            busy,
        )
        best_fit = select_best_fit(available, self.config.best_fit_times, self.config.best_fit_limit)

        logger.debug(
            "Availability for %s on %s: %d slots, %d best fit, %d bookings",
            request.location_id,
            request.date.isoformat(),
            len(available),
            len(best_fit),
            len(bookings),
        )

        return AvailabilityResult(
            available_slots=tuple(available),
            best_fit_slots=tuple(best_fit),
            location_hours=hours,
        )

    # ── Base grid (Level 1 with cache) ──────────────────────────────────

    def _get_grid(self, location: LocationSchedule, target_date: date) -> tuple[DayHours | None, list[int]]:
        if self.store is not None:
            try:
                cached = self.store.get_day_grid(location.location_id, target_date)
            except RedisError:
                logger.warning("Grid cache read failed for %s", location.location_id, exc_info=True)
                cached = None
            if cached is not None:
                return cached

        hours, grid = calculate_day_grid(
            location.work_schedule,
            target_date,
            self.config,
            hours_weekday=location.hours_weekday,
            hours_weekend=location.hours_weekend,
        )

        if self.store is not None:
            try:
                self.store.store_day_grid(location.location_id, target_date, hours, grid)
            except RedisError:
                logger.warning("Grid cache write failed for %s", location.location_id, exc_info=True)

        return hours, grid


def available_starts(
    candidates: list[int],
    duration_min: int,
    staff_ids: list[str],
    busy: BusyIndex,
) -> list[int]:
    """Candidates (in order) where at least one staff member is free."""
    result = []
    for start in candidates:
        interval = Interval(start, duration_min)
        if any(busy.is_free(sid, interval) for sid in staff_ids):
            result.append(start)
    return result


def select_best_fit(available: list[int], preferred: tuple[int, ...], limit: int) -> list[int]:
    """Preferred times that are available, chronological, capped at limit."""
    preferred_set = set(preferred)
    return [t for t in available if t in preferred_set][:limit]


def partition_by_period(slots: list[str]) -> dict[str, list[str]]:
    """Group display slots into morning / afternoon / evening for the UI."""
    periods: dict[str, list[str]] = {"morning": [], "afternoon": [], "evening": []}
    for slot in slots:
        minutes = time_str_to_minutes(slot)
        if minutes < MORNING_END:
            periods["morning"].append(slot)
        elif minutes < AFTERNOON_END:
            periods["afternoon"].append(slot)
        else:
            periods["evening"].append(slot)
    return periods
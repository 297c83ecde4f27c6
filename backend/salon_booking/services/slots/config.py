# backend/salon_booking/services/slots/config.py
"""
Booking configuration and time-of-day arithmetic for slots calculation.

Times of day travel through the resolver as minutes since midnight.
Two text forms exist at the edges:

- "HH:MM"     24h, used for storage, schedules and ``locationHours``
- "H:MM AM"   12h display form, used for the slot lists
"""

import re
from dataclasses import dataclass
from functools import lru_cache

from ...config import settings


MINUTES_PER_DAY = 24 * 60

_TIME_24H = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
_TIME_12H = re.compile(r"^(\d{1,2}):(\d{2})\s*([AaPp][Mm])$")


def time_str_to_minutes(value: str) -> int:
    """
    Parse "HH:MM", "HH:MM:SS" or "H:MM AM|PM" into minutes since midnight.

    Raises:
        ValueError: on anything else, or out-of-range fields.
    """
    if not isinstance(value, str):
        raise ValueError(f"Invalid time of day: {value!r}")
    text = value.strip()

    match = _TIME_12H.match(text)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        period = match.group(3).upper()
        if not 1 <= hours <= 12 or minutes > 59:
            raise ValueError(f"Invalid time of day: {value!r}")
        if period == "AM" and hours == 12:
            hours = 0
        elif period == "PM" and hours != 12:
            hours += 12
        return hours * 60 + minutes

    match = _TIME_24H.match(text)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        if hours > 23 or minutes > 59:
            raise ValueError(f"Invalid time of day: {value!r}")
        return hours * 60 + minutes

    raise ValueError(f"Invalid time of day: {value!r}")


def minutes_to_time_str(minutes: int) -> str:
    """Render minutes since midnight as "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def minutes_to_display(minutes: int) -> str:
    """
    Render minutes since midnight as "H:MM AM|PM".

    540 -> "9:00 AM", 720 -> "12:00 PM", 30 -> "12:30 AM"
    """
    hours, mins = divmod(minutes, 60)
    period = "PM" if hours >= 12 else "AM"
    display_hours = hours % 12 or 12
    return f"{display_hours}:{mins:02d} {period}"


def parse_hours_range(value: str) -> tuple[int, int]:
    """Parse "09:00-19:00" into (open_min, close_min)."""
    parts = value.split("-")
    if len(parts) != 2:
        raise ValueError(f"Invalid hours range: {value!r}")
    return time_str_to_minutes(parts[0]), time_str_to_minutes(parts[1])


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for the availability resolver.

    Attributes:
        slot_step_minutes: Grid step in minutes (15/30/60)
        buffer_minutes: Padding around existing bookings, both sides
        horizon_days: How many days ahead a customer may book
        cache_ttl_seconds: Redis TTL for the cached base grid
        weekday_hours: Fallback (open, close) Monday-Friday
        weekend_hours: Fallback (open, close) Saturday/Sunday
        best_fit_times: Preferred start times, minutes since midnight
        best_fit_limit: Max number of recommended slots
    """
    slot_step_minutes: int = 30
    buffer_minutes: int = 0
    horizon_days: int = 60
    cache_ttl_seconds: int = 86400
    weekday_hours: tuple[int, int] = (9 * 60, 19 * 60)
    weekend_hours: tuple[int, int] = (10 * 60, 18 * 60)
    best_fit_times: tuple[int, ...] = (600, 630, 780, 810, 900, 930)
    best_fit_limit: int = 3

    def __post_init__(self):
        if self.slot_step_minutes not in (15, 30, 60):
            raise ValueError(f"slot_step_minutes must be 15, 30, or 60, got {self.slot_step_minutes}")
        if self.buffer_minutes < 0:
            raise ValueError(f"buffer_minutes must be >= 0, got {self.buffer_minutes}")
        if self.best_fit_limit < 0:
            raise ValueError(f"best_fit_limit must be >= 0, got {self.best_fit_limit}")
        for name, (open_min, close_min) in (
            ("weekday_hours", self.weekday_hours),
            ("weekend_hours", self.weekend_hours),
        ):
            if not 0 <= open_min < close_min <= MINUTES_PER_DAY:
                raise ValueError(f"{name} must satisfy open < close within one day")


@lru_cache
def get_booking_config() -> BookingConfig:
    """Build the booking configuration from application settings (singleton)."""
    return BookingConfig(
        slot_step_minutes=settings.slot_step_minutes,
        buffer_minutes=settings.buffer_minutes,
        horizon_days=settings.horizon_days,
        cache_ttl_seconds=settings.cache_ttl_seconds,
        weekday_hours=parse_hours_range(settings.weekday_hours),
        weekend_hours=parse_hours_range(settings.weekend_hours),
        best_fit_times=tuple(
            time_str_to_minutes(t)
            for t in settings.best_fit_times.split(",")
            if t.strip()
        ),
        best_fit_limit=settings.best_fit_limit,
    )

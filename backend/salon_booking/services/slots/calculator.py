# backend/salon_booking/services/slots/calculator.py
"""
Level 1: base slot grid for a location day.

Contains:
✓ business hours of the location (work_schedule, location hours text or default policy)
✓ grid step

Does NOT contain:
✗ Bookings (checked at Level 2)
✗ Staff (checked at Level 2)
✗ Requested duration (applied by ``fit_duration``)
"""

from datetime import date

from .config import BookingConfig, get_booking_config
from .hours import get_day_hours
from .records import DayHours


def calculate_day_grid(
    work_schedule_json: str | None,
    target_date: date,
    config: BookingConfig | None = None,
    hours_weekday: str | None = None,
    hours_weekend: str | None = None,
) -> tuple[DayHours | None, list[int]]:
    """
    Calculate the base grid for a location on a date.

    Returns:
        (hours, grid) where grid holds start minutes from open, stepping
        by slot_step_minutes while before close. Closed day -> (None, []).
    """
    config = config or get_booking_config()

    hours = get_day_hours(work_schedule_json, target_date, config, hours_weekday, hours_weekend)
    if hours is None:
        return None, []

    return hours, generate_grid(hours, config.slot_step_minutes)


def generate_grid(hours: DayHours, step: int) -> list[int]:
    grid: list[int] = []
    t = hours.open_min
    while t < hours.close_min:
        grid.append(t)
        t += step
    return grid


def fit_duration(grid: list[int], hours: DayHours, duration_min: int) -> list[int]:
    """Drop starts whose service block would run past closing time."""
    return [t for t in grid if t + duration_min <= hours.close_min]

# backend/salon_booking/services/slots/hours.py
"""
Business-hours policy.

A location's weekly schedule lives in its ``work_schedule`` JSON column.
Two formats are accepted:

    Format A: {"mon": {"start": "09:00", "end": "19:00"}, "sun": null, ...}
    Format B: {"0": [["09:00", "19:00"]], "6": [], ...}   (0 = Monday)

A day that is missing from the schedule falls back to the location's
``hours_weekday`` / ``hours_weekend`` text ("Mon-Fri: 9:00 AM - 7:00 PM"),
and then to the static policy from BookingConfig. A day that is present
but null/empty means the location is closed. Unreadable hours are logged
and treated as missing.
"""

import json
import logging
import re
from datetime import date

from .config import BookingConfig, time_str_to_minutes
from .records import DayHours

logger = logging.getLogger(__name__)

DAY_NAMES = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]
DAY_NUMBERS = [str(i) for i in range(7)]

# "9:00 AM - 7:00 PM", "Mon-Sat: 9:00 AM - 7:00 PM", "09:00-19:00"
_HOURS_TEXT = re.compile(
    r"(\d{1,2}:\d{2}(?:\s*[AaPp][Mm])?)\s*-\s*(\d{1,2}:\d{2}(?:\s*[AaPp][Mm])?)"
)

_MISSING = object()


def is_weekend(target_date: date) -> bool:
    # date.weekday() works on calendar components, no timezone shift involved
    return target_date.weekday() >= 5


def parse_hours_text(value: str) -> DayHours:
    """
    Parse a free-text hours line into DayHours.

    Raises:
        ValueError: no "open - close" pair found, or open >= close.
    """
    match = _HOURS_TEXT.search(value or "")
    if not match:
        raise ValueError(f"Invalid hours text: {value!r}")
    open_min = time_str_to_minutes(match.group(1))
    close_min = time_str_to_minutes(match.group(2))
    if open_min >= close_min:
        raise ValueError(f"Hours must open before they close: {value!r}")
    return DayHours(open_min, close_min)


def default_day_hours(
    target_date: date,
    config: BookingConfig,
    hours_weekday: str | None = None,
    hours_weekend: str | None = None,
) -> DayHours:
    """Location hours text for the day type, else the static policy."""
    weekend = is_weekend(target_date)
    text = hours_weekend if weekend else hours_weekday
    if text:
        try:
            return parse_hours_text(text)
        except ValueError:
            logger.warning("Unreadable location hours %r, using default hours", text)

    open_min, close_min = config.weekend_hours if weekend else config.weekday_hours
    return DayHours(open_min, close_min)


def parse_work_schedule(work_schedule_json: str | None) -> dict:
    if not work_schedule_json:
        return {}
    try:
        schedule = json.loads(work_schedule_json)
    except json.JSONDecodeError:
        logger.warning("Unreadable work_schedule, using default hours")
        return {}
    return schedule if isinstance(schedule, dict) else {}


def get_day_hours(
    work_schedule_json: str | None,
    target_date: date,
    config: BookingConfig,
    hours_weekday: str | None = None,
    hours_weekend: str | None = None,
) -> DayHours | None:
    """
    Resolve {open, close} for target_date.

    Returns:
        DayHours, or None when the location is closed that day.
    """
    schedule = parse_work_schedule(work_schedule_json)
    intervals = _get_day_intervals(schedule, target_date)

    if intervals is _MISSING:
        return default_day_hours(target_date, config, hours_weekday, hours_weekend)
    if not intervals:
        return None

    # Breaks inside the day are not modelled: the day spans first start to last end
    pairs = [i for i in intervals if _is_pair(i)]
    try:
        starts = [time_str_to_minutes(start) for start, _ in pairs]
        ends = [time_str_to_minutes(end) for _, end in pairs]
    except ValueError:
        starts = []

    if not starts:
        logger.warning("Bad hours in work_schedule for %s, using default hours", target_date)
        return default_day_hours(target_date, config, hours_weekday, hours_weekend)

    if min(starts) >= max(ends):
        return None
    return DayHours(min(starts), max(ends))


def validate_work_schedule(schedule) -> list[str]:
    """
    Problems that would make a schedule unusable, one message each.

    Empty list means the schedule is valid.
    """
    if not isinstance(schedule, dict):
        return ["work_schedule must be a JSON object"]

    errors = []
    for key, value in schedule.items():
        if key not in DAY_NAMES and key not in DAY_NUMBERS:
            errors.append(f"{key}: unknown day, use mon..sun or 0..6")
            continue
        if value is None:
            continue

        if isinstance(value, dict) and key in DAY_NAMES:
            value = [[value.get("start"), value.get("end")]]
        if not isinstance(value, list):
            errors.append(f"{key}: expected a list of [start, end] pairs or null")
            continue

        for interval in value:
            if not _is_pair(interval):
                errors.append(f"{key}: {interval!r} is not a [start, end] pair of times")
                continue
            try:
                start, end = time_str_to_minutes(interval[0]), time_str_to_minutes(interval[1])
            except ValueError as e:
                errors.append(f"{key}: {e}")
                continue
            if start >= end:
                errors.append(f"{key}: {interval[0]} must be before {interval[1]}")

    return errors


def _is_pair(interval) -> bool:
    return (
        isinstance(interval, (list, tuple))
        and len(interval) == 2
        and all(isinstance(t, str) for t in interval)
    )


def _get_day_intervals(schedule: dict, target_date: date):
    """
    Extract working intervals for target_date.

    Returns a list of [start, end] pairs, or _MISSING when the schedule
    says nothing about that day.
    """
    weekday = target_date.weekday()

    # Format B: numeric keys "0", "1", etc.
    weekday_str = str(weekday)
    if weekday_str in schedule:
        intervals = schedule[weekday_str]
        if isinstance(intervals, list):
            return intervals
        return []

    # Format A: named keys "mon", "tue", etc.
    day_name = DAY_NAMES[weekday]
    if day_name in schedule:
        day_data = schedule[day_name]

        if day_data is None:
            return []

        if isinstance(day_data, dict):
            start = day_data.get("start")
            end = day_data.get("end")
            if start and end:
                return [[start, end]]
            return []

        if isinstance(day_data, list):
            return day_data

        return []

    return _MISSING

# backend/salon_booking/services/slots/invalidator.py
"""
Cache invalidation for location grids.

Triggers:
✓ Location work_schedule changed → invalidate all dates

Does NOT trigger:
✗ Booking created/cancelled (bookings are never cached)
✗ Staff roster changed (read per request)
"""

from datetime import date, timedelta

from redis import Redis

from .redis_store import SlotsRedisStore


def invalidate_location_cache(
    redis: Redis,
    location_id: str,
    dates: list[date] | None = None,
) -> int:
    """
    Invalidate cached grids for location.

    Returns:
        Number of deleted cache keys
    """
    store = SlotsRedisStore(redis)
    return store.delete_day_grids(location_id, dates)


def get_affected_dates(date_start: date, date_end: date) -> list[date]:
    """List of dates in [date_start, date_end], order of arguments ignored."""
    if date_start > date_end:
        date_start, date_end = date_end, date_start

    dates = []
    current = date_start
    while current <= date_end:
        dates.append(current)
        current += timedelta(days=1)

    return dates

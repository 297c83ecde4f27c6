# backend/salon_booking/services/slots/__init__.py
"""
Slots calculation module.

Level 1: Base location grid (business hours, cached in Redis Sorted Sets)
Level 2: Request availability (staff eligibility + bookings, calculated on-the-fly)
"""

from .config import BookingConfig, get_booking_config
from .calculator import calculate_day_grid
from .redis_store import SlotsRedisStore
from .invalidator import invalidate_location_cache
from .availability import AvailabilityResolver, AvailabilitySource, partition_by_period
from .repository import SqlAvailabilitySource
from .errors import DataAccessError, InputError, SlotsError, UnknownLocationError

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "calculate_day_grid",
    "SlotsRedisStore",
    "invalidate_location_cache",
    "AvailabilityResolver",
    "AvailabilitySource",
    "partition_by_period",
    "SqlAvailabilitySource",
    "DataAccessError",
    "InputError",
    "SlotsError",
    "UnknownLocationError",
]

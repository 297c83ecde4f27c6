# backend/salon_booking/services/slots/redis_store.py
"""
Redis storage for base grids using Sorted Sets.

Key format: slots:day:{location_id}:{date}
Value: Sorted Set where member = "HH:MM", score = minutes since midnight.

Sentinels:
  "__open__" / "__close__" carry the day's business hours as scores.
  "__empty__" with score=0 marks "calculated, location closed".

Only the location grid is cached. Bookings are always read fresh.
"""

from datetime import date

from redis import Redis

from .config import BookingConfig, get_booking_config, minutes_to_time_str
from .records import DayHours


EMPTY_SENTINEL = "__empty__"
OPEN_SENTINEL = "__open__"
CLOSE_SENTINEL = "__close__"
SENTINELS = {EMPTY_SENTINEL, OPEN_SENTINEL, CLOSE_SENTINEL}


def _decode(member) -> str:
    return member.decode() if isinstance(member, bytes) else member


class SlotsRedisStore:
    """Redis storage wrapper using Sorted Sets for grid data."""

    KEY_PREFIX = "slots:day"

    def __init__(self, redis: Redis, config: BookingConfig | None = None):
        self.redis = redis
        self.config = config or get_booking_config()

    def _key(self, location_id: str, dt: date) -> str:
        return f"{self.KEY_PREFIX}:{location_id}:{dt.isoformat()}"

    # ── Write ────────────────────────────────────────────────────────────

    def store_day_grid(
        self,
        location_id: str,
        dt: date,
        hours: DayHours | None,
        grid: list[int],
    ) -> None:
        """
        Store a calculated grid for a day.

        Args:
            location_id: Location ID
            dt: Target date
            hours: Business hours, None for a closed day (sentinel is stored)
            grid: Start minutes
        """
        key = self._key(location_id, dt)
        pipe = self.redis.pipeline()

        pipe.delete(key)

        if hours is not None:
            mapping = {minutes_to_time_str(t): t for t in grid}
            mapping[OPEN_SENTINEL] = hours.open_min
            mapping[CLOSE_SENTINEL] = hours.close_min
            pipe.zadd(key, mapping)
        else:
            pipe.zadd(key, {EMPTY_SENTINEL: 0})

        pipe.expire(key, self.config.cache_ttl_seconds)
        pipe.execute()

    # ── Read ─────────────────────────────────────────────────────────────

    def get_day_grid(
        self,
        location_id: str,
        dt: date,
    ) -> tuple[DayHours | None, list[int]] | None:
        """
        Get the cached grid for a day.

        Returns:
            (hours, grid) like calculate_day_grid, or None on cache miss.
        """
        key = self._key(location_id, dt)
        raw = self.redis.zrangebyscore(key, "-inf", "+inf", withscores=True)
        if not raw:
            return None

        members = {_decode(m): int(score) for m, score in raw}
        if EMPTY_SENTINEL in members:
            return None, []
        if OPEN_SENTINEL not in members or CLOSE_SENTINEL not in members:
            # partial write; treat as a miss
            return None

        hours = DayHours(members[OPEN_SENTINEL], members[CLOSE_SENTINEL])
        grid = sorted(score for m, score in members.items() if m not in SENTINELS)
        return hours, grid

    # ── Delete ───────────────────────────────────────────────────────────

    def delete_day_grids(
        self,
        location_id: str,
        dates: list[date] | None = None,
    ) -> int:
        """
        Delete cached grids.

        Args:
            location_id: Location ID
            dates: Specific dates, or None to delete all for location.

        Returns:
            Number of deleted keys.
        """
        if dates:
            keys = [self._key(location_id, dt) for dt in dates]
        else:
            pattern = f"{self.KEY_PREFIX}:{location_id}:*"
            keys = list(self.redis.scan_iter(match=pattern))

        if not keys:
            return 0

        return self.redis.delete(*keys)

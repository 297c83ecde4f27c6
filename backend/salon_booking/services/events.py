"""
backend/salon_booking/services/events.py

Event emitter: pushes booking events to a Redis list for downstream
consumers (confirmation messages, calendar sync).

Queue:
- events:p2p: instant delivery (booking notifications to a specific customer)
"""

import json
import time
import logging

from redis import Redis
from redis.exceptions import RedisError

from ..config import settings

logger = logging.getLogger(__name__)

P2P_QUEUE = "events:p2p"


def emit_event(redis: Redis | None, event_type: str, payload: dict) -> bool:
    """
    Emit a p2p event.

    Delivery is best-effort: a redis failure is logged and never fails
    the request that produced the event.

    Returns:
        True when the event was queued.
    """
    if redis is None or not settings.events_enabled:
        return False

    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        redis.rpush(P2P_QUEUE, json.dumps(event))
        logger.info(f"Event emitted: {event_type} → {P2P_QUEUE}")
        return True
    except RedisError as e:
        logger.error(f"Failed to emit event {event_type}: {e}")
        return False

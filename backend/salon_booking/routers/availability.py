# backend/salon_booking/routers/availability.py
"""
Availability API endpoints.

POST /availability            - bookable start times for a location day
POST /availability/invalidate - drop cached location grids (admin)
"""

from datetime import date, timedelta

from fastapi import APIRouter, Depends, HTTPException
from redis import Redis
from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from ..database import get_db
from ..redis_client import get_redis
from ..schemas.availability import (
    AvailabilityRequestBody,
    AvailabilityResponse,
    InvalidateRequest,
    LocationHours,
    SlotPeriods,
)
from ..services.slots import (
    AvailabilityResolver,
    DataAccessError,
    InputError,
    SlotsRedisStore,
    SqlAvailabilitySource,
    UnknownLocationError,
    get_booking_config,
    invalidate_location_cache,
    partition_by_period,
)
from ..services.slots.invalidator import get_affected_dates
from ..services.slots.records import AvailabilityRequest


router = APIRouter(prefix="/availability", tags=["availability"])

RETRY_DETAIL = "Availability is temporarily unavailable, please retry"


def get_resolver(
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
) -> AvailabilityResolver:
    config = get_booking_config()
    store = SlotsRedisStore(redis, config) if redis is not None else None
    return AvailabilityResolver(SqlAvailabilitySource(db), config, store)


@router.post("", response_model=AvailabilityResponse)
def check_availability(
    data: AvailabilityRequestBody,
    resolver: AvailabilityResolver = Depends(get_resolver),
):
    """Available and recommended slots for a location, date and duration."""
    config = resolver.config

    today = date.today()
    if data.booking_date < today:
        raise HTTPException(status_code=400, detail="Date cannot be in the past")
    if data.booking_date > today + timedelta(days=config.horizon_days):
        raise HTTPException(status_code=400, detail=f"Date cannot be more than {config.horizon_days} days ahead")

    request = AvailabilityRequest(
        location_id=data.location_id,
        date=data.booking_date,
        duration_minutes=data.duration_minutes,
        staff_ids=frozenset(data.staff_ids) if data.staff_ids else None,
        service_ids=frozenset(data.service_ids) if data.service_ids else None,
    )

    try:
        result = resolver.compute_availability(request)
    except UnknownLocationError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DataAccessError:
        raise HTTPException(status_code=503, detail=RETRY_DETAIL)

    slots = result.available_display
    hours = result.location_hours.to_dict() if result.location_hours else None

    return AvailabilityResponse(
        available_slots=slots,
        best_fit_slots=result.best_fit_display,
        location_hours=LocationHours(**hours) if hours else None,
        periods=SlotPeriods(**partition_by_period(slots)),
    )


@router.post("/invalidate")
def invalidate_availability_cache(
    data: InvalidateRequest,
    redis: Redis | None = Depends(get_redis),
):
    """Manually invalidate cached grids for a location (admin endpoint)."""
    if redis is None:
        return {"locationId": data.location_id, "deletedKeys": 0, "dates": []}

    dates = None
    if data.date_start or data.date_end:
        dates = get_affected_dates(data.date_start or data.date_end, data.date_end or data.date_start)

    try:
        deleted = invalidate_location_cache(redis, data.location_id, dates)
    except RedisError:
        raise HTTPException(status_code=503, detail="Cache is unavailable, please retry")

    return {
        "locationId": data.location_id,
        "deletedKeys": deleted,
        "dates": [d.isoformat() for d in dates] if dates else "all",
    }

# backend/salon_booking/routers/locations.py
# Read-only catalogue for the booking wizard, plus the weekly schedule
# (business hours) which drives availability.

import json
import logging
from collections import defaultdict

from fastapi import APIRouter, Depends, HTTPException
from redis import Redis
from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from ..database import get_db
from ..redis_client import get_redis
from ..models.generated import (
    Locations as DBLocations,
    Services as DBServices,
    Staff as DBStaff,
    t_staff_services,
)
from ..schemas.locations import LocationRead, LocationScheduleUpdate
from ..schemas.services import ServiceRead
from ..schemas.staff import StaffRead
from ..services.slots.hours import parse_hours_text, validate_work_schedule
from ..services.slots.invalidator import invalidate_location_cache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/locations", tags=["locations"])


def _get_active_location(db: Session, id: str) -> DBLocations:
    obj = db.get(DBLocations, id)
    if not obj or not obj.is_active:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.get("", response_model=list[LocationRead])
def list_locations(db: Session = Depends(get_db)):
    return (
        db.query(DBLocations)
        .filter(DBLocations.is_active == 1)
        .order_by(DBLocations.name)
        .all()
    )


@router.get("/{id}", response_model=LocationRead)
def get_location(id: str, db: Session = Depends(get_db)):
    return _get_active_location(db, id)


@router.get("/{id}/services", response_model=list[ServiceRead])
def list_location_services(id: str, db: Session = Depends(get_db)):
    _get_active_location(db, id)
    return (
        db.query(DBServices)
        .filter(DBServices.location_id == id, DBServices.is_active == 1)
        .order_by(DBServices.display_order, DBServices.name)
        .all()
    )


@router.get("/{id}/staff", response_model=list[StaffRead])
def list_location_staff(id: str, db: Session = Depends(get_db)):
    _get_active_location(db, id)
    staff = (
        db.query(DBStaff)
        .filter(DBStaff.location_id == id, DBStaff.is_active == 1)
        .order_by(DBStaff.display_order, DBStaff.first_name)
        .all()
    )

    rows = db.execute(
        t_staff_services.select().where(
            t_staff_services.c.staff_id.in_([s.id for s in staff]),
            t_staff_services.c.is_active == 1,
        )
    ).mappings().all()
    services_by_staff: dict[str, list[str]] = defaultdict(list)
    for row in rows:
        services_by_staff[row["staff_id"]].append(row["service_id"])

    return [
        StaffRead(
            id=s.id,
            location_id=s.location_id,
            first_name=s.first_name,
            last_name=s.last_name,
            avatar_emoji=s.avatar_emoji,
            display_order=s.display_order,
            is_active=bool(s.is_active),
            service_ids=sorted(services_by_staff.get(s.id, [])),
        )
        for s in staff
    ]


@router.put("/{id}/schedule", response_model=LocationRead)
def update_location_schedule(
    id: str,
    data: LocationScheduleUpdate,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    obj = _get_active_location(db, id)

    try:
        schedule = json.loads(data.work_schedule)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="work_schedule must be valid JSON")

    errors = validate_work_schedule(schedule)
    for field in ("hours_weekday", "hours_weekend"):
        value = getattr(data, field)
        if value is None:
            continue
        try:
            parse_hours_text(value)
        except ValueError as e:
            errors.append(f"{field}: {e}")
    if errors:
        raise HTTPException(status_code=400, detail=errors)

    obj.work_schedule = data.work_schedule
    if data.hours_weekday is not None:
        obj.hours_weekday = data.hours_weekday
    if data.hours_weekend is not None:
        obj.hours_weekend = data.hours_weekend
    db.commit()
    db.refresh(obj)

    # Cached grids were built from the old hours
    if redis is not None:
        try:
            invalidate_location_cache(redis, id)
        except RedisError:
            logger.warning("Grid cache invalidation failed for location %s", id, exc_info=True)

    return obj

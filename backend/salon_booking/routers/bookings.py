# backend/salon_booking/routers/bookings.py
# Create + read only. Changes to a booking go through staff tooling.

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from redis import Redis
from sqlalchemy.orm import Session, selectinload

from ..config import settings
from ..database import get_db
from ..redis_client import get_redis
from ..models.generated import Bookings as DBBookings
from ..schemas.bookings import BookingCreate, BookingRead
from ..services.booking_writer import create_booking as write_booking
from ..services.events import emit_event
from ..services.slots.errors import (
    DataAccessError,
    InputError,
    SlotConflictError,
    UnknownLocationError,
)
from ..services.verification import is_phone_verified

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("/{id}", response_model=BookingRead)
def get_booking(id: str, db: Session = Depends(get_db)):
    obj = (
        db.query(DBBookings)
        .options(selectinload(DBBookings.booking_services))
        .filter(DBBookings.id == id)
        .first()
    )
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post("", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    if data.booking_date < date.today():
        raise HTTPException(status_code=400, detail="Date cannot be in the past")

    try:
        if settings.require_phone_verification and not is_phone_verified(db, data.customer.phone):
            raise HTTPException(status_code=403, detail="Phone number is not verified")
        obj = write_booking(db, data)
    except UnknownLocationError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SlotConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except DataAccessError:
        raise HTTPException(status_code=503, detail="Booking could not be saved, please retry")

    emit_event(redis, "booking_created", {
        "booking_id": obj.id,
        "confirmation_number": obj.confirmation_number,
        "location_id": obj.location_id,
        "customer_id": obj.customer_id,
        "booking_date": obj.booking_date,
        "start_time": obj.start_time,
    })

    return obj

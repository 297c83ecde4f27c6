# backend/salon_booking/services/booking_writer.py
"""
Booking creation.

The availability endpoint only returns a snapshot. This module is the
place where double-booking is actually prevented: the location is locked,
the staff conflict check is repeated against fresh bookings, and the
booking is inserted in the same transaction.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import date, datetime, timezone

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.generated import (
    BookingServices as DBBookingService,
    Bookings as DBBooking,
    Customers as DBCustomer,
    Locations as DBLocation,
    Services as DBService,
)
from ..schemas.bookings import BookingCreate, CartItemIn, CustomerIn
from .slots import BookingConfig, SqlAvailabilitySource, get_booking_config
from .slots.config import minutes_to_time_str, time_str_to_minutes
from .slots.conflicts import BusyIndex
from .slots.eligibility import eligible_staff
from .slots.errors import DataAccessError, InputError, SlotConflictError, UnknownLocationError
from .slots.hours import get_day_hours
from .slots.records import Interval, StaffMember

logger = logging.getLogger(__name__)

CONFIRMATION_PREFIX = "MNG"


@dataclass(frozen=True)
class CartTotals:
    duration_minutes: int
    subtotal: float
    deposit: float

    @property
    def remaining(self) -> float:
        return round(self.subtotal - self.deposit, 2)


def create_booking(
    db: Session,
    data: BookingCreate,
    config: BookingConfig | None = None,
) -> DBBooking:
    """
    Validate, re-check availability and insert a booking.

    Raises:
        InputError: unknown services, bad start time, outside business hours
        UnknownLocationError: location missing or inactive
        SlotConflictError: no eligible staff free for the slot any more
        DataAccessError: database failure
    """
    config = config or get_booking_config()

    try:
        start_min = time_str_to_minutes(data.start_time)
    except ValueError as e:
        raise InputError(str(e)) from None

    try:
        location = _lock_location(db, data.location_id)
        if location is None or not location.is_active:
            raise UnknownLocationError(data.location_id)

        services = _load_services(db, data.location_id, data.items)
        totals = calculate_totals(data.items, services, location)

        hours = get_day_hours(
            location.work_schedule,
            data.booking_date,
            config,
            location.hours_weekday,
            location.hours_weekend,
        )
        if hours is None:
            raise InputError(f"Location is closed on {data.booking_date.isoformat()}")
        if start_min < hours.open_min or start_min + totals.duration_minutes > hours.close_min:
            raise InputError("Requested time is outside business hours")
        if (start_min - hours.open_min) % config.slot_step_minutes:
            raise InputError(
                f"Start time must fall on the {config.slot_step_minutes}-minute booking grid"
            )

        source = SqlAvailabilitySource(db)
        roster = source.list_active_staff(data.location_id)
        busy = BusyIndex(
            source.list_confirmed_bookings(data.location_id, data.booking_date),
            data.booking_date,
            config.buffer_minutes,
        )
        interval = Interval(start_min, totals.duration_minutes)
        staff_by_item = assign_staff(data.location_id, data.items, roster, busy, interval)

        customer = _upsert_customer(db, data.customer)
        booking = DBBooking(
            customer_id=customer.id,
            location_id=data.location_id,
            booking_date=data.booking_date.isoformat(),
            start_time=minutes_to_time_str(start_min),
            total_duration_minutes=totals.duration_minutes,
            subtotal=totals.subtotal,
            deposit_amount=totals.deposit,
            remaining_amount=totals.remaining,
            confirmation_number=_new_confirmation_number(db, data.booking_date),
            status="pending",
        )
        db.add(booking)
        db.flush()

        for order, (item, staff_id) in enumerate(zip(data.items, staff_by_item)):
            db.add(DBBookingService(
                booking_id=booking.id,
                service_id=item.service_id,
                staff_id=staff_id,
                price_paid=services[item.service_id].price_card,
                service_order=order,
            ))
            for add_on_id in item.add_on_ids:
                add_on = services[add_on_id]
                db.add(DBBookingService(
                    booking_id=booking.id,
                    service_id=add_on_id,
                    staff_id=staff_id,
                    price_paid=_add_on_price(add_on),
                    service_order=order,
                ))

        db.commit()
    except (InputError, SlotConflictError, DataAccessError):
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Booking insert failed for location %s", data.location_id)
        raise DataAccessError("Booking could not be saved") from e

    db.refresh(booking)
    logger.info(
        "Booking created: %s at %s on %s %s",
        booking.confirmation_number,
        booking.location_id,
        booking.booking_date,
        booking.start_time,
    )
    return booking


def calculate_totals(
    items: list[CartItemIn],
    services: dict[str, DBService],
    location: DBLocation,
) -> CartTotals:
    """Durations of services and add-ons add up; add-ons get the bundle discount."""
    duration = 0
    subtotal = 0.0
    for item in items:
        service = services[item.service_id]
        duration += service.duration_minutes
        subtotal += service.price_card
        for add_on_id in item.add_on_ids:
            add_on = services[add_on_id]
            duration += add_on.duration_minutes
            subtotal += _add_on_price(add_on)

    subtotal = round(subtotal, 2)
    deposit = 0.0
    if location.has_deposit_policy:
        deposit = round(subtotal * (location.deposit_percentage or 0) / 100, 2)

    return CartTotals(duration_minutes=duration, subtotal=subtotal, deposit=deposit)


def assign_staff(
    location_id: str,
    items: list[CartItemIn],
    roster: list[StaffMember],
    busy: BusyIndex,
    interval: Interval,
) -> list[str]:
    """
    Pick a staff member per cart item.

    An explicit choice must be eligible and free. Otherwise the first
    eligible free member of the roster is taken. Every assigned member
    is occupied for the whole booking interval.
    """
    assigned: list[str] = []
    for item in items:
        required = [item.service_id, *item.add_on_ids]

        if item.staff_id:
            if not eligible_staff(roster, location_id, required, [item.staff_id]):
                raise InputError(f"Staff {item.staff_id} cannot perform the selected services")
            if not busy.is_free(item.staff_id, interval):
                raise SlotConflictError("Selected staff member is no longer available at this time")
            assigned.append(item.staff_id)
            continue

        candidates = [s.id for s in eligible_staff(roster, location_id, required)]
        free = busy.free_staff(candidates, interval)
        if not free:
            raise SlotConflictError("No staff member is available at this time")
        assigned.append(free[0])

    return assigned


# ── Helpers ──────────────────────────────────────────────────────────────


def _lock_location(db: Session, location_id: str) -> DBLocation | None:
    """
    Serialize booking writers per location.

    SELECT ... FOR UPDATE does the job on server databases; SQLite ignores it,
    so a no-op write takes the database write lock up front instead.
    """
    if db.get_bind().dialect.name == "sqlite":
        db.execute(
            text("UPDATE locations SET is_active = is_active WHERE id = :id"),
            {"id": location_id},
        )
    return (
        db.query(DBLocation)
        .filter(DBLocation.id == location_id)
        .with_for_update()
        .first()
    )


def _load_services(db: Session, location_id: str, items: list[CartItemIn]) -> dict[str, DBService]:
    wanted = {item.service_id for item in items}
    for item in items:
        wanted.update(item.add_on_ids)

    rows = (
        db.query(DBService)
        .filter(
            DBService.id.in_(wanted),
            DBService.location_id == location_id,
            DBService.is_active == 1,
        )
        .all()
    )
    services = {s.id: s for s in rows}

    missing = sorted(wanted - services.keys())
    if missing:
        raise InputError(f"Unknown services for this location: {', '.join(missing)}")
    return services


def _add_on_price(add_on: DBService) -> float:
    return max(add_on.price_card - (add_on.discount_when_bundled or 0), 0.0)


def _upsert_customer(db: Session, data: CustomerIn) -> DBCustomer:
    customer = (
        db.query(DBCustomer)
        .filter(DBCustomer.email == data.email, DBCustomer.phone == data.phone)
        .first()
    )
    now = datetime.now(timezone.utc).isoformat()

    if customer is None:
        customer = DBCustomer(
            email=data.email,
            phone=data.phone,
            sms_reminders_enabled=int(data.sms_reminders_enabled),
            promotional_texts_enabled=int(data.promotional_texts_enabled),
        )
        db.add(customer)

    customer.first_name = data.first_name or customer.first_name
    customer.last_name = data.last_name or customer.last_name
    customer.has_accepted_policy = 1
    customer.policy_accepted_at = now
    db.flush()
    return customer


def _new_confirmation_number(db: Session, booking_date: date) -> str:
    """MNG-YYYYMMDD-XXXX, unique across bookings."""
    prefix = f"{CONFIRMATION_PREFIX}-{booking_date.strftime('%Y%m%d')}"
    for _ in range(10):
        candidate = f"{prefix}-{1000 + secrets.randbelow(9000)}"
        exists = (
            db.query(DBBooking.id)
            .filter(DBBooking.confirmation_number == candidate)
            .first()
        )
        if not exists:
            return candidate
    raise DataAccessError(f"Could not allocate a confirmation number for {booking_date.isoformat()}")

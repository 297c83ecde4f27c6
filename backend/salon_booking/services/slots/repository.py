# backend/salon_booking/services/slots/repository.py
"""
SQLAlchemy-backed data access for the availability resolver.

Converts ORM rows into the resolver's records. Any database failure is
re-raised as DataAccessError so callers can tell it apart from bad input.
"""

import logging
from collections import defaultdict
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ...models.generated import Bookings, Locations, Staff, t_staff_services
from .config import time_str_to_minutes
from .errors import DataAccessError
from .records import (
    Eligibility,
    ExistingBooking,
    LocationSchedule,
    StaffAssignment,
    StaffMember,
)

logger = logging.getLogger(__name__)

CONFIRMED_STATUSES = ("pending", "confirmed")


class SqlAvailabilitySource:
    """AvailabilitySource over a request-scoped Session."""

    def __init__(self, db: Session):
        self.db = db

    def get_location(self, location_id: str) -> LocationSchedule | None:
        try:
            location = self.db.get(Locations, location_id)
        except SQLAlchemyError as e:
            logger.exception("Location lookup failed: %s", location_id)
            raise DataAccessError("Location lookup failed") from e

        if location is None:
            return None
        return LocationSchedule(
            location_id=location.id,
            is_active=bool(location.is_active),
            work_schedule=location.work_schedule,
            hours_weekday=location.hours_weekday,
            hours_weekend=location.hours_weekend,
        )

    def list_active_staff(self, location_id: str) -> list[StaffMember]:
        try:
            staff = (
                self.db.query(Staff)
                .filter(Staff.location_id == location_id, Staff.is_active == 1)
                .order_by(Staff.display_order, Staff.id)
                .all()
            )
            rows = self.db.execute(
                select(t_staff_services.c.staff_id, t_staff_services.c.service_id)
                .where(
                    t_staff_services.c.staff_id.in_([s.id for s in staff]),
                    t_staff_services.c.is_active == 1,
                )
            ).all()
        except SQLAlchemyError as e:
            logger.exception("Staff lookup failed for location %s", location_id)
            raise DataAccessError("Staff lookup failed") from e

        services_by_staff: dict[str, set[str]] = defaultdict(set)
        for staff_id, service_id in rows:
            services_by_staff[staff_id].add(service_id)

        return [
            StaffMember(
                id=s.id,
                location_id=s.location_id,
                is_active=bool(s.is_active),
                eligibility=Eligibility.from_service_ids(services_by_staff.get(s.id)),
            )
            for s in staff
        ]

    def list_confirmed_bookings(self, location_id: str, target_date: date) -> list[ExistingBooking]:
        try:
            bookings = (
                self.db.query(Bookings)
                .options(selectinload(Bookings.booking_services))
                .filter(
                    Bookings.location_id == location_id,
                    Bookings.booking_date == target_date.isoformat(),
                    Bookings.status.in_(CONFIRMED_STATUSES),
                )
                .all()
            )
        except SQLAlchemyError as e:
            logger.exception("Booking lookup failed for location %s on %s", location_id, target_date)
            raise DataAccessError("Booking lookup failed") from e

        result = []
        for booking in bookings:
            try:
                start_min = time_str_to_minutes(booking.start_time)
            except ValueError:
                logger.error("Booking %s has unreadable start_time %r", booking.id, booking.start_time)
                raise DataAccessError(f"Booking {booking.id} has an invalid start time") from None

            assignments = tuple(
                StaffAssignment(staff_id=bs.staff_id, service_id=bs.service_id)
                for bs in booking.booking_services
                if bs.staff_id
            )
            result.append(ExistingBooking(
                date=target_date,
                start_min=start_min,
                total_duration_min=booking.total_duration_minutes,
                assignments=assignments,
            ))
        return result

"""Shared test fixtures and helpers."""

from datetime import date, timedelta
from typing import Optional

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from salon_booking.database import get_db
from salon_booking.main import app
from salon_booking.models.generated import (
    Base,
    BookingServices,
    Bookings,
    Customers,
    Locations,
    Services,
    Staff,
    t_staff_services,
)
from salon_booking.redis_client import get_redis
from salon_booking.services.slots.config import BookingConfig
from salon_booking.services.slots.errors import DataAccessError
from salon_booking.services.slots.records import (
    Eligibility,
    ExistingBooking,
    LocationSchedule,
    StaffAssignment,
    StaffMember,
)

SATURDAY = date(2030, 1, 5)
SUNDAY = date(2030, 1, 6)
MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)

LOCATION_ID = "loc-1"


class InMemorySource:
    """AvailabilitySource test double backed by plain lists."""

    def __init__(
        self,
        staff: Optional[list[StaffMember]] = None,
        bookings: Optional[list[ExistingBooking]] = None,
        locations: Optional[dict[str, LocationSchedule]] = None,
        fail_on: Optional[str] = None,
    ):
        self.staff = staff or []
        self.bookings = bookings or []
        self.locations = locations if locations is not None else {
            LOCATION_ID: LocationSchedule(LOCATION_ID),
        }
        self.fail_on = fail_on
        self.calls: list[str] = []

    def get_location(self, location_id):
        self.calls.append("get_location")
        return self.locations.get(location_id)

    def list_active_staff(self, location_id):
        self.calls.append("list_active_staff")
        if self.fail_on == "staff":
            raise DataAccessError("staff lookup failed")
        return [s for s in self.staff if s.location_id == location_id and s.is_active]

    def list_confirmed_bookings(self, location_id, target_date):
        self.calls.append("list_confirmed_bookings")
        if self.fail_on == "bookings":
            raise DataAccessError("booking lookup failed")
        return [b for b in self.bookings if b.date == target_date]


def make_staff(
    staff_id: str,
    service_ids: Optional[list[str]] = None,
    is_active: bool = True,
    location_id: str = LOCATION_ID,
) -> StaffMember:
    return StaffMember(
        id=staff_id,
        location_id=location_id,
        is_active=is_active,
        eligibility=Eligibility.from_service_ids(service_ids),
    )


def make_booking(
    staff_ids: list[str],
    start: str,
    duration: int,
    on: date = TUESDAY,
    service_id: str = "svc-any",
) -> ExistingBooking:
    hours, minutes = start.split(":")
    return ExistingBooking(
        date=on,
        start_min=int(hours) * 60 + int(minutes),
        total_duration_min=duration,
        assignments=tuple(StaffAssignment(sid, service_id) for sid in staff_ids),
    )


def next_weekday(weekday: int, after: Optional[date] = None) -> date:
    """First date strictly after `after` (default today) with the given weekday (0 = Monday)."""
    current = (after or date.today()) + timedelta(days=1)
    while current.weekday() != weekday:
        current += timedelta(days=1)
    return current


@pytest.fixture
def config():
    return BookingConfig()


@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis(decode_responses=True)


# ── Database ─────────────────────────────────────────────────────────────


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _fk_on(dbapi_connection, _):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def salon(db):
    """
    One location with default hours, three services and three staff:

    - ana:   open eligibility
    - ben:   restricted to gel manicure
    - cara:  inactive
    """
    location = Locations(
        id=LOCATION_ID,
        name="Downtown",
        address="1 Main St",
        city="Springfield",
        work_schedule="{}",
        has_deposit_policy=1,
        deposit_percentage=20,
    )
    db.add(location)
    db.add_all([
        Services(
            id="svc-gel", location_id=LOCATION_ID, name="Gel Manicure", category="manicure",
            duration_minutes=45, price_cash=40, price_card=42, display_order=1,
        ),
        Services(
            id="svc-pedi", location_id=LOCATION_ID, name="Spa Pedicure", category="pedicure",
            duration_minutes=60, price_cash=55, price_card=58, display_order=2,
        ),
        Services(
            id="svc-art", location_id=LOCATION_ID, name="Nail Art", category="add_ons",
            duration_minutes=15, price_cash=10, price_card=12, is_add_on=1,
            parent_service_id="svc-gel", discount_when_bundled=2, display_order=3,
        ),
    ])
    db.add_all([
        Staff(id="ana", location_id=LOCATION_ID, first_name="Ana", display_order=1),
        Staff(id="ben", location_id=LOCATION_ID, first_name="Ben", display_order=2),
        Staff(id="cara", location_id=LOCATION_ID, first_name="Cara", display_order=3, is_active=0),
    ])
    db.flush()
    db.execute(t_staff_services.insert().values(staff_id="ben", service_id="svc-gel"))
    db.commit()
    return location


def add_booking(
    db,
    on: date,
    start_time: str,
    duration: int,
    staff_ids: list[str],
    status: str = "confirmed",
    confirmation: Optional[str] = None,
) -> Bookings:
    customer = db.query(Customers).filter(Customers.email == "seed@example.com").first()
    if customer is None:
        customer = Customers(email="seed@example.com", phone="5550000000")
        db.add(customer)
        db.flush()

    booking = Bookings(
        customer_id=customer.id,
        location_id=LOCATION_ID,
        booking_date=on.isoformat(),
        start_time=start_time,
        total_duration_minutes=duration,
        confirmation_number=confirmation or f"SEED-{on:%Y%m%d}-{start_time}-{'-'.join(staff_ids)}-{status}",
        status=status,
    )
    db.add(booking)
    db.flush()
    for order, staff_id in enumerate(staff_ids):
        db.add(BookingServices(
            booking_id=booking.id,
            service_id="svc-gel",
            staff_id=staff_id,
            service_order=order,
        ))
    db.commit()
    return booking


# ── HTTP ─────────────────────────────────────────────────────────────────


@pytest.fixture
def client(session_factory, fake_redis):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_redis] = lambda: fake_redis
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# ── Messaging ────────────────────────────────────────────────────────────


class RecordingSmsSender:
    """TwilioSmsSender test double: keeps (to, body) pairs or raises `error`."""

    configured = True

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.sent: list[tuple[str, str]] = []

    def send(self, to, body):
        if self.error is not None:
            raise self.error
        self.sent.append((to, body))
        return f"SM{len(self.sent)}"


class RecordingEmailSender:
    """ResendEmailSender test double: keeps (to, subject, html) or raises `error`."""

    configured = True

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.sent: list[tuple[str, str, str]] = []

    def send(self, to, subject, html):
        if self.error is not None:
            raise self.error
        self.sent.append((to, subject, html))
        return f"em-{len(self.sent)}"

import uuid

from sqlalchemy import Column, Float, ForeignKey, Index, Integer, Table, Text, UniqueConstraint, text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


def _uuid() -> str:
    return str(uuid.uuid4())


class Locations(Base):
    __tablename__ = 'locations'

    id = Column(Text, primary_key=True, default=_uuid)
    name = Column(Text, nullable=False)
    address = Column(Text, nullable=False)
    city = Column(Text, nullable=False)
    state = Column(Text)
    zip_code = Column(Text)
    phone = Column(Text)
    email = Column(Text)
    hero_image_url = Column(Text)
    hours_weekday = Column(Text)
    hours_weekend = Column(Text)
    work_schedule = Column(Text, nullable=False, server_default=text("'{}'"))
    has_deposit_policy = Column(Integer, nullable=False, server_default=text('0'))
    deposit_percentage = Column(Float, nullable=False, server_default=text('0'))
    cancellation_policy = Column(Text)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    services = relationship('Services', back_populates='location')
    staff = relationship('Staff', back_populates='location')
    bookings = relationship('Bookings', back_populates='location')


class Services(Base):
    __tablename__ = 'services'

    id = Column(Text, primary_key=True, default=_uuid)
    location_id = Column(ForeignKey('locations.id', ondelete='CASCADE'), nullable=False)
    name = Column(Text, nullable=False)
    category = Column(Text, nullable=False)
    description = Column(Text)
    duration_minutes = Column(Integer, nullable=False)
    price_cash = Column(Float, nullable=False)
    price_card = Column(Float, nullable=False)
    is_add_on = Column(Integer, nullable=False, server_default=text('0'))
    parent_service_id = Column(ForeignKey('services.id', ondelete='SET NULL'))
    discount_when_bundled = Column(Float, nullable=False, server_default=text('0'))
    display_order = Column(Integer, nullable=False, server_default=text('0'))
    is_active = Column(Integer, nullable=False, server_default=text('1'))

    location = relationship('Locations', back_populates='services')


t_staff_services = Table(
    'staff_services', metadata,
    Column('staff_id', ForeignKey('staff.id', ondelete='CASCADE'), nullable=False),
    Column('service_id', ForeignKey('services.id', ondelete='CASCADE'), nullable=False),
    Column('is_active', Integer, nullable=False, server_default=text('1')),
    UniqueConstraint('staff_id', 'service_id')
)


class Staff(Base):
    __tablename__ = 'staff'

    id = Column(Text, primary_key=True, default=_uuid)
    location_id = Column(ForeignKey('locations.id', ondelete='CASCADE'), nullable=False)
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False, server_default=text("''"))
    avatar_emoji = Column(Text)
    display_order = Column(Integer, nullable=False, server_default=text('0'))
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    location = relationship('Locations', back_populates='staff')
    booking_services = relationship('BookingServices', back_populates='staff')


class Customers(Base):
    __tablename__ = 'customers'
    __table_args__ = (
        UniqueConstraint('email', 'phone'),
    )

    id = Column(Text, primary_key=True, default=_uuid)
    email = Column(Text, nullable=False)
    phone = Column(Text, nullable=False)
    first_name = Column(Text)
    last_name = Column(Text)
    has_accepted_policy = Column(Integer, nullable=False, server_default=text('0'))
    policy_accepted_at = Column(Text)
    sms_reminders_enabled = Column(Integer, nullable=False, server_default=text('1'))
    promotional_texts_enabled = Column(Integer, nullable=False, server_default=text('0'))
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    bookings = relationship('Bookings', back_populates='customer')


class Bookings(Base):
    __tablename__ = 'bookings'

    id = Column(Text, primary_key=True, default=_uuid)
    customer_id = Column(ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    location_id = Column(ForeignKey('locations.id'), nullable=False)
    booking_date = Column(Text, nullable=False)  # YYYY-MM-DD, location calendar
    start_time = Column(Text, nullable=False)    # HH:MM
    total_duration_minutes = Column(Integer, nullable=False)
    subtotal = Column(Float, nullable=False, server_default=text('0'))
    deposit_amount = Column(Float, nullable=False, server_default=text('0'))
    remaining_amount = Column(Float, nullable=False, server_default=text('0'))
    confirmation_number = Column(Text, nullable=False, unique=True)
    status = Column(Text, nullable=False, server_default=text("'pending'"))
    created_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))

    customer = relationship('Customers', back_populates='bookings')
    location = relationship('Locations', back_populates='bookings')
    booking_services = relationship(
        'BookingServices',
        back_populates='booking',
        order_by='BookingServices.service_order',
    )


class BookingServices(Base):
    __tablename__ = 'booking_services'

    id = Column(Text, primary_key=True, default=_uuid)
    booking_id = Column(ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False)
    service_id = Column(ForeignKey('services.id'), nullable=False)
    staff_id = Column(ForeignKey('staff.id', ondelete='SET NULL'))
    price_paid = Column(Float, nullable=False, server_default=text('0'))
    service_order = Column(Integer, nullable=False, server_default=text('0'))

    booking = relationship('Bookings', back_populates='booking_services')
    service = relationship('Services')
    staff = relationship('Staff', back_populates='booking_services')


class SmsVerifications(Base):
    __tablename__ = 'sms_verifications'
    __table_args__ = (
        Index('idx_sms_verifications_phone', 'phone', 'created_at'),
    )

    id = Column(Text, primary_key=True, default=_uuid)
    phone = Column(Text, nullable=False)
    code = Column(Text, nullable=False)
    expires_at = Column(Text, nullable=False)  # ISO 8601, UTC
    attempts = Column(Integer, nullable=False, server_default=text('0'))
    is_verified = Column(Integer, nullable=False, server_default=text('0'))
    created_at = Column(Text, nullable=False)

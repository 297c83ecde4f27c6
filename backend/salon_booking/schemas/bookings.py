# backend/salon_booking/schemas/bookings.py

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field


class CustomerIn(BaseModel):
    email: str = Field(min_length=3)
    phone: str = Field(min_length=7)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    sms_reminders_enabled: bool = True
    promotional_texts_enabled: bool = False


class CartItemIn(BaseModel):
    service_id: str
    add_on_ids: list[str] = []
    staff_id: Optional[str] = None


class BookingCreate(BaseModel):
    customer: CustomerIn
    location_id: str
    booking_date: date
    start_time: str  # "H:MM AM" or "HH:MM"
    items: list[CartItemIn] = Field(min_length=1)


class BookingServiceRead(BaseModel):
    service_id: str
    staff_id: Optional[str] = None
    price_paid: float
    service_order: int

    model_config = {"from_attributes": True}


class BookingRead(BaseModel):
    id: str
    customer_id: str
    location_id: str
    booking_date: str
    start_time: str
    total_duration_minutes: int
    subtotal: float
    deposit_amount: float
    remaining_amount: float
    confirmation_number: str
    status: str
    booking_services: list[BookingServiceRead] = []

    model_config = {"from_attributes": True}

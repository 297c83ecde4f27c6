# backend/salon_booking/schemas/availability.py
"""
Pydantic schemas for the availability API.

Wire format is camelCase; Python attributes are snake_case.
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field


class AvailabilityRequestBody(BaseModel):
    location_id: str = Field(alias="locationId", min_length=1)
    booking_date: date = Field(alias="date")
    duration_minutes: int = Field(alias="durationMinutes", gt=0)
    staff_ids: Optional[list[str]] = Field(default=None, alias="staffIds")
    service_ids: Optional[list[str]] = Field(default=None, alias="serviceIds")

    model_config = {"populate_by_name": True}


class LocationHours(BaseModel):
    open: str   # "HH:MM"
    close: str  # "HH:MM"


class SlotPeriods(BaseModel):
    morning: list[str] = []
    afternoon: list[str] = []
    evening: list[str] = []


class AvailabilityResponse(BaseModel):
    available_slots: list[str] = Field(serialization_alias="availableSlots")
    best_fit_slots: list[str] = Field(serialization_alias="bestFitSlots")
    location_hours: Optional[LocationHours] = Field(serialization_alias="locationHours")
    periods: SlotPeriods = Field(default_factory=SlotPeriods)


class InvalidateRequest(BaseModel):
    location_id: str = Field(alias="locationId")
    date_start: Optional[date] = Field(default=None, alias="dateStart")
    date_end: Optional[date] = Field(default=None, alias="dateEnd")

    model_config = {"populate_by_name": True}

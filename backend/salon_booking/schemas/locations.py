# backend/salon_booking/schemas/locations.py

from typing import Optional
from pydantic import BaseModel


class LocationRead(BaseModel):
    id: str
    name: str
    address: str
    city: str
    state: Optional[str] = None
    zip_code: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    hero_image_url: Optional[str] = None

    hours_weekday: Optional[str] = None
    hours_weekend: Optional[str] = None
    work_schedule: str

    has_deposit_policy: bool
    deposit_percentage: float
    cancellation_policy: Optional[str] = None

    model_config = {"from_attributes": True}


class LocationScheduleUpdate(BaseModel):
    work_schedule: str
    # "Mon-Fri: 9:00 AM - 7:00 PM"; None leaves the stored text unchanged
    hours_weekday: Optional[str] = None
    hours_weekend: Optional[str] = None

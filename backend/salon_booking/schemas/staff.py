# backend/salon_booking/schemas/staff.py

from typing import Optional
from pydantic import BaseModel


class StaffRead(BaseModel):
    id: str
    location_id: str
    first_name: str
    last_name: str
    avatar_emoji: Optional[str] = None
    display_order: int
    is_active: bool
    # Empty list = can perform any service at the location
    service_ids: list[str] = []

    model_config = {"from_attributes": True}

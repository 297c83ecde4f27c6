# backend/salon_booking/schemas/services.py

from typing import Literal, Optional
from pydantic import BaseModel

ServiceCategory = Literal["manicure", "pedicure", "extensions", "nail_art", "add_ons"]


class ServiceRead(BaseModel):
    id: str
    location_id: str
    name: str
    category: ServiceCategory
    description: Optional[str] = None
    duration_minutes: int
    price_cash: float
    price_card: float
    is_add_on: bool
    parent_service_id: Optional[str] = None
    discount_when_bundled: float
    display_order: int
    is_active: bool

    model_config = {"from_attributes": True}

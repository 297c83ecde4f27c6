# backend/salon_booking/schemas/verification.py

from pydantic import BaseModel, Field


class VerificationSend(BaseModel):
    phone: str = Field(min_length=7)


class VerificationCheck(BaseModel):
    phone: str = Field(min_length=7)
    code: str = Field(pattern=r"^\d{6}$")


class VerificationSent(BaseModel):
    success: bool
    message: str


class VerificationStatus(BaseModel):
    verified: bool
    message: str

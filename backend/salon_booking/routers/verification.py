# backend/salon_booking/routers/verification.py
"""
Phone verification API endpoints.

POST /verification/send   - text a one-time code to a phone number
POST /verification/verify - check the code
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.verification import (
    VerificationCheck,
    VerificationSend,
    VerificationSent,
    VerificationStatus,
)
from ..services.messaging import (
    DeliveryError,
    NotConfiguredError,
    TwilioSmsSender,
    get_sms_sender,
)
from ..services.slots.errors import DataAccessError
from ..services.verification import VerificationError, request_code, verify_code

router = APIRouter(prefix="/verification", tags=["verification"])


@router.post("/send", response_model=VerificationSent)
def send_verification_code(
    data: VerificationSend,
    db: Session = Depends(get_db),
    sender: TwilioSmsSender = Depends(get_sms_sender),
):
    try:
        request_code(db, data.phone, sender)
    except NotConfiguredError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except DeliveryError as e:
        if e.rejected:
            raise HTTPException(status_code=400, detail="This phone number cannot receive SMS")
        raise HTTPException(status_code=503, detail=str(e))
    except DataAccessError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return VerificationSent(success=True, message="Verification code sent")


@router.post("/verify", response_model=VerificationStatus)
def check_verification_code(data: VerificationCheck, db: Session = Depends(get_db)):
    try:
        result = verify_code(db, data.phone, data.code)
    except VerificationError as e:
        detail = {"verified": False, "message": str(e)}
        if e.attempts_left is not None:
            detail["attemptsLeft"] = e.attempts_left
        raise HTTPException(status_code=400, detail=detail)
    except DataAccessError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return VerificationStatus(verified=result.verified, message=result.message)

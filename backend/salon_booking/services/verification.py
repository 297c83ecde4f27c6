# backend/salon_booking/services/verification.py
"""
Phone verification with one-time SMS codes.

A code is 6 digits, valid for ``verification_code_ttl_minutes`` and
allows ``verification_max_attempts`` guesses. Only the most recent code
for a phone number counts: requesting a new one retires the old one.
"""

import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..models.generated import SmsVerifications as DBSmsVerification
from .messaging import MessagingError, TwilioSmsSender
from .slots.errors import DataAccessError

logger = logging.getLogger(__name__)


class VerificationError(Exception):
    """The code cannot be accepted. The message is safe to show the customer."""

    def __init__(self, message: str, attempts_left: int | None = None):
        super().__init__(message)
        self.attempts_left = attempts_left


@dataclass(frozen=True)
class VerificationResult:
    verified: bool
    message: str


def generate_code() -> str:
    return str(100000 + secrets.randbelow(900000))


def request_code(
    db: Session,
    phone: str,
    sender: TwilioSmsSender,
    now: datetime | None = None,
) -> DBSmsVerification:
    """
    Store a fresh code and text it to phone.

    Nothing is stored when the SMS cannot be sent.

    Raises:
        MessagingError: provider not configured or refused the message
        DataAccessError: database failure
    """
    now = now or datetime.now(timezone.utc)
    ttl = settings.verification_code_ttl_minutes
    code = generate_code()

    verification = DBSmsVerification(
        phone=phone,
        code=code,
        expires_at=(now + timedelta(minutes=ttl)).isoformat(),
        attempts=0,
        is_verified=0,
        created_at=now.isoformat(),
    )
    try:
        db.add(verification)
        db.flush()
        sender.send(phone, f"Your {settings.salon_name} verification code is: {code}. Valid for {ttl} minutes.")
        db.commit()
    except MessagingError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Verification code insert failed")
        raise DataAccessError("Failed to create verification code") from e

    logger.info("Verification code sent to %s", phone)
    return verification


def verify_code(
    db: Session,
    phone: str,
    code: str,
    now: datetime | None = None,
) -> VerificationResult:
    """
    Check a code against the latest one sent to phone.

    Every wrong guess uses up an attempt.

    Raises:
        VerificationError: no code, expired, out of attempts or wrong code
        DataAccessError: database failure
    """
    now = now or datetime.now(timezone.utc)
    max_attempts = settings.verification_max_attempts

    try:
        verification = _latest(db, phone)
        if verification is None:
            raise VerificationError("No verification code was requested for this phone number")

        if verification.is_verified:
            if hmac.compare_digest(verification.code, code):
                return VerificationResult(True, "Code already verified")
            raise VerificationError("Invalid verification code")

        if now > datetime.fromisoformat(verification.expires_at):
            raise VerificationError("Verification code has expired. Please request a new code.")

        if verification.attempts >= max_attempts:
            raise VerificationError("Maximum verification attempts reached. Please request a new code.")

        verification.attempts += 1
        if not hmac.compare_digest(verification.code, code):
            db.commit()
            attempts_left = max_attempts - verification.attempts
            raise VerificationError("Invalid verification code", attempts_left=attempts_left)

        verification.is_verified = 1
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Verification lookup failed")
        raise DataAccessError("Failed to verify code") from e

    logger.info("Phone verified: %s", phone)
    return VerificationResult(True, "Phone number verified successfully")


def is_phone_verified(db: Session, phone: str) -> bool:
    try:
        verification = _latest(db, phone)
    except SQLAlchemyError as e:
        logger.exception("Verification lookup failed")
        raise DataAccessError("Failed to check phone verification") from e
    return bool(verification and verification.is_verified)


def _latest(db: Session, phone: str) -> DBSmsVerification | None:
    return (
        db.query(DBSmsVerification)
        .filter(DBSmsVerification.phone == phone)
        .order_by(DBSmsVerification.created_at.desc())
        .first()
    )

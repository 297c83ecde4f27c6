"""Tests for SMS phone verification."""

import re
from datetime import datetime, timedelta, timezone

import pytest

from salon_booking.models.generated import SmsVerifications
from salon_booking.services.messaging import DeliveryError
from salon_booking.services.verification import (
    VerificationError,
    is_phone_verified,
    request_code,
    verify_code,
)

from conftest import RecordingSmsSender

PHONE = "+15551234567"
SENT_AT = datetime(2030, 1, 8, 10, 0, tzinfo=timezone.utc)


def send(db, phone=PHONE, now=SENT_AT):
    sender = RecordingSmsSender()
    row = request_code(db, phone, sender, now=now)
    return row.code, sender


class TestRequestCode:
    def test_code_is_stored_and_texted(self, db):
        code, sender = send(db)

        assert re.fullmatch(r"\d{6}", code)
        assert sender.sent == [(PHONE, f"Your Mango Nail Spa verification code is: {code}. Valid for 5 minutes.")]

        row = db.query(SmsVerifications).one()
        assert row.phone == PHONE
        assert row.attempts == 0
        assert row.is_verified == 0
        assert datetime.fromisoformat(row.expires_at) == SENT_AT + timedelta(minutes=5)

    def test_nothing_is_stored_when_the_sms_fails(self, db):
        sender = RecordingSmsSender(error=DeliveryError("Failed to send SMS", 400))

        with pytest.raises(DeliveryError):
            request_code(db, PHONE, sender, now=SENT_AT)
        assert db.query(SmsVerifications).count() == 0


class TestVerifyCode:
    def test_correct_code(self, db):
        code, _ = send(db)

        result = verify_code(db, PHONE, code, now=SENT_AT + timedelta(minutes=1))

        assert result.verified
        assert result.message == "Phone number verified successfully"
        assert is_phone_verified(db, PHONE)

    def test_wrong_code_uses_an_attempt(self, db):
        code, _ = send(db)
        wrong = "000000" if code != "000000" else "111111"

        with pytest.raises(VerificationError) as exc:
            verify_code(db, PHONE, wrong, now=SENT_AT)
        assert exc.value.attempts_left == 2
        assert db.query(SmsVerifications).one().attempts == 1
        assert not is_phone_verified(db, PHONE)

    def test_attempts_are_capped(self, db):
        code, _ = send(db)
        wrong = "000000" if code != "000000" else "111111"

        for left in (2, 1, 0):
            with pytest.raises(VerificationError) as exc:
                verify_code(db, PHONE, wrong, now=SENT_AT)
            assert exc.value.attempts_left == left

        # even the right code is refused once attempts run out
        with pytest.raises(VerificationError, match="Maximum verification attempts"):
            verify_code(db, PHONE, code, now=SENT_AT)
        assert not is_phone_verified(db, PHONE)

    def test_expired_code(self, db):
        code, _ = send(db)

        with pytest.raises(VerificationError, match="expired"):
            verify_code(db, PHONE, code, now=SENT_AT + timedelta(minutes=5, seconds=1))

    def test_already_verified(self, db):
        code, _ = send(db)
        verify_code(db, PHONE, code, now=SENT_AT)

        assert verify_code(db, PHONE, code, now=SENT_AT).message == "Code already verified"

    def test_no_code_requested(self, db):
        with pytest.raises(VerificationError, match="No verification code"):
            verify_code(db, PHONE, "123456", now=SENT_AT)

    def test_latest_code_wins(self, db):
        first, _ = send(db)
        second, _ = send(db, now=SENT_AT + timedelta(minutes=1))
        if first == second:
            pytest.skip("codes collided")

        with pytest.raises(VerificationError):
            verify_code(db, PHONE, first, now=SENT_AT + timedelta(minutes=2))
        assert verify_code(db, PHONE, second, now=SENT_AT + timedelta(minutes=2)).verified

    def test_codes_are_per_phone(self, db):
        code, _ = send(db)
        send(db, phone="+15559990000")

        verify_code(db, PHONE, code, now=SENT_AT)

        assert is_phone_verified(db, PHONE)
        assert not is_phone_verified(db, "+15559990000")

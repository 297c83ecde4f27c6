"""
backend/salon_booking/services/messaging.py

Outbound customer messages.

- TwilioSmsSender:    SMS via the Twilio REST API (verification codes)
- ResendEmailSender:  e-mail via the Resend API (booking confirmations)

Both talk HTTP through httpx and raise MessagingError subclasses, never
httpx errors, so callers only deal with one family of exceptions.
"""

import logging
from functools import lru_cache

import httpx

from ..config import settings

logger = logging.getLogger(__name__)


class MessagingError(Exception):
    """A message could not be handed to the provider."""


class NotConfiguredError(MessagingError):
    """Provider credentials are missing."""


class DeliveryError(MessagingError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        # Provider HTTP status; 4xx means the recipient/request was refused
        self.status_code = status_code

    @property
    def rejected(self) -> bool:
        return self.status_code is not None and 400 <= self.status_code < 500


class TwilioSmsSender:
    API_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        client: httpx.Client | None = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.client = client or httpx.Client(timeout=settings.messaging_timeout_seconds)

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    def send(self, to: str, body: str) -> str | None:
        """Send one SMS. Returns the provider message id."""
        if not self.configured:
            raise NotConfiguredError("SMS service not configured")

        try:
            response = self.client.post(
                self.API_URL.format(sid=self.account_sid),
                auth=(self.account_sid, self.auth_token),
                data={"To": to, "From": self.from_number, "Body": body},
            )
        except httpx.HTTPError as e:
            logger.error(f"Twilio request failed: {e}")
            raise DeliveryError("Failed to send SMS") from e

        if response.is_error:
            logger.error(f"Twilio error {response.status_code}: {response.text[:200]}")
            raise DeliveryError("Failed to send SMS", response.status_code)

        logger.info(f"SMS sent to {to}")
        return response.json().get("sid")


class ResendEmailSender:
    API_URL = "https://api.resend.com/emails"

    def __init__(
        self,
        api_key: str,
        from_address: str,
        client: httpx.Client | None = None,
    ):
        self.api_key = api_key
        self.from_address = from_address
        self.client = client or httpx.Client(timeout=settings.messaging_timeout_seconds)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def send(self, to: str, subject: str, html: str) -> str | None:
        """Send one e-mail. Returns the provider e-mail id."""
        if not self.configured:
            raise NotConfiguredError("Email service not configured")

        try:
            response = self.client.post(
                self.API_URL,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "from": self.from_address,
                    "to": [to],
                    "subject": subject,
                    "html": html,
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"Resend request failed: {e}")
            raise DeliveryError("Failed to send email") from e

        if response.is_error:
            logger.error(f"Resend error {response.status_code}: {response.text[:200]}")
            raise DeliveryError("Failed to send email", response.status_code)

        logger.info(f"Email sent to {to}: {subject}")
        return response.json().get("id")


@lru_cache
def get_sms_sender() -> TwilioSmsSender:
    return TwilioSmsSender(
        settings.twilio_account_sid,
        settings.twilio_auth_token,
        settings.twilio_phone_number,
    )


@lru_cache
def get_email_sender() -> ResendEmailSender:
    return ResendEmailSender(settings.resend_api_key, settings.email_from)

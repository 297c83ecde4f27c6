"""
backend/salon_booking/services/notifier.py

Booking confirmation consumer.

Reads events from events:p2p (written by services/events.py) and sends
the customer a confirmation e-mail for every booking_created event.

On failure an event is re-queued up to MAX_RETRIES times, then moved to
the dead-letter queue events:p2p:dead.

Run from backend/:
    python -m salon_booking.services.notifier
"""

import json
import logging
import time
from datetime import date
from html import escape

from redis import Redis
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from ..config import settings
from ..models.generated import BookingServices, Bookings
from .events import P2P_QUEUE
from .messaging import MessagingError, ResendEmailSender
from .slots.config import minutes_to_display, time_str_to_minutes
from .slots.errors import DataAccessError

logger = logging.getLogger(__name__)

DEAD_QUEUE = f"{P2P_QUEUE}:dead"
MAX_RETRIES = 3


# ============================================================
# RENDERING
# ============================================================

def render_confirmation_email(booking: Bookings) -> tuple[str, str]:
    """Subject and HTML body of the confirmation e-mail."""
    location = booking.location
    customer = booking.customer

    day = date.fromisoformat(booking.booking_date)
    when = f"{day:%A}, {day:%B} {day.day}, {day.year}"
    start = minutes_to_display(time_str_to_minutes(booking.start_time))
    address = ", ".join(p for p in (location.address, location.city, location.state, location.zip_code) if p)

    rows = "".join(
        "<tr><td>{name}{staff}</td><td align=\"right\">${price:.2f}</td></tr>".format(
            name=escape(bs.service.name),
            staff=f"<br><small>with {escape(bs.staff.first_name)}</small>" if bs.staff else "",
            price=bs.price_paid,
        )
        for bs in booking.booking_services
    )
    if booking.deposit_amount > 0:
        totals = (
            f"<tr><td>Deposit Paid</td><td align=\"right\">-${booking.deposit_amount:.2f}</td></tr>"
            f"<tr><td><b>Balance Due at Salon</b></td><td align=\"right\"><b>${booking.remaining_amount:.2f}</b></td></tr>"
        )
    else:
        totals = f"<tr><td><b>Total Due at Salon</b></td><td align=\"right\"><b>${booking.subtotal:.2f}</b></td></tr>"

    policy = ""
    if location.cancellation_policy:
        policy = f"<p><b>Cancellation Policy:</b><br>{escape(location.cancellation_policy)}</p>"

    html = f"""\
<html>
  <body>
    <h1>Booking Confirmed!</h1>
    <p>Hi {escape(customer.first_name or "there")},</p>
    <p>Thank you for booking with {escape(settings.salon_name)}!</p>
    <p>Confirmation number: <b>{escape(booking.confirmation_number)}</b></p>
    <p>
      Date: {when}<br>
      Time: {start}<br>
      Duration: {booking.total_duration_minutes} minutes<br>
      Location: {escape(location.name)}, {escape(address)}
    </p>
    <table width="100%">
      {rows}
      <tr><td><b>Subtotal</b></td><td align="right"><b>${booking.subtotal:.2f}</b></td></tr>
      {totals}
    </table>
    {policy}
    <p>Questions? Call us at {escape(location.phone or "")}</p>
  </body>
</html>
"""
    subject = f"Booking Confirmed - {booking.confirmation_number}"
    return subject, html


# ============================================================
# EVENT HANDLING
# ============================================================

def send_booking_confirmation(db: Session, booking_id: str, sender: ResendEmailSender) -> bool:
    """
    E-mail the confirmation for one booking.

    Returns:
        False when the booking no longer exists.

    Raises:
        MessagingError: the e-mail could not be sent
        DataAccessError: database failure
    """
    try:
        booking = (
            db.query(Bookings)
            .options(
                selectinload(Bookings.booking_services).selectinload(BookingServices.service),
                selectinload(Bookings.booking_services).selectinload(BookingServices.staff),
            )
            .filter(Bookings.id == booking_id)
            .first()
        )
        if booking is None:
            logger.warning(f"Confirmation skipped, booking not found: {booking_id}")
            return False
        subject, html = render_confirmation_email(booking)
        to = booking.customer.email
    except SQLAlchemyError as e:
        logger.exception(f"Booking lookup failed: {booking_id}")
        raise DataAccessError("Booking lookup failed") from e

    sender.send(to, subject, html)
    return True


def handle_event(db: Session, event: dict, sender: ResendEmailSender) -> None:
    event_type = event.get("type")
    if event_type == "booking_created":
        send_booking_confirmation(db, event["booking_id"], sender)
    else:
        logger.debug(f"Ignoring event type={event_type}")


def process_raw_event(
    redis: Redis,
    raw: str,
    session_factory: sessionmaker,
    sender: ResendEmailSender,
) -> None:
    """Parse and handle one queued event, re-queueing or dead-lettering on failure."""
    try:
        event = json.loads(raw)
    except json.JSONDecodeError:
        logger.error(f"Invalid JSON in event queue: {raw[:200]}")
        redis.rpush(DEAD_QUEUE, raw)
        return

    attempt = event.get("_attempt", 1)
    db = session_factory()
    try:
        handle_event(db, event, sender)
    except (MessagingError, DataAccessError, KeyError):
        logger.exception(
            f"Failed to process event type={event.get('type')} "
            f"(attempt {attempt}/{MAX_RETRIES})"
        )
        if attempt < MAX_RETRIES:
            event["_attempt"] = attempt + 1
            redis.rpush(P2P_QUEUE, json.dumps(event))
        else:
            redis.rpush(DEAD_QUEUE, json.dumps(event))
            logger.warning(f"Event moved to dead-letter queue {DEAD_QUEUE}: type={event.get('type')}")
    finally:
        db.close()


def consume_once(
    redis: Redis,
    session_factory: sessionmaker,
    sender: ResendEmailSender,
    timeout: int = 5,
) -> bool:
    """Wait up to timeout seconds for one event. Returns False when none arrived."""
    result = redis.blpop([P2P_QUEUE], timeout=timeout)
    if result is None:
        return False

    _, raw = result
    process_raw_event(redis, raw, session_factory, sender)
    return True


def run_forever() -> None:
    from ..database import SessionLocal
    from .messaging import get_email_sender

    redis = Redis.from_url(settings.redis_url, decode_responses=True)
    sender = get_email_sender()
    logger.info("notifier started")

    while True:
        try:
            consume_once(redis, SessionLocal, sender)
        except RedisError:
            logger.exception("notifier redis error, retrying in 2s")
            time.sleep(2)


if __name__ == "__main__":
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    run_forever()

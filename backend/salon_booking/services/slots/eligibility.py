# backend/salon_booking/services/slots/eligibility.py
"""Staff eligibility filter."""

from typing import Iterable

from .records import StaffMember


def eligible_staff(
    roster: Iterable[StaffMember],
    location_id: str,
    service_ids: Iterable[str] | None = None,
    staff_ids: Iterable[str] | None = None,
) -> list[StaffMember]:
    """
    Staff able to do the requested work.

    Active members of the location whose eligibility covers every requested
    service, then narrowed to ``staff_ids`` when the customer picked staff.
    Roster order is preserved. An empty list is a normal outcome.
    """
    requested_services = frozenset(service_ids or ())
    wanted = frozenset(staff_ids) if staff_ids else None

    result = []
    for member in roster:
        if not member.is_active or member.location_id != location_id:
            continue
        if not member.eligibility.covers(requested_services):
            continue
        if wanted is not None and member.id not in wanted:
            continue
        result.append(member)
    return result

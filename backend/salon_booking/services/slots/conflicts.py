# backend/salon_booking/services/slots/conflicts.py
"""
Conflict detection between a candidate interval and existing bookings.

Bookings are bucketed per staff member once per request; the decision
for a (slot, staff) pair is then a scan of that member's intervals.
"""

from collections import defaultdict
from datetime import date
from typing import Iterable

from .records import ExistingBooking, Interval


class BusyIndex:
    """Busy intervals per staff id for a single day."""

    def __init__(
        self,
        bookings: Iterable[ExistingBooking],
        target_date: date,
        buffer_min: int = 0,
    ):
        self._busy: dict[str, list[Interval]] = defaultdict(list)

        for booking in bookings:
            if booking.date != target_date:
                continue
            interval = booking.interval.padded(buffer_min)
            for staff_id in booking.staff_ids:
                self._busy[staff_id].append(interval)

    def is_free(self, staff_id: str, candidate: Interval) -> bool:
        """
        True when no booking of this staff member overlaps the candidate.

        No assignments that day -> free.
        """
        for busy in self._busy.get(staff_id, ()):
            if busy.overlaps(candidate):
                return False
        return True

    def free_staff(self, staff_ids: Iterable[str], candidate: Interval) -> list[str]:
        return [sid for sid in staff_ids if self.is_free(sid, candidate)]

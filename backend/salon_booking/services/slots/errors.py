# backend/salon_booking/services/slots/errors.py
"""
Availability errors.

"No eligible staff" is not an error: it is a normal, empty result.
"""


class SlotsError(Exception):
    """Base class for availability failures."""


class InputError(SlotsError):
    """The request itself is unusable (bad duration, unknown location)."""


class UnknownLocationError(InputError):
    def __init__(self, location_id: str):
        super().__init__(f"Unknown location: {location_id}")
        self.location_id = location_id


class SlotConflictError(SlotsError):
    """The requested slot is no longer free for the chosen staff."""


class DataAccessError(SlotsError):
    """A staff/booking lookup failed. The caller may retry."""

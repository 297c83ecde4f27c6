# backend/salon_booking/services/slots/records.py
"""
Read-only records the resolver works on.

The data-access layer converts ORM rows into these before any slot
arithmetic happens, so the core never touches a Session.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from .config import minutes_to_display, minutes_to_time_str


@dataclass(frozen=True)
class Interval:
    """Half-open span [start_min, start_min + duration_min)."""
    start_min: int
    duration_min: int

    def __post_init__(self):
        if self.duration_min < 0:
            raise ValueError(f"duration_min must be >= 0, got {self.duration_min}")

    @property
    def end_min(self) -> int:
        return self.start_min + self.duration_min

    def overlaps(self, other: "Interval") -> bool:
        # touching endpoints do not overlap
        return self.start_min < other.end_min and other.start_min < self.end_min

    def padded(self, buffer_min: int) -> "Interval":
        if not buffer_min:
            return self
        return Interval(self.start_min - buffer_min, self.duration_min + 2 * buffer_min)


@dataclass(frozen=True)
class Eligibility:
    """
    Which services a staff member may perform.

    ``service_ids is None`` is open eligibility (any service at the
    location). A restricted eligibility always carries a non-empty set.
    """
    service_ids: frozenset[str] | None = None

    def __post_init__(self):
        if self.service_ids is not None and not self.service_ids:
            raise ValueError("Restricted eligibility needs at least one service id")

    @classmethod
    def open(cls) -> "Eligibility":
        return cls(None)

    @classmethod
    def restricted(cls, service_ids: Iterable[str]) -> "Eligibility":
        return cls(frozenset(service_ids))

    @classmethod
    def from_service_ids(cls, service_ids: Iterable[str] | None) -> "Eligibility":
        """Absent or empty means open."""
        ids = frozenset(service_ids or ())
        return cls(ids) if ids else cls.open()

    @property
    def is_open(self) -> bool:
        return self.service_ids is None

    def covers(self, requested: Iterable[str]) -> bool:
        if self.service_ids is None:
            return True
        return all(sid in self.service_ids for sid in requested)


@dataclass(frozen=True)
class StaffMember:
    id: str
    location_id: str
    is_active: bool = True
    eligibility: Eligibility = field(default_factory=Eligibility.open)


@dataclass(frozen=True)
class StaffAssignment:
    staff_id: str
    service_id: str


@dataclass(frozen=True)
class ExistingBooking:
    """A confirmed booking occupying one interval for every assigned staff member."""
    date: date
    start_min: int
    total_duration_min: int
    assignments: tuple[StaffAssignment, ...] = ()

    @property
    def interval(self) -> Interval:
        return Interval(self.start_min, self.total_duration_min)

    @property
    def staff_ids(self) -> frozenset[str]:
        return frozenset(a.staff_id for a in self.assignments)


@dataclass(frozen=True)
class DayHours:
    open_min: int
    close_min: int

    def to_dict(self) -> dict:
        return {
            "open": minutes_to_time_str(self.open_min),
            "close": minutes_to_time_str(self.close_min),
        }


@dataclass(frozen=True)
class LocationSchedule:
    """Location fields the resolver needs. work_schedule is the raw JSON text."""
    location_id: str
    is_active: bool = True
    work_schedule: str | None = None
    hours_weekday: str | None = None
    hours_weekend: str | None = None


@dataclass(frozen=True)
class AvailabilityRequest:
    location_id: str
    date: date
    duration_minutes: int
    staff_ids: frozenset[str] | None = None
    service_ids: frozenset[str] | None = None


@dataclass(frozen=True)
class AvailabilityResult:
    """
    Slots are minutes since midnight, chronological.
    location_hours is None when the location is closed that day.
    """
    available_slots: tuple[int, ...] = ()
    best_fit_slots: tuple[int, ...] = ()
    location_hours: DayHours | None = None

    @property
    def available_display(self) -> list[str]:
        return [minutes_to_display(m) for m in self.available_slots]

    @property
    def best_fit_display(self) -> list[str]:
        return [minutes_to_display(m) for m in self.best_fit_slots]

    def to_dict(self) -> dict:
        return {
            "availableSlots": self.available_display,
            "bestFitSlots": self.best_fit_display,
            "locationHours": self.location_hours.to_dict() if self.location_hours else None,
        }

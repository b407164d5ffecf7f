"""
Domain models for the barbershop: working hours, services, appointments.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

import pendulum
from pendulum import Date, DateTime

from .exceptions import ValidationError

MINUTES_PER_DAY = 24 * 60

WEEKDAY_KEYS = [
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
]

# Display names, indexed like date.weekday() (0=Monday)
WEEKDAY_NAMES_PT = [
    "Segunda-feira",
    "Terça-feira",
    "Quarta-feira",
    "Quinta-feira",
    "Sexta-feira",
    "Sábado",
    "Domingo",
]


def time_to_minutes(value: str) -> int:
    """
    Convert an ``HH:MM`` string to minutes since midnight.

    Raises:
        ValidationError: If the string is not a valid time of day
    """
    try:
        hours_str, minutes_str = value.strip().split(":")
        hours, minutes = int(hours_str), int(minutes_str)
    except (AttributeError, ValueError) as exc:
        raise ValidationError(f"Invalid time of day: {value!r}") from exc

    if not (0 <= hours <= 24 and 0 <= minutes < 60) or (hours == 24 and minutes):
        raise ValidationError(f"Invalid time of day: {value!r}")

    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_datetime(dt: DateTime) -> str:
    """
    Format a datetime the way the front desk reads it.
    Format: Dia-da-semana, DD/MM/YYYY às HH:mm
    """
    weekday = WEEKDAY_NAMES_PT[dt.weekday()]
    return f"{weekday}, {dt.format('DD/MM/YYYY')} às {dt.format('HH:mm')}"


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range ``[start, end)``.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValidationError(f"Start time {self.start} must be before end time {self.end}")

    def contains(self, moment: DateTime) -> bool:
        """Check if a moment falls inside the range."""
        return self.start <= moment < self.end


@dataclass(frozen=True)
class WorkingHours:
    """
    Daily opening window of a professional, in minutes since midnight.

    Invariant: start_minutes < end_minutes, both within one day.
    """
    start_minutes: int
    end_minutes: int

    def __post_init__(self):
        if not 0 <= self.start_minutes < MINUTES_PER_DAY:
            raise ValidationError(f"Working hours start out of range: {self.start_minutes}")
        if not 0 < self.end_minutes <= MINUTES_PER_DAY:
            raise ValidationError(f"Working hours end out of range: {self.end_minutes}")
        if self.start_minutes >= self.end_minutes:
            raise ValidationError(
                f"Working hours start {minutes_to_time(self.start_minutes)} "
                f"must be before end {minutes_to_time(self.end_minutes)}"
            )

    @classmethod
    def from_strings(cls, start: str, end: str) -> "WorkingHours":
        """Build working hours from ``HH:MM`` strings."""
        return cls(start_minutes=time_to_minutes(start), end_minutes=time_to_minutes(end))

    def to_dict(self) -> Dict[str, str]:
        return {"start": minutes_to_time(self.start_minutes), "end": minutes_to_time(self.end_minutes)}

    def __str__(self) -> str:
        return f"{minutes_to_time(self.start_minutes)} - {minutes_to_time(self.end_minutes)}"


@dataclass(frozen=True)
class ExistingAppointment:
    """
    Snapshot of a booking, as consumed by the availability engine.
    """
    start: DateTime
    duration_minutes: int

    def __post_init__(self):
        if self.duration_minutes <= 0:
            raise ValidationError(
                f"Appointment duration must be positive, got {self.duration_minutes}"
            )


class EmployeeRole(str, Enum):
    BARBER = "barber"
    ADMIN = "admin"


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


# Statuses whose time is still taken on the professional's agenda
BLOCKING_STATUSES = frozenset({AppointmentStatus.SCHEDULED, AppointmentStatus.COMPLETED})


def _matches_contact(person, search: str) -> bool:
    needle = search.lower()
    return (
        needle in person.name.lower()
        or needle in (person.email or "").lower()
        or search in (person.phone or "")
    )


@dataclass
class Client:
    id: str
    name: str
    phone: str
    email: str
    last_visit: Optional[Date] = None
    preferred_barber: Optional[str] = None
    notes: Optional[str] = None

    def matches(self, search: str) -> bool:
        """Case-insensitive match on name or e-mail; phone digits match as typed."""
        return _matches_contact(self, search)


@dataclass
class Employee:
    """
    A professional and their weekly working hours.

    ``working_hours`` maps lowercase English weekday names to the day's window,
    or to None for a day off. Missing weekdays count as days off.
    """
    id: str
    name: str
    phone: str
    email: str
    role: EmployeeRole = EmployeeRole.BARBER
    specialties: List[str] = field(default_factory=list)
    working_hours: Dict[str, Optional[WorkingHours]] = field(default_factory=dict)

    def __post_init__(self):
        unknown = set(self.working_hours) - set(WEEKDAY_KEYS)
        if unknown:
            raise ValidationError(f"Unknown weekday(s) in working_hours: {sorted(unknown)}")
        try:
            self.role = EmployeeRole(self.role)
        except ValueError as exc:
            raise ValidationError(f"Unknown employee role: {self.role!r}") from exc

    def hours_for(self, day: Date) -> Optional[WorkingHours]:
        """Get the working hours for the weekday of ``day``."""
        return self.working_hours.get(WEEKDAY_KEYS[day.weekday()])

    @property
    def is_barber(self) -> bool:
        return self.role == EmployeeRole.BARBER

    def matches(self, search: str) -> bool:
        return _matches_contact(self, search)


@dataclass
class Promotion:
    is_active: bool
    discounted_price: float
    valid_until: Optional[Date] = None


@dataclass
class Service:
    id: str
    name: str
    description: str
    duration: int  # in minutes
    price: float
    promotional: Optional[Promotion] = None

    def __post_init__(self):
        if self.duration <= 0:
            raise ValidationError(f"Service duration must be positive, got {self.duration}")

    def matches(self, search: str) -> bool:
        needle = search.lower()
        return needle in self.name.lower() or needle in self.description.lower()

    def effective_price(self, on: Optional[Date] = None) -> float:
        """
        Price charged for the service.

        The promotional price applies while the promotion is active and, when
        ``on`` is given, not past its ``valid_until`` date.
        """
        promo = self.promotional
        if promo is None or not promo.is_active:
            return self.price
        if on is not None and promo.valid_until is not None and on > promo.valid_until:
            return self.price
        return promo.discounted_price


@dataclass
class Appointment:
    id: str
    client_id: str
    employee_id: str
    service_id: str
    start: DateTime
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    notes: Optional[str] = None
    payment_status: PaymentStatus = PaymentStatus.PENDING

    @property
    def blocks_schedule(self) -> bool:
        """Whether the appointment still occupies its time slot."""
        return self.status in BLOCKING_STATUSES

    def to_existing(self, duration_minutes: int) -> ExistingAppointment:
        """Snapshot this appointment for availability checks."""
        return ExistingAppointment(start=self.start, duration_minutes=duration_minutes)

    def format_display(self) -> str:
        return format_datetime(self.start)


def parse_datetime(value, timezone: str) -> DateTime:
    """
    Normalise an ISO 8601 string or a datetime to a pendulum DateTime in ``timezone``.

    Naive values are interpreted as wall-clock time in ``timezone``.
    """
    if isinstance(value, str):
        try:
            parsed = pendulum.parse(value, tz=timezone)
        except ValueError as exc:
            raise ValidationError(f"Could not parse datetime: {value!r}") from exc
        if not isinstance(parsed, DateTime):
            raise ValidationError(f"Not a datetime: {value!r}")
        return parsed.in_timezone(timezone)

    return pendulum.instance(value, tz=timezone).in_timezone(timezone)

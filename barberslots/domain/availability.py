"""
Core business logic for appointment availability.

Pure domain logic without any external dependencies (no store, no I/O). The
engine holds no state between calls: working hours and existing appointments
are re-supplied on every call and never mutated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, Iterable, Iterator, Optional, Sequence

import pendulum
from pendulum import DateTime

from .exceptions import ValidationError
from .models import ExistingAppointment, WorkingHours, minutes_to_time, parse_datetime

logger = logging.getLogger(__name__)

SUNDAY = 6
DEFAULT_STEP_MINUTES = 30


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """
    Half-open interval intersection: ``[a_start, a_end)`` vs ``[b_start, b_end)``.

    Touching endpoints do not overlap.
    """
    return a_start < b_end and a_end > b_start


def _minute_of_day(dt: DateTime) -> int:
    return dt.hour * 60 + dt.minute


def _require_positive(name: str, value: int) -> None:
    if value <= 0:
        raise ValidationError(f"{name} must be greater than zero, got {value}")


@dataclass(frozen=True)
class ClosurePolicy:
    """
    Shop-wide closing rule and the timezone all comparisons happen in.

    closed_weekdays uses 0=Monday .. 6=Sunday.
    """
    closed_weekdays: FrozenSet[int] = field(default_factory=lambda: frozenset({SUNDAY}))
    timezone: str = "America/Sao_Paulo"

    def __post_init__(self):
        invalid = sorted(day for day in self.closed_weekdays if day not in range(7))
        if invalid:
            raise ValidationError(f"closed_weekdays must be between 0 and 6, got {invalid}")
        # Accept any iterable of ints
        object.__setattr__(self, "closed_weekdays", frozenset(self.closed_weekdays))

    def is_closed(self, dt) -> bool:
        return dt.weekday() in self.closed_weekdays


class SlotSequence:
    """
    Lazy, restartable sequence of bookable start times for one day.

    Every iteration recomputes the slots from the captured inputs, so it can
    be walked any number of times with identical results.
    """

    def __init__(
        self,
        engine: "AvailabilityEngine",
        day: DateTime,
        working_hours: Optional[WorkingHours],
        existing_appointments: Sequence[ExistingAppointment],
        service_duration_minutes: int,
        step_minutes: int,
    ):
        self._engine = engine
        self._day = day
        self._working_hours = working_hours
        self._existing = tuple(existing_appointments)
        self._duration = service_duration_minutes
        self._step = step_minutes

    def __iter__(self) -> Iterator[DateTime]:
        if self._working_hours is None or self._engine.policy.is_closed(self._day):
            return

        slot_minutes = self._working_hours.start_minutes
        while slot_minutes + self._duration <= self._working_hours.end_minutes:
            candidate = self._day.set(
                hour=slot_minutes // 60,
                minute=slot_minutes % 60,
                second=0,
                microsecond=0,
            )
            # Wall-clock times skipped by a DST jump get shifted forward; drop them
            if _minute_of_day(candidate) != slot_minutes:
                logger.debug("Skipping nonexistent local time %s on %s",
                             minutes_to_time(slot_minutes), self._day.to_date_string())
            elif self._engine.is_slot_available(
                candidate, self._duration, self._existing, self._working_hours
            ):
                yield candidate
            slot_minutes += self._step

    def __repr__(self) -> str:
        return (
            f"SlotSequence(day={self._day.to_date_string()}, "
            f"working_hours={self._working_hours}, duration={self._duration}, step={self._step})"
        )


class AvailabilityEngine:
    """
    Decides which start times a professional can take on a given day.

    Algorithm for a single candidate:
    1. Reject if the professional is off (no working hours) or the shop is closed
    2. Reject if the candidate does not fit inside the working-hours window
    3. Reject if it overlaps any appointment on the same calendar date
    """

    def __init__(self, policy: Optional[ClosurePolicy] = None):
        self.policy = policy or ClosurePolicy()

    def _localize(self, value) -> DateTime:
        return parse_datetime(value, self.policy.timezone)

    def is_slot_available(
        self,
        candidate_start,
        duration_minutes: int,
        existing_appointments: Iterable[ExistingAppointment],
        working_hours: Optional[WorkingHours],
    ) -> bool:
        """
        Check whether ``[candidate_start, candidate_start + duration)`` is free.

        Args:
            candidate_start: Proposed start (datetime or ISO 8601 string)
            duration_minutes: Length of the service in minutes
            existing_appointments: The professional's current bookings
            working_hours: The professional's window for that day, None for a day off

        Returns:
            True if the slot is bookable, False otherwise

        Raises:
            ValidationError: If duration_minutes is not positive
        """
        _require_positive("duration_minutes", duration_minutes)

        if working_hours is None:
            return False

        candidate = self._localize(candidate_start)
        if self.policy.is_closed(candidate):
            return False

        start = _minute_of_day(candidate)
        end = start + duration_minutes
        if start < working_hours.start_minutes or end > working_hours.end_minutes:
            return False

        candidate_date = candidate.date()
        for appointment in existing_appointments:
            appt_start_dt = self._localize(appointment.start)
            if appt_start_dt.date() != candidate_date:
                continue

            appt_start = _minute_of_day(appt_start_dt)
            appt_end = appt_start + appointment.duration_minutes
            if intervals_overlap(start, end, appt_start, appt_end):
                logger.debug(
                    "Candidate %s overlaps appointment at %s (%s min)",
                    candidate.to_datetime_string(),
                    appt_start_dt.to_datetime_string(),
                    appointment.duration_minutes,
                )
                return False

        return True

    def generate_slots(
        self,
        day,
        working_hours: Optional[WorkingHours],
        existing_appointments: Iterable[ExistingAppointment],
        service_duration_minutes: int,
        step_minutes: int = DEFAULT_STEP_MINUTES,
    ) -> SlotSequence:
        """
        Produce the bookable start times of ``day`` in increasing order.

        Input is validated immediately; the slots themselves are computed lazily
        each time the returned sequence is iterated.

        Raises:
            ValidationError: If the duration or the step is not positive
        """
        _require_positive("service_duration_minutes", service_duration_minutes)
        _require_positive("step_minutes", step_minutes)

        # Plain dates are taken as is; datetimes are read in the policy timezone
        if isinstance(day, (str, datetime)):
            day = self._localize(day)

        day_start = pendulum.datetime(
            day.year, day.month, day.day, tz=self.policy.timezone
        )

        return SlotSequence(
            engine=self,
            day=day_start,
            working_hours=working_hours,
            existing_appointments=list(existing_appointments),
            service_duration_minutes=service_duration_minutes,
            step_minutes=step_minutes,
        )

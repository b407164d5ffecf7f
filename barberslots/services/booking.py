"""
Application service for listing free slots and booking appointments.

The service loads working hours, services and existing appointments from a
``DataStore`` and delegates every availability decision to the domain-level
``AvailabilityEngine``. This keeps the CLI thin and improves testability by
allowing the store to be swapped for the in-memory implementation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date as date_type
from typing import Callable, Dict, List, Optional, TypeVar

from pendulum import Date, DateTime

from ..adapters.records import (
    appointment_from_row,
    appointment_to_row,
    appointments_from_rows,
    client_from_row,
    employee_from_row,
    service_from_row,
)
from ..adapters.store import DataStore
from ..domain.availability import DEFAULT_STEP_MINUTES, AvailabilityEngine
from ..domain.exceptions import BookingConflictError, RecordNotFoundError, ValidationError
from ..domain.models import (
    Appointment,
    AppointmentStatus,
    Client,
    Employee,
    ExistingAppointment,
    PaymentStatus,
    Service,
    format_datetime,
    parse_datetime,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class AgendaEntry:
    """One line of a day's agenda, with names resolved."""
    appointment: Appointment
    client_name: str
    employee_name: str
    service_name: str

    def matches(self, search: str) -> bool:
        needle = search.lower()
        return any(
            needle in name.lower()
            for name in (self.client_name, self.employee_name, self.service_name)
        )


class BookingService:
    """
    Orchestrates store access and availability checks for bookings.

    Every write re-checks availability against a fresh read of the store.
    Two callers racing on the same slot can still both pass that check; the
    backend has to reject the second insert if that matters.
    """

    def __init__(
        self,
        store: DataStore,
        engine: AvailabilityEngine,
        step_minutes: int = DEFAULT_STEP_MINUTES,
    ) -> None:
        if step_minutes <= 0:
            raise ValidationError(f"step_minutes must be greater than zero, got {step_minutes}")
        self._store = store
        self._engine = engine
        self._step_minutes = step_minutes

    @property
    def timezone(self) -> str:
        return self._engine.policy.timezone

    def _to_date(self, day) -> Date:
        if isinstance(day, DateTime):
            return day.in_timezone(self.timezone).date()
        if isinstance(day, date_type) and not hasattr(day, "hour"):
            return Date(day.year, day.month, day.day)
        return parse_datetime(day, self.timezone).date()

    def _get(self, table: str, record_id: str, convert: Callable[[dict], T]) -> T:
        rows = self._store.query(table, id=record_id)
        if not rows:
            raise RecordNotFoundError(f"No record {record_id} in {table}")
        return convert(rows[0])

    def get_client(self, client_id: str) -> Client:
        return self._get("clients", client_id, client_from_row)

    def get_employee(self, employee_id: str) -> Employee:
        return self._get("employees", employee_id, employee_from_row)

    def get_service(self, service_id: str) -> Service:
        return self._get("services", service_id, service_from_row)

    def get_appointment(self, appointment_id: str) -> Appointment:
        return self._get(
            "appointments",
            appointment_id,
            lambda row: appointment_from_row(row, self.timezone),
        )

    def list_clients(self) -> List[Client]:
        return [client_from_row(row) for row in self._store.query("clients")]

    def list_employees(self) -> List[Employee]:
        return [employee_from_row(row) for row in self._store.query("employees")]

    def list_services(self) -> List[Service]:
        return [service_from_row(row) for row in self._store.query("services")]

    def list_appointments(self, **filters) -> List[Appointment]:
        return appointments_from_rows(self._store.query("appointments", **filters), self.timezone)

    def _services_by_id(self) -> Dict[str, Service]:
        return {service.id: service for service in self.list_services()}

    def busy_intervals(
        self,
        employee_id: str,
        day,
        ignore_appointment_id: Optional[str] = None,
    ) -> List[ExistingAppointment]:
        """
        Snapshot the appointments that block ``employee_id`` on ``day``.

        Cancelled and no-show appointments are left out. Unlike the listings,
        a malformed appointment row is an error here, never skipped.

        Raises:
            ValidationError: If one of the employee's appointment rows is malformed
            RecordNotFoundError: If an appointment references an unknown service
        """
        target = self._to_date(day)
        services = self._services_by_id()
        busy: List[ExistingAppointment] = []

        for row in self._store.query("appointments", employee_id=employee_id):
            appointment = appointment_from_row(row, self.timezone)
            if appointment.id == ignore_appointment_id or not appointment.blocks_schedule:
                continue
            if appointment.start.date() != target:
                continue

            service = services.get(appointment.service_id)
            if service is None:
                raise RecordNotFoundError(
                    f"Appointment {appointment.id} references unknown service {appointment.service_id}"
                )
            busy.append(appointment.to_existing(service.duration))

        return busy

    def available_slots(self, employee_id: str, service_id: str, day) -> List[DateTime]:
        """List the bookable start times of ``employee_id`` for a service on ``day``."""
        target = self._to_date(day)
        employee = self.get_employee(employee_id)
        service = self.get_service(service_id)

        slots = self._engine.generate_slots(
            target,
            employee.hours_for(target),
            self.busy_intervals(employee_id, target),
            service.duration,
            self._step_minutes,
        )
        return list(slots)

    def is_available(
        self,
        employee_id: str,
        service_id: str,
        start,
        ignore_appointment_id: Optional[str] = None,
    ) -> bool:
        start_dt = parse_datetime(start, self.timezone)
        employee = self.get_employee(employee_id)
        service = self.get_service(service_id)

        return self._engine.is_slot_available(
            start_dt,
            service.duration,
            self.busy_intervals(employee_id, start_dt, ignore_appointment_id),
            employee.hours_for(start_dt.date()),
        )

    def book(
        self,
        client_id: str,
        employee_id: str,
        service_id: str,
        start,
        notes: Optional[str] = None,
    ) -> Appointment:
        """
        Create a scheduled appointment.

        Raises:
            RecordNotFoundError: If the client, employee or service is unknown
            BookingConflictError: If the slot is not available
        """
        start_dt = parse_datetime(start, self.timezone)
        self.get_client(client_id)

        if not self.is_available(employee_id, service_id, start_dt):
            raise BookingConflictError(
                f"{format_datetime(start_dt)} is not available for employee {employee_id}"
            )

        appointment = Appointment(
            id="",
            client_id=client_id,
            employee_id=employee_id,
            service_id=service_id,
            start=start_dt,
            notes=notes,
        )
        appointment.id = self._store.insert("appointments", appointment_to_row(appointment))
        logger.info(
            "Booked appointment %s for client %s with employee %s at %s",
            appointment.id,
            client_id,
            employee_id,
            start_dt.to_iso8601_string(),
        )
        return appointment

    def reschedule(self, appointment_id: str, new_start) -> Appointment:
        """
        Move an appointment to ``new_start``; its current slot does not count as busy.

        Raises:
            BookingConflictError: If the new slot is not available
        """
        appointment = self.get_appointment(appointment_id)
        new_start_dt = parse_datetime(new_start, self.timezone)

        if not self.is_available(
            appointment.employee_id,
            appointment.service_id,
            new_start_dt,
            ignore_appointment_id=appointment_id,
        ):
            raise BookingConflictError(
                f"{format_datetime(new_start_dt)} is not available for employee "
                f"{appointment.employee_id}"
            )

        self._store.update("appointments", appointment_id, {"start": new_start_dt.to_iso8601_string()})
        logger.info("Rescheduled appointment %s to %s", appointment_id, new_start_dt.to_iso8601_string())
        appointment.start = new_start_dt
        return appointment

    def set_status(
        self,
        appointment_id: str,
        status: AppointmentStatus,
        payment_status: Optional[PaymentStatus] = None,
    ) -> None:
        patch = {"status": AppointmentStatus(status).value}
        if payment_status is not None:
            patch["payment_status"] = PaymentStatus(payment_status).value
        self._store.update("appointments", appointment_id, patch)
        logger.info("Appointment %s is now %s", appointment_id, patch["status"])

    def cancel(self, appointment_id: str) -> None:
        self.set_status(appointment_id, AppointmentStatus.CANCELLED)

    def appointments_for_day(self, day, search: Optional[str] = None) -> List[AgendaEntry]:
        """
        The day's agenda sorted by start time, optionally filtered by a
        case-insensitive search over client, employee and service names.
        """
        target = self._to_date(day)
        clients = {client.id: client.name for client in self.list_clients()}
        employees = {employee.id: employee.name for employee in self.list_employees()}
        services = {service.id: service.name for service in self.list_services()}

        entries = [
            AgendaEntry(
                appointment=appointment,
                client_name=clients.get(appointment.client_id, ""),
                employee_name=employees.get(appointment.employee_id, ""),
                service_name=services.get(appointment.service_id, ""),
            )
            for appointment in self.list_appointments()
            if appointment.start.date() == target
        ]

        if search:
            entries = [entry for entry in entries if entry.matches(search)]

        return sorted(entries, key=lambda entry: entry.appointment.start)

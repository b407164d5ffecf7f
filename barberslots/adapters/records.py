"""
Conversion between store rows and domain models.

Row format (snake_case, JSON compatible):
{
    "employees": [{"id": "1", "name": "...", "role": "barber",
                   "working_hours": {"monday": {"start": "09:00", "end": "18:00"},
                                     "sunday": null}}],
    "appointments": [{"id": "a1", "client_id": "1", "employee_id": "1",
                      "service_id": "2", "start": "2024-11-25T09:00:00-03:00",
                      "status": "scheduled", "payment_status": "pending"}]
}
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

import pendulum
from pendulum import Date

from ..domain.exceptions import ValidationError
from ..domain.models import (
    Appointment,
    AppointmentStatus,
    Client,
    Employee,
    EmployeeRole,
    PaymentStatus,
    Promotion,
    Service,
    WorkingHours,
    parse_datetime,
)

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


def _parse_date(value: Optional[str]) -> Optional[Date]:
    if not value:
        return None
    try:
        return pendulum.parse(value).date()
    except ValueError as exc:
        raise ValidationError(f"Could not parse date: {value!r}") from exc


def _require(row: Record, key: str) -> Any:
    try:
        return row[key]
    except KeyError as exc:
        raise ValidationError(f"Missing field {key!r} in row {row.get('id', '?')}") from exc


def client_from_row(row: Record) -> Client:
    return Client(
        id=str(_require(row, "id")),
        name=_require(row, "name"),
        phone=row.get("phone", ""),
        email=row.get("email", ""),
        last_visit=_parse_date(row.get("last_visit")),
        preferred_barber=row.get("preferred_barber"),
        notes=row.get("notes"),
    )


def client_to_row(client: Client) -> Record:
    row: Record = {
        "name": client.name,
        "phone": client.phone,
        "email": client.email,
        "last_visit": client.last_visit.isoformat() if client.last_visit else None,
        "preferred_barber": client.preferred_barber,
        "notes": client.notes,
    }
    if client.id:
        row["id"] = client.id
    return row


def working_hours_from_row(value: Optional[Record]) -> Optional[WorkingHours]:
    if value is None:
        return None
    return WorkingHours.from_strings(_require(value, "start"), _require(value, "end"))


def employee_from_row(row: Record) -> Employee:
    raw_hours = row.get("working_hours") or {}
    return Employee(
        id=str(_require(row, "id")),
        name=_require(row, "name"),
        phone=row.get("phone", ""),
        email=row.get("email", ""),
        role=row.get("role", EmployeeRole.BARBER.value),
        specialties=list(row.get("specialties") or []),
        working_hours={day: working_hours_from_row(hours) for day, hours in raw_hours.items()},
    )


def employee_to_row(employee: Employee) -> Record:
    row: Record = {
        "name": employee.name,
        "phone": employee.phone,
        "email": employee.email,
        "role": employee.role.value,
        "specialties": list(employee.specialties),
        "working_hours": {
            day: hours.to_dict() if hours else None
            for day, hours in employee.working_hours.items()
        },
    }
    if employee.id:
        row["id"] = employee.id
    return row


def service_from_row(row: Record) -> Service:
    promo_row = row.get("promotional")
    promotional = None
    if promo_row:
        promotional = Promotion(
            is_active=bool(promo_row.get("is_active", False)),
            discounted_price=float(_require(promo_row, "discounted_price")),
            valid_until=_parse_date(promo_row.get("valid_until")),
        )

    return Service(
        id=str(_require(row, "id")),
        name=_require(row, "name"),
        description=row.get("description", ""),
        duration=int(_require(row, "duration")),
        price=float(_require(row, "price")),
        promotional=promotional,
    )


def service_to_row(service: Service) -> Record:
    promo = service.promotional
    row: Record = {
        "name": service.name,
        "description": service.description,
        "duration": service.duration,
        "price": service.price,
        "promotional": None if promo is None else {
            "is_active": promo.is_active,
            "discounted_price": promo.discounted_price,
            "valid_until": promo.valid_until.isoformat() if promo.valid_until else None,
        },
    }
    if service.id:
        row["id"] = service.id
    return row


def appointment_from_row(row: Record, timezone: str) -> Appointment:
    try:
        status = AppointmentStatus(row.get("status", AppointmentStatus.SCHEDULED.value))
        payment_status = PaymentStatus(row.get("payment_status", PaymentStatus.PENDING.value))
    except ValueError as exc:
        raise ValidationError(f"Invalid status in appointment {row.get('id', '?')}: {exc}") from exc

    return Appointment(
        id=str(_require(row, "id")),
        client_id=str(_require(row, "client_id")),
        employee_id=str(_require(row, "employee_id")),
        service_id=str(_require(row, "service_id")),
        start=parse_datetime(_require(row, "start"), timezone),
        status=status,
        notes=row.get("notes"),
        payment_status=payment_status,
    )


def appointment_to_row(appointment: Appointment) -> Record:
    row: Record = {
        "client_id": appointment.client_id,
        "employee_id": appointment.employee_id,
        "service_id": appointment.service_id,
        "start": appointment.start.to_iso8601_string(),
        "status": appointment.status.value,
        "notes": appointment.notes,
        "payment_status": appointment.payment_status.value,
    }
    if appointment.id:
        row["id"] = appointment.id
    return row


def appointments_from_rows(rows: Iterable[Record], timezone: str) -> List[Appointment]:
    """
    Convert appointment rows, skipping (and logging) rows that cannot be parsed.
    """
    appointments: List[Appointment] = []
    for row in rows:
        try:
            appointments.append(appointment_from_row(row, timezone))
        except ValidationError as e:
            logger.warning("Skipping appointment row %s: %s", row.get("id", "?"), e)
            continue
    return appointments

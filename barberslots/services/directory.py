"""
Search and maintenance of the shop's clients, employees and services.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar

from ..adapters.records import (
    client_from_row,
    client_to_row,
    employee_from_row,
    employee_to_row,
    service_from_row,
    service_to_row,
)
from ..adapters.store import DataStore
from ..domain.exceptions import RecordInUseError, RecordNotFoundError, ValidationError
from ..domain.models import Client, Employee, EmployeeRole, Service, WorkingHours

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Column that links an appointment to each managed table
_APPOINTMENT_LINKS = {
    "clients": "client_id",
    "employees": "employee_id",
    "services": "service_id",
}


def _require_name(name: str) -> str:
    if not name or not name.strip():
        raise ValidationError("name must not be empty")
    return name.strip()


class DirectoryService:
    """
    CRUD and search over the clients, employees and services tables.

    Records still referenced by an appointment cannot be deleted.
    """

    def __init__(self, store: DataStore) -> None:
        self._store = store

    def _get(self, table: str, record_id: str, convert: Callable[[dict], T]) -> T:
        rows = self._store.query(table, id=record_id)
        if not rows:
            raise RecordNotFoundError(f"No record {record_id} in {table}")
        return convert(rows[0])

    def _search(self, table: str, convert: Callable[[dict], T], search: Optional[str]) -> List[T]:
        records = [convert(row) for row in self._store.query(table)]
        if search:
            records = [record for record in records if record.matches(search)]
        return sorted(records, key=lambda record: record.name.lower())

    def _create(self, table: str, record: T, to_row: Callable[[T], dict]) -> T:
        record.id = self._store.insert(table, to_row(record))
        logger.info("Created %s record %s (%s)", table, record.id, record.name)
        return record

    def _update(
        self,
        table: str,
        record_id: str,
        changes: Dict[str, Any],
        convert: Callable[[dict], T],
        to_row: Callable[[T], dict],
    ) -> T:
        if "id" in changes:
            raise ValidationError("id cannot be changed")
        if "name" in changes:
            changes["name"] = _require_name(changes["name"])

        current = self._get(table, record_id, convert)
        try:
            updated = dataclasses.replace(current, **changes)
        except TypeError as exc:
            raise ValidationError(f"Invalid field for {table}: {exc}") from exc

        patch = to_row(updated)
        patch.pop("id", None)
        self._store.update(table, record_id, patch)
        logger.info("Updated %s record %s: %s", table, record_id, sorted(changes))
        return updated

    def _delete(self, table: str, record_id: str) -> None:
        link = _APPOINTMENT_LINKS[table]
        if self._store.query("appointments", **{link: record_id}):
            raise RecordInUseError(
                f"{table} record {record_id} is referenced by existing appointments"
            )
        self._store.delete(table, record_id)
        logger.info("Deleted %s record %s", table, record_id)

    # Clients

    def get_client(self, client_id: str) -> Client:
        return self._get("clients", client_id, client_from_row)

    def search_clients(self, search: Optional[str] = None) -> List[Client]:
        """Clients sorted by name, filtered by name, e-mail or phone."""
        return self._search("clients", client_from_row, search)

    def create_client(
        self,
        name: str,
        phone: str = "",
        email: str = "",
        notes: Optional[str] = None,
        preferred_barber: Optional[str] = None,
    ) -> Client:
        client = Client(
            id="",
            name=_require_name(name),
            phone=phone,
            email=email,
            notes=notes,
            preferred_barber=preferred_barber,
        )
        return self._create("clients", client, client_to_row)

    def update_client(self, client_id: str, **changes: Any) -> Client:
        return self._update("clients", client_id, changes, client_from_row, client_to_row)

    def delete_client(self, client_id: str) -> None:
        self._delete("clients", client_id)

    # Employees

    def get_employee(self, employee_id: str) -> Employee:
        return self._get("employees", employee_id, employee_from_row)

    def search_employees(self, search: Optional[str] = None) -> List[Employee]:
        """Employees sorted by name, filtered by name, e-mail or phone."""
        return self._search("employees", employee_from_row, search)

    def create_employee(
        self,
        name: str,
        phone: str = "",
        email: str = "",
        role: EmployeeRole = EmployeeRole.BARBER,
        specialties: Optional[List[str]] = None,
        working_hours: Optional[Dict[str, Optional[WorkingHours]]] = None,
    ) -> Employee:
        employee = Employee(
            id="",
            name=_require_name(name),
            phone=phone,
            email=email,
            role=role,
            specialties=list(specialties or []),
            working_hours=dict(working_hours or {}),
        )
        return self._create("employees", employee, employee_to_row)

    def update_employee(self, employee_id: str, **changes: Any) -> Employee:
        return self._update("employees", employee_id, changes, employee_from_row, employee_to_row)

    def delete_employee(self, employee_id: str) -> None:
        self._delete("employees", employee_id)

    # Services

    def get_service(self, service_id: str) -> Service:
        return self._get("services", service_id, service_from_row)

    def search_services(self, search: Optional[str] = None) -> List[Service]:
        """Services sorted by name, filtered by name or description."""
        return self._search("services", service_from_row, search)

    def create_service(
        self,
        name: str,
        duration: int,
        price: float,
        description: str = "",
    ) -> Service:
        if price < 0:
            raise ValidationError(f"price must not be negative, got {price}")
        service = Service(
            id="",
            name=_require_name(name),
            description=description,
            duration=duration,
            price=price,
        )
        return self._create("services", service, service_to_row)

    def update_service(self, service_id: str, **changes: Any) -> Service:
        if changes.get("price") is not None and changes["price"] < 0:
            raise ValidationError(f"price must not be negative, got {changes['price']}")
        return self._update("services", service_id, changes, service_from_row, service_to_row)

    def delete_service(self, service_id: str) -> None:
        self._delete("services", service_id)

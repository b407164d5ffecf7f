"""
Aggregations for the period report and the dashboard.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from pendulum import Date

from ..domain.models import (
    Appointment,
    AppointmentStatus,
    Client,
    Employee,
    Service,
    TimeRange,
)


@dataclass
class PerformanceLine:
    name: str
    count: int = 0
    revenue: float = 0.0


@dataclass
class PeriodReport:
    period: TimeRange
    total_appointments: int
    completed_appointments: int
    total_revenue: float
    service_performance: List[PerformanceLine] = field(default_factory=list)
    employee_performance: List[PerformanceLine] = field(default_factory=list)

    @property
    def completion_rate(self) -> float:
        if not self.total_appointments:
            return 0.0
        return self.completed_appointments / self.total_appointments


@dataclass
class DashboardStats:
    today_appointments: int
    completed_today: int
    total_clients: int
    daily_revenue: float
    services_offered: int


def _revenue(appointments: Iterable[Appointment], services: Dict[str, Service]) -> float:
    """Sum effective prices; appointments of unknown services add nothing."""
    total = 0.0
    for appointment in appointments:
        service = services.get(appointment.service_id)
        if service:
            total += service.effective_price(on=appointment.start.date())
    return total


def _completed(appointments: Iterable[Appointment]) -> List[Appointment]:
    return [a for a in appointments if a.status == AppointmentStatus.COMPLETED]


def period_report(
    appointments: Iterable[Appointment],
    services: Iterable[Service],
    employees: Iterable[Employee],
    period: TimeRange,
) -> PeriodReport:
    """
    Aggregate the appointments starting inside ``period``.

    Revenue only counts completed appointments. Service lines cover every
    service, employee lines only barbers; both are sorted by count, highest first.
    """
    service_map = {service.id: service for service in services}
    in_period = [a for a in appointments if period.contains(a.start)]
    completed = _completed(in_period)

    service_lines = []
    for service in service_map.values():
        done = [a for a in completed if a.service_id == service.id]
        service_lines.append(
            PerformanceLine(name=service.name, count=len(done), revenue=_revenue(done, service_map))
        )

    employee_lines = []
    for employee in employees:
        if not employee.is_barber:
            continue
        done = [a for a in completed if a.employee_id == employee.id]
        employee_lines.append(
            PerformanceLine(name=employee.name, count=len(done), revenue=_revenue(done, service_map))
        )

    return PeriodReport(
        period=period,
        total_appointments=len(in_period),
        completed_appointments=len(completed),
        total_revenue=_revenue(completed, service_map),
        service_performance=sorted(service_lines, key=lambda line: line.count, reverse=True),
        employee_performance=sorted(employee_lines, key=lambda line: line.count, reverse=True),
    )


def dashboard_stats(
    appointments: Iterable[Appointment],
    clients: Iterable[Client],
    services: Iterable[Service],
    today: Date,
) -> DashboardStats:
    service_map = {service.id: service for service in services}
    todays = [a for a in appointments if a.start.date() == today]
    completed = _completed(todays)

    return DashboardStats(
        today_appointments=len(todays),
        completed_today=len(completed),
        total_clients=len(list(clients)),
        daily_revenue=_revenue(completed, service_map),
        services_offered=len(service_map),
    )

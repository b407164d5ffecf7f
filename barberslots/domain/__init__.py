"""
Domain layer - Pure business logic without external dependencies.
"""

from .availability import AvailabilityEngine, ClosurePolicy, SlotSequence, intervals_overlap
from .exceptions import (
    BarberSlotsError,
    BookingConflictError,
    RecordNotFoundError,
    StoreError,
    ValidationError,
)
from .models import (
    Appointment,
    AppointmentStatus,
    Client,
    Employee,
    EmployeeRole,
    ExistingAppointment,
    PaymentStatus,
    Promotion,
    Service,
    TimeRange,
    WorkingHours,
)

__all__ = [
    "AvailabilityEngine",
    "ClosurePolicy",
    "SlotSequence",
    "intervals_overlap",
    "BarberSlotsError",
    "BookingConflictError",
    "RecordNotFoundError",
    "StoreError",
    "ValidationError",
    "Appointment",
    "AppointmentStatus",
    "Client",
    "Employee",
    "EmployeeRole",
    "ExistingAppointment",
    "PaymentStatus",
    "Promotion",
    "Service",
    "TimeRange",
    "WorkingHours",
]

"""
Domain-specific exception hierarchy for barberslots.
"""


class BarberSlotsError(Exception):
    """Base class for all application-level errors."""


class ValidationError(BarberSlotsError, ValueError):
    """Raised for malformed input such as a non-positive duration."""


class StoreError(BarberSlotsError):
    """Raised when the data store cannot be reached or rejects a request."""


class RecordNotFoundError(StoreError):
    """Raised when a record id does not exist in the requested table."""


class BookingConflictError(BarberSlotsError):
    """Raised when a requested start time is not bookable."""


class RecordInUseError(BarberSlotsError):
    """Raised when deleting a record that appointments still reference."""

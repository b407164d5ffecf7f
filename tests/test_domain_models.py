"""
Tests for domain models.
"""

import pendulum
import pytest

from barberslots.domain.exceptions import ValidationError
from barberslots.domain.models import (
    Appointment,
    AppointmentStatus,
    Employee,
    EmployeeRole,
    ExistingAppointment,
    Promotion,
    Service,
    TimeRange,
    WorkingHours,
    format_datetime,
    minutes_to_time,
    time_to_minutes,
)

TZ = "America/Sao_Paulo"


class TestTimeRange:
    """Tests for TimeRange model."""

    def test_invalid_time_range_raises_error(self):
        """Test that creating an invalid time range raises ValidationError."""
        start = pendulum.parse("2024-11-25 17:00", tz=TZ)
        end = pendulum.parse("2024-11-25 09:00", tz=TZ)

        with pytest.raises(ValidationError, match="Start time .* must be before end time"):
            TimeRange(start=start, end=end)

    def test_contains_is_half_open(self):
        tr = TimeRange(
            start=pendulum.parse("2024-11-25 00:00", tz=TZ),
            end=pendulum.parse("2024-11-26 00:00", tz=TZ)
        )

        assert tr.contains(pendulum.parse("2024-11-25 00:00", tz=TZ))
        assert tr.contains(pendulum.parse("2024-11-25 23:59", tz=TZ))
        assert not tr.contains(pendulum.parse("2024-11-26 00:00", tz=TZ))


class TestWorkingHours:
    """Tests for WorkingHours model."""

    def test_from_strings(self):
        hours = WorkingHours.from_strings("09:30", "18:00")

        assert hours.start_minutes == 570
        assert hours.end_minutes == 1080
        assert str(hours) == "09:30 - 18:00"
        assert hours.to_dict() == {"start": "09:30", "end": "18:00"}

    @pytest.mark.parametrize("start, end", [("18:00", "09:00"), ("10:00", "10:00")])
    def test_inverted_window_raises(self, start, end):
        with pytest.raises(ValidationError, match="must be before end"):
            WorkingHours.from_strings(start, end)

    def test_end_of_day_is_allowed(self):
        assert WorkingHours.from_strings("20:00", "24:00").end_minutes == 1440

    @pytest.mark.parametrize("value", ["9h", "25:00", "10:60", "", "ab:cd"])
    def test_time_to_minutes_rejects_garbage(self, value):
        with pytest.raises(ValidationError):
            time_to_minutes(value)

    def test_minutes_to_time(self):
        assert minutes_to_time(545) == "09:05"


class TestEmployee:
    """Tests for Employee model."""

    def test_hours_for_weekday(self):
        employee = Employee(
            id="1",
            name="André Barbosa",
            phone="",
            email="",
            working_hours={
                "monday": WorkingHours.from_strings("09:00", "18:00"),
                "sunday": None,
            },
        )

        assert str(employee.hours_for(pendulum.date(2024, 11, 25))) == "09:00 - 18:00"
        assert employee.hours_for(pendulum.date(2024, 11, 24)) is None
        # Not listed at all
        assert employee.hours_for(pendulum.date(2024, 11, 26)) is None

    def test_is_barber(self):
        admin = Employee(id="3", name="Marcelo", phone="", email="", role=EmployeeRole.ADMIN)
        assert not admin.is_barber

    def test_role_string_is_coerced(self):
        employee = Employee(id="3", name="Marcelo", phone="", email="", role="admin")
        assert employee.role is EmployeeRole.ADMIN

    def test_unknown_role_raises(self):
        with pytest.raises(ValidationError, match="Unknown employee role"):
            Employee(id="3", name="Marcelo", phone="", email="", role="manager")

    def test_matches_name_email_and_phone(self):
        employee = Employee(
            id="2", name="Rafael Gomes", phone="(11) 96666-5555", email="rafael.gomes@barbearia.com"
        )

        assert employee.matches("GOMES")
        assert employee.matches("barbearia.com")
        assert employee.matches("96666")
        assert not employee.matches("andré")


class TestService:
    """Tests for Service pricing."""

    def test_price_without_promotion(self):
        service = Service(id="2", name="Barba", description="", duration=30, price=35)
        assert service.effective_price() == 35

    def test_active_promotion(self):
        service = Service(
            id="1", name="Corte", description="", duration=30, price=45,
            promotional=Promotion(is_active=True, discounted_price=35),
        )
        assert service.effective_price(pendulum.date(2024, 11, 25)) == 35

    def test_inactive_promotion(self):
        service = Service(
            id="1", name="Corte", description="", duration=30, price=45,
            promotional=Promotion(is_active=False, discounted_price=35),
        )
        assert service.effective_price() == 45

    def test_expired_promotion(self):
        service = Service(
            id="1", name="Corte", description="", duration=30, price=45,
            promotional=Promotion(
                is_active=True, discounted_price=35, valid_until=pendulum.date(2024, 1, 31)
            ),
        )

        assert service.effective_price(pendulum.date(2024, 1, 31)) == 35
        assert service.effective_price(pendulum.date(2024, 2, 1)) == 45

    def test_non_positive_duration_raises(self):
        with pytest.raises(ValidationError):
            Service(id="9", name="Nada", description="", duration=0, price=10)


class TestAppointment:
    """Tests for Appointment and ExistingAppointment."""

    def _appointment(self, status):
        return Appointment(
            id="a1",
            client_id="1",
            employee_id="1",
            service_id="1",
            start=pendulum.datetime(2024, 11, 25, 9, 0, tz=TZ),
            status=status,
        )

    @pytest.mark.parametrize(
        "status, blocks",
        [
            (AppointmentStatus.SCHEDULED, True),
            (AppointmentStatus.COMPLETED, True),
            (AppointmentStatus.CANCELLED, False),
            (AppointmentStatus.NO_SHOW, False),
        ],
    )
    def test_blocks_schedule(self, status, blocks):
        assert self._appointment(status).blocks_schedule is blocks

    def test_to_existing(self):
        existing = self._appointment(AppointmentStatus.SCHEDULED).to_existing(45)

        assert existing.duration_minutes == 45
        assert existing.start == pendulum.datetime(2024, 11, 25, 9, 0, tz=TZ)

    def test_existing_appointment_requires_positive_duration(self):
        with pytest.raises(ValidationError):
            ExistingAppointment(start=pendulum.datetime(2024, 11, 25, 9, tz=TZ), duration_minutes=0)

    def test_format_display(self):
        appointment = self._appointment(AppointmentStatus.SCHEDULED)
        assert appointment.format_display() == "Segunda-feira, 25/11/2024 às 09:00"
        assert format_datetime(pendulum.datetime(2024, 11, 30, 14, 30, tz=TZ)) == "Sábado, 30/11/2024 às 14:30"

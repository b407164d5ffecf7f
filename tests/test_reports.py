"""
Tests for report aggregation.
"""

import pendulum
import pytest

from barberslots.adapters.store import InMemoryStore
from barberslots.domain.availability import AvailabilityEngine, ClosurePolicy
from barberslots.domain.models import Appointment, AppointmentStatus, Promotion, Service, TimeRange
from barberslots.services.booking import BookingService
from barberslots.services.reports import dashboard_stats, period_report

TZ = "America/Sao_Paulo"


@pytest.fixture
def booking() -> BookingService:
    engine = AvailabilityEngine(policy=ClosurePolicy(timezone=TZ))
    return BookingService(store=InMemoryStore.with_sample_data(), engine=engine)


def week_of_25th() -> TimeRange:
    return TimeRange(
        start=pendulum.datetime(2024, 11, 25, tz=TZ),
        end=pendulum.datetime(2024, 12, 2, tz=TZ),
    )


class TestPeriodReport:
    """Tests for period_report."""

    def test_sample_week(self, booking):
        report = period_report(
            booking.list_appointments(),
            booking.list_services(),
            booking.list_employees(),
            week_of_25th(),
        )

        assert report.total_appointments == 7
        assert report.completed_appointments == 2
        # 35 (promotional Corte Degradê) + 65 (promotional Corte + Barba)
        assert report.total_revenue == pytest.approx(100)
        assert report.completion_rate == pytest.approx(2 / 7)

    def test_service_lines_cover_every_service(self, booking):
        report = period_report(
            booking.list_appointments(),
            booking.list_services(),
            booking.list_employees(),
            week_of_25th(),
        )

        names = [line.name for line in report.service_performance]
        assert names[:2] == ["Corte Degradê", "Corte + Barba"]
        assert len(names) == 5
        assert [line.count for line in report.service_performance] == [1, 1, 0, 0, 0]

    def test_employee_lines_only_cover_barbers(self, booking):
        report = period_report(
            booking.list_appointments(),
            booking.list_services(),
            booking.list_employees(),
            week_of_25th(),
        )

        lines = report.employee_performance
        assert [line.name for line in lines] == ["André Barbosa", "Rafael Gomes"]
        assert lines[0].count == 2
        assert lines[0].revenue == pytest.approx(100)
        assert lines[1].count == 0

    def test_period_end_is_exclusive(self, booking):
        period = TimeRange(
            start=pendulum.datetime(2024, 11, 24, tz=TZ),
            end=pendulum.datetime(2024, 11, 25, 9, 0, tz=TZ),
        )

        report = period_report(booking.list_appointments(), [], [], period)

        assert report.total_appointments == 0
        assert report.completion_rate == 0.0

    def test_expired_promotion_charges_full_price(self):
        service = Service(
            id="1", name="Corte", description="", duration=30, price=45,
            promotional=Promotion(is_active=True, discounted_price=35, valid_until=pendulum.date(2024, 10, 31)),
        )
        done = Appointment(
            id="x", client_id="1", employee_id="1", service_id="1",
            start=pendulum.datetime(2024, 11, 25, 9, tz=TZ), status=AppointmentStatus.COMPLETED,
        )

        report = period_report([done], [service], [], week_of_25th())

        assert report.total_revenue == pytest.approx(45)

    def test_unknown_service_adds_no_revenue(self):
        done = Appointment(
            id="x", client_id="1", employee_id="1", service_id="gone",
            start=pendulum.datetime(2024, 11, 25, 9, tz=TZ), status=AppointmentStatus.COMPLETED,
        )

        report = period_report([done], [], [], week_of_25th())

        assert report.completed_appointments == 1
        assert report.total_revenue == 0


class TestDashboardStats:
    """Tests for dashboard_stats."""

    def test_monday(self, booking):
        stats = dashboard_stats(
            booking.list_appointments(),
            booking.list_clients(),
            booking.list_services(),
            pendulum.date(2024, 11, 25),
        )

        assert stats.today_appointments == 4
        assert stats.completed_today == 2
        assert stats.total_clients == 4
        assert stats.daily_revenue == pytest.approx(100)
        assert stats.services_offered == 5

    def test_quiet_day(self, booking):
        stats = dashboard_stats(
            booking.list_appointments(),
            booking.list_clients(),
            booking.list_services(),
            pendulum.date(2024, 11, 27),
        )

        assert stats.today_appointments == 0
        assert stats.daily_revenue == 0

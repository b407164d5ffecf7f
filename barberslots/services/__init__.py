"""
Service layer helpers that orchestrate the store and domain logic.
"""

from .booking import AgendaEntry, BookingService
from .directory import DirectoryService
from .reports import DashboardStats, PeriodReport, dashboard_stats, period_report

__all__ = [
    "AgendaEntry",
    "BookingService",
    "DashboardStats",
    "DirectoryService",
    "PeriodReport",
    "dashboard_stats",
    "period_report",
]

"""Report entry points: fetch a filtered snapshot, then aggregate it."""

from backend.app.core.concurrency import run_concurrently
from backend.app.core.exceptions import ValidationError
from backend.app.core.settings import get_settings
from backend.app.crud.base import ReportingRepository
from backend.app.schemas.filters import InvoiceFilter, ReportFilters, WorkHourFilter
from backend.app.schemas.reports import (
    HoursReport,
    InvoiceReport,
    InvoiceStats,
    ReportPeriod,
    SummaryReport,
    WorkHourStats,
)
from backend.app.services.invoice_reporting import summarize_invoice_amounts, summarize_invoices
from backend.app.services.work_hour_reporting import summarize_work_hour_stats, summarize_work_hours


def validate_filters(filters: ReportFilters) -> ReportFilters:
    if filters.start_date and filters.end_date and filters.start_date > filters.end_date:
        raise ValidationError("start_date must not be after end_date")
    return filters


def work_hour_filter(user_id: int, filters: ReportFilters) -> WorkHourFilter:
    return WorkHourFilter(
        user_id=user_id,
        client_id=filters.client_id,
        date_from=filters.start_date,
        date_to=filters.end_date,
    )


def invoice_filter(user_id: int, filters: ReportFilters) -> InvoiceFilter:
    return InvoiceFilter(
        user_id=user_id,
        client_id=filters.client_id,
        date_from=filters.start_date,
        date_to=filters.end_date,
        status=filters.status,
    )


class ReportsService:
    def __init__(self, repository: ReportingRepository, settings=None):
        self.repository = repository
        self.settings = settings or get_settings()

    def get_hours_report(self, user_id: int, filters: ReportFilters) -> HoursReport:
        validate_filters(filters)
        entries = self.repository.list_work_hours(work_hour_filter(user_id, filters))
        return summarize_work_hours(entries)

    def get_invoice_report(self, user_id: int, filters: ReportFilters) -> InvoiceReport:
        validate_filters(filters)
        invoices = self.repository.list_invoices(invoice_filter(user_id, filters))
        return summarize_invoices(invoices)

    def get_summary_report(self, user_id: int, filters: ReportFilters) -> SummaryReport:
        validate_filters(filters)
        results = run_concurrently(
            {
                "hours": lambda: self.get_hours_report(user_id, filters),
                "invoices": lambda: self.get_invoice_report(user_id, filters),
            },
            max_workers=self.settings.report_max_workers,
        )
        return SummaryReport(
            hours=results["hours"],
            invoices=results["invoices"],
            period=ReportPeriod(start_date=filters.start_date, end_date=filters.end_date),
        )

    def get_invoice_stats(self, user_id: int, filters: ReportFilters) -> InvoiceStats:
        validate_filters(filters)
        invoices = self.repository.list_invoices(invoice_filter(user_id, filters))
        return summarize_invoice_amounts(invoices)

    def get_work_hour_stats(self, user_id: int, filters: ReportFilters) -> WorkHourStats:
        validate_filters(filters)
        entries = self.repository.list_work_hours(work_hour_filter(user_id, filters))
        return summarize_work_hour_stats(entries, filters.start_date, filters.end_date)

"""Shared dependencies for the reporting and invoicing routes."""

from datetime import date

from fastapi import Query

from backend.app.crud.crud_reporting import CRUDReporting
from backend.app.db.session import SessionLocal
from backend.app.models.invoice import InvoiceStatus
from backend.app.schemas.filters import ReportFilters


def get_repository() -> CRUDReporting:
    return CRUDReporting(SessionLocal)


def get_report_filters(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    client_id: int | None = Query(default=None),
    status: InvoiceStatus | None = Query(default=None),
) -> ReportFilters:
    return ReportFilters(start_date=start_date, end_date=end_date, client_id=client_id, status=status)

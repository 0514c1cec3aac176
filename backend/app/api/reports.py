"""Reporting endpoints for logged hours and invoices."""

from fastapi import APIRouter, Depends

from backend.app.core.security import get_current_user
from backend.app.crud.base import ReportingRepository
from backend.app.dependencies.reporting import get_report_filters, get_repository
from backend.app.models.user import User
from backend.app.schemas.filters import ReportFilters
from backend.app.schemas.reports import HoursReport, InvoiceReport, SummaryReport
from backend.app.services.reports import ReportsService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/hours", response_model=HoursReport)
def get_hours_report(
    filters: ReportFilters = Depends(get_report_filters),
    repository: ReportingRepository = Depends(get_repository),
    current_user: User = Depends(get_current_user),
):
    return ReportsService(repository).get_hours_report(current_user.id, filters)


@router.get("/invoices", response_model=InvoiceReport)
def get_invoice_report(
    filters: ReportFilters = Depends(get_report_filters),
    repository: ReportingRepository = Depends(get_repository),
    current_user: User = Depends(get_current_user),
):
    return ReportsService(repository).get_invoice_report(current_user.id, filters)


@router.get("/summary", response_model=SummaryReport)
def get_summary_report(
    filters: ReportFilters = Depends(get_report_filters),
    repository: ReportingRepository = Depends(get_repository),
    current_user: User = Depends(get_current_user),
):
    return ReportsService(repository).get_summary_report(current_user.id, filters)

"""Work hour endpoints: billable selection and period stats."""

from typing import List

from fastapi import APIRouter, Depends

from backend.app.core.security import get_current_user
from backend.app.crud.base import ReportingRepository
from backend.app.dependencies.reporting import get_report_filters, get_repository
from backend.app.models.user import User
from backend.app.schemas.filters import ReportFilters
from backend.app.schemas.records import WorkHourEntry
from backend.app.schemas.reports import WorkHourStats
from backend.app.services.billing import InvoiceService
from backend.app.services.reports import ReportsService

router = APIRouter(prefix="/work-hours", tags=["work-hours"])


@router.get("/available", response_model=List[WorkHourEntry])
def list_available_work_hours(
    filters: ReportFilters = Depends(get_report_filters),
    repository: ReportingRepository = Depends(get_repository),
    current_user: User = Depends(get_current_user),
):
    return InvoiceService(repository).list_billable_work_hours(current_user.id, filters)


@router.get("/stats", response_model=WorkHourStats)
def get_work_hour_stats(
    filters: ReportFilters = Depends(get_report_filters),
    repository: ReportingRepository = Depends(get_repository),
    current_user: User = Depends(get_current_user),
):
    return ReportsService(repository).get_work_hour_stats(current_user.id, filters)

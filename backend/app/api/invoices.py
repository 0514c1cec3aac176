"""Invoice routes: creation from selected work hours, updates and amount stats."""

from fastapi import APIRouter, Depends, status

from backend.app.core.security import get_current_user
from backend.app.crud.base import ReportingRepository
from backend.app.dependencies.reporting import get_report_filters, get_repository
from backend.app.models.user import User
from backend.app.schemas.filters import ReportFilters
from backend.app.schemas.invoice import InvoiceCreate, InvoiceUpdate
from backend.app.schemas.records import InvoiceRecord
from backend.app.schemas.reports import InvoiceStats
from backend.app.services.billing import InvoiceService
from backend.app.services.reports import ReportsService

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.get("/stats", response_model=InvoiceStats)
def get_invoice_stats(
    filters: ReportFilters = Depends(get_report_filters),
    repository: ReportingRepository = Depends(get_repository),
    current_user: User = Depends(get_current_user),
):
    return ReportsService(repository).get_invoice_stats(current_user.id, filters)


@router.post("/", response_model=InvoiceRecord, status_code=status.HTTP_201_CREATED)
def create_invoice(
    invoice_in: InvoiceCreate,
    repository: ReportingRepository = Depends(get_repository),
    current_user: User = Depends(get_current_user),
):
    return InvoiceService(repository).create_invoice(current_user.id, invoice_in)


@router.patch("/{invoice_id}", response_model=InvoiceRecord)
def update_invoice(
    invoice_id: int,
    invoice_update: InvoiceUpdate,
    repository: ReportingRepository = Depends(get_repository),
    current_user: User = Depends(get_current_user),
):
    return InvoiceService(repository).update_invoice(current_user.id, invoice_id, invoice_update)

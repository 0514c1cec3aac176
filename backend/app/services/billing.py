"""Invoice composition: bill selected work hours without billing any of them twice."""

import logging
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Mapping, Optional, Sequence

from backend.app.core.exceptions import DuplicateBillingError, NotFoundError, ValidationError
from backend.app.core.settings import get_settings
from backend.app.crud.base import ReportingRepository
from backend.app.models.invoice import InvoiceStatus
from backend.app.schemas.filters import ReportFilters
from backend.app.schemas.invoice import InvoiceCreate, InvoiceUpdate, NewInvoice
from backend.app.schemas.records import InvoiceRecord, WorkHourEntry
from backend.app.services.reports import validate_filters, work_hour_filter

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELED})


def calculate_entry_amount(hours: float, rate_per_hour: float | None) -> Decimal:
    """Compute hours x rate using Decimal math; a missing rate bills nothing."""
    if rate_per_hour is None:
        return Decimal("0.00")
    return Decimal(str(hours)) * Decimal(str(rate_per_hour))


def calculate_invoice_amount(
    entries: Sequence[WorkHourEntry],
    project_rates: Mapping[int, Optional[float]],
    fallback_rate: float | None,
) -> float:
    """Sum hours x rate, preferring each entry's project rate over the fallback."""
    total = Decimal("0.00")
    for wh in entries:
        rate = project_rates.get(wh.project_id) if wh.project_id is not None else None
        if rate is None:
            rate = fallback_rate
        total += calculate_entry_amount(wh.hours, rate)
    return float(total.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _unique_ids(ids: Iterable[int]) -> List[int]:
    return list(dict.fromkeys(ids))


def _check_non_negative(value: float | None, field: str) -> None:
    if value is None:
        return
    if not math.isfinite(value) or value < 0:
        raise ValidationError(f"{field} must be a non-negative number")


class InvoiceService:
    def __init__(self, repository: ReportingRepository, settings=None):
        self.repository = repository
        self.settings = settings or get_settings()

    def create_invoice(self, user_id: int, payload: InvoiceCreate) -> InvoiceRecord:
        work_hour_ids = _unique_ids(payload.work_hour_ids)
        if not work_hour_ids:
            raise ValidationError("Select at least one work hour")
        _check_non_negative(payload.amount, "amount")
        _check_non_negative(payload.hourly_rate, "hourly_rate")

        entries = self._load_entries(user_id, work_hour_ids)
        client_id = self._resolve_client(user_id, payload.client_id, entries)
        self._ensure_not_billed(work_hour_ids)

        if payload.amount is not None:
            amount = payload.amount
        else:
            amount = self._compute_amount(user_id, entries, payload.hourly_rate)

        invoice = self.repository.create_invoice_with_links(
            NewInvoice(
                client_id=client_id,
                amount=amount,
                number=payload.number,
                description=payload.description,
                file_url=payload.file_url,
                due_date=payload.due_date,
            ),
            work_hour_ids,
        )
        logger.info(
            "Invoice %s created for client %s with %d work hours (amount %.2f)",
            invoice.id,
            client_id,
            len(work_hour_ids),
            invoice.amount,
        )
        return invoice

    def update_invoice(self, user_id: int, invoice_id: int, payload: InvoiceUpdate) -> InvoiceRecord:
        existing = self.repository.get_invoice(user_id, invoice_id)
        if existing is None:
            raise NotFoundError("Invoice not found")

        changes = {
            field: value
            for field, value in payload.model_dump(exclude_unset=True, exclude={"work_hour_ids", "hourly_rate"}).items()
            if not (field in ("status", "amount") and value is None)
        }
        new_status = changes.get("status")
        if new_status is not None and new_status != existing.status and existing.status in TERMINAL_STATUSES:
            raise ValidationError(f"Invoice is {existing.status.value} and can no longer change status")
        _check_non_negative(changes.get("amount"), "amount")
        _check_non_negative(payload.hourly_rate, "hourly_rate")

        invoice = existing
        relink_ids = self._relink_selection(existing, payload.work_hour_ids)
        if relink_ids is not None:
            entries = self._load_entries(user_id, relink_ids)
            self._resolve_client(user_id, existing.client_id, entries)
            self._ensure_not_billed(relink_ids, exclude_invoice_id=invoice_id)
            if "amount" not in changes:
                changes["amount"] = self._compute_amount(user_id, entries, payload.hourly_rate)
            invoice = self.repository.replace_invoice_links(invoice_id, relink_ids, changes)
            logger.info("Invoice %s now bills %d work hours", invoice_id, len(relink_ids))
        elif changes:
            invoice = self.repository.update_invoice(invoice_id, changes)

        if new_status == InvoiceStatus.CANCELED and existing.status != InvoiceStatus.CANCELED:
            logger.info(
                "Invoice %s canceled - %d work hours are now available for re-billing",
                invoice_id,
                len(invoice.work_hours),
            )
        return invoice

    def list_billable_work_hours(self, user_id: int, filters: ReportFilters) -> List[WorkHourEntry]:
        validate_filters(filters)
        return self.repository.list_unbilled_work_hours(work_hour_filter(user_id, filters))

    def _relink_selection(self, existing: InvoiceRecord, work_hour_ids: Optional[List[int]]) -> Optional[List[int]]:
        """Return the new selection when it differs from the current link set."""
        if work_hour_ids is None:
            return None
        selection = _unique_ids(work_hour_ids)
        if not selection:
            raise ValidationError("Select at least one work hour")
        if set(selection) == set(existing.work_hour_ids):
            return None
        if existing.status != InvoiceStatus.PENDING:
            raise ValidationError("Only pending invoices can change their work hours")
        return selection

    def _load_entries(self, user_id: int, work_hour_ids: List[int]) -> List[WorkHourEntry]:
        entries = self.repository.get_work_hours(user_id, work_hour_ids)
        missing = sorted(set(work_hour_ids) - {wh.id for wh in entries})
        if missing:
            raise NotFoundError(f"Work hours not found: {', '.join(str(wid) for wid in missing)}")
        return entries

    def _resolve_client(self, user_id: int, client_id: Optional[int], entries: Sequence[WorkHourEntry]) -> int:
        entry_clients = {wh.client_id for wh in entries}
        resolved = client_id if client_id is not None else next(iter(entry_clients))
        if self.repository.get_client(user_id, resolved) is None:
            raise NotFoundError("Client not found")
        if entry_clients != {resolved}:
            raise ValidationError("All work hours must belong to the invoice's client")
        return resolved

    def _ensure_not_billed(self, work_hour_ids: List[int], exclude_invoice_id: Optional[int] = None) -> None:
        links = self.repository.find_active_links(work_hour_ids, exclude_invoice_id=exclude_invoice_id)
        if not links:
            return
        error = DuplicateBillingError.for_links(links)
        logger.warning("Rejected double billing of work hours %s (invoices %s)", work_hour_ids, error.invoice_ids)
        raise error

    def _compute_amount(self, user_id: int, entries: Sequence[WorkHourEntry], hourly_rate: float | None) -> float:
        project_ids = {wh.project_id for wh in entries if wh.project_id is not None}
        rates = {project.id: project.hourly_rate for project in self.repository.list_projects(user_id, project_ids)}
        fallback = hourly_rate if hourly_rate is not None else self.settings.default_hourly_rate
        return calculate_invoice_amount(entries, rates, fallback)

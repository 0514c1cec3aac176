"""Invoice aggregation: status counts, per-client breakdowns and billed hours."""

from typing import Dict, Optional, Sequence

from backend.app.core.time import month_key
from backend.app.models.invoice import InvoiceStatus
from backend.app.schemas.records import InvoiceRecord
from backend.app.schemas.reports import (
    ClientAmount,
    ClientInvoiceBreakdown,
    InvoiceReport,
    InvoiceStats,
    InvoiceSummary,
    MonthlyAmount,
    WorkPeriod,
)
from backend.app.services.grouping import count_by, sum_by


def _client_names(invoices: Sequence[InvoiceRecord]) -> Dict[int, Optional[str]]:
    return {inv.client_id: inv.client.display_name for inv in invoices if inv.client is not None}


def summarize_invoice(invoice: InvoiceRecord) -> InvoiceSummary:
    dates = [wh.date for wh in invoice.work_hours]
    work_period = WorkPeriod(start=min(dates), end=max(dates)) if dates else None
    return InvoiceSummary(
        invoice_id=invoice.id,
        number=invoice.number,
        client_id=invoice.client_id,
        status=invoice.status,
        amount=invoice.amount,
        total_hours_billed=round(sum(wh.hours for wh in invoice.work_hours), 2),
        work_period=work_period,
    )


def summarize_invoices(invoices: Sequence[InvoiceRecord]) -> InvoiceReport:
    """Aggregate invoices that already carry their linked work-hour entries."""
    by_status = count_by(invoices, lambda inv: inv.status)
    by_client_status = count_by(invoices, lambda inv: (inv.client_id, inv.status))
    invoices_by_client = count_by(invoices, lambda inv: inv.client_id)
    amount_by_client = sum_by(invoices, lambda inv: inv.client_id, lambda inv: inv.amount)
    names = _client_names(invoices)

    client_breakdown = [
        ClientInvoiceBreakdown(
            client_id=client_id,
            client_name=names.get(client_id),
            total_invoices=total,
            pending_invoices=by_client_status.get((client_id, InvoiceStatus.PENDING), 0),
            paid_invoices=by_client_status.get((client_id, InvoiceStatus.PAID), 0),
            canceled_invoices=by_client_status.get((client_id, InvoiceStatus.CANCELED), 0),
            total_amount=round(amount_by_client[client_id], 2),
        )
        for client_id, total in invoices_by_client.items()
    ]

    return InvoiceReport(
        total_invoices=len(invoices),
        pending_invoices=by_status.get(InvoiceStatus.PENDING, 0),
        paid_invoices=by_status.get(InvoiceStatus.PAID, 0),
        canceled_invoices=by_status.get(InvoiceStatus.CANCELED, 0),
        total_amount=round(sum(inv.amount for inv in invoices), 2),
        client_breakdown=client_breakdown,
        invoices=[summarize_invoice(inv) for inv in invoices],
    )


def summarize_invoice_amounts(invoices: Sequence[InvoiceRecord]) -> InvoiceStats:
    amount_by_status = sum_by(invoices, lambda inv: inv.status, lambda inv: inv.amount)
    amount_by_client = sum_by(invoices, lambda inv: inv.client_id, lambda inv: inv.amount)
    amount_by_month = sum_by(invoices, lambda inv: month_key(inv.created_at), lambda inv: inv.amount)
    names = _client_names(invoices)

    return InvoiceStats(
        total_invoices=len(invoices),
        total_amount=round(sum(inv.amount for inv in invoices), 2),
        total_paid=round(amount_by_status.get(InvoiceStatus.PAID, 0.0), 2),
        total_pending=round(amount_by_status.get(InvoiceStatus.PENDING, 0.0), 2),
        total_canceled=round(amount_by_status.get(InvoiceStatus.CANCELED, 0.0), 2),
        amount_by_client=[
            ClientAmount(client_id=client_id, client_name=names.get(client_id), total_amount=round(amount, 2))
            for client_id, amount in amount_by_client.items()
        ],
        amount_by_month=[
            MonthlyAmount(month=month, total_amount=round(amount, 2))
            for month, amount in sorted(amount_by_month.items())
        ],
    )

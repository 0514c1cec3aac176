"""Report payloads produced by the aggregation services."""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from backend.app.models.invoice import InvoiceStatus


class ClientHoursBreakdown(BaseModel):
    client_id: int
    client_name: Optional[str] = None
    total_hours: float
    percentage: float


class WeeklyHours(BaseModel):
    week: str
    total_hours: float


class MonthlyHours(BaseModel):
    month: str
    total_hours: float


class HoursReport(BaseModel):
    total_hours: float
    total_days: int
    average_hours_per_day: float
    active_clients: int
    client_breakdown: List[ClientHoursBreakdown]
    weekly_breakdown: List[WeeklyHours]
    monthly_breakdown: List[MonthlyHours]

    model_config = ConfigDict(from_attributes=True)


class WorkHourStats(BaseModel):
    total_hours: float
    average_hours_per_day: float
    active_clients: int


class WorkPeriod(BaseModel):
    """Inclusive date span covered by an invoice's linked work hours."""

    start: date
    end: date


class InvoiceSummary(BaseModel):
    invoice_id: int
    number: Optional[str] = None
    client_id: int
    status: InvoiceStatus
    amount: float
    total_hours_billed: float
    # None when the invoice has no linked work hours.
    work_period: Optional[WorkPeriod] = None


class ClientInvoiceBreakdown(BaseModel):
    client_id: int
    client_name: Optional[str] = None
    total_invoices: int
    pending_invoices: int
    paid_invoices: int
    canceled_invoices: int
    total_amount: float


class InvoiceReport(BaseModel):
    total_invoices: int
    pending_invoices: int
    paid_invoices: int
    canceled_invoices: int
    total_amount: float
    client_breakdown: List[ClientInvoiceBreakdown]
    invoices: List[InvoiceSummary]

    model_config = ConfigDict(from_attributes=True)


class ClientAmount(BaseModel):
    client_id: int
    client_name: Optional[str] = None
    total_amount: float


class MonthlyAmount(BaseModel):
    month: str
    total_amount: float


class InvoiceStats(BaseModel):
    total_invoices: int
    total_amount: float
    total_paid: float
    total_pending: float
    total_canceled: float
    amount_by_client: List[ClientAmount]
    amount_by_month: List[MonthlyAmount]


class ReportPeriod(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class SummaryReport(BaseModel):
    hours: HoursReport
    invoices: InvoiceReport
    period: ReportPeriod

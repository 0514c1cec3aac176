"""Query filters shared by the report services and the data-access layer."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict

from backend.app.models.invoice import InvoiceStatus


class ReportFilters(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    client_id: Optional[int] = None
    status: Optional[InvoiceStatus] = None

    model_config = ConfigDict(frozen=True)


class WorkHourFilter(BaseModel):
    user_id: int
    client_id: Optional[int] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    model_config = ConfigDict(frozen=True)


class InvoiceFilter(BaseModel):
    user_id: int
    client_id: Optional[int] = None
    # Match invoices with at least one linked work hour inside the range.
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    status: Optional[InvoiceStatus] = None

    model_config = ConfigDict(frozen=True)

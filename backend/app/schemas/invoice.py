"""Invoice schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from backend.app.models.invoice import InvoiceStatus


class InvoiceCreate(BaseModel):
    work_hour_ids: List[int]
    client_id: Optional[int] = None
    # Explicit total; when omitted the amount is computed from hours x rate.
    amount: Optional[float] = None
    # Rate for entries whose project has no hourly rate.
    hourly_rate: Optional[float] = None
    number: Optional[str] = None
    description: Optional[str] = None
    file_url: Optional[str] = None
    due_date: Optional[datetime] = None


class InvoiceUpdate(BaseModel):
    number: Optional[str] = None
    status: Optional[InvoiceStatus] = None
    description: Optional[str] = None
    file_url: Optional[str] = None
    due_date: Optional[datetime] = None
    amount: Optional[float] = None
    work_hour_ids: Optional[List[int]] = None
    hourly_rate: Optional[float] = None


class NewInvoice(BaseModel):
    """Column values for an invoice row about to be inserted."""

    client_id: int
    amount: float
    status: InvoiceStatus = InvoiceStatus.PENDING
    number: Optional[str] = None
    description: Optional[str] = None
    file_url: Optional[str] = None
    due_date: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)

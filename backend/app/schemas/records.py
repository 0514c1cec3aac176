"""Immutable snapshots of persisted rows handed to the reporting core.

Rows are validated when they leave the data-access layer, so aggregation code
never touches ORM objects and never re-checks field invariants.
"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from backend.app.models.invoice import InvoiceStatus


class ClientRecord(BaseModel):
    id: int
    name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    company: str
    user_id: int
    created_at: dt.datetime
    updated_at: dt.datetime

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @property
    def display_name(self) -> str:
        return self.name or self.company


class ProjectRecord(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    client_id: int
    user_id: int
    hourly_rate: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    created_at: dt.datetime
    updated_at: dt.datetime

    model_config = ConfigDict(from_attributes=True, frozen=True)


class WorkHourEntry(BaseModel):
    id: int
    date: dt.date
    description: Optional[str] = None
    hours: float = Field(gt=0, allow_inf_nan=False)
    client_id: int
    project_id: Optional[int] = None
    user_id: int
    created_at: dt.datetime
    updated_at: dt.datetime
    client: Optional[ClientRecord] = None

    model_config = ConfigDict(from_attributes=True, frozen=True)


class InvoiceRecord(BaseModel):
    id: int
    number: Optional[str] = None
    client_id: int
    amount: float = Field(ge=0, allow_inf_nan=False)
    status: InvoiceStatus
    description: Optional[str] = None
    file_url: Optional[str] = None
    due_date: Optional[dt.datetime] = None
    created_at: dt.datetime
    updated_at: dt.datetime
    client: Optional[ClientRecord] = None
    work_hours: tuple[WorkHourEntry, ...] = ()

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @property
    def work_hour_ids(self) -> list[int]:
        return [wh.id for wh in self.work_hours]


class InvoiceWorkHourLink(BaseModel):
    id: int
    invoice_id: int
    work_hour_id: int
    created_at: dt.datetime
    invoice_status: InvoiceStatus
    invoice_number: Optional[str] = None

    model_config = ConfigDict(frozen=True)

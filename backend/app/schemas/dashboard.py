"""Dashboard schemas for owner-level overviews."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict


class ActivityDescription(BaseModel):
    """Template key plus interpolation values; rendering happens in the UI."""

    key: str
    values: Dict[str, Any]


class RecentActivity(BaseModel):
    type: Literal["work_hour", "invoice", "client"]
    description: ActivityDescription
    date: datetime
    client: Optional[str] = None


class TopClient(BaseModel):
    id: int
    name: str
    total_hours: float
    total_invoices: int


class WeeklyHoursPoint(BaseModel):
    week: str
    hours: float


class DashboardStats(BaseModel):
    total_hours: float
    total_clients: int
    total_invoices: int
    pending_invoices: int
    this_month_hours: float
    last_month_hours: float
    hours_growth: float
    recent_activities: List[RecentActivity]
    top_clients: List[TopClient]
    weekly_hours: List[WeeklyHoursPoint]

    model_config = ConfigDict(from_attributes=True)

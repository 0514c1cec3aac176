"""Owner dashboard built from concurrent read snapshots."""

from datetime import date, timedelta
from typing import List, Sequence

from backend.app.core.concurrency import run_concurrently
from backend.app.core.settings import get_settings
from backend.app.core.time import as_utc, month_bounds, previous_month_bounds, utc_now, week_key
from backend.app.crud.base import ReportingRepository
from backend.app.models.invoice import InvoiceStatus
from backend.app.schemas.dashboard import (
    ActivityDescription,
    DashboardStats,
    RecentActivity,
    TopClient,
    WeeklyHoursPoint,
)
from backend.app.schemas.filters import InvoiceFilter, WorkHourFilter
from backend.app.schemas.records import ClientRecord, InvoiceRecord, WorkHourEntry
from backend.app.services.grouping import count_by, sum_by
from backend.app.services.work_hour_reporting import growth_percent


def build_recent_activities(
    work_hours: Sequence[WorkHourEntry],
    invoices: Sequence[InvoiceRecord],
    clients: Sequence[ClientRecord],
    limit: int = 10,
) -> List[RecentActivity]:
    """Merge the three recency-capped sources into one newest-first feed."""
    activities = [
        RecentActivity(
            type="work_hour",
            description=ActivityDescription(
                key="loggedHours",
                values={"hours": wh.hours, "description": wh.description},
            ),
            date=as_utc(wh.created_at),
            client=wh.client.company if wh.client else None,
        )
        for wh in work_hours
    ]
    activities += [
        RecentActivity(
            type="invoice",
            description=ActivityDescription(
                key="invoiceCreatedFor",
                values={"company": inv.client.company if inv.client else None},
            ),
            date=as_utc(inv.created_at),
            client=inv.client.company if inv.client else None,
        )
        for inv in invoices
    ]
    activities += [
        RecentActivity(
            type="client",
            description=ActivityDescription(key="newClient", values={"company": client.company}),
            date=as_utc(client.created_at),
            client=client.company,
        )
        for client in clients
    ]
    # sorted() is stable, so equal timestamps keep source order.
    return sorted(activities, key=lambda item: item.date, reverse=True)[:limit]


def rank_top_clients(
    clients: Sequence[ClientRecord],
    work_hours: Sequence[WorkHourEntry],
    invoices: Sequence[InvoiceRecord],
    limit: int = 5,
) -> List[TopClient]:
    hours_by_client = sum_by(work_hours, lambda wh: wh.client_id, lambda wh: wh.hours)
    invoices_by_client = count_by(invoices, lambda inv: inv.client_id)
    ranked = sorted(
        (
            TopClient(
                id=client.id,
                name=client.company,
                total_hours=round(hours_by_client.get(client.id, 0.0), 2),
                total_invoices=invoices_by_client.get(client.id, 0),
            )
            for client in clients
        ),
        key=lambda row: hours_by_client.get(row.id, 0.0),
        reverse=True,
    )
    return ranked[:limit]


def bucket_weekly_hours(work_hours: Sequence[WorkHourEntry]) -> List[WeeklyHoursPoint]:
    hours_by_week = sum_by(work_hours, lambda wh: week_key(wh.date), lambda wh: wh.hours)
    return [WeeklyHoursPoint(week=week, hours=round(hours, 2)) for week, hours in sorted(hours_by_week.items())]


class DashboardService:
    def __init__(self, repository: ReportingRepository, settings=None):
        self.repository = repository
        self.settings = settings or get_settings()

    def get_dashboard_stats(self, user_id: int, today: date | None = None) -> DashboardStats:
        as_of = today or utc_now().date()
        this_month_start, this_month_end = month_bounds(as_of)
        last_month_start, last_month_end = previous_month_bounds(as_of)
        window_start = as_of - timedelta(days=self.settings.dashboard_weekly_window_days)

        repo = self.repository
        settings = self.settings
        everything = WorkHourFilter(user_id=user_id)
        all_invoices = InvoiceFilter(user_id=user_id)

        results = run_concurrently(
            {
                "work_hours": lambda: repo.list_work_hours(everything),
                "clients": lambda: repo.list_clients(user_id),
                "invoices": lambda: repo.list_invoices(all_invoices),
                "this_month": lambda: repo.list_work_hours(
                    WorkHourFilter(user_id=user_id, date_from=this_month_start, date_to=this_month_end)
                ),
                "last_month": lambda: repo.list_work_hours(
                    WorkHourFilter(user_id=user_id, date_from=last_month_start, date_to=last_month_end)
                ),
                "recent_window": lambda: repo.list_work_hours(WorkHourFilter(user_id=user_id, date_from=window_start)),
                "recent_work_hours": lambda: repo.list_work_hours(
                    everything, newest_first=True, limit=settings.recent_work_hours_limit
                ),
                "recent_invoices": lambda: repo.list_invoices(
                    all_invoices, newest_first=True, limit=settings.recent_invoices_limit
                ),
                "recent_clients": lambda: repo.list_clients(
                    user_id, newest_first=True, limit=settings.recent_clients_limit
                ),
            },
            max_workers=settings.report_max_workers,
        )

        invoices = results["invoices"]
        this_month_hours = sum(wh.hours for wh in results["this_month"])
        last_month_hours = sum(wh.hours for wh in results["last_month"])

        return DashboardStats(
            total_hours=round(sum(wh.hours for wh in results["work_hours"]), 2),
            total_clients=len(results["clients"]),
            total_invoices=len(invoices),
            pending_invoices=sum(1 for inv in invoices if inv.status == InvoiceStatus.PENDING),
            this_month_hours=round(this_month_hours, 2),
            last_month_hours=round(last_month_hours, 2),
            hours_growth=round(growth_percent(this_month_hours, last_month_hours), 2),
            recent_activities=build_recent_activities(
                results["recent_work_hours"],
                results["recent_invoices"],
                results["recent_clients"],
                limit=settings.recent_activity_limit,
            ),
            top_clients=rank_top_clients(
                results["clients"], results["work_hours"], invoices, limit=settings.top_clients_limit
            ),
            weekly_hours=bucket_weekly_hours(results["recent_window"]),
        )

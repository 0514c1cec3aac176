"""Work-hour aggregation: totals, per-client shares and calendar buckets."""

from datetime import date
from typing import Dict, Optional, Sequence

from backend.app.core.time import month_key, week_key
from backend.app.schemas.records import WorkHourEntry
from backend.app.schemas.reports import (
    ClientHoursBreakdown,
    HoursReport,
    MonthlyHours,
    WeeklyHours,
    WorkHourStats,
)
from backend.app.services.grouping import sum_by


def growth_percent(current: float, previous: float) -> float:
    """Relative change from ``previous`` to ``current`` in percent.

    Without a prior baseline any activity counts as 100% growth and no
    activity as 0%, instead of dividing by zero.
    """
    if previous > 0:
        return (current - previous) / previous * 100
    return 100.0 if current > 0 else 0.0


def _client_names(entries: Sequence[WorkHourEntry]) -> Dict[int, Optional[str]]:
    return {wh.client_id: wh.client.display_name for wh in entries if wh.client is not None}


def summarize_work_hours(entries: Sequence[WorkHourEntry]) -> HoursReport:
    """Aggregate an already-filtered set of work-hour entries."""
    total_hours = sum(wh.hours for wh in entries)
    total_days = len({wh.date for wh in entries})
    average_hours_per_day = total_hours / total_days if total_days else 0.0

    hours_by_client = sum_by(entries, lambda wh: wh.client_id, lambda wh: wh.hours)
    names = _client_names(entries)
    client_breakdown = [
        ClientHoursBreakdown(
            client_id=client_id,
            client_name=names.get(client_id),
            total_hours=round(hours, 2),
            percentage=round(hours / total_hours * 100, 2) if total_hours > 0 else 0.0,
        )
        for client_id, hours in hours_by_client.items()
    ]

    hours_by_week = sum_by(entries, lambda wh: week_key(wh.date), lambda wh: wh.hours)
    hours_by_month = sum_by(entries, lambda wh: month_key(wh.date), lambda wh: wh.hours)

    return HoursReport(
        total_hours=round(total_hours, 2),
        total_days=total_days,
        average_hours_per_day=round(average_hours_per_day, 2),
        active_clients=len(hours_by_client),
        client_breakdown=client_breakdown,
        weekly_breakdown=[
            WeeklyHours(week=week, total_hours=round(hours, 2)) for week, hours in sorted(hours_by_week.items())
        ],
        monthly_breakdown=[
            MonthlyHours(month=month, total_hours=round(hours, 2)) for month, hours in sorted(hours_by_month.items())
        ],
    )


def summarize_work_hour_stats(
    entries: Sequence[WorkHourEntry],
    date_from: date | None = None,
    date_to: date | None = None,
) -> WorkHourStats:
    """Quick stats where the daily average spans the whole requested range."""
    total_hours = sum(wh.hours for wh in entries)
    if date_from is not None and date_to is not None and date_to >= date_from:
        span_days = (date_to - date_from).days + 1
    else:
        span_days = 1
    return WorkHourStats(
        total_hours=round(total_hours, 2),
        average_hours_per_day=round(total_hours / span_days, 2),
        active_clients=len({wh.client_id for wh in entries}),
    )

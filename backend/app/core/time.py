"""Time utilities: UTC timestamps and calendar bucket keys for reports."""

from datetime import UTC, date, datetime, timedelta


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime for defaults and onupdate hooks."""
    return datetime.now(UTC)


def _calendar_date(value: date | datetime) -> date:
    # Keep the value's own wall-clock date; never shift through the host timezone.
    if isinstance(value, datetime):
        return date(value.year, value.month, value.day)
    return value


def week_key(value: date | datetime) -> str:
    """Return the ISO-8601 week bucket ``YYYY-Www`` for a date.

    The year is the ISO year of the week's Thursday, so late-December days can
    land in week 1 of the next year and early-January days in week 52/53 of the
    previous one. Keys sort chronologically as plain strings.
    """
    iso_year, iso_week, _ = _calendar_date(value).isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def month_key(value: date | datetime) -> str:
    """Return the calendar month bucket ``YYYY-MM`` for a date."""
    day = _calendar_date(value)
    return f"{day.year}-{day.month:02d}"


def month_bounds(day: date) -> tuple[date, date]:
    """Return the first and last day of the month containing ``day``."""
    first = day.replace(day=1)
    if first.month == 12:
        next_first = first.replace(year=first.year + 1, month=1)
    else:
        next_first = first.replace(month=first.month + 1)
    return first, next_first - timedelta(days=1)


def previous_month_bounds(day: date) -> tuple[date, date]:
    first_of_month, _ = month_bounds(day)
    return month_bounds(first_of_month - timedelta(days=1))


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on read)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)

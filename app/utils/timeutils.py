from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from app.config import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC (SQLite hands them back without tzinfo)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def stale_after() -> timedelta:
    return timedelta(hours=settings.SESSION_STALE_AFTER_HOURS)


def attendance_tz():
    name = settings.ATTENDANCE_TIMEZONE
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def local_date(moment: datetime) -> date:
    return as_utc(moment).astimezone(attendance_tz()).date()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """UTC [start, end) of a calendar day in the attendance timezone."""
    start = datetime.combine(day, time.min, tzinfo=attendance_tz())
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=attendance_tz())
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)

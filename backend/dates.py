from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

DAY_FORMAT = "%Y-%m-%d"


def parse_day(day: str) -> date:
    """Parse a YYYY-MM-DD string into a date (no timezone involved)."""
    year, month, dom = map(int, day[:10].split("-"))
    return date(year, month, dom)


def format_day(value: date) -> str:
    return value.strftime(DAY_FORMAT)


def add_days(day: str, days: int) -> str:
    return format_day(parse_day(day) + timedelta(days=days))


def days_between(start: str, end: str) -> int:
    """Whole days from start to end. Negative when end is before start."""
    return (parse_day(end) - parse_day(start)).days


def day_of_week(day: str) -> int:
    """Day of week with Sunday = 0 through Saturday = 6."""
    # date.weekday() is Monday = 0
    return (parse_day(day).weekday() + 1) % 7


def is_weekend(day: str) -> bool:
    return day_of_week(day) in (0, 6)


def today_in(tz_name: str) -> str:
    """
    Today's calendar day in the given IANA timezone.
    The same instant is a different day in different zones, so callers
    resolve this once and pass the string into the scheduler.
    """
    return datetime.now(ZoneInfo(tz_name)).strftime(DAY_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO timestamp as stored in created_at. A trailing Z is
    accepted and naive values are taken as UTC.
    """
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed

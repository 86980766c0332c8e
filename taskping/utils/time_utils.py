"""Time and timezone utilities."""

from datetime import date, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo

UTC = ZoneInfo("UTC")


def get_timezone(tz: str | None = None) -> tzinfo:
    """Resolve a timezone name, falling back to the process's local zone."""
    if tz:
        return ZoneInfo(tz)
    return datetime.now().astimezone().tzinfo  # type: ignore[return-value]


def local_now(tz: str | None = None) -> datetime:
    """Current time as an aware datetime in the given (or local) timezone."""
    return datetime.now(get_timezone(tz))


def to_utc(dt: datetime, tz: str | None = None) -> datetime:
    """Convert a datetime to UTC, treating naive values as wall clock in tz."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=get_timezone(tz))
    return dt.astimezone(UTC)


def from_utc(dt: datetime, tz: str | None = None) -> datetime:
    """Convert a UTC datetime to the given (or local) timezone."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(get_timezone(tz))


def local_day(dt: datetime, tz: str | None = None) -> date:
    """Calendar day of an instant in the given (or local) timezone."""
    return from_utc(dt, tz).date()


def day_bounds(day: date, tz: str | None = None) -> tuple[datetime, datetime]:
    """UTC start (inclusive) and end (exclusive) of a local calendar day."""
    start = datetime(day.year, day.month, day.day, tzinfo=get_timezone(tz))
    return to_utc(start), to_utc(start + timedelta(days=1))


def at_wall_time(dt: datetime, hour: int, minute: int = 0) -> datetime:
    """Same day as dt (in its own timezone), pinned to hour:minute."""
    return dt.replace(hour=hour, minute=minute, second=0, microsecond=0)


def format_due(dt: datetime, tz: str | None = None) -> str:
    """Format a due time for a confirmation message.

    Example:
        "Monday, October 19 at 9:00 AM"
    """
    local = from_utc(dt, tz) if tz or dt.tzinfo is None else dt
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return f"{local:%A, %B} {local.day} at {hour}:{local:%M} {meridiem}"


def hours_until(dt: datetime, now: datetime) -> float:
    """Signed hours from now until dt."""
    return (dt - now).total_seconds() / 3600


def weekday_ordinal(dt: datetime) -> int:
    """Weekday with Sunday as 0 and Saturday as 6."""
    return (dt.weekday() + 1) % 7

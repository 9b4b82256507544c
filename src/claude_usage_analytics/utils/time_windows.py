"""Local-date buckets and 5-hour quota window helpers."""

from datetime import date, datetime, timedelta, timezone

from claude_usage_analytics.types.usage import BLOCK_DURATION


def local_now() -> datetime:
    return datetime.now().astimezone()


def to_local(moment: datetime) -> datetime:
    """Convert an aware datetime to local time (naive values are taken as UTC)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone()


def local_date_key(moment: datetime) -> str:
    """Canonical YYYY-MM-DD bucket key for a record timestamp."""
    return to_local(moment).date().isoformat()


def seed_dates(days: int, now: datetime | None = None) -> list[str]:
    """Date keys for today back through today-(days-1), newest first."""
    if now is None:
        now = local_now()
    today: date = to_local(now).date()
    return [(today - timedelta(days=i)).isoformat() for i in range(days)]


def round_to_hour(moment: datetime) -> datetime:
    """Round down to the top of the UTC hour (epoch seconds floored to 3600)."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.replace(minute=0, second=0, microsecond=0)


def block_end(start: datetime) -> datetime:
    return start + BLOCK_DURATION


def format_time_until(reset: datetime, now: datetime | None = None) -> str:
    """Human readable countdown: "2h 5m", "42m" or "Soon"."""
    if now is None:
        now = local_now()
    remaining = int((reset - now).total_seconds())
    if remaining < 60:
        return "Soon"
    hours, rem = divmod(remaining, 3600)
    minutes = rem // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_reset_time(reset: datetime) -> str:
    """Local wall-clock time of a reset, e.g. "19:00"."""
    return to_local(reset).strftime("%H:%M")

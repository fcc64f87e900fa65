from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def days_ago(days: int) -> datetime:
    """UTC timestamp `days` days before now (used for "new arrivals" windows)."""
    return utc_now() - timedelta(days=days)

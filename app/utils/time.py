"""Time utilities."""
from datetime import UTC, datetime, timedelta


def utcnow() -> datetime:
    """Return current UTC time with timezone awareness."""

    return datetime.now(tz=UTC)


def hours_before(moment: datetime, hours: int) -> datetime:
    """Return the instant ``hours`` hours before ``moment``."""

    return moment - timedelta(hours=hours)


__all__ = ["utcnow", "hours_before"]

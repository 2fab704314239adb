from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp; workflow dates are stored without tzinfo on every backend."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

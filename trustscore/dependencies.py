from datetime import datetime, timezone


def get_now() -> datetime:
    """Current time for a request. Overridden in tests to pin the clock."""
    return datetime.now(timezone.utc)

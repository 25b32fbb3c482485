"""System clock — the production Clock implementation."""

from datetime import datetime, timezone


class SystemClock:
    """Wall-clock time, always aware UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

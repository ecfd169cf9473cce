from datetime import datetime, timezone


class TimezoneUtils:
    """Timestamp helpers shared by models and services."""

    @staticmethod
    def utc_now() -> datetime:
        """Return the current UTC timestamp (timezone aware)."""
        return datetime.now(timezone.utc)

    @staticmethod
    def to_iso(value: datetime | None) -> str | None:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()

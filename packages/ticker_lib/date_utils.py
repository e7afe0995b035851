# packages/ticker_lib/date_utils.py

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Returns the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc_timestamp(dt: datetime) -> datetime:
    """Ensures a datetime object is timezone-aware UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def to_epoch_ms(dt: datetime) -> int:
    return int(ensure_utc_timestamp(dt).timestamp() * 1000)

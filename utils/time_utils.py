from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from config.settings import settings
from utils.exceptions import ValidationError

# 9999-12-31T23:59:59.999Z, the last instant datetime can hold
MAX_EPOCH_MILLIS = 253402300799999


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes.

    SQLite drops tzinfo on DateTime(timezone=True) columns, so values read
    back from it come out naive even though they were written as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def from_epoch_millis(millis: Optional[float]) -> Optional[datetime]:
    """Raises ValidationError for NaN, negative or out-of-range timestamps."""
    if millis is None:
        return None
    if not 0 <= millis <= MAX_EPOCH_MILLIS:
        raise ValidationError(f"Invalid scan timestamp: {millis}")
    try:
        return datetime.fromtimestamp(millis / 1000.0, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise ValidationError(f"Invalid scan timestamp: {millis}") from exc


def isoformat(value: Optional[datetime]) -> Optional[str]:
    value = ensure_utc(value)
    return value.isoformat().replace("+00:00", "Z") if value else None


def calendar_day(moment: Optional[datetime] = None, tz_name: str = None) -> str:
    """YYYY-MM-DD of `moment` (default: now) in the attendance timezone."""
    tz = ZoneInfo(tz_name or settings.ATTENDANCE_TIMEZONE)
    moment = ensure_utc(moment) or utcnow()
    return moment.astimezone(tz).date().isoformat()


def parse_calendar_day(value: str) -> str:
    """Normalise a client supplied day string, raising ValueError if malformed."""
    return date.fromisoformat(value).isoformat()

# shared/time.py
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from shared.config import DEFAULT_TZ_NAME

logger = logging.getLogger(__name__)

# --- Internal override for testing ---
_current_time_override: Optional[datetime] = None


def _load_tz(tz_name: Optional[str]) -> timezone | ZoneInfo:
    if not tz_name:
        return timezone.utc
    try:
        return ZoneInfo(tz_name)
    except ZoneInfoNotFoundError:
        logger.warning("Timezone %s not found. Using UTC fallback.", tz_name)
        return timezone.utc


DEFAULT_TZ = _load_tz(DEFAULT_TZ_NAME)

# === Time Access ===

def utcnow() -> datetime:
    return _current_time_override or datetime.now(timezone.utc)


def set_fake_utcnow(fake_time: datetime) -> None:
    global _current_time_override
    _current_time_override = fake_time


def clear_fake_utcnow() -> None:
    global _current_time_override
    _current_time_override = None

# === Time Parsing ===

def parse_datetime(value: str) -> datetime:
    """Parse an ISO-8601 string. Supports trailing 'Z'. Returns a datetime; no timezone normalization here."""
    s = value.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return datetime.fromisoformat(s)


def ensure_aware_utc(dt: datetime, assume_tz=None) -> datetime:
    """Naive datetimes are read in `assume_tz` (DEFAULT_TZ when omitted)."""
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        dt = dt.replace(tzinfo=assume_tz or DEFAULT_TZ)
    return dt.astimezone(timezone.utc)


def parse_to_utc(value: Optional[Union[str, date, datetime]]) -> Optional[datetime]:
    """
    Accepts ISO strings ('YYYY-MM-DD', '...Z', offsets), dates and datetimes.
    Returns an aware UTC datetime, or None for empty input.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_aware_utc(value)
    if isinstance(value, date):
        return ensure_aware_utc(datetime(value.year, value.month, value.day))
    if isinstance(value, str):
        if not value.strip():
            return None
        return ensure_aware_utc(parse_datetime(value))
    raise TypeError(f"Unsupported datetime value: {value!r}")


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return ensure_aware_utc(dt).replace(microsecond=0).isoformat().replace("+00:00", "Z")

# === Utilities ===

def days_from_now(days: int) -> datetime:
    return utcnow() + timedelta(days=days)

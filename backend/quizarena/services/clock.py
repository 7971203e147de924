import re
from datetime import datetime, timezone
from typing import Optional, Union

from quizarena.errors import ValidationError

# fromisoformat before 3.11 only takes 3 or 6 fractional digits
_FRACTION = re.compile(r'(T\d{2}:\d{2}:\d{2})\.(\d+)')


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on read-back)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return ensure_utc(value).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def parse_instant(value: Union[str, int, float, datetime, None]) -> Optional[datetime]:
    """Parse an ISO-8601 string or epoch milliseconds into an aware UTC datetime.

    ``None`` passes through; anything else that does not describe a valid
    instant raises ValidationError.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, bool):
        raise ValidationError('Invalid time value')
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise ValidationError('Invalid time value')
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith('Z') or text.endswith('z'):
            text = text[:-1] + '+00:00'
        text = _FRACTION.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text)
        try:
            return ensure_utc(datetime.fromisoformat(text))
        except ValueError:
            raise ValidationError('Invalid time value')
    raise ValidationError('Invalid time value')


def millis_between(start: datetime, end: datetime) -> int:
    return int(round((ensure_utc(end) - ensure_utc(start)).total_seconds() * 1000))

"""Conversions between UTC date strings and millisecond timestamps."""
from datetime import datetime, timedelta, timezone

UTC_FORMAT = "%Y-%m-%d %H:%M:%S"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_string_to_time_ms(value: str) -> int:
    """
    Parse a ``YYYY-MM-DD HH:MM:SS`` UTC string into milliseconds since epoch.

    Surrounding whitespace is ignored and an optional fractional second part
    (``.fff``) is accepted.

    Raises:
        ValueError: If the string does not match the format
    """
    text = value.strip()
    fmt = f"{UTC_FORMAT}.%f" if "." in text else UTC_FORMAT
    parsed = datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
    delta = parsed - _EPOCH
    return (delta.days * 86400 + delta.seconds) * 1000 + delta.microseconds // 1000


def time_ms_to_utc_string(time_ms: int) -> str:
    """Format milliseconds since epoch as a ``YYYY-MM-DD HH:MM:SS`` UTC string."""
    moment = time_ms_to_datetime(time_ms)
    text = moment.strftime(UTC_FORMAT)
    millis = time_ms % 1000
    if millis:
        text = f"{text}.{millis:03d}"
    return text


def time_ms_to_datetime(time_ms: int) -> datetime:
    """Convert milliseconds since epoch to an aware UTC datetime."""
    return _EPOCH + timedelta(milliseconds=time_ms)

"""
Coercion of loosely typed request input.

Path, query and body values arrive as strings, numbers, booleans or ``None``.
Each helper returns the coerced value, or ``None`` (or a failed ``TextCheck``)
when the input is unusable, so handlers can answer with a 400 that echoes the
raw value before touching the database.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone, tzinfo
from typing import Any, Optional
from zoneinfo import ZoneInfo

TIMESTAMP_FORMAT = "{:04d}-{:02d}-{:02d} {:02d}:{:02d}:{:02d}"


def first_present(*values: Any) -> Any:
    """Return the first value that was actually supplied (path, then query, then body)."""
    for value in values:
        if value is not None:
            return value
    return None


def parse_int(raw: Any, positive: bool = False) -> Optional[int]:
    if isinstance(raw, bool) or raw is None:
        return None

    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, float):
        if not math.isfinite(raw) or not raw.is_integer():
            return None
        value = int(raw)
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        try:
            value = int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                return None
            if not math.isfinite(number) or not number.is_integer():
                return None
            value = int(number)
    else:
        return None

    if positive and value <= 0:
        return None
    return value


@dataclass
class TextCheck:
    value: Optional[str] = None
    length: int = 0
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.reason is None


def parse_text(raw: Any, max_length: int = 100) -> TextCheck:
    if not isinstance(raw, str) or not raw.strip():
        return TextCheck(reason="empty")
    text = raw.strip()
    if len(text) > max_length:
        return TextCheck(value=text, length=len(text), reason="too_long")
    return TextCheck(value=text, length=len(text))


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    if not name:
        return None
    if name.upper() == "UTC":
        return dt_timezone.utc
    return ZoneInfo(name)


def parse_timestamp(raw: Any, timezone: Optional[tzinfo] = None) -> Optional[str]:
    """
    Normalize an ISO-8601 or ``YYYY-MM-DD HH:mm:ss`` value to MySQL's
    ``YYYY-MM-DD HH:mm:ss``.

    Values carrying an offset are converted to ``timezone`` (the server's
    local zone when ``None``); naive values are assumed to be local already.
    """
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        parsed = datetime.fromisoformat(raw.strip())
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone)
    except (ValueError, OverflowError):
        return None

    return TIMESTAMP_FORMAT.format(
        parsed.year, parsed.month, parsed.day,
        parsed.hour, parsed.minute, parsed.second,
    )

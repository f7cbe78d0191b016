from __future__ import annotations

"""Single entry point for wall-clock time.

Only this module may read the host clock (see tools/check_clock_usage.py).
Services accept an explicit ``now_iso`` and fall back to ``now_utc_iso()``.
"""

import datetime as _dt
from typing import Any, Optional


def now_utc() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc)


def now_utc_iso() -> str:
    return now_utc().isoformat(timespec="microseconds")


def resolve_now(now_iso: Optional[str]) -> str:
    """Return the caller-supplied timestamp, or the current instant."""
    if now_iso is None:
        return now_utc_iso()
    return require_datetime_iso(now_iso, field="now_iso")


def parse_datetime_iso(value: Any) -> Optional[_dt.datetime]:
    if value is None:
        return None
    if isinstance(value, _dt.datetime):
        return value
    s = str(value).strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        return _dt.datetime.fromisoformat(s)
    except ValueError:
        return None


def require_datetime_iso(value: Any, *, field: str = "datetime") -> str:
    """
    Ensure value is an ISO-8601 date or datetime and return it normalized.
    Fail-loud: raises ValueError with the field name.
    """
    if value is None:
        raise ValueError(f"{field} is required")
    if isinstance(value, _dt.datetime):
        return value.isoformat()
    if isinstance(value, _dt.date):
        return _dt.datetime(value.year, value.month, value.day).isoformat()
    parsed = parse_datetime_iso(value)
    if parsed is None:
        raise ValueError(f"Invalid {field}: {value!r}")
    return parsed.isoformat()

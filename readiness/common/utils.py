"""Canonical utility helpers shared across the engine, adapters and reporters.

Import from here instead of re-defining ``_utc_now``, ``_parse_ts`` or
duration parsing in each module.
"""
from __future__ import annotations

import os
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([smhdw]?)\s*$", re.IGNORECASE)
_DURATION_UNITS = {
    "": 1,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
}


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_iso_ts(value: object) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp (or epoch ms int) to an aware UTC datetime.

    Naive timestamps are taken to be UTC. Returns ``None`` for empty or
    unparsable input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(float(value) / 1000.0, tz=timezone.utc)
    else:
        try:
            dt = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_duration(value: Any) -> timedelta:
    """Parse ``"90s"``, ``"30m"``, ``"24h"``, ``"7d"``, ``"1w"`` or plain seconds.

    Raises ``ValueError`` on anything else, including booleans.
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return timedelta(seconds=float(value))
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValueError(f"invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(seconds=float(amount) * _DURATION_UNITS[unit.lower()])


def format_duration(delta: timedelta) -> str:
    """Render a duration compactly, e.g. ``1d2h``, ``45m``, ``30s``."""
    total = int(delta.total_seconds())
    if total <= 0:
        return "0s"
    parts = []
    for label, size in (("d", 86400), ("h", 3600), ("m", 60), ("s", 1)):
        if total >= size:
            parts.append(f"{total // size}{label}")
            total %= size
    return "".join(parts)


def age_of(ts: Optional[datetime], now: datetime) -> Optional[timedelta]:
    """Age of *ts* relative to *now*; future timestamps count as age zero."""
    if ts is None:
        return None
    return max(timedelta(0), now - ts)


def env_str(name: Optional[str], default: str = "") -> str:
    """Read a string from an environment variable named *name* (may be unset)."""
    if not name:
        return default
    return os.getenv(name, default)

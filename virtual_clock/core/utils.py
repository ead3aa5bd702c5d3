"""Small utilities."""

from __future__ import annotations

import math
import time
from datetime import date, datetime
from typing import Any, Optional

# Captured at import so a patched time.time never feeds back into the clock.
_real_time = time.time


def real_now_ms() -> float:
    return _real_time() * 1000.0


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def is_number(value: Any) -> bool:
    """True for finite ints/floats; bools are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # ints too large for a float
        return False


def normalize_speed(speed: Any) -> float:
    """Coerce a requested speed to a positive finite float, falling back to 1."""
    if isinstance(speed, bool):
        return 1.0
    try:
        value = float(speed)
    except (TypeError, ValueError, OverflowError):
        return 1.0
    if not math.isfinite(value) or value <= 0:
        return 1.0
    return value


def is_representable(ms: float) -> bool:
    """True when ``ms`` can be shown as a local ``datetime``."""
    try:
        datetime.fromtimestamp(ms / 1000.0)
    except (OverflowError, OSError, ValueError):
        return False
    return True


def to_millis(value: Any) -> Optional[float]:
    """Convert ms / datetime / date / ISO string to epoch ms, or None if unusable.

    Naive datetimes are interpreted as local time, like ``datetime.timestamp``.
    Numbers outside the range ``datetime`` can represent count as unusable.
    """
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    try:
        if is_number(value):
            ms = float(value)
        elif isinstance(value, datetime):
            ms = value.timestamp() * 1000.0
        elif isinstance(value, date):
            ms = datetime(value.year, value.month, value.day).timestamp() * 1000.0
        else:
            return None
    except (OverflowError, OSError, ValueError):
        return None
    return ms if is_representable(ms) else None

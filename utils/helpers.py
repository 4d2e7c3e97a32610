# utils/helpers.py
import math
import uuid
from datetime import date, datetime, timezone


def today_str() -> str:
    """Return today's date as ISO string (YYYY-MM-DD)."""
    return date.today().isoformat()


def now_iso() -> str:
    """UTC timestamp used for created_at columns, e.g. 2025-09-16T12:00:01.123Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_id() -> str:
    """Fresh opaque record id. Ids are never reused."""
    return uuid.uuid4().hex


def round_half_up(x: float) -> float:
    """
    Round to the nearest whole number with .5 going up (towards +inf).
    Python's round() uses banker's rounding, which would turn 212.5 into 212.
    """
    return float(math.floor(x + 0.5))

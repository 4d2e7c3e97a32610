# utils/validators.py
import math


def non_empty(text) -> bool:
    """
    True if `text` is not None/empty after stripping whitespace.
    """
    return bool(text and str(text).strip())


# ---- Numeric parsing ----

def try_parse_float(x):
    """
    Best-effort parse to float.

    Returns:
        (ok: bool, value: float|None)
    """
    if x is None or isinstance(x, bool):
        return False, None
    try:
        return True, float(x)
    except Exception:
        return False, None


def as_float(x, default: float = 0.0) -> float:
    """
    Lenient numeric coercion for values read back from storage or legacy JSON
    (None, '', or junk become `default`).
    """
    ok, val = try_parse_float(x)
    return val if ok and val is not None else default


def optional_text(x):
    """Empty strings collapse to None so optional columns store NULL."""
    if x is None:
        return None
    s = str(x)
    return s if s.strip() else None


def as_int(x, default: int = 0) -> int:
    """as_float truncated to int; inf/nan (e.g. 1e400 in old JSON) become `default`."""
    val = as_float(x, default)
    return int(val) if math.isfinite(val) else default

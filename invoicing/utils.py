from __future__ import annotations

import math
import uuid
from datetime import datetime, date, timezone
from typing import Any, Optional


def iso_now() -> str:
    # Use UTC ISO timestamps for consistency.
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def new_id() -> str:
    return uuid.uuid4().hex


def safe_div(n: float, d: float) -> float:
    return float(n) / float(d) if d else 0.0


def to_float(v: Any) -> Optional[float]:
    """
    Lenient numeric parse used for form input: None for blanks, bools,
    non-numeric text and NaN.
    """
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, str):
        v = v.strip().replace(",", ".")
        if not v:
            return None
    try:
        f = float(v)
    except (TypeError, ValueError):
        return None
    if math.isnan(f) or math.isinf(f):
        return None
    return f


def parse_iso_date(value: Any) -> Optional[date]:
    if not value:
        return None
    s = str(value).strip()
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        return None


def choice_index(options: list, value: Any, default: int = 0) -> int:
    # Selectbox index that tolerates missing or unknown stored values.
    try:
        return options.index(value)
    except ValueError:
        return default

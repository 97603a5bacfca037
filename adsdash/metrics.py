"""Turn raw report counters into MetricRow objects with derived ratios."""

from __future__ import annotations

import math
from typing import Any, Mapping, Optional

from adsdash.schema import MetricRow, safe_ratio

MICROS_PER_UNIT = 1_000_000

# Keys consumed by derive_metrics; anything else in a raw row lands in ``extra``.
COUNTER_KEYS = {
    "impressions",
    "clicks",
    "cost_micros",
    "conversions",
    "conversions_value",
    "view_through_conversions",
}
IDENTITY_KEYS = {"name", "id", "date"}

__all__ = ["derive_metrics", "safe_ratio", "to_float", "to_int", "to_text"]


def to_float(v: Any, default: float = 0.0) -> float:
    try:
        out = float(v)
    except (TypeError, ValueError):
        return default
    if math.isnan(out) or math.isinf(out):
        return default
    return out


def to_int(v: Any, default: int = 0) -> int:
    # sheets hand back "12.0" for integer cells
    out = to_float(v, float(default))
    return int(out)


def to_text(v: Any) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def derive_metrics(raw: Mapping[str, Any]) -> MetricRow:
    """Build a MetricRow from one raw report row.

    Cost arrives in micro-units. Missing or unparseable numbers count as 0;
    this function never raises on bad input.
    """
    extra = {
        k: v for k, v in raw.items() if k not in COUNTER_KEYS and k not in IDENTITY_KEYS
    }
    return MetricRow.from_counters(
        name=str(raw.get("name") or ""),
        id=to_text(raw.get("id")),
        date=to_text(raw.get("date")),
        impressions=to_int(raw.get("impressions")),
        clicks=to_int(raw.get("clicks")),
        cost=to_float(raw.get("cost_micros")) / MICROS_PER_UNIT,
        conversions=to_float(raw.get("conversions")),
        conversion_value=to_float(raw.get("conversions_value")),
        view_through_conversions=to_float(raw.get("view_through_conversions")),
        extra=extra,
    )

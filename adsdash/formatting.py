"""Display formatters. Percentage scaling happens here and nowhere else."""

from __future__ import annotations

import math


def round_half_up(v: float) -> int:
    return int(math.floor(v + 0.5))


def format_count(v: float) -> str:
    return f"{round_half_up(v):,}"


def format_currency(v: float, currency: str = "€") -> str:
    return f"{currency}{v:,.2f}"


def format_percent(v: float, digits: int = 2) -> str:
    """Format a 0–1 fraction as a percentage string."""
    return f"{v * 100:.{digits}f}%"


def format_roas(v: float) -> str:
    return f"{v:.2f}x"


def format_metric(key: str, v: float, currency: str = "€") -> str:
    if key in {"cost", "conversion_value", "cpc", "cpa", "aov"}:
        return format_currency(v, currency)
    if key in {"ctr", "conv_rate"}:
        return format_percent(v)
    if key == "roas":
        return format_roas(v)
    return format_count(v)

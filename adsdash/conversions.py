"""Join a single-conversion-action report onto the primary campaign-day stream."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional

from adsdash.metrics import to_float
from adsdash.schema import ConversionTotals, MetricRow

logger = logging.getLogger(__name__)

DEFAULT_ACTION_NAME = "Google Shopping App Purchase"

_ZERO = ConversionTotals()


def conversion_key(campaign_id: Optional[str], date: Optional[str]) -> str:
    return f"{campaign_id or ''}_{date or ''}"


def build_conversion_index(
    rows: Iterable[Mapping[str, Any]],
    action_name: str = DEFAULT_ACTION_NAME,
) -> Dict[str, ConversionTotals]:
    """Sum conversions/value per campaign-date for one conversion action.

    The action filter is an exact, case-sensitive match. Several rows on the
    same key (e.g. two matching actions on one day) are added together.
    """
    index: Dict[str, ConversionTotals] = {}
    for raw in rows:
        if str(raw.get("conversion_action_name") or "") != action_name:
            continue
        key = conversion_key(
            str(raw.get("campaign_id") or ""), str(raw.get("date") or "")
        )
        totals = ConversionTotals(
            conversions=to_float(raw.get("conversions")),
            value=to_float(raw.get("conversions_value")),
        )
        index[key] = index.get(key, _ZERO) + totals

    logger.info(
        "Conversion index for %r covers %d campaign-date keys", action_name, len(index)
    )
    return index


def join_conversions(
    primary_rows: Iterable[MetricRow],
    index: Mapping[str, ConversionTotals],
) -> List[MetricRow]:
    """Replace each row's conversions/value with the indexed totals.

    Rows with no entry get 0/0. The output is a separate series; the
    primary rows are left untouched.
    """
    if not index:
        logger.warning("No conversion-action data found; joined series is all zero")

    out: List[MetricRow] = []
    for row in primary_rows:
        totals = index.get(conversion_key(row.id, row.date), _ZERO)
        out.append(
            replace(
                row,
                conversions=totals.conversions,
                conversion_value=totals.value,
            ).recomputed()
        )
    return out

"""Group MetricRows and re-derive ratios from the summed counters."""

from __future__ import annotations

from typing import Callable, Dict, Hashable, Iterable, List, Optional, TypeVar

from adsdash.schema import MetricRow

K = TypeVar("K", bound=Hashable)

ALL_CAMPAIGNS = "All Campaigns"


class _Bucket:
    """Running sums for one group key."""

    __slots__ = (
        "name", "id", "date", "dates", "impressions", "clicks", "cost",
        "conversions", "conversion_value", "view_through_conversions",
    )

    def __init__(self, first: MetricRow, label: Optional[str]):
        self.name = label if label is not None else first.name
        self.id = None if label is not None else first.id
        self.date = first.date
        self.dates = {first.date}
        self.impressions = 0
        self.clicks = 0
        self.cost = 0.0
        self.conversions = 0.0
        self.conversion_value = 0.0
        self.view_through_conversions = 0.0

    def add(self, row: MetricRow) -> None:
        self.dates.add(row.date)
        self.impressions += row.impressions or 0
        self.clicks += row.clicks or 0
        self.cost += row.cost or 0.0
        self.conversions += row.conversions or 0.0
        self.conversion_value += row.conversion_value or 0.0
        self.view_through_conversions += row.view_through_conversions or 0.0

    def to_row(self) -> MetricRow:
        return MetricRow.from_counters(
            name=self.name,
            id=self.id,
            date=self.date if len(self.dates) == 1 else None,
            impressions=self.impressions,
            clicks=self.clicks,
            cost=self.cost,
            conversions=self.conversions,
            conversion_value=self.conversion_value,
            view_through_conversions=self.view_through_conversions,
        )


def aggregate_by_key(
    rows: Iterable[MetricRow],
    key_fn: Callable[[MetricRow], K],
    label: Optional[str] = None,
) -> Dict[K, MetricRow]:
    """Sum additive counters per ``key_fn(row)`` and derive ratios once.

    Ratios are computed from the sums, never by averaging per-row ratios.
    ``label`` replaces the carried name (e.g. "All Campaigns").
    """
    buckets: Dict[K, _Bucket] = {}
    for row in rows:
        key = key_fn(row)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = _Bucket(row, label)
        bucket.add(row)
    return {key: bucket.to_row() for key, bucket in buckets.items()}


def _date_sort_key(row: MetricRow) -> str:
    return row.date or ""


def aggregate_by_date(
    rows: Iterable[MetricRow], label: str = ALL_CAMPAIGNS
) -> List[MetricRow]:
    """One row per date, ascending."""
    grouped = aggregate_by_key(rows, lambda r: r.date or "", label=label)
    return sorted(grouped.values(), key=_date_sort_key)


def aggregate_totals(rows: Iterable[MetricRow], label: str = ALL_CAMPAIGNS) -> MetricRow:
    grouped = aggregate_by_key(rows, lambda r: None, label=label)
    if not grouped:
        return MetricRow(name=label)
    return grouped[None]


def aggregate_by_product(rows: Iterable[MetricRow]) -> List[MetricRow]:
    return list(aggregate_by_key(rows, lambda r: r.name).values())


def metrics_for_campaign(rows: Iterable[MetricRow], campaign_id: str = "") -> List[MetricRow]:
    """Date series for one campaign, or the all-campaign rollup when id is empty."""
    if not campaign_id:
        return aggregate_by_date(rows)
    selected = [r for r in rows if r.id == campaign_id]
    return sorted(selected, key=_date_sort_key)

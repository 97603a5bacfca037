"""Campaign directory used by the campaign filter."""

from __future__ import annotations

from typing import Dict, Iterable, List

from adsdash.schema import Campaign, MetricRow


def build_campaign_directory(rows: Iterable[MetricRow]) -> List[Campaign]:
    """Deduplicate rows by campaign id, summing cost across every date.

    The first row seen for an id sets the display name. Sorted by total cost,
    highest first; zero-cost campaigns are kept at the bottom.
    """
    names: Dict[str, str] = {}
    costs: Dict[str, float] = {}
    for row in rows:
        cid = row.id or ""
        if cid not in names:
            names[cid] = row.name
            costs[cid] = 0.0
        costs[cid] += row.cost or 0.0

    directory = [Campaign(id=cid, name=names[cid], total_cost=costs[cid]) for cid in names]
    # sorted() is stable, so ties keep first-seen order
    return sorted(directory, key=lambda c: c.total_cost, reverse=True)

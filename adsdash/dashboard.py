"""Assemble dashboard views from the report tabs."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from adsdash.aggregate import (
    ALL_CAMPAIGNS,
    aggregate_by_product,
    aggregate_totals,
    metrics_for_campaign,
)
from adsdash.analyzer import classify_performance
from adsdash.campaigns import build_campaign_directory
from adsdash.config import AppConfig
from adsdash.connectors.base import TabStore, read_named_values
from adsdash.reports import TAB_LAYOUTS, records_to_rows
from adsdash.schema import AnalysisResult, Campaign, MetricRow, rows_of

logger = logging.getLogger(__name__)

METRIC_TABS = ("daily", "daily2", "search_terms", "products")
PRODUCT_SEGMENTS = ("all", "top", "bottom", "middle")


@dataclass
class DashboardData:
    daily: List[MetricRow] = field(default_factory=list)
    daily2: List[MetricRow] = field(default_factory=list)
    search_terms: List[MetricRow] = field(default_factory=list)
    products: List[MetricRow] = field(default_factory=list)
    config_values: Dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.daily or self.daily2 or self.search_terms or self.products)


@dataclass(frozen=True)
class DashboardSummary:
    series: List[MetricRow]
    totals: MetricRow
    campaigns: List[Campaign]


def _load_metric_tab(store: TabStore, cfg: AppConfig, key: str) -> List[MetricRow]:
    try:
        result = store.read_tab(cfg.sheet.tab(key))
        return records_to_rows(rows_of(result), TAB_LAYOUTS[key])
    except Exception:
        # a failing tab loads as empty
        logger.exception("Failed to load %s tab", key)
        return []


def _load_config_tab(store: TabStore, cfg: AppConfig) -> Dict[str, str]:
    try:
        return read_named_values(store, cfg.sheet.tab("config_info"))
    except Exception:
        logger.info("Config tab unavailable, continuing without named values", exc_info=True)
        return {}


def load_dashboard(store: TabStore, cfg: AppConfig, max_workers: int = 5) -> DashboardData:
    """Read every tab concurrently and wait for all of them before returning."""
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = {key: pool.submit(_load_metric_tab, store, cfg, key) for key in METRIC_TABS}
        config_future = pool.submit(_load_config_tab, store, cfg)
        loaded = {key: fut.result() for key, fut in futures.items()}
        config_values = config_future.result()

    data = DashboardData(config_values=config_values, **loaded)
    if data.is_empty:
        logger.warning("No data found in any tab")
    return data


def summarize(rows: List[MetricRow], campaign_id: str = "") -> DashboardSummary:
    series = metrics_for_campaign(rows, campaign_id)
    label = series[0].name if campaign_id and series else ALL_CAMPAIGNS
    return DashboardSummary(
        series=series,
        totals=aggregate_totals(series, label=label),
        campaigns=build_campaign_directory(rows),
    )


def performance_analysis(
    data: DashboardData, cfg: Optional[AppConfig] = None, campaign_id: str = ""
) -> AnalysisResult:
    """Verdict for one campaign, or the whole account when *campaign_id* is empty.

    Daily totals drive ROAS and CPA; view-through comes from the purchase series.
    """
    cfg = cfg or AppConfig()
    daily, daily2 = data.daily, data.daily2
    if campaign_id:
        daily = [r for r in daily if r.id == campaign_id]
        daily2 = [r for r in daily2 if r.id == campaign_id]
    totals = aggregate_totals(daily)
    view_through = sum(r.view_through_conversions for r in daily2)
    return classify_performance(totals, view_through, cfg.analysis)


def converting_products(rows: List[MetricRow]) -> List[MetricRow]:
    """One row per product title, keeping those that sold (>= 1 conversion, value > 0)."""
    return [r for r in aggregate_by_product(rows) if r.conversions >= 1 and r.conversion_value > 0]


def top_products(
    rows: List[MetricRow], metric: str = "roas", segment: str = "top", n: int = 10
) -> List[MetricRow]:
    """Slice products sorted by *metric* (descending): top, bottom, middle or all."""
    if segment not in PRODUCT_SEGMENTS:
        raise ValueError(f"segment must be one of {PRODUCT_SEGMENTS}")
    ranked = sorted(rows, key=lambda r: getattr(r, metric), reverse=True)
    if len(ranked) <= n or segment == "all":
        return ranked
    if segment == "bottom":
        return list(reversed(ranked[-n:]))
    if segment == "middle":
        start = max(0, len(ranked) // 2 - n // 2)
        return ranked[start:start + n]
    return ranked[:n]

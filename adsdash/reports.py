"""Report refresh pipeline: Google Ads reports → derived rows → tabs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from adsdash.config import AppConfig
from adsdash.connectors.base import TabStore
from adsdash.connectors.google_ads import (
    GoogleAdsReportSource,
    build_report_definitions,
    fetch_all,
)
from adsdash.conversions import build_conversion_index, join_conversions
from adsdash.metrics import derive_metrics, to_float, to_int, to_text
from adsdash.schema import Failed, MetricRow, rows_of

logger = logging.getLogger(__name__)

_INT_FIELDS = {"impressions", "clicks"}
_FLOAT_FIELDS = {
    "cost", "conversions", "conversion_value", "view_through_conversions",
}
_DERIVED_FIELDS = {"ctr", "cpc", "conv_rate", "cpa", "roas", "aov"}


@dataclass(frozen=True)
class TabLayout:
    """Column order of a tab and the MetricRow field behind each header.

    Fields prefixed ``extra.`` live in ``MetricRow.extra``. Ratio columns
    are written for readers of the sheet but recomputed on read.
    """

    key: str
    columns: Tuple[Tuple[str, str], ...]

    @property
    def headers(self) -> List[str]:
        return [h for h, _ in self.columns]


TAB_LAYOUTS: Dict[str, TabLayout] = {
    "search_terms": TabLayout(
        "search_terms",
        (
            ("search_term", "name"), ("campaign", "extra.campaign"),
            ("ad_group", "extra.ad_group"), ("impressions", "impressions"),
            ("clicks", "clicks"), ("cost", "cost"), ("conversions", "conversions"),
            ("conversion_value", "conversion_value"), ("cpc", "cpc"), ("ctr", "ctr"),
            ("conv_rate", "conv_rate"), ("cpa", "cpa"), ("roas", "roas"), ("aov", "aov"),
        ),
    ),
    "daily": TabLayout(
        "daily",
        (
            ("campaign", "name"), ("campaignId", "id"), ("impr", "impressions"),
            ("clicks", "clicks"), ("value", "conversion_value"), ("conv", "conversions"),
            ("cost", "cost"), ("date", "date"),
        ),
    ),
    "daily2": TabLayout(
        "daily2",
        (
            ("campaign", "name"), ("campaignId", "id"), ("impr", "impressions"),
            ("clicks", "clicks"), ("value", "conversion_value"), ("conv", "conversions"),
            ("cost", "cost"), ("view_through_conv", "view_through_conversions"),
            ("date", "date"),
        ),
    ),
    "products": TabLayout(
        "products",
        (
            ("product_title", "name"), ("impressions", "impressions"), ("clicks", "clicks"),
            ("cost", "cost"), ("conversions", "conversions"),
            ("conversion_value", "conversion_value"), ("ctr", "ctr"), ("roas", "roas"),
            ("cvr", "conv_rate"),
        ),
    ),
}

CONFIG_HEADERS = ["Config Name", "Value"]


def rows_to_records(rows: Iterable[MetricRow], layout: TabLayout) -> List[Dict[str, Any]]:
    records: List[Dict[str, Any]] = []
    for row in rows:
        record: Dict[str, Any] = {}
        for header, fld in layout.columns:
            if fld.startswith("extra."):
                record[header] = row.extra.get(fld[len("extra."):], "")
            else:
                value = getattr(row, fld)
                record[header] = "" if value is None else value
        records.append(record)
    return records


def records_to_rows(records: Iterable[Mapping[str, Any]], layout: TabLayout) -> List[MetricRow]:
    """Parse tab records back into MetricRows; bad cells count as 0."""
    rows: List[MetricRow] = []
    for record in records:
        kwargs: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for header, fld in layout.columns:
            value = record.get(header)
            if fld.startswith("extra."):
                extra[fld[len("extra."):]] = "" if value is None else str(value)
            elif fld in _INT_FIELDS:
                kwargs[fld] = to_int(value)
            elif fld in _FLOAT_FIELDS:
                kwargs[fld] = to_float(value)
            elif fld in _DERIVED_FIELDS:
                continue
            elif fld == "name":
                kwargs[fld] = "" if value is None else str(value)
            else:
                kwargs[fld] = to_text(value)
        rows.append(MetricRow.from_counters(extra=extra, **kwargs))
    return rows


# ─────────────────────────────────────────────────────────────────────────────
# Row builders
# ─────────────────────────────────────────────────────────────────────────────


def build_metric_rows(raw_rows: Iterable[Mapping[str, Any]]) -> List[MetricRow]:
    """Search-term, daily and product reports are plain per-row derivations."""
    return [derive_metrics(r) for r in raw_rows]


def build_daily2_rows(
    raw_rows: Iterable[Mapping[str, Any]],
    conversion_rows: Iterable[Mapping[str, Any]],
    action_name: str,
) -> List[MetricRow]:
    """Campaign-days whose conversions/value come from one conversion action."""
    index = build_conversion_index(conversion_rows, action_name)
    rows = join_conversions(build_metric_rows(raw_rows), index)
    logger.info("Processed %d rows for the purchase-only series", len(rows))
    return rows


def refresh_reports(
    cfg: AppConfig,
    source: GoogleAdsReportSource,
    store: TabStore,
    config_values: Optional[Mapping[str, str]] = None,
) -> Dict[str, Optional[int]]:
    """Pull every report and replace its tab.

    A report that fails to fetch is logged and its tab is left as it was
    (``None`` in the returned summary); the other tabs are still written.
    """
    results = fetch_all(source, build_report_definitions(cfg.report))
    summary: Dict[str, Optional[int]] = {}

    if config_values:
        records = [{"Config Name": k, "Value": v} for k, v in config_values.items()]
        summary["config_info"] = store.write_tab(
            cfg.sheet.tab("config_info"), CONFIG_HEADERS, records
        )

    conversions = results["purchase_conversions"]
    if isinstance(conversions, Failed):
        logger.error("Purchase conversions unavailable: %s", conversions.reason)

    built: Dict[str, List[MetricRow]] = {}
    for key in ("search_terms", "daily", "daily2", "products"):
        result = results[key]
        if isinstance(result, Failed):
            logger.error("Skipping %s tab: %s", key, result.reason)
            summary[key] = None
            continue
        if key == "daily2":
            built[key] = build_daily2_rows(
                rows_of(result), rows_of(conversions), cfg.report.purchase_action_name
            )
        else:
            built[key] = build_metric_rows(rows_of(result))

    for key, rows in built.items():
        layout = TAB_LAYOUTS[key]
        summary[key] = store.write_tab(
            cfg.sheet.tab(key), layout.headers, rows_to_records(rows, layout)
        )
    return summary


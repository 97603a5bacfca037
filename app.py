"""Streamlit app: adsdash performance dashboard.

Top-level tabs:
  📈 Performance   campaign selector, metric cards, daily chart, verdict
  🛒 Products      converting products ranked by a metric
  💡 Title Insights  heuristic or LLM insights and suggested rewrites
  🔎 Search Terms  search-term report as written by ``adsdash refresh``
"""

from __future__ import annotations

import os
from typing import Dict, List, Sequence

import pandas as pd
import streamlit as st
from dotenv import load_dotenv

from adsdash.aggregate import ALL_CAMPAIGNS
from adsdash.config import AppConfig, load_config
from adsdash.connectors.base import TabStore
from adsdash.connectors.google_sheets import GoogleSheetsConfigError, GoogleSheetsStore
from adsdash.connectors.web_app import WebAppSource
from adsdash.dashboard import (
    PRODUCT_SEGMENTS,
    DashboardData,
    converting_products,
    load_dashboard,
    performance_analysis,
    summarize,
    top_products,
)
from adsdash.formatting import format_metric
from adsdash.io_csv import CsvDirectoryStore
from adsdash.schema import MetricRow
from adsdash.title_service import HeuristicTitleService, LLMTitleService, config_api_key

# ─────────────────────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────────────────────

CONFIG_PATH = "config.yaml"
STORE_LABELS: Dict[str, str] = {
    "csv": "Local CSV folder",
    "web": "Apps Script web app",
    "sheets": "Google Sheets",
}
CARD_METRICS: List[List[str]] = [
    ["impressions", "clicks", "ctr", "cpc", "cost"],
    ["conversions", "conv_rate", "cpa", "conversion_value", "roas"],
]
METRIC_LABELS: Dict[str, str] = {
    "impressions": "Impressions",
    "clicks": "Clicks",
    "ctr": "CTR",
    "cpc": "CPC",
    "cost": "Cost",
    "conversions": "Conversions",
    "conv_rate": "Conv. rate",
    "cpa": "CPA",
    "conversion_value": "Conv. value",
    "roas": "ROAS",
}
CHART_METRICS = ["cost", "conversion_value", "clicks", "conversions", "roas", "cpa"]
PRODUCT_METRICS = ["roas", "cost", "conversions", "conversion_value", "ctr", "conv_rate"]
TABLE_COLUMNS = ["name", "impressions", "clicks", "cost", "conversions",
                 "conversion_value", "ctr", "conv_rate", "cpa", "roas"]

# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────


def _make_store(cfg: AppConfig, kind: str) -> TabStore:
    if kind == "sheets":
        return GoogleSheetsStore(cfg.sheet.spreadsheet_id)
    if kind == "web":
        if not cfg.sheet.web_app_url:
            raise GoogleSheetsConfigError("sheet.web_app_url is not set in config.yaml.")
        return WebAppSource(cfg.sheet.web_app_url)
    return CsvDirectoryStore(cfg.sheet.csv_dir)


def _load(cfg: AppConfig, kind: str) -> None:
    try:
        store = _make_store(cfg, kind)
    except GoogleSheetsConfigError as exc:
        st.error(str(exc))
        return
    with st.spinner("Loading report tabs…"):
        st.session_state.data = load_dashboard(store, cfg)
    st.session_state.store_kind = kind
    st.session_state.pop("insights", None)
    st.session_state.pop("improvements", None)


def _rows_frame(rows: Sequence[MetricRow], columns: Sequence[str], currency: str) -> pd.DataFrame:
    """Formatted table; numbers are rendered as display strings."""
    df = pd.DataFrame([r.to_dict() for r in rows])
    if df.empty:
        return df
    shown = [c for c in columns if c in df.columns]
    df = df[shown].copy()
    for col in shown:
        if col in METRIC_LABELS:
            df[col] = [format_metric(col, v, currency) for v in df[col]]
    return df.rename(columns={"name": "Name", **METRIC_LABELS})


def _resolve_title_service(cfg: AppConfig, mode: str, config_values: Dict[str, str]):
    """Return (service, actual_mode); live without a key falls back to dry."""
    if mode == "dry":
        return HeuristicTitleService(cfg.titles), "dry"

    load_dotenv()
    api_key = config_api_key(config_values, cfg.titles) or os.environ.get("ANTHROPIC_API_KEY", "").strip()
    if not api_key:
        st.warning(
            "⚠️ **Live mode selected but no API key was found.**  \n"
            "Set ANTHROPIC_API_KEY in `.env` or add API_KEY (or API_KEY_NATULIM) to the config tab.  \n"
            "**Falling back to the heuristic rules for this run.**",
            icon="⚠️",
        )
        return HeuristicTitleService(cfg.titles), "dry"

    try:
        from adsdash.providers.anthropic_provider import AnthropicProvider

        pcfg = cfg.provider
        provider = AnthropicProvider(
            model=pcfg.model,
            temperature=pcfg.temperature,
            max_tokens=pcfg.max_tokens,
            api_key=api_key,
            retry_cfg=cfg.retry_api,
            budget_cfg=cfg.budget,
        )
        return LLMTitleService(provider, cfg.titles), "live"
    except Exception as exc:
        st.warning(
            f"⚠️ **Could not initialise Anthropic provider** (`{exc}`).  \n"
            "**Falling back to the heuristic rules.**",
            icon="⚠️",
        )
        return HeuristicTitleService(cfg.titles), "dry"


def _metric_cards(totals: MetricRow, currency: str) -> None:
    for keys in CARD_METRICS:
        cols = st.columns(len(keys))
        for col, key in zip(cols, keys):
            col.metric(METRIC_LABELS[key], format_metric(key, getattr(totals, key), currency))


# ─────────────────────────────────────────────────────────────────────────────
# Tabs
# ─────────────────────────────────────────────────────────────────────────────


def performance_tab(cfg: AppConfig, data: DashboardData) -> None:
    currency = cfg.analysis.currency
    if not data.daily:
        st.info("📭 No data found in the daily tab. Run `adsdash refresh` first.")
        return

    directory = summarize(data.daily).campaigns
    options = [""] + [c.id for c in directory]
    labels = {c.id: f"{c.name} ({format_metric('cost', c.total_cost, currency)})" for c in directory}
    campaign_id = st.selectbox(
        "Campaign",
        options,
        format_func=lambda cid: labels.get(cid, ALL_CAMPAIGNS),
        key="campaign_id",
    )

    view = summarize(data.daily, campaign_id)
    if not view.series:
        st.info("📭 No data found for this campaign.")
        return

    st.subheader(view.totals.name)
    _metric_cards(view.totals, currency)

    if data.daily2:
        purchase = summarize(data.daily2, campaign_id).totals
        pc1, pc2, pc3 = st.columns(3)
        pc1.metric("Purchase conversions", format_metric("conversions", purchase.conversions))
        pc2.metric("Purchase value", format_metric("conversion_value", purchase.conversion_value, currency))
        pc3.metric("View-through conversions", format_metric("conversions", purchase.view_through_conversions))

    st.divider()
    chart_metric = st.selectbox(
        "Chart metric", CHART_METRICS, format_func=lambda k: METRIC_LABELS[k], key="chart_metric"
    )
    series = pd.DataFrame(
        {"date": [r.date for r in view.series], chart_metric: [getattr(r, chart_metric) for r in view.series]}
    ).set_index("date")
    st.line_chart(series, use_container_width=True)

    analysis = performance_analysis(data, cfg, campaign_id)
    banner = {"negative": st.error, "warning": st.warning, "positive": st.success}[analysis.sentiment]
    banner(f"**{view.totals.name}:** {analysis.text}")


def products_tab(cfg: AppConfig, data: DashboardData) -> None:
    rows = converting_products(data.products)
    if not rows:
        st.info("📭 No products with conversions found.")
        return

    c1, c2, c3 = st.columns(3)
    metric = c1.selectbox("Rank by", PRODUCT_METRICS, format_func=lambda k: METRIC_LABELS[k])
    segment = c2.radio("Segment", PRODUCT_SEGMENTS, index=1, horizontal=True)
    limit = c3.slider("Products", min_value=5, max_value=50, value=10, step=5)

    shown = top_products(rows, metric, segment, limit)
    st.caption(f"{len(shown)} of {len(rows)} converting products")
    st.dataframe(
        _rows_frame(shown, TABLE_COLUMNS, cfg.analysis.currency),
        use_container_width=True,
        hide_index=True,
    )


def insights_tab(cfg: AppConfig, data: DashboardData) -> None:
    rows = converting_products(data.products)
    if not rows:
        st.info("📭 No products with conversions found.")
        return

    mode = st.radio(
        "Mode",
        ["dry", "live"],
        horizontal=True,
        help="dry = rule-based heuristics, live = Anthropic API",
        key="title_mode",
    )

    b1, b2 = st.columns(2)
    if b1.button("💡 Generate insights", use_container_width=True):
        service, used = _resolve_title_service(cfg, mode, data.config_values)
        try:
            with st.spinner("Analyzing product titles…"):
                st.session_state.insights = (service.generate_insights(rows, data.config_values), used)
        except Exception as exc:
            st.error(f"Failed to analyze product titles: {exc}")

    if b2.button("✏️ Suggest better titles", use_container_width=True):
        service, used = _resolve_title_service(cfg, mode, data.config_values)
        try:
            with st.spinner("Rewriting weak titles…"):
                st.session_state.improvements = (service.improve_titles(rows, data.config_values), used)
        except Exception as exc:
            st.error(f"Failed to improve product titles: {exc}")

    if "insights" in st.session_state:
        found, used = st.session_state.insights
        st.subheader("Insights")
        st.caption(f"Mode: {used}")
        show = {"positive": st.success, "negative": st.error, "suggestion": st.info}
        for item in found:
            show[item.type](f"**{item.title}**  \n{item.content}")

    if "improvements" in st.session_state:
        rewrites, used = st.session_state.improvements
        st.subheader("Title improvements")
        st.caption(f"Mode: {used}")
        if not rewrites:
            st.info("No weak converting products to rewrite.")
        for item in rewrites:
            with st.expander(f"{item.original_title}  ({item.score}/10)"):
                st.markdown(f"**Suggested:** {item.improved_title}")
                st.write(item.explanation)


def search_terms_tab(cfg: AppConfig, data: DashboardData) -> None:
    if not data.search_terms:
        st.info("📭 No data found in the search-term tab.")
        return
    ranked = sorted(data.search_terms, key=lambda r: r.cost, reverse=True)
    st.dataframe(
        _rows_frame(ranked, ["name", "campaign", "ad_group"] + TABLE_COLUMNS[1:], cfg.analysis.currency),
        use_container_width=True,
        hide_index=True,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Entry point
# ─────────────────────────────────────────────────────────────────────────────


def main() -> None:
    st.set_page_config(
        page_title="adsdash",
        page_icon="📈",
        layout="wide",
    )
    cfg = load_config(CONFIG_PATH)

    st.title("📈 adsdash")
    st.caption("Google Ads performance for the last reporting window")

    with st.sidebar:
        st.header("Data source")
        kind = st.radio("Read tabs from", list(STORE_LABELS), format_func=STORE_LABELS.get)
        if st.button("🔄 Load data", use_container_width=True) or (
            "data" not in st.session_state or st.session_state.get("store_kind") != kind
        ):
            _load(cfg, kind)

    data: DashboardData = st.session_state.get("data")
    if data is None or data.is_empty:
        st.error("Failed to load data. Check the data source settings and try again.")
        return

    tab_perf, tab_products, tab_insights, tab_terms = st.tabs(
        ["📈 Performance", "🛒 Products", "💡 Title Insights", "🔎 Search Terms"]
    )
    with tab_perf:
        performance_tab(cfg, data)
    with tab_products:
        products_tab(cfg, data)
    with tab_insights:
        insights_tab(cfg, data)
    with tab_terms:
        search_terms_tab(cfg, data)


if __name__ == "__main__":
    main()

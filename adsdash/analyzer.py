"""Heuristic performance classification and product-title comparisons."""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple

from adsdash.config import AnalysisConfig, TitleInsightConfig
from adsdash.formatting import format_count, format_currency, format_percent, format_roas
from adsdash.schema import AnalysisResult, MetricRow, ProductInsight, safe_ratio

# ─────────────────────────────────────────────────────────────────────────────
# Account-level classification
# ─────────────────────────────────────────────────────────────────────────────


def classify_performance(
    totals: MetricRow,
    view_through_conversions: float = 0.0,
    cfg: Optional[AnalysisConfig] = None,
) -> AnalysisResult:
    """Classify aggregated totals as negative / warning / positive.

    Rules, first match wins:
      - ROAS < min_roas → negative
      - CPA  > max_cpa  → warning
      - otherwise       → positive

    ROAS and CPA are taken from the summed totals. View-through conversions
    are reported next to the conversion count but never enter ROAS or CPA.
    """
    cfg = cfg or AnalysisConfig()
    roas = safe_ratio(totals.conversion_value, totals.cost)
    cpa = safe_ratio(totals.cost, totals.conversions)
    ctr = safe_ratio(totals.clicks, totals.impressions)

    roas_s = format_roas(roas)
    cpa_s = format_currency(cpa, cfg.currency)
    tail = (
        f"Total conversions: {format_count(totals.conversions)} "
        f"(plus {format_count(view_through_conversions)} view-through), "
        f"CTR: {format_percent(ctr)}."
    )

    if roas < cfg.min_roas:
        return AnalysisResult(
            text=f"Campaign performance shows concerning ROAS of {roas_s} with CPA at {cpa_s}. {tail}",
            sentiment="negative",
        )
    if cpa > cfg.max_cpa:
        return AnalysisResult(
            text=f"Campaign achieving positive ROAS of {roas_s} but CPA is high at {cpa_s}. {tail}",
            sentiment="warning",
        )
    return AnalysisResult(
        text=f"Campaign performing well with ROAS at {roas_s} and CPA at {cpa_s}. {tail}",
        sentiment="positive",
    )


# ─────────────────────────────────────────────────────────────────────────────
# Product-title subgroup comparisons
# ─────────────────────────────────────────────────────────────────────────────


def _mean(rows: Sequence[MetricRow], metric: Callable[[MetricRow], float]) -> float:
    # empty groups divide by 1
    return sum(metric(r) for r in rows) / (len(rows) or 1)


def _lift(better: float, worse: float) -> str:
    if not worse:
        return "noticeably"
    return f"{(better / worse * 100 - 100):.0f}%"


def _split(
    rows: Sequence[MetricRow], predicate: Callable[[str], bool]
) -> Tuple[List[MetricRow], List[MetricRow]]:
    hit = [r for r in rows if predicate(r.name.lower())]
    miss = [r for r in rows if not predicate(r.name.lower())]
    return hit, miss


def compare_title_length(
    rows: Sequence[MetricRow], cfg: Optional[TitleInsightConfig] = None
) -> Optional[ProductInsight]:
    """Short vs long titles by mean ROAS."""
    cfg = cfg or TitleInsightConfig()
    n = cfg.short_title_words
    short = [r for r in rows if len(r.name.split()) < n]
    long_ = [r for r in rows if len(r.name.split()) >= n]

    avg_short = _mean(short, lambda r: r.roas)
    avg_long = _mean(long_, lambda r: r.roas)
    if abs(avg_short - avg_long) <= cfg.min_roas_difference:
        return None

    if avg_short > avg_long:
        content = (
            f"Shorter titles (under {n} words) are performing better with an average "
            f"ROAS of {avg_short:.1f}x vs {avg_long:.1f}x for longer titles."
        )
    else:
        content = (
            f"Longer titles ({n}+ words) are performing better with an average "
            f"ROAS of {avg_long:.1f}x vs {avg_short:.1f}x for shorter titles."
        )
    return ProductInsight(title="Title Length Matters", content=content, type="positive")


def compare_brand_position(
    rows: Sequence[MetricRow], cfg: Optional[TitleInsightConfig] = None
) -> Optional[ProductInsight]:
    """Brand token at the start of the title vs elsewhere, by mean CTR."""
    cfg = cfg or TitleInsightConfig()
    brand = cfg.brand_token.lower()
    first = [r for r in rows if r.name.lower().startswith(brand)]
    elsewhere = [
        r for r in rows
        if not r.name.lower().startswith(brand) and brand in r.name.lower()
    ]
    if not first or not elsewhere:
        return None

    ctr_first = _mean(first, lambda r: r.ctr)
    ctr_elsewhere = _mean(elsewhere, lambda r: r.ctr)
    if abs(ctr_first - ctr_elsewhere) <= cfg.min_ctr_difference:
        return None

    label = cfg.brand_token.capitalize()
    if ctr_first > ctr_elsewhere:
        content = (
            f'Products with brand name "{label}" at the beginning have '
            f"{_lift(ctr_first, ctr_elsewhere)} higher CTR."
        )
    else:
        content = (
            f'Products with brand name "{label}" not at the beginning perform better '
            f"with {_lift(ctr_elsewhere, ctr_first)} higher CTR."
        )
    return ProductInsight(title="Brand Position Impact", content=content, type="positive")


def compare_keyword(
    rows: Sequence[MetricRow], cfg: Optional[TitleInsightConfig] = None
) -> Optional[ProductInsight]:
    """Titles containing the keyword vs not, by mean ROAS."""
    cfg = cfg or TitleInsightConfig()
    keyword = cfg.keyword.lower()
    with_kw, without_kw = _split(rows, lambda title: keyword in title)
    if not with_kw or not without_kw:
        return None

    roas_kw = _mean(with_kw, lambda r: r.roas)
    roas_rest = _mean(without_kw, lambda r: r.roas)
    if roas_kw - roas_rest <= cfg.min_roas_difference:
        return None

    return ProductInsight(
        title=f"{cfg.keyword_label} Messaging Works",
        content=(
            f'Products with "{cfg.keyword_label}" in the title have '
            f"{_lift(roas_kw, roas_rest)} higher ROAS than those without."
        ),
        type="positive",
    )


def title_comparisons(
    rows: Sequence[MetricRow], cfg: Optional[TitleInsightConfig] = None
) -> List[ProductInsight]:
    checks = (compare_title_length, compare_brand_position, compare_keyword)
    return [insight for insight in (check(rows, cfg) for check in checks) if insight]

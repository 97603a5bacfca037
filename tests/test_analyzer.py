"""Tests for performance classification and title comparisons."""

from __future__ import annotations

from adsdash.analyzer import (
    classify_performance,
    compare_brand_position,
    compare_keyword,
    compare_title_length,
    title_comparisons,
)
from adsdash.config import AnalysisConfig
from adsdash.schema import MetricRow


def _totals(cost, value, conversions, impressions=100, clicks=10):
    return MetricRow.from_counters(
        impressions=impressions, clicks=clicks, cost=cost,
        conversions=conversions, conversion_value=value,
    )


def _product(name, roas=0.0, ctr_clicks=0):
    # cost 10 so conversion_value = roas * 10; 100 impressions so ctr = clicks / 100
    return MetricRow.from_counters(
        name=name, impressions=100, clicks=ctr_clicks, cost=10.0,
        conversions=1, conversion_value=roas * 10,
    )


# ── classification ───────────────────────────────────────────────────────────


def test_negative_when_roas_below_one():
    result = classify_performance(_totals(cost=10, value=5, conversions=1))
    assert result.sentiment == "negative"
    assert result.text.startswith(
        "Campaign performance shows concerning ROAS of 0.50x with CPA at €10.00."
    )


def test_roas_exactly_one_is_not_negative():
    assert classify_performance(_totals(cost=10, value=10, conversions=1)).sentiment == "positive"


def test_warning_when_cpa_high():
    result = classify_performance(_totals(cost=16, value=32, conversions=1))
    assert result.sentiment == "warning"
    assert "CPA is high at €16.00" in result.text


def test_cpa_exactly_fifteen_is_not_warning():
    assert classify_performance(_totals(cost=15, value=30, conversions=1)).sentiment == "positive"


def test_negative_wins_over_warning():
    assert classify_performance(_totals(cost=100, value=50, conversions=1)).sentiment == "negative"


def test_view_through_reported_but_not_in_roas():
    result = classify_performance(_totals(cost=10, value=20, conversions=2), view_through_conversions=100)
    assert result.text == (
        "Campaign performing well with ROAS at 2.00x and CPA at €5.00. "
        "Total conversions: 2 (plus 100 view-through), CTR: 10.00%."
    )


def test_zero_totals_do_not_crash():
    result = classify_performance(MetricRow())
    assert result.sentiment == "negative"
    assert "0.00x" in result.text


def test_thresholds_and_currency_from_config():
    cfg = AnalysisConfig(min_roas=3.0, max_cpa=15.0, currency="$")
    result = classify_performance(_totals(cost=10, value=20, conversions=1), cfg=cfg)
    assert result.sentiment == "negative"
    assert "$10.00" in result.text


# ── title comparisons ────────────────────────────────────────────────────────


def test_short_titles_win():
    rows = [_product("Natulim Gel", roas=5), _product("Natulim Gel Ecológico Lavanda Grande 1L", roas=1)]
    insight = compare_title_length(rows)
    assert insight is not None
    assert insight.content.startswith("Shorter titles (under 6 words)")
    assert "5.0x vs 1.0x" in insight.content


def test_long_titles_win():
    rows = [_product("Gel", roas=1), _product("Natulim Gel Ecológico Lavanda Grande 1L", roas=4)]
    assert compare_title_length(rows).content.startswith("Longer titles (6+ words)")


def test_small_difference_emits_nothing():
    rows = [_product("Gel", roas=2.0), _product("one two three four five six", roas=2.5)]
    assert compare_title_length(rows) is None


def test_empty_subgroup_does_not_crash():
    insight = compare_title_length([_product("Gel", roas=3)])
    assert insight is not None
    assert "vs 0.0x" in insight.content


def test_brand_at_start_has_higher_ctr():
    rows = [_product("Natulim Gel", ctr_clicks=5), _product("Gel de baño Natulim", ctr_clicks=1)]
    insight = compare_brand_position(rows)
    assert insight.content == 'Products with brand name "Natulim" at the beginning have 400% higher CTR.'


def test_brand_needs_both_groups():
    assert compare_brand_position([_product("Natulim Gel", ctr_clicks=5)]) is None


def test_keyword_leads():
    rows = [_product("Limpiador Ecológico", roas=4), _product("Limpiador", roas=2)]
    insight = compare_keyword(rows)
    assert insight.title == "Ecológico Messaging Works"
    assert "100% higher ROAS" in insight.content


def test_keyword_trailing_emits_nothing():
    rows = [_product("Limpiador Ecológico", roas=1), _product("Limpiador", roas=4)]
    assert compare_keyword(rows) is None


def test_title_comparisons_collects_only_emitted():
    # no brand token anywhere, so the brand comparison stays silent
    rows = [_product("Limpiador Ecológico", roas=4), _product("Limpiador", roas=2)]
    titles = [i.title for i in title_comparisons(rows)]
    assert titles == ["Title Length Matters", "Ecológico Messaging Works"]

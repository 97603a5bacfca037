"""Tests for per-row metric derivation."""

from __future__ import annotations

import math

import pytest

from adsdash.metrics import derive_metrics, to_float, to_int, to_text
from adsdash.schema import MetricRow, safe_ratio

RATIOS = ("ctr", "cpc", "conv_rate", "cpa", "roas", "aov")


def test_end_to_end_derivation():
    row = derive_metrics(
        {
            "name": "Brand",
            "id": 111,
            "date": "2024-05-01",
            "cost_micros": 2_000_000,
            "clicks": 100,
            "impressions": 1000,
            "conversions": 5,
            "conversions_value": 1500,
        }
    )
    assert row.name == "Brand"
    assert row.id == "111"
    assert row.cost == pytest.approx(2.0)
    assert row.ctr == pytest.approx(0.1)
    assert row.cpc == pytest.approx(0.02)
    assert row.conv_rate == pytest.approx(0.05)
    assert row.cpa == pytest.approx(0.4)
    assert row.roas == pytest.approx(750.0)
    assert row.aov == pytest.approx(300.0)


def test_missing_fields_count_as_zero():
    row = derive_metrics({})
    assert row.impressions == 0
    assert row.cost == 0.0
    assert row.name == ""
    assert row.id is None
    for r in RATIOS:
        assert getattr(row, r) == 0.0


def test_garbage_values_never_raise():
    row = derive_metrics(
        {
            "impressions": None,
            "clicks": "abc",
            "cost_micros": "nan",
            "conversions": float("inf"),
            "conversions_value": {"nested": 1},
        }
    )
    assert (row.impressions, row.clicks, row.cost, row.conversions) == (0, 0, 0.0, 0.0)
    assert row.conversion_value == 0.0


@pytest.mark.parametrize(
    "raw",
    [
        {"clicks": 5, "impressions": 0},
        {"cost_micros": 3_000_000, "clicks": 0},
        {"conversions_value": 40, "cost_micros": 0},
        {"cost_micros": 1_000_000, "conversions": 0},
    ],
)
def test_zero_denominator_ratios_are_zero_and_finite(raw):
    row = derive_metrics(raw)
    for r in RATIOS:
        value = getattr(row, r)
        assert math.isfinite(value)
        assert value >= 0


def test_unknown_keys_go_to_extra():
    row = derive_metrics({"name": "shoes", "campaign": "Search ES", "ad_group": "AG1"})
    assert row.extra == {"campaign": "Search ES", "ad_group": "AG1"}
    assert row.to_dict()["campaign"] == "Search ES"


def test_coercion_helpers():
    assert to_float("3.5") == 3.5
    assert to_float("", default=1.0) == 1.0
    assert to_int("12.0") == 12
    assert to_int(7.9) == 7
    assert to_text("  ") is None
    assert to_text(123) == "123"


def test_safe_ratio_and_recompute():
    assert safe_ratio(1, 0) == 0.0
    row = MetricRow(clicks=10, cost=10.0, ctr=99.0).recomputed()
    assert row.cpc == 1.0
    assert row.ctr == 0.0

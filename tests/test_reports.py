"""Tests for the report refresh pipeline."""

from __future__ import annotations

import pytest

from adsdash.config import AppConfig
from adsdash.io_csv import CsvDirectoryStore
from adsdash.reports import (
    TAB_LAYOUTS,
    build_daily2_rows,
    records_to_rows,
    refresh_reports,
    rows_to_records,
)
from adsdash.schema import Empty, Failed, MetricRow, Ok, rows_of

ACTION = "Google Shopping App Purchase"

DAILY = [
    {"name": "Shopping ES", "id": 1, "date": "2024-05-01", "impressions": 1000, "clicks": 100,
     "cost_micros": 20_000_000, "conversions": 4.0, "conversions_value": 200.0},
    {"name": "Shopping ES", "id": 1, "date": "2024-05-02", "impressions": 800, "clicks": 80,
     "cost_micros": 16_000_000, "conversions": 2.0, "conversions_value": 90.0},
]
PURCHASES = [
    {"campaign_id": 1, "date": "2024-05-01", "conversion_action_name": ACTION,
     "conversions": 1.0, "conversions_value": 60.0},
]


class FakeSource:
    """Answers fetch(report) from canned rows keyed by report name."""

    def __init__(self, rows):
        self.rows = rows
        self.fetched = []

    def fetch(self, report):
        self.fetched.append(report.name)
        value = self.rows.get(report.name, [])
        if isinstance(value, Failed):
            return value
        return Ok(value) if value else Empty()


def _daily2_raw():
    return [dict(r, view_through_conversions=3) for r in DAILY]


def test_build_daily2_rows_joins_purchase_action():
    rows = build_daily2_rows(_daily2_raw(), PURCHASES, ACTION)
    assert [(r.conversions, r.conversion_value) for r in rows] == [(1.0, 60.0), (0.0, 0.0)]
    assert rows[0].view_through_conversions == 3.0
    assert rows[0].roas == pytest.approx(3.0)


def test_records_round_trip_recomputes_ratios():
    layout = TAB_LAYOUTS["search_terms"]
    row = MetricRow.from_counters(
        name="jabón natural", impressions=50, clicks=5, cost=2.5,
        conversions=1, conversion_value=10.0, extra={"campaign": "Search ES", "ad_group": "Jabones"},
    )
    record = rows_to_records([row], layout)[0]
    assert list(record) == layout.headers
    assert record["campaign"] == "Search ES"

    tampered = dict(record, roas="999", cost="2.5")
    back = records_to_rows([tampered], layout)[0]
    assert back.roas == pytest.approx(4.0)
    assert back.extra == {"campaign": "Search ES", "ad_group": "Jabones"}


def test_records_to_rows_tolerates_bad_cells():
    rows = records_to_rows([{"campaign": "C", "impr": "n/a", "cost": ""}], TAB_LAYOUTS["daily"])
    assert rows[0].impressions == 0
    assert rows[0].cost == 0.0
    assert rows[0].id is None


def test_refresh_writes_every_tab(tmp_path):
    cfg = AppConfig()
    store = CsvDirectoryStore(tmp_path)
    source = FakeSource({
        "daily": DAILY,
        "daily2": _daily2_raw(),
        "purchase_conversions": PURCHASES,
        "products": [{"name": "Natulim Gel", "impressions": 10, "clicks": 2,
                      "cost_micros": 1_000_000, "conversions": 1, "conversions_value": 5}],
    })

    summary = refresh_reports(cfg, source, store, config_values={"WEBSITE_URL": "https://natulim.com/"})

    assert summary == {"config_info": 1, "search_terms": 0, "daily": 2, "daily2": 2, "products": 1}
    daily2 = records_to_rows(rows_of(store.read_tab("Daily2")), TAB_LAYOUTS["daily2"])
    assert [r.conversions for r in daily2] == [1.0, 0.0]
    assert daily2[0].id == "1"
    daily = records_to_rows(rows_of(store.read_tab("Daily")), TAB_LAYOUTS["daily"])
    assert [r.conversions for r in daily] == [4.0, 2.0]
    assert rows_of(store.read_tab("ConfigInfo")) == [{"Config Name": "WEBSITE_URL", "Value": "https://natulim.com/"}]
    assert isinstance(store.read_tab("SearchTerms"), Empty)


def test_failed_report_leaves_tab_untouched(tmp_path):
    cfg = AppConfig()
    store = CsvDirectoryStore(tmp_path)
    store.write_tab("Daily", ["campaign"], [{"campaign": "yesterday"}])
    source = FakeSource({"daily": Failed("quota"), "daily2": _daily2_raw()})

    summary = refresh_reports(cfg, source, store)

    assert summary["daily"] is None
    assert summary["daily2"] == 2
    assert "config_info" not in summary
    assert rows_of(store.read_tab("Daily")) == [{"campaign": "yesterday"}]
    # no purchase data: the purchase-only series is all zero
    daily2 = records_to_rows(rows_of(store.read_tab("Daily2")), TAB_LAYOUTS["daily2"])
    assert all(r.conversions == 0.0 for r in daily2)

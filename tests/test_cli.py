"""CLI tests against a local CSV store."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from adsdash.cli import cli
from adsdash.io_csv import CsvDirectoryStore
from adsdash.reports import TAB_LAYOUTS, rows_to_records
from adsdash.schema import Empty, MetricRow, Ok


def _row(name, cid, date, cost, conv, value, vtc=0.0):
    return MetricRow.from_counters(
        name=name, id=cid, date=date, impressions=int(cost * 50), clicks=int(cost * 5),
        cost=cost, conversions=conv, conversion_value=value, view_through_conversions=vtc,
    )


DAILY = [
    _row("Shopping ES", "1", "2024-05-01", 20.0, 4, 200.0),
    _row("Shopping ES", "1", "2024-05-02", 20.0, 4, 200.0),
    _row("Search Brand", "2", "2024-05-01", 10.0, 2, 60.0),
]
DAILY2 = [
    _row("Shopping ES", "1", "2024-05-01", 20.0, 1, 50.0, vtc=3),
    _row("Shopping ES", "1", "2024-05-02", 20.0, 1, 50.0, vtc=3),
    _row("Search Brand", "2", "2024-05-01", 10.0, 1, 30.0, vtc=3),
]
PRODUCTS = [
    _row("Natulim Gel 500ml", None, None, 10.0, 2, 60.0),
    _row("Limpiador Multiusos", None, None, 10.0, 1, 10.0),
    _row("Sin ventas", None, None, 5.0, 0, 0.0),
]


@pytest.fixture()
def project(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    data = tmp_path / "data"
    (tmp_path / "config.yaml").write_text(f"sheet:\n  csv_dir: {data}\n", encoding="utf-8")
    store = CsvDirectoryStore(data)
    for tab, key, rows in [("Daily", "daily", DAILY), ("Daily2", "daily2", DAILY2),
                           ("ProductPerformance", "products", PRODUCTS)]:
        layout = TAB_LAYOUTS[key]
        store.write_tab(tab, layout.headers, rows_to_records(rows, layout))
    store.write_tab("SearchTerms", TAB_LAYOUTS["search_terms"].headers, [])
    store.write_tab("ConfigInfo", ["Config Name", "Value"], [])
    return tmp_path


def test_summary_all_campaigns(project):
    out = project / "reports" / "summary.md"
    result = CliRunner().invoke(cli, ["summary", "--out", str(out)])
    assert result.exit_code == 0, result.output
    assert "# All Campaigns" in result.output
    assert "- roas: 9.20x" in result.output
    assert "- ctr: 10.00%" in result.output
    assert "- view-through conversions: 9" in result.output
    assert "[positive] Campaign performing well with ROAS at 9.20x and CPA at €5.00." in result.output
    assert out.read_text(encoding="utf-8").startswith("# All Campaigns")


def test_summary_single_campaign(project):
    result = CliRunner().invoke(cli, ["summary", "--campaign", "2"])
    assert result.exit_code == 0, result.output
    assert "# Search Brand" in result.output
    assert "- cost: €10.00" in result.output
    assert "ROAS at 6.00x" in result.output
    assert "(plus 3 view-through)" in result.output


def test_summary_unknown_campaign(project):
    result = CliRunner().invoke(cli, ["summary", "--campaign", "404"])
    assert result.exit_code != 0
    assert "No data found for campaign 404" in result.output


def test_summary_without_data(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["summary"])
    assert result.exit_code != 0
    assert "No data found." in result.output


def test_campaigns_sorted_by_cost(project):
    result = CliRunner().invoke(cli, ["campaigns"])
    assert result.exit_code == 0, result.output
    lines = [line for line in result.output.splitlines() if "€" in line]
    assert "Shopping ES" in lines[0] and "€40.00" in lines[0]
    assert "Search Brand" in lines[1]


def test_products_ranked(project):
    result = CliRunner().invoke(cli, ["products", "--metric", "roas", "-n", "5"])
    assert result.exit_code == 0, result.output
    assert "6.00x  Natulim Gel 500ml" in result.output
    assert result.output.index("Natulim Gel 500ml") < result.output.index("Limpiador Multiusos")
    assert "Sin ventas" not in result.output


def test_insights_dry_run(project):
    result = CliRunner().invoke(cli, ["insights", "--mode", "dry"])
    assert result.exit_code == 0, result.output
    assert "Descriptive Attributes" in result.output
    assert "Limpiador Multiusos" in result.output
    assert "Natulim Limpiador Concentrado Multiusos 500ml Natural Ecológico" in result.output


def test_refresh_rejects_read_only_store(project):
    config = project / "config.yaml"
    config.write_text(config.read_text(encoding="utf-8") + "  web_app_url: https://script.example/exec\n",
                      encoding="utf-8")
    source = SimpleNamespace(fetch=lambda report: Empty())

    with patch("adsdash.cli.load_google_ads_config", return_value=SimpleNamespace(customer_id="1")):
        with patch("adsdash.cli.GoogleAdsReportSource", return_value=source):
            result = CliRunner().invoke(cli, ["refresh", "--store", "web"])

    assert result.exit_code == 1
    assert "read-only" in result.output
    assert "use --store sheets or csv" in result.output
    assert "Traceback" not in result.output


def test_refresh_missing_credentials(project):
    with patch.dict("os.environ", {}, clear=True):
        result = CliRunner().invoke(cli, ["refresh"])
    assert result.exit_code != 0
    assert "Missing Google Ads config" in result.output


def test_refresh_writes_tabs(project):
    class Source:
        def fetch(self, report):
            if report.name == "daily":
                return Ok([{"name": "C", "id": 9, "date": "2024-06-01", "cost_micros": 1_000_000}])
            return Empty()

    with patch("adsdash.cli.load_google_ads_config", return_value=SimpleNamespace(customer_id="1")):
        with patch("adsdash.cli.GoogleAdsReportSource", return_value=Source()):
            result = CliRunner().invoke(cli, ["refresh"])

    assert result.exit_code == 0, result.output
    assert "Refresh complete" in result.output
    assert f"{'Daily':<20} 1 rows" in result.output
    assert (project / "data" / "SearchTerms.csv").exists()


def test_live_insights_use_config_tab_key(project):
    CsvDirectoryStore(project / "data").write_tab(
        "ConfigInfo", ["Config Name", "Value"], [{"Config Name": "API_KEY_NATULIM", "Value": "sk-sheet"}]
    )
    with patch("adsdash.providers.anthropic_provider.AnthropicProvider") as provider_cls:
        provider_cls.return_value.generate.return_value = '{"insights": []}'
        CliRunner().invoke(cli, ["insights", "--mode", "live"])
    assert provider_cls.call_args.kwargs["api_key"] == "sk-sheet"

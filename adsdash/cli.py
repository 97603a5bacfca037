"""CLI entry point for adsdash."""

from __future__ import annotations

import logging

import click

from adsdash import __version__
from adsdash.config import AppConfig, load_config
from adsdash.config_google_ads import GoogleAdsConfigError, load_google_ads_config
from adsdash.connectors.base import ReadOnlyStoreError, TabStore
from adsdash.connectors.google_ads import GoogleAdsReportSource
from adsdash.connectors.google_sheets import (
    GoogleSheetsConfigError,
    GoogleSheetsStore,
    push_tabular_file,
)
from adsdash.connectors.web_app import WebAppSource
from adsdash.dashboard import (
    PRODUCT_SEGMENTS,
    converting_products,
    load_dashboard,
    performance_analysis,
    summarize,
    top_products,
)
from adsdash.formatting import format_metric
from adsdash.io_csv import CsvDirectoryStore, write_report
from adsdash.reports import refresh_reports

STORE_KINDS = ["sheets", "web", "csv"]
SUMMARY_METRICS = ["impressions", "clicks", "ctr", "cpc", "cost", "conversions",
                   "conv_rate", "cpa", "conversion_value", "roas"]


def _make_store(cfg: AppConfig, kind: str) -> TabStore:
    if kind == "sheets":
        try:
            return GoogleSheetsStore(cfg.sheet.spreadsheet_id)
        except GoogleSheetsConfigError as exc:
            raise click.ClickException(str(exc))
    if kind == "web":
        if not cfg.sheet.web_app_url:
            raise click.ClickException("sheet.web_app_url is not set in the config file.")
        return WebAppSource(cfg.sheet.web_app_url)
    return CsvDirectoryStore(cfg.sheet.csv_dir)


def _get_title_service(cfg: AppConfig, mode: str, config_values):
    """Return the title service for *mode* (dry = heuristic rules)."""
    if mode == "dry":
        from adsdash.title_service import HeuristicTitleService

        return HeuristicTitleService(cfg.titles)

    from adsdash.providers.anthropic_provider import AnthropicProvider
    from adsdash.title_service import LLMTitleService, config_api_key

    pcfg = cfg.provider
    provider = AnthropicProvider(
        model=pcfg.model,
        temperature=pcfg.temperature,
        max_tokens=pcfg.max_tokens,
        api_key=config_api_key(config_values, cfg.titles) or None,
        retry_cfg=cfg.retry_api,
        budget_cfg=cfg.budget,
    )
    return LLMTitleService(provider, cfg.titles)


store_option = click.option(
    "--store", "store_kind", type=click.Choice(STORE_KINDS), default="csv",
    show_default=True, help="Where the report tabs live",
)
config_option = click.option(
    "--config", "config_path", default="config.yaml", help="Config file path"
)


@click.group()
@click.version_option(version=__version__, prog_name="adsdash")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default="WARNING",
    show_default=True,
)
def cli(log_level: str):
    """adsdash: Google Ads performance reporting."""
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option("--customer_id", default=None, help="Google Ads customer ID")
@click.option("--ads-config", "ads_config_path", default=None, help="Optional google-ads.yaml path")
@config_option
@store_option
def refresh(customer_id, ads_config_path, config_path, store_kind):
    """Pull the Google Ads reports and rewrite every tab."""
    cfg = load_config(config_path)
    store = _make_store(cfg, store_kind)
    try:
        ads_cfg = load_google_ads_config(customer_id=customer_id, yaml_path=ads_config_path)
    except GoogleAdsConfigError as exc:
        raise click.ClickException(str(exc))

    try:
        summary = refresh_reports(cfg, GoogleAdsReportSource(ads_cfg), store)
    except ReadOnlyStoreError as exc:
        raise click.ClickException(f"{exc}; use --store sheets or csv.")

    click.echo("✅ Refresh complete")
    for key, count in summary.items():
        status = "failed (tab left unchanged)" if count is None else f"{count} rows"
        click.echo(f"   {cfg.sheet.tab(key):<20} {status}")


@cli.command()
@click.option("--campaign", "campaign_id", default="", help="Campaign id (default: all)")
@click.option("--out", "out_path", default=None, help="Also write the summary to this file")
@config_option
@store_option
def summary(campaign_id, out_path, config_path, store_kind):
    """Print totals and the performance verdict."""
    cfg = load_config(config_path)
    data = load_dashboard(_make_store(cfg, store_kind), cfg)

    if not data.daily:
        raise click.ClickException("No data found.")

    view = summarize(data.daily, campaign_id)
    if not view.series:
        raise click.ClickException(f"No data found for campaign {campaign_id}.")

    currency = cfg.analysis.currency
    lines = [f"# {view.totals.name}", ""]
    for key in SUMMARY_METRICS:
        lines.append(f"- {key}: {format_metric(key, getattr(view.totals, key), currency)}")
    if data.daily2:
        purchase = summarize(data.daily2, campaign_id).totals
        lines.append(f"- purchase conversions: {format_metric('conversions', purchase.conversions)}")
        lines.append(f"- view-through conversions: {format_metric('conversions', purchase.view_through_conversions)}")
    analysis = performance_analysis(data, cfg, campaign_id)
    lines += ["", f"[{analysis.sentiment}] {analysis.text}"]

    text = "\n".join(lines)
    click.echo(text)
    if out_path:
        write_report(text + "\n", out_path)


@cli.command()
@config_option
@store_option
def campaigns(config_path, store_kind):
    """List campaigns by total cost."""
    cfg = load_config(config_path)
    data = load_dashboard(_make_store(cfg, store_kind), cfg)
    for c in summarize(data.daily).campaigns:
        click.echo(f"{c.id:<14} {format_metric('cost', c.total_cost, cfg.analysis.currency):>14}  {c.name}")


@cli.command()
@click.option("--metric", default="roas", show_default=True,
              type=click.Choice(["roas", "cost", "conversions", "conversion_value", "ctr", "conv_rate"]))
@click.option("--segment", default="top", show_default=True, type=click.Choice(PRODUCT_SEGMENTS))
@click.option("-n", "limit", default=10, show_default=True)
@config_option
@store_option
def products(metric, segment, limit, config_path, store_kind):
    """Show converting products ranked by a metric."""
    cfg = load_config(config_path)
    data = load_dashboard(_make_store(cfg, store_kind), cfg)
    rows = converting_products(data.products)
    if not rows:
        raise click.ClickException("No products with conversions found.")
    for p in top_products(rows, metric, segment, limit):
        click.echo(f"{format_metric(metric, getattr(p, metric), cfg.analysis.currency):>12}  {p.name}")


@cli.command()
@click.option("--mode", type=click.Choice(["live", "dry"]), default="dry",
              help="live = call the LLM; dry = heuristic rules")
@config_option
@store_option
def insights(mode, config_path, store_kind):
    """Product-title insights and suggested rewrites."""
    cfg = load_config(config_path)
    data = load_dashboard(_make_store(cfg, store_kind), cfg)
    rows = converting_products(data.products)
    if not rows:
        raise click.ClickException("No products with conversions found.")

    try:
        service = _get_title_service(cfg, mode, data.config_values)
        found = service.generate_insights(rows, data.config_values)
        rewrites = service.improve_titles(rows, data.config_values)
    except EnvironmentError as exc:
        raise click.ClickException(str(exc))
    except Exception as exc:
        logging.getLogger(__name__).exception("Title analysis failed")
        raise click.ClickException(f"Failed to analyze product titles: {exc}")

    click.echo("💡 Insights")
    for item in found:
        click.echo(f"   [{item.type}] {item.title}: {item.content}")
    click.echo("")
    click.echo("✏️  Title improvements")
    for item in rewrites:
        click.echo(f"   ({item.score}/10) {item.original_title}")
        click.echo(f"        → {item.improved_title}")
        click.echo(f"        {item.explanation}")


@cli.group("sheets")
def sheets_group():
    """Google Sheets helper commands."""
    pass


@sheets_group.command("push")
@click.option("--spreadsheet_id", required=True, help="Target Google Sheet ID")
@click.option("--worksheet", required=True, help="Worksheet/tab name")
@click.option("--input", "input_path", required=True, help="Input CSV or TSV path")
def sheets_push(spreadsheet_id: str, worksheet: str, input_path: str):
    """Push a local CSV/TSV file to a worksheet."""
    try:
        n = push_tabular_file(spreadsheet_id, worksheet, input_path)
    except GoogleSheetsConfigError as exc:
        raise click.ClickException(str(exc))
    except Exception as exc:
        raise click.ClickException(f"Failed to push to Google Sheets: {exc}")

    click.echo(
        f"✅ Pushed {n} rows to worksheet '{worksheet}' in spreadsheet {spreadsheet_id}."
    )


if __name__ == "__main__":
    cli()

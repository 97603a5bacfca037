"""Google Ads report source: GAQL queries flattened into raw row mappings."""

from __future__ import annotations

import enum
import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from adsdash.config import ReportConfig
from adsdash.config_google_ads import GoogleAdsConfig
from adsdash.schema import Empty, Failed, FetchResult, Ok

logger = logging.getLogger(__name__)

_MISSING = object()


class GoogleAdsConnectorError(RuntimeError):
    pass


@dataclass
class RetryPolicy:
    max_retries: int = 3
    backoff_base_seconds: float = 1.0
    backoff_max_seconds: float = 15.0
    jitter_seconds: float = 0.5


@dataclass(frozen=True)
class ReportDefinition:
    """A GAQL query plus the mapping from selected field paths to raw keys."""

    name: str
    resource: str
    fields: Tuple[Tuple[str, str], ...]
    where: Tuple[str, ...] = ()
    order_by: str = ""

    def query(self) -> str:
        select = ",\n  ".join(path for path, _ in self.fields)
        q = f"SELECT\n  {select}\nFROM {self.resource}"
        if self.where:
            q += "\nWHERE " + "\n  AND ".join(self.where)
        if self.order_by:
            q += f"\nORDER BY {self.order_by}"
        return q


_COUNTERS = (
    ("metrics.impressions", "impressions"),
    ("metrics.clicks", "clicks"),
    ("metrics.cost_micros", "cost_micros"),
    ("metrics.conversions", "conversions"),
    ("metrics.conversions_value", "conversions_value"),
)


def build_report_definitions(cfg: Optional[ReportConfig] = None) -> Dict[str, ReportDefinition]:
    cfg = cfg or ReportConfig()
    during = f"segments.date DURING {cfg.date_range}"
    by_date = "segments.date DESC, metrics.cost_micros DESC"
    campaign_day = (
        ("campaign.name", "name"),
        ("campaign.id", "id"),
        ("segments.date", "date"),
    )
    return {
        "search_terms": ReportDefinition(
            name="search_terms",
            resource="search_term_view",
            fields=(
                ("search_term_view.search_term", "name"),
                ("campaign.name", "campaign"),
                ("ad_group.name", "ad_group"),
            ) + _COUNTERS,
            where=(
                during,
                f'campaign.advertising_channel_type = "{cfg.search_channel_type}"',
                f"metrics.impressions >= {cfg.search_min_impressions}",
            ),
            order_by="metrics.cost_micros DESC",
        ),
        "daily": ReportDefinition(
            name="daily",
            resource="campaign",
            fields=campaign_day + _COUNTERS,
            where=(during,),
            order_by=by_date,
        ),
        "daily2": ReportDefinition(
            name="daily2",
            resource="campaign",
            fields=campaign_day + _COUNTERS
            + (("metrics.view_through_conversions", "view_through_conversions"),),
            where=(during,),
            order_by=by_date,
        ),
        "purchase_conversions": ReportDefinition(
            name="purchase_conversions",
            resource="campaign",
            fields=(
                ("campaign.id", "campaign_id"),
                ("segments.date", "date"),
                ("segments.conversion_action_name", "conversion_action_name"),
                ("segments.conversion_action_category", "conversion_action_category"),
                ("metrics.conversions", "conversions"),
                ("metrics.conversions_value", "conversions_value"),
            ),
            where=(
                during,
                f'segments.conversion_action_name = "{cfg.purchase_action_name}"',
            ),
        ),
        "products": ReportDefinition(
            name="products",
            resource="shopping_performance_view",
            fields=(("segments.product_title", "name"),) + _COUNTERS,
            where=(
                during,
                "metrics.impressions > 0",
                "metrics.conversions > 0",
                "metrics.conversions_value > 0",
            ),
            order_by="metrics.cost_micros DESC",
        ),
    }


def _resolve(obj: Any, path: str) -> Any:
    for part in path.split("."):
        obj = getattr(obj, part, _MISSING)
        if obj is _MISSING or obj is None:
            return _MISSING
    if isinstance(obj, enum.Enum):
        return obj.name
    return obj


def flatten_row(row: Any, fields: Iterable[Tuple[str, str]]) -> Dict[str, Any]:
    """Read each GAQL path off an API row; absent fields are left out."""
    out: Dict[str, Any] = {}
    for path, key in fields:
        value = _resolve(row, path)
        if value is not _MISSING:
            out[key] = value
    return out


def _build_client(cfg: GoogleAdsConfig):
    try:
        from google.ads.googleads.client import GoogleAdsClient
    except ImportError as exc:  # pragma: no cover
        raise GoogleAdsConnectorError(
            "google-ads SDK missing. Install dependency `google-ads` and retry."
        ) from exc
    return GoogleAdsClient.load_from_dict(cfg.client_payload())


def _is_retryable_error(exc: Exception) -> bool:
    s = str(exc).lower()
    return any(
        k in s
        for k in ["rate", "quota", "resource exhausted", "429", "too many requests"]
    )


def _search_with_retry(service, customer_id: str, query: str, retry: RetryPolicy):
    attempt = 0
    while True:
        try:
            return service.search_stream(customer_id=customer_id, query=query)
        except Exception as exc:
            if attempt >= retry.max_retries or not _is_retryable_error(exc):
                raise
            sleep_s = min(
                retry.backoff_base_seconds * (2**attempt), retry.backoff_max_seconds
            )
            sleep_s += random.uniform(0, retry.jitter_seconds)
            logger.warning("Google Ads rate limited, retrying in %.1fs: %s", sleep_s, exc)
            time.sleep(sleep_s)
            attempt += 1


class GoogleAdsReportSource:
    """Runs report definitions against one customer account."""

    def __init__(
        self,
        cfg: GoogleAdsConfig,
        client=None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.cfg = cfg
        self._client = client
        self.retry = retry_policy or RetryPolicy()

    @property
    def client(self):
        if self._client is None:
            self._client = _build_client(self.cfg)
        return self._client

    def fetch_rows(self, report: ReportDefinition) -> List[Dict[str, Any]]:
        """Run the query; raises GoogleAdsConnectorError on any API failure."""
        service = self.client.get_service("GoogleAdsService")
        try:
            stream = _search_with_retry(service, self.cfg.customer_id, report.query(), self.retry)
            rows = [
                flatten_row(r, report.fields)
                for batch in stream
                for r in getattr(batch, "results", [])
            ]
        except Exception as exc:
            msg = str(exc).lower()
            if any(k in msg for k in ["permission", "unauthorized", "authentication"]):
                raise GoogleAdsConnectorError(
                    "Google Ads authentication/permission error. Verify developer token, "
                    "OAuth creds, refresh token, and account access."
                ) from exc
            raise GoogleAdsConnectorError(f"Google Ads {report.name} report failed: {exc}") from exc

        logger.info("Google Ads %s report returned %d rows", report.name, len(rows))
        return rows

    def fetch(self, report: ReportDefinition) -> FetchResult:
        """Like fetch_rows, but a failure becomes ``Failed`` instead of raising."""
        try:
            rows = self.fetch_rows(report)
        except GoogleAdsConnectorError as exc:
            logger.exception("Could not fetch %s report", report.name)
            return Failed(str(exc))
        return Ok(rows) if rows else Empty()


def fetch_all(
    source: GoogleAdsReportSource, reports: Mapping[str, ReportDefinition]
) -> Dict[str, FetchResult]:
    return {name: source.fetch(report) for name, report in reports.items()}

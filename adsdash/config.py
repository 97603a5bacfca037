"""Load and validate config.yaml."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

import yaml


@dataclass
class SheetConfig:
    spreadsheet_id: str = ""
    web_app_url: str = ""
    csv_dir: str = "data"
    tabs: Dict[str, str] = field(
        default_factory=lambda: {
            "search_terms": "SearchTerms",
            "daily": "Daily",
            "daily2": "Daily2",
            "products": "ProductPerformance",
            "config_info": "ConfigInfo",
        }
    )

    def tab(self, key: str) -> str:
        return self.tabs.get(key, key)


@dataclass
class ReportConfig:
    date_range: str = "LAST_30_DAYS"
    purchase_action_name: str = "Google Shopping App Purchase"
    search_min_impressions: int = 30
    search_channel_type: str = "SEARCH"


@dataclass
class AnalysisConfig:
    min_roas: float = 1.0  # below → negative
    max_cpa: float = 15.0  # above → warning
    currency: str = "€"


@dataclass
class TitleInsightConfig:
    short_title_words: int = 6
    brand_token: str = "natulim"
    keyword: str = "ecológic"
    keyword_label: str = "Ecológico"
    min_roas_difference: float = 0.5
    min_ctr_difference: float = 0.005  # fraction, i.e. 0.5 percentage points
    high_performer_roas: float = 4.0
    low_performer_roas: float = 2.0
    improve_below_roas: float = 3.0
    website_url: str = "https://natulim.com/"
    # Config-tab names checked in order for the Anthropic key.
    api_key_names: List[str] = field(default_factory=lambda: ["API_KEY", "API_KEY_NATULIM"])


@dataclass
class ProviderConfig:
    name: str = "anthropic"
    model: str = "claude-sonnet-4-5-20250929"
    temperature: float = 0.4
    max_tokens: int = 2048


@dataclass
class BudgetConfig:
    """Hard caps to control live API spending."""

    max_calls_per_run: int = 20  # 0 = unlimited


@dataclass
class RetryConfig:
    """Exponential-backoff settings for live API calls."""

    max_api_retries: int = 3
    backoff_base_seconds: float = 1.0
    backoff_max_seconds: float = 60.0


@dataclass
class AppConfig:
    sheet: SheetConfig = field(default_factory=SheetConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    titles: TitleInsightConfig = field(default_factory=TitleInsightConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    budget: BudgetConfig = field(default_factory=BudgetConfig)
    retry_api: RetryConfig = field(default_factory=RetryConfig)


def load_config(path: str | Path = "config.yaml") -> AppConfig:
    """Load config from YAML file, falling back to defaults."""
    p = Path(path)
    raw: dict = {}
    if p.exists():
        with open(p, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

    sheet_raw = dict(raw.get("sheet", {}))
    tabs = {**SheetConfig().tabs, **(sheet_raw.pop("tabs", None) or {})}

    return AppConfig(
        sheet=SheetConfig(tabs=tabs, **sheet_raw),
        report=ReportConfig(**raw.get("report", {})),
        analysis=AnalysisConfig(**raw.get("analysis", {})),
        titles=TitleInsightConfig(**raw.get("titles", {})),
        provider=ProviderConfig(**raw.get("provider", {})),
        budget=BudgetConfig(**raw.get("budget", {})),
        retry_api=RetryConfig(**raw.get("retry_api", {})),
    )

"""Value objects shared by the reporting pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Literal, Optional, Union

Sentiment = Literal["negative", "warning", "positive"]
InsightType = Literal["positive", "negative", "suggestion"]


def safe_ratio(numerator: float, denominator: float) -> float:
    """Divide, yielding 0.0 instead of NaN/inf when the denominator is 0."""
    if not denominator:
        return 0.0
    return numerator / denominator


@dataclass(frozen=True)
class MetricRow:
    """One reporting unit: a campaign-day, a search term or a product."""

    name: str = ""
    id: Optional[str] = None
    date: Optional[str] = None

    impressions: int = 0
    clicks: int = 0
    cost: float = 0.0
    conversions: float = 0.0
    conversion_value: float = 0.0
    view_through_conversions: float = 0.0

    ctr: float = 0.0
    cpc: float = 0.0
    conv_rate: float = 0.0
    cpa: float = 0.0
    roas: float = 0.0
    aov: float = 0.0

    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_counters(cls, **kwargs) -> "MetricRow":
        return cls(**kwargs).recomputed()

    def recomputed(self) -> "MetricRow":
        """Return a copy whose ratios are re-derived from the counters."""
        return replace(
            self,
            ctr=safe_ratio(self.clicks, self.impressions),
            cpc=safe_ratio(self.cost, self.clicks),
            conv_rate=safe_ratio(self.conversions, self.clicks),
            cpa=safe_ratio(self.cost, self.conversions),
            roas=safe_ratio(self.conversion_value, self.cost),
            aov=safe_ratio(self.conversion_value, self.conversions),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "id": self.id,
            "date": self.date,
            "impressions": self.impressions,
            "clicks": self.clicks,
            "cost": self.cost,
            "conversions": self.conversions,
            "conversion_value": self.conversion_value,
            "view_through_conversions": self.view_through_conversions,
            "ctr": self.ctr,
            "cpc": self.cpc,
            "conv_rate": self.conv_rate,
            "cpa": self.cpa,
            "roas": self.roas,
            "aov": self.aov,
            **self.extra,
        }


@dataclass(frozen=True)
class ConversionTotals:
    conversions: float = 0.0
    value: float = 0.0

    def __add__(self, other: "ConversionTotals") -> "ConversionTotals":
        return ConversionTotals(
            conversions=self.conversions + other.conversions,
            value=self.value + other.value,
        )


@dataclass(frozen=True)
class Campaign:
    id: str
    name: str
    total_cost: float = 0.0


@dataclass(frozen=True)
class AnalysisResult:
    text: str
    sentiment: Sentiment


@dataclass(frozen=True)
class ProductInsight:
    title: str
    content: str
    type: InsightType


@dataclass(frozen=True)
class TitleImprovement:
    original_title: str
    improved_title: str
    explanation: str
    score: int


# ── Fetch boundary ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Ok:
    rows: List[Dict[str, Any]]


@dataclass(frozen=True)
class Empty:
    pass


@dataclass(frozen=True)
class Malformed:
    reason: str


@dataclass(frozen=True)
class Failed:
    reason: str


FetchResult = Union[Ok, Empty, Malformed, Failed]


def rows_of(result: FetchResult) -> List[Dict[str, Any]]:
    """Rows of an ``Ok`` result; every other variant means no data."""
    if isinstance(result, Ok):
        return list(result.rows)
    return []

"""Rule-based title service used when no LLM backend is configured."""

from __future__ import annotations

import random
import re
from typing import List, Mapping, Optional, Sequence

from adsdash.analyzer import title_comparisons
from adsdash.config import TitleInsightConfig
from adsdash.schema import MetricRow, ProductInsight, TitleImprovement
from adsdash.title_service.base import TitleAnalysisService

SIZE_PATTERN = re.compile(r"\d+\s*(ml|g|kg|l|oz|unidades|uds)\b", re.IGNORECASE)
DEFAULT_SIZE = "500ml"


def high_performers(products: Sequence[MetricRow], min_roas: float, limit: int = 5) -> List[MetricRow]:
    best = sorted((p for p in products if p.roas > min_roas), key=lambda p: p.roas, reverse=True)
    return best[:limit]


def low_performers(products: Sequence[MetricRow], max_roas: float, limit: int = 5) -> List[MetricRow]:
    weak = sorted((p for p in products if p.conversions > 0 and p.roas < max_roas), key=lambda p: p.roas)
    return weak[:limit]


def improvement_candidates(products: Sequence[MetricRow], below_roas: float, limit: int = 3) -> List[MetricRow]:
    """Converting products with weak ROAS, worst first."""
    weak = sorted(
        (p for p in products if p.conversions > 0 and p.roas < below_roas),
        key=lambda p: p.roas,
    )
    return weak[:limit]


class HeuristicTitleService(TitleAnalysisService):
    def __init__(self, cfg: Optional[TitleInsightConfig] = None, seed: int = 42):
        self.cfg = cfg or TitleInsightConfig()
        self._rng = random.Random(seed)

    # ── Insights ──────────────────────────────────────────────────────────────

    def generate_insights(
        self,
        products: Sequence[MetricRow],
        config_values: Optional[Mapping[str, str]] = None,
    ) -> List[ProductInsight]:
        insights = title_comparisons(products, self.cfg)

        top = high_performers(products, self.cfg.high_performer_roas)
        if any(not SIZE_PATTERN.search(p.name) for p in top):
            insights.append(
                ProductInsight(
                    title="Consider Adding Product Sizes",
                    content=(
                        "Some top-performing products don't include size information. "
                        "Adding this could improve performance further."
                    ),
                    type="suggestion",
                )
            )

        insights.append(
            ProductInsight(
                title="Descriptive Attributes",
                content=(
                    'Add more descriptive attributes (like "Concentrado" or "Ultra") for '
                    "underperforming products to increase interest."
                ),
                type="suggestion",
            )
        )
        return insights

    # ── Improvements ──────────────────────────────────────────────────────────

    def improve_titles(
        self,
        products: Sequence[MetricRow],
        config_values: Optional[Mapping[str, str]] = None,
    ) -> List[TitleImprovement]:
        out: List[TitleImprovement] = []
        for product in improvement_candidates(products, self.cfg.improve_below_roas):
            improved = self.rewrite_title(product.name)
            out.append(
                TitleImprovement(
                    original_title=product.name,
                    improved_title=improved,
                    explanation=self.explain(product.name, improved),
                    score=self._rng.randint(7, 10),
                )
            )
        return out

    def rewrite_title(self, original: str) -> str:
        brand = self.cfg.brand_token
        keyword = self.cfg.keyword.lower()
        label = self.cfg.keyword_label

        improved = original
        if not improved.lower().startswith(brand.lower()):
            improved = f"{brand.capitalize()} {improved}"
        if not SIZE_PATTERN.search(improved) and len(improved) < 50:
            improved += f" {DEFAULT_SIZE}"
        if keyword not in improved.lower() and len(improved) < 60:
            improved += f" {label}"
        if "natural" not in improved.lower() and len(improved) < 65:
            improved = improved.replace(label, f"Natural {label}")
        if "limpiador" in improved.lower() and "concentrado" not in improved.lower():
            improved = improved.replace("Limpiador", "Limpiador Concentrado")
        return improved

    def explain(self, original: str, improved: str) -> str:
        brand = self.cfg.brand_token.lower()
        keyword = self.cfg.keyword.lower()
        lo, li = original.lower(), improved.lower()

        changes: List[str] = []
        if li.startswith(brand) and not lo.startswith(brand):
            changes.append("Added brand name to the start for better brand recognition")
        if SIZE_PATTERN.search(improved) and not SIZE_PATTERN.search(original):
            changes.append("Added size information for clarity and customer expectations")
        if keyword in li and keyword not in lo:
            changes.append(
                f'Added "{self.cfg.keyword_label}" to highlight eco-friendly aspects '
                "that resonate with customers"
            )
        if "natural" in li and "natural" not in lo:
            changes.append('Added "Natural" to emphasize product quality and ingredients')
        if "concentrado" in li and "concentrado" not in lo:
            changes.append('Added "Concentrado" to highlight product strength and value')

        if not changes:
            return (
                "Minor improvements to align with successful product patterns while "
                "maintaining the original message."
            )
        return ". ".join(changes) + ". These changes align with patterns observed in top-performing products."

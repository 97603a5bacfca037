"""LLM-backed title service: jinja2 prompts in, JSON out."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from jinja2 import Template

from adsdash.config import TitleInsightConfig
from adsdash.metrics import to_int
from adsdash.providers.base import BaseProvider
from adsdash.schema import MetricRow, ProductInsight, TitleImprovement
from adsdash.title_service.base import TitleAnalysisService
from adsdash.title_service.heuristic import (
    HeuristicTitleService,
    high_performers,
    improvement_candidates,
    low_performers,
)

logger = logging.getLogger(__name__)

_PROMPTS = Path(__file__).resolve().parent.parent / "prompts"
_INSIGHT_TYPES = {"positive", "negative", "suggestion"}

# Named values the Ads script copies into the config tab.
REVIEW_PROMPT_KEY = "PRODUCT_REVIEW_PROMPT"
REFERENCE_TITLE_KEY = "WEBSITE_PRODUCT_TITLE"
WEBSITE_KEY = "WEBSITE_URL"


def config_api_key(config_values: Mapping[str, Any], cfg: Optional[TitleInsightConfig] = None) -> str:
    """First non-blank API key in the config tab, or "" when none is set."""
    cfg = cfg or TitleInsightConfig()
    for name in cfg.api_key_names:
        value = str(config_values.get(name) or "").strip()
        if value:
            return value
    return ""


def _load_template(name: str) -> Template:
    return Template((_PROMPTS / name).read_text(encoding="utf-8"))


def _parse_json(raw: str) -> Optional[Dict[str, Any]]:
    text = raw.strip()
    text = re.sub(r"^```(?:json)?\s*", "", text, flags=re.MULTILINE)
    text = re.sub(r"\s*```\s*$", "", text, flags=re.MULTILINE)
    try:
        data = json.loads(text.strip())
    except (json.JSONDecodeError, AttributeError):
        return None
    return data if isinstance(data, dict) else None


class LLMTitleService(TitleAnalysisService):
    """Delegates to a provider and falls back to the heuristic rules on bad output."""

    def __init__(self, provider: BaseProvider, cfg: Optional[TitleInsightConfig] = None):
        self.provider = provider
        self.cfg = cfg or TitleInsightConfig()
        self.fallback = HeuristicTitleService(self.cfg)

    def generate_insights(
        self,
        products: Sequence[MetricRow],
        config_values: Optional[Mapping[str, str]] = None,
    ) -> List[ProductInsight]:
        values = config_values or {}
        prompt = _load_template("title_insights_prompt.txt").render(
            brand=self.cfg.brand_token.capitalize(),
            review_prompt=values.get(REVIEW_PROMPT_KEY, ""),
            reference_title=values.get(REFERENCE_TITLE_KEY, ""),
            products=list(products),
            top=high_performers(products, self.cfg.high_performer_roas),
            weak=low_performers(products, self.cfg.low_performer_roas),
        )
        raw = self.provider.generate(
            prompt, system="You are an e-commerce advertising analyst. Return ONLY valid JSON."
        )
        data = _parse_json(raw)
        items = data.get("insights") if data else None
        if not isinstance(items, list):
            logger.warning("Unusable insight response, using heuristic insights")
            return self.fallback.generate_insights(products, config_values)

        out: List[ProductInsight] = []
        for item in items:
            if not isinstance(item, dict) or not item.get("content"):
                continue
            kind = str(item.get("type", "suggestion"))
            out.append(
                ProductInsight(
                    title=str(item.get("title", "")),
                    content=str(item["content"]),
                    type=kind if kind in _INSIGHT_TYPES else "suggestion",
                )
            )
        return out

    def improve_titles(
        self,
        products: Sequence[MetricRow],
        config_values: Optional[Mapping[str, str]] = None,
    ) -> List[TitleImprovement]:
        candidates = improvement_candidates(products, self.cfg.improve_below_roas)
        if not candidates:
            return []

        values = config_values or {}
        prompt = _load_template("title_improver_prompt.txt").render(
            brand=self.cfg.brand_token.capitalize(),
            website=values.get(WEBSITE_KEY) or self.cfg.website_url,
            review_prompt=values.get(REVIEW_PROMPT_KEY, ""),
            top=high_performers(products, self.cfg.high_performer_roas),
            candidates=candidates,
        )
        raw = self.provider.generate(
            prompt, system="You are an e-commerce copywriter. Return ONLY valid JSON."
        )
        data = _parse_json(raw)
        items = data.get("improvements") if data else None
        if not isinstance(items, list):
            logger.warning("Unusable improvement response, using heuristic rewrites")
            return self.fallback.improve_titles(products, config_values)

        out: List[TitleImprovement] = []
        for item in items:
            if not isinstance(item, dict) or not item.get("improved_title"):
                continue
            out.append(
                TitleImprovement(
                    original_title=str(item.get("original_title", "")),
                    improved_title=str(item["improved_title"]),
                    explanation=str(item.get("explanation", "")),
                    score=min(10, max(1, to_int(item.get("score"), 5))),
                )
            )
        return out

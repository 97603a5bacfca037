"""Interface for the optional, higher-latency title-analysis enrichment."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Mapping, Optional, Sequence

from adsdash.schema import MetricRow, ProductInsight, TitleImprovement


class TitleAnalysisService(ABC):
    """Two operations over per-title metrics.

    ``config_values`` are the opaque named values read from the sheet's
    config tab (API key, review prompt, reference title, website).
    """

    @abstractmethod
    def generate_insights(
        self,
        products: Sequence[MetricRow],
        config_values: Optional[Mapping[str, str]] = None,
    ) -> List[ProductInsight]:
        ...

    @abstractmethod
    def improve_titles(
        self,
        products: Sequence[MetricRow],
        config_values: Optional[Mapping[str, str]] = None,
    ) -> List[TitleImprovement]:
        ...

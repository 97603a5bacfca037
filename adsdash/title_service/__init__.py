"""Product-title insight and improvement services."""
from adsdash.title_service.base import TitleAnalysisService
from adsdash.title_service.heuristic import HeuristicTitleService
from adsdash.title_service.llm import LLMTitleService, config_api_key

__all__ = ["TitleAnalysisService", "HeuristicTitleService", "LLMTitleService", "config_api_key"]

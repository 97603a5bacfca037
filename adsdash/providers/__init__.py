"""LLM provider package."""
from adsdash.providers.base import BaseProvider
from adsdash.providers.mock_provider import MockProvider

__all__ = ["BaseProvider", "MockProvider"]

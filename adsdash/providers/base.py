"""Common interface for the text-generation backends behind the title service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict


class BaseProvider(ABC):
    """A backend that turns a prompt into raw text (normally JSON)."""

    @abstractmethod
    def generate(self, prompt: str, system: str = "", max_tokens: int = 0) -> str:
        ...

    def stats(self) -> Dict[str, Any]:
        return {"call_count": 0, "retry_count": 0, "last_error": None}

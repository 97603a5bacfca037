"""Anthropic (Claude) provider with retry/backoff and a per-run call budget."""
from __future__ import annotations

import logging
import os
import random
import time
from typing import Optional

import anthropic
from dotenv import load_dotenv

from adsdash.config import BudgetConfig, RetryConfig
from adsdash.providers.base import BaseProvider

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504, 529})
DEFAULT_SYSTEM = "You are an e-commerce advertising analyst."


class BudgetExceededError(RuntimeError):
    """Raised when max_calls_per_run has been reached."""


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, anthropic.APIStatusError):
        return exc.status_code in RETRYABLE_STATUS
    return isinstance(exc, (anthropic.APIConnectionError, anthropic.APITimeoutError))


def _retry_after(exc: Exception) -> Optional[float]:
    response = getattr(exc, "response", None)
    header = response.headers.get("retry-after") if response is not None else None
    try:
        return max(0.0, float(header)) if header else None
    except ValueError:
        return None


def _describe(exc: Exception) -> str:
    detail = getattr(exc, "message", None) or str(exc)
    return f"{type(exc).__name__}: {detail}" if detail else type(exc).__name__


class AnthropicProvider(BaseProvider):
    """Messages API wrapper used by the live title service.

    The API key is taken from the argument (e.g. a value read from the
    sheet's config tab) or from ``ANTHROPIC_API_KEY`` / ``.env``. Only
    completed requests count toward ``max_calls_per_run``.
    """

    def __init__(
        self,
        model: str = "claude-sonnet-4-5-20250929",
        temperature: float = 0.4,
        max_tokens: int = 2048,
        api_key: Optional[str] = None,
        retry_cfg: Optional[RetryConfig] = None,
        budget_cfg: Optional[BudgetConfig] = None,
    ):
        load_dotenv()
        key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not key:
            raise EnvironmentError(
                "No Anthropic API key: set ANTHROPIC_API_KEY in .env or API_KEY / API_KEY_NATULIM in the config tab."
            )
        self.client = anthropic.Anthropic(api_key=key)
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.retry = retry_cfg or RetryConfig()
        self.budget = budget_cfg or BudgetConfig()

        self.call_count = 0
        self.retry_count = 0
        self.last_error: Optional[str] = None

    def _delay(self, exc: Exception, attempt: int) -> float:
        hinted = _retry_after(exc)
        if hinted is not None:
            return hinted
        backoff = self.retry.backoff_base_seconds * (2 ** attempt) + random.uniform(0.0, 1.0)
        return min(backoff, self.retry.backoff_max_seconds)

    def generate(self, prompt: str, system: str = "", max_tokens: int = 0) -> str:
        limit = self.budget.max_calls_per_run
        if limit and self.call_count >= limit:
            raise BudgetExceededError(f"max_calls_per_run={limit} reached")

        attempt = 0
        while True:
            try:
                message = self.client.messages.create(
                    model=self.model,
                    max_tokens=max_tokens or self.max_tokens,
                    temperature=self.temperature,
                    system=system or DEFAULT_SYSTEM,
                    messages=[{"role": "user", "content": prompt}],
                )
            except Exception as exc:
                reason = _describe(exc)
                if not _is_retryable(exc) or attempt >= self.retry.max_api_retries:
                    self.call_count += 1
                    self.last_error = reason
                    raise
                wait = self._delay(exc, attempt)
                attempt += 1
                self.retry_count += 1
                logger.warning(
                    "Anthropic call failed (%s), retry %d/%d in %.1fs",
                    reason, attempt, self.retry.max_api_retries, wait,
                )
                time.sleep(wait)
                continue

            self.call_count += 1
            return message.content[0].text

    def stats(self) -> dict:
        return {
            "call_count": self.call_count,
            "retry_count": self.retry_count,
            "last_error": self.last_error,
        }

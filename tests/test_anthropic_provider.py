"""Tests for AnthropicProvider retry/backoff and call budget (client is mocked)."""
from __future__ import annotations

import os
from unittest.mock import MagicMock, patch

import anthropic
import httpx
import pytest

from adsdash.config import BudgetConfig, RetryConfig
from adsdash.providers.anthropic_provider import AnthropicProvider, BudgetExceededError


def _status_error(status_code: int, retry_after: str = None):
    headers = {"retry-after": retry_after} if retry_after is not None else {}
    response = httpx.Response(
        status_code,
        headers=headers,
        request=httpx.Request("POST", "https://api.anthropic.com/v1/messages"),
    )
    return anthropic.APIStatusError(f"HTTP {status_code}", response=response, body=None)


def _reply(text: str):
    msg = MagicMock()
    msg.content = [MagicMock()]
    msg.content[0].text = text
    return msg


def _provider(max_retries: int = 2, max_calls: int = 10, api_key: str = None):
    with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "env-key"}):
        with patch("anthropic.Anthropic"):
            return AnthropicProvider(
                api_key=api_key,
                retry_cfg=RetryConfig(
                    max_api_retries=max_retries,
                    backoff_base_seconds=0.0,
                    backoff_max_seconds=0.0,
                ),
                budget_cfg=BudgetConfig(max_calls_per_run=max_calls),
            )


def test_returns_text_and_counts_calls():
    p = _provider()
    p.client.messages.create.return_value = _reply('{"insights": []}')
    assert p.generate("prompt") == '{"insights": []}'
    assert p.stats()["call_count"] == 1


def test_explicit_key_wins_over_env():
    with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "env-key"}):
        with patch("anthropic.Anthropic") as client_cls:
            AnthropicProvider(api_key="sheet-key")
    client_cls.assert_called_once_with(api_key="sheet-key")


def test_missing_key_raises():
    with patch.dict(os.environ, {}, clear=True):
        with patch("adsdash.providers.anthropic_provider.load_dotenv"):
            with pytest.raises(EnvironmentError):
                AnthropicProvider()


def test_retries_rate_limit_then_succeeds():
    p = _provider(max_retries=2)
    p.client.messages.create.side_effect = [_status_error(429, retry_after="0"), _reply("ok")]
    with patch("adsdash.providers.anthropic_provider.time.sleep") as sleep:
        assert p.generate("prompt") == "ok"
    sleep.assert_called_once_with(0.0)
    assert p.retry_count == 1
    assert p.call_count == 1


def test_gives_up_after_max_retries():
    p = _provider(max_retries=1)
    p.client.messages.create.side_effect = _status_error(503)
    with patch("adsdash.providers.anthropic_provider.time.sleep"):
        with pytest.raises(anthropic.APIStatusError):
            p.generate("prompt")
    assert p.client.messages.create.call_count == 2
    assert p.last_error == "APIStatusError: HTTP 503"
    assert p.stats()["call_count"] == 1


def test_non_retryable_status_raises_immediately():
    p = _provider(max_retries=3)
    p.client.messages.create.side_effect = _status_error(400)
    with pytest.raises(anthropic.APIStatusError):
        p.generate("prompt")
    assert p.client.messages.create.call_count == 1
    assert p.retry_count == 0


def test_budget_exceeded():
    p = _provider(max_calls=1)
    p.client.messages.create.return_value = _reply("ok")
    p.generate("one")
    with pytest.raises(BudgetExceededError):
        p.generate("two")


def test_last_error_names_exception_without_message():
    p = _provider(max_retries=0)
    p.client.messages.create.side_effect = ValueError()
    with pytest.raises(ValueError):
        p.generate("prompt")
    assert p.last_error == "ValueError"

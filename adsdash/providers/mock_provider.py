"""Offline provider for dry runs: canned JSON shaped like the live responses."""

from __future__ import annotations

import json
import random
import re
from typing import List

from adsdash.providers.base import BaseProvider

_TITLE_LINE = re.compile(r"^- title: (?P<title>.+?) \|", re.MULTILINE)


def _detect_prompt_type(prompt: str) -> str:
    """Return 'insights', 'improvements' or 'unknown' from the TASK line."""
    first_lines = "\n".join(prompt.splitlines()[:5]).lower()
    if "improve" in first_lines or "rewrite" in first_lines:
        return "improvements"
    if "insight" in first_lines or "pattern" in first_lines:
        return "insights"
    return "unknown"


class MockProvider(BaseProvider):
    """Seeded mock so dry runs and tests are reproducible."""

    def __init__(self, seed: int = 42, **kwargs):
        if not isinstance(seed, int):
            seed = 42
        self._rng = random.Random(seed)
        self._call_log: List[str] = []

    def generate(self, prompt: str, system: str = "", max_tokens: int = 0) -> str:
        ptype = _detect_prompt_type(prompt)
        self._call_log.append(ptype)
        if ptype == "improvements":
            return self._mock_improvements(prompt)
        return self._mock_insights()

    def _mock_insights(self) -> str:
        return json.dumps(
            {
                "insights": [
                    {
                        "title": "Descriptive Attributes",
                        "content": "Top sellers name a concrete attribute (size, scent, format).",
                        "type": "suggestion",
                    }
                ]
            }
        )

    def _mock_improvements(self, prompt: str) -> str:
        titles = [m.group("title").strip() for m in _TITLE_LINE.finditer(prompt)]
        return json.dumps(
            {
                "improvements": [
                    {
                        "original_title": t,
                        "improved_title": f"{t} 500ml",
                        "explanation": "Added size information for clarity.",
                        "score": self._rng.randint(7, 10),
                    }
                    for t in titles
                ]
            }
        )

    def stats(self) -> dict:
        return {
            "call_count": len(self._call_log),
            "call_log": list(self._call_log),
            "retry_count": 0,
            "last_error": None,
        }

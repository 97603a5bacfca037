"""Tab store interface and shared payload normalisation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Sequence

from adsdash.schema import Empty, FetchResult, Malformed, Ok, rows_of

logger = logging.getLogger(__name__)

NAME_COLUMNS = ("Config Name", "Name")
VALUE_COLUMN = "Value"


class ReadOnlyStoreError(RuntimeError):
    """Raised when a write is attempted on a store that can only be read."""


class TabStore(ABC):
    """Spreadsheet-like storage addressed by tab name."""

    @abstractmethod
    def read_tab(self, name: str) -> FetchResult:
        """All rows of a tab as header-keyed dicts."""

    @abstractmethod
    def write_tab(self, name: str, headers: Sequence[str], rows: Sequence[Mapping[str, Any]]) -> int:
        """Replace a tab's contents; header order is column order. Returns rows written."""


def parse_tab_payload(payload: Any, tab: str = "") -> FetchResult:
    """Classify a decoded JSON payload without guessing at call sites.

    A list of objects is data; ``{"data": [...]}`` is unwrapped;
    ``{"error": ...}`` and anything else is malformed.
    """
    if isinstance(payload, dict):
        if isinstance(payload.get("data"), list):
            payload = payload["data"]
        elif "error" in payload:
            logger.error("Tab %s returned an error: %s", tab, payload["error"])
            return Malformed(f"error response: {payload['error']}")
        else:
            return Malformed("expected a list of rows, got an object")

    if not isinstance(payload, list):
        return Malformed(f"expected a list of rows, got {type(payload).__name__}")
    if not payload:
        return Empty()
    if not all(isinstance(r, dict) for r in payload):
        return Malformed("rows are not objects")
    return Ok(payload)


def named_values(result: FetchResult) -> Dict[str, str]:
    """Read a Name/Value config tab into opaque strings.

    A single-row tab without a name column is returned as that row.
    """
    rows: List[Dict[str, Any]] = rows_of(result)
    if not rows:
        return {}

    first = rows[0]
    name_col = next((c for c in NAME_COLUMNS if c in first), None)
    if name_col is None:
        if len(rows) == 1:
            return {str(k): str(v) for k, v in first.items()}
        return {}

    out: Dict[str, str] = {}
    for row in rows:
        name = row.get("Config Name") or row.get("Name")
        value = row.get(VALUE_COLUMN)
        if name and value is not None:
            out[str(name)] = str(value)
    return out


def read_named_values(store: TabStore, tab: str) -> Dict[str, str]:
    return named_values(store.read_tab(tab))

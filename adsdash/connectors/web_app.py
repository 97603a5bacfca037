"""Read-only source for a sheet published through an Apps Script web app.

The web app answers ``GET <url>?tab=<name>`` with the tab's rows as a JSON
array of header-keyed objects.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

import requests

from adsdash.connectors.base import ReadOnlyStoreError, TabStore, parse_tab_payload
from adsdash.schema import Failed, FetchResult, Malformed

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class WebAppSource(TabStore):
    def __init__(self, url: str, timeout: float = DEFAULT_TIMEOUT, session=None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def read_tab(self, name: str) -> FetchResult:
        logger.debug("Fetching tab %s from %s", name, self.url)
        try:
            response = self.session.get(self.url, params={"tab": name}, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.exception("Error fetching %s data", name)
            return Failed(str(exc))

        if not response.ok:
            logger.error("HTTP error %s: failed to fetch data for tab %s", response.status_code, name)
            return Failed(f"HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            logger.error("Failed to parse JSON response for tab %s: %s", name, exc)
            return Malformed("response is not JSON")

        result = parse_tab_payload(payload, tab=name)
        if isinstance(result, Malformed):
            logger.warning("Tab %s: %s", name, result.reason)
        return result

    def write_tab(self, name: str, headers: Sequence[str], rows: Sequence[Mapping[str, Any]]) -> int:
        raise ReadOnlyStoreError(f"Cannot write tab {name}: the Apps Script web app is read-only")

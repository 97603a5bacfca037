"""Local CSV tab store: one ``<tab>.csv`` per tab in a directory."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Sequence

import pandas as pd

from adsdash.connectors.base import TabStore
from adsdash.schema import Empty, Failed, FetchResult, Ok

logger = logging.getLogger(__name__)


class CsvDirectoryStore(TabStore):
    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def path_for(self, name: str) -> Path:
        return self.directory / f"{name}.csv"

    def read_tab(self, name: str) -> FetchResult:
        p = self.path_for(name)
        if not p.exists():
            logger.warning("Tab file not found: %s", p)
            return Failed(f"{p} does not exist")
        try:
            df = pd.read_csv(p, dtype=str, keep_default_na=False, encoding="utf-8")
        except pd.errors.EmptyDataError:
            return Empty()
        except (OSError, pd.errors.ParserError) as exc:
            logger.exception("Could not read %s", p)
            return Failed(str(exc))
        if df.empty:
            return Empty()
        return Ok(df.to_dict(orient="records"))

    def write_tab(self, name: str, headers: Sequence[str], rows: Sequence[Mapping[str, Any]]) -> int:
        p = self.path_for(name)
        p.parent.mkdir(parents=True, exist_ok=True)
        df = pd.DataFrame([{h: r.get(h, "") for h in headers} for r in rows], columns=list(headers))
        df.to_csv(p, index=False, encoding="utf-8")
        logger.info("Wrote %d rows to %s", len(df), p)
        return len(df)


def write_report(text: str, path: str | Path) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text, encoding="utf-8")
    return p

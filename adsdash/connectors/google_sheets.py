"""Google Sheets tab store (service-account auth via gspread)."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, List, Mapping, Sequence

import pandas as pd

try:
    import gspread  # type: ignore
except ImportError:  # pragma: no cover
    gspread = None

try:
    from google.oauth2.service_account import Credentials  # type: ignore
except ImportError:  # pragma: no cover
    Credentials = None

from adsdash.connectors.base import TabStore
from adsdash.schema import Empty, Failed, FetchResult, Ok

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]


class GoogleSheetsConfigError(RuntimeError):
    pass


def _resolve_creds_path() -> str:
    path = os.environ.get("ADSDASH_GOOGLE_CREDS_JSON") or os.environ.get(
        "GOOGLE_APPLICATION_CREDENTIALS"
    )
    if not path:
        raise GoogleSheetsConfigError(
            "Google credentials not configured. Set ADSDASH_GOOGLE_CREDS_JSON or "
            "GOOGLE_APPLICATION_CREDENTIALS to a Service Account JSON path."
        )
    if not Path(path).exists():
        raise GoogleSheetsConfigError(f"Credential file not found: {path}.")
    return path


def _authorize():
    creds_path = _resolve_creds_path()
    if gspread is None or Credentials is None:
        raise GoogleSheetsConfigError(
            "Google Sheets dependencies missing. Install gspread and google-auth, "
            "then retry."
        )
    creds = Credentials.from_service_account_file(creds_path, scopes=SCOPES)
    return gspread.authorize(creds)


def _cell(v: Any) -> Any:
    if v is None:
        return ""
    try:
        if pd.isna(v):
            return ""
    except (TypeError, ValueError):
        pass
    return v


class GoogleSheetsStore(TabStore):
    """Reads and replaces whole worksheets of one spreadsheet."""

    def __init__(self, spreadsheet_id: str, client=None):
        if not spreadsheet_id:
            raise GoogleSheetsConfigError("spreadsheet_id is not configured.")
        self.spreadsheet_id = spreadsheet_id
        self._client = client
        self._spreadsheet = None

    @property
    def spreadsheet(self):
        if self._spreadsheet is None:
            client = self._client or _authorize()
            self._spreadsheet = client.open_by_key(self.spreadsheet_id)
        return self._spreadsheet

    def read_tab(self, name: str) -> FetchResult:
        try:
            records = self.spreadsheet.worksheet(name).get_all_records()
        except GoogleSheetsConfigError:
            raise
        except Exception as exc:
            logger.exception("Error fetching %s tab", name)
            return Failed(f"{type(exc).__name__}: {exc}")
        if not records:
            logger.info("No data found in %s tab", name)
            return Empty()
        return Ok(records)

    def _worksheet_for_write(self, name: str, n_cols: int):
        sh = self.spreadsheet
        try:
            return sh.worksheet(name)
        except Exception:
            logger.info("Creating missing tab %s", name)
            return sh.add_worksheet(title=name, rows=1000, cols=max(n_cols, 1))

    def write_tab(self, name: str, headers: Sequence[str], rows: Sequence[Mapping[str, Any]]) -> int:
        ws = self._worksheet_for_write(name, len(headers))
        values: List[List[Any]] = [list(headers)]
        values += [[_cell(r.get(h)) for h in headers] for r in rows]
        ws.clear()
        ws.update(range_name="A1", values=values)
        if rows:
            logger.info("Wrote %d rows to the %s tab", len(rows), name)
        else:
            logger.info("No data found for %s; wrote headers only", name)
        return len(rows)


def push_tabular_file(spreadsheet_id: str, worksheet: str, input_path: str) -> int:
    """Push CSV/TSV to a worksheet. Returns number of data rows uploaded."""
    p = Path(input_path)
    if p.suffix.lower() == ".tsv":
        df = pd.read_csv(p, sep="\t", dtype=str).fillna("")
    else:
        df = pd.read_csv(p, dtype=str).fillna("")

    store = GoogleSheetsStore(spreadsheet_id)
    return store.write_tab(worksheet, list(df.columns), df.to_dict(orient="records"))

"""
Workbook loader — fetch a prediction workbook and split it into year sheets.

A workbook source is either a filesystem path or an ``http(s)://`` URL.
URLs are fetched with ``httpx``; the bytes are decoded with
``pandas.read_excel`` (``openpyxl`` engine), reading every sheet at once.

Sheet → year mapping
--------------------
  "2023", "2024 (final)"      → leading 4-digit token (2023, 2024)
  "2026 Financial", "2026 goals" → any name starting with the override token
                                   collapses to the override year (2026)
  "Notes", "Summary"          → no year; skipped with a warning

Failure policy
--------------
Reading or decoding the source is the only fatal step in ingestion: any
failure raises ``SourceLoadError`` and nothing is returned. Once the
workbook is decoded, row and cell problems are tolerated by the sheet parser.
"""

from __future__ import annotations

import io
import logging
import re
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

import httpx
import pandas as pd

from forecast_scorecard.config import DataConfig
from forecast_scorecard.ingestion.sheet_parser import RawRow, parse_sheet_rows
from forecast_scorecard.models.prediction import Prediction

logger = logging.getLogger(__name__)

_YEAR_PREFIX = re.compile(r"^\s*(\d{4})")


class SourceLoadError(RuntimeError):
    """The workbook source could not be fetched or decoded."""


def is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def read_source_bytes(source: str, timeout_s: float = 30.0) -> bytes:
    """Return the raw bytes of a workbook path or URL.

    Raises:
        SourceLoadError: On any network, HTTP status, or filesystem failure.
    """
    if is_url(source):
        try:
            resp = httpx.get(source, timeout=timeout_s, follow_redirects=True)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise SourceLoadError(f"Failed to fetch workbook from {source}: {exc}") from exc
        logger.info("Fetched workbook from %s (%d bytes)", source, len(resp.content))
        return resp.content

    path = Path(source)
    try:
        content = path.read_bytes()
    except OSError as exc:
        raise SourceLoadError(f"Failed to read workbook {path}: {exc}") from exc
    logger.info("Read workbook %s (%d bytes)", path, len(content))
    return content


def read_workbook(content: bytes) -> dict[str, list[dict[str, Any]]]:
    """Decode workbook bytes into ``{sheet_name: [row dict, ...]}``.

    Empty cells become ``None``; header labels are stripped of surrounding
    whitespace.

    Raises:
        SourceLoadError: If the bytes are not a readable workbook.
    """
    try:
        frames = pd.read_excel(
            io.BytesIO(content), sheet_name=None, dtype=object, engine="openpyxl"
        )
    except Exception as exc:
        # pandas/openpyxl raise many unrelated types for corrupt input
        raise SourceLoadError(f"Failed to decode workbook: {exc}") from exc

    return {str(name): _frame_to_rows(frame) for name, frame in frames.items()}


def sheet_year(sheet_name: str, override_token: str, override_year: int) -> Optional[int]:
    """Map a sheet name to its prediction year, or ``None`` if it has none."""
    if sheet_name.startswith(override_token):
        return override_year
    match = _YEAR_PREFIX.match(sheet_name)
    return int(match.group(1)) if match else None


def predictions_from_sheets(
    sheets: Mapping[str, Iterable[RawRow]],
    config: DataConfig,
) -> list[Prediction]:
    """Parse the configured year sheets into one flat prediction list.

    Sheets are visited in ``config.sheets`` order (missing ones are skipped);
    an empty ``config.sheets`` visits every sheet in workbook order.
    """
    names = [n for n in config.sheets if n in sheets] if config.sheets else list(sheets)

    predictions: list[Prediction] = []
    for name in names:
        year = sheet_year(name, config.override_year_token, config.override_year)
        if year is None:
            logger.warning("Sheet '%s' has no leading year; skipped", name)
            continue
        parsed = parse_sheet_rows(sheets[name], year)
        logger.info("Sheet '%s' → year %d: %d predictions", name, year, len(parsed))
        predictions.extend(parsed)
    return predictions


def load_predictions(source: str, config: DataConfig) -> list[Prediction]:
    """Fetch, decode and parse a prediction workbook.

    Raises:
        SourceLoadError: If the source cannot be read or decoded.
    """
    sheets = read_workbook(read_source_bytes(source, timeout_s=config.request_timeout_s))
    predictions = predictions_from_sheets(sheets, config)
    logger.info("Loaded %d predictions from %s", len(predictions), source)
    return predictions


# ── Private helpers ────────────────────────────────────────────────────────────

def _frame_to_rows(frame: pd.DataFrame) -> list[dict[str, Any]]:
    frame = frame.rename(columns=lambda c: str(c).strip())
    frame = frame.astype(object).where(pd.notna(frame), None)
    return frame.to_dict(orient="records")

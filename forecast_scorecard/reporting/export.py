"""
Export helpers for spreadsheet and notebook analysis.

All writers create parent directories and return the written ``Path``.
They accept generic ``list[dict]`` data; the ``flatten_*`` adapters turn
scoring models into flat rows first, so CSVs load directly in Excel or
pandas without unpivoting.

Leaderboard CSV columns
-----------------------
  rank, forecaster, handle, grade, overall_mape, bias, range_capture,
  mape_<MARKET> for every market, mape_<YEAR> for every scored year.

Missing per-market / per-year entries are written as empty cells, never 0,
so "no data" stays distinguishable from "perfect".
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Iterable, Sequence

from forecast_scorecard.models.accuracy import AccuracyRecord, ConsensusMetrics
from forecast_scorecard.models.insight import Insight
from forecast_scorecard.taxonomy.market_taxonomy import ALL_MARKETS


def export_to_csv(
    records: list[dict],
    path: Path,
    fieldnames: list[str] | None = None,
) -> Path:
    """Write ``records`` to a UTF-8 CSV file.

    Args:
        records:    List of row dicts.
        path:       Destination file path (parent dirs created if missing).
        fieldnames: Column order.  If None, uses the keys of the first record.

    Returns:
        ``path`` as written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    if not records and not fieldnames:
        path.write_text("", encoding="utf-8")
        return path
    cols = fieldnames or list(records[0].keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=cols, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(records)
    return path


def export_to_json(data: dict | list, path: Path) -> Path:
    """Write ``data`` to a pretty-printed JSON file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
    return path


def leaderboard_fieldnames(scored_years: Sequence[int]) -> list[str]:
    return (
        ["rank", "forecaster", "handle", "grade", "overall_mape", "bias", "range_capture"]
        + [f"mape_{m.value}" for m in ALL_MARKETS]
        + [f"mape_{year}" for year in scored_years]
    )


def flatten_leaderboard_for_export(
    records: Iterable[AccuracyRecord],
    scored_years: Sequence[int],
) -> list[dict]:
    """One flat row per leaderboard entry, ranked from 1."""
    rows: list[dict] = []
    for rank, record in enumerate(records, start=1):
        yearly = record.yearly_mape or {}
        row: dict = {
            "rank":          rank,
            "forecaster":    record.forecaster.name,
            "handle":        record.forecaster.handle or "",
            "grade":         record.grade,
            "overall_mape":  round(record.overall_mape, 4),
            "bias":          round(record.bias, 4),
            "range_capture": round(record.range_capture, 4),
        }
        for market in ALL_MARKETS:
            value = record.market_mape.get(market)
            row[f"mape_{market.value}"] = round(value, 4) if value is not None else ""
        for year in scored_years:
            value = yearly.get(year)
            row[f"mape_{year}"] = round(value, 4) if value is not None else ""
        rows.append(row)
    return rows


def flatten_consensus_for_export(rows: Iterable[ConsensusMetrics]) -> list[dict]:
    return [row.model_dump(mode="json") for row in rows]


def insights_for_export(insights: Iterable[Insight]) -> list[dict]:
    return [insight.model_dump(mode="json") for insight in insights]

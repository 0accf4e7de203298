"""Tests for forecast_scorecard.reporting.export."""

from __future__ import annotations

import csv
import json
from pathlib import Path

from forecast_scorecard.models.accuracy import AccuracyRecord, ConsensusMetrics
from forecast_scorecard.models.insight import Insight
from forecast_scorecard.models.prediction import Forecaster
from forecast_scorecard.reporting.export import (
    export_to_csv,
    export_to_json,
    flatten_consensus_for_export,
    flatten_leaderboard_for_export,
    insights_for_export,
    leaderboard_fieldnames,
)
from forecast_scorecard.taxonomy.market_taxonomy import InsightSeverity, InsightType, MarketKey


# ── export_to_csv / export_to_json ────────────────────────────────────────────

def test_export_to_csv_basic(tmp_path: Path) -> None:
    records = [{"forecaster": "@alice", "mape": 3.2}, {"forecaster": "Bob", "mape": 12.0}]
    out = export_to_csv(records, tmp_path / "nested" / "board.csv")

    with out.open(encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert [r["forecaster"] for r in rows] == ["@alice", "Bob"]


def test_export_to_csv_empty_with_fieldnames_writes_header(tmp_path: Path) -> None:
    out = export_to_csv([], tmp_path / "empty.csv", fieldnames=["rank", "forecaster"])
    assert out.read_text(encoding="utf-8").strip() == "rank,forecaster"


def test_export_to_csv_empty_without_fieldnames(tmp_path: Path) -> None:
    out = export_to_csv([], tmp_path / "empty.csv")
    assert out.read_text(encoding="utf-8") == ""


def test_export_to_json(tmp_path: Path) -> None:
    out = export_to_json({"a": [1, 2]}, tmp_path / "x" / "data.json")
    assert json.loads(out.read_text(encoding="utf-8")) == {"a": [1, 2]}


# ── Flatteners ────────────────────────────────────────────────────────────────

def test_leaderboard_fieldnames() -> None:
    names = leaderboard_fieldnames([2023, 2024])
    assert names[:4] == ["rank", "forecaster", "handle", "grade"]
    assert "mape_SP500" in names and "mape_FARTCOIN" in names
    assert names[-2:] == ["mape_2023", "mape_2024"]


def test_flatten_leaderboard_for_export() -> None:
    records = [
        AccuracyRecord(
            forecaster=Forecaster(id="@alice", name="@alice", handle="@alice"),
            overall_mape=3.123456,
            market_mape={MarketKey.BTC: 2.5},
            bias=-1.0,
            range_capture=50.0,
            yearly_mape={2023: 3.0},
        ),
        AccuracyRecord(forecaster=Forecaster(id="Bob", name="Bob"), overall_mape=12.0),
    ]
    rows = flatten_leaderboard_for_export(records, [2023, 2024])

    assert [r["rank"] for r in rows] == [1, 2]
    alice = rows[0]
    assert alice["grade"] == "A+"
    assert alice["overall_mape"] == 3.1235
    assert alice["mape_BTC"] == 2.5
    assert alice["mape_GOLD"] == ""
    assert alice["mape_2023"] == 3.0
    assert alice["mape_2024"] == ""
    assert rows[1]["handle"] == ""


def test_leaderboard_csv_round_trip(tmp_path: Path) -> None:
    records = [AccuracyRecord(forecaster=Forecaster(id="Bob", name="Bob"), overall_mape=12.0)]
    years = [2023]
    out = export_to_csv(
        flatten_leaderboard_for_export(records, years),
        tmp_path / "leaderboard.csv",
        fieldnames=leaderboard_fieldnames(years),
    )
    with out.open(encoding="utf-8") as f:
        [row] = list(csv.DictReader(f))
    assert row["forecaster"] == "Bob"
    assert row["grade"] == "B"
    assert row["mape_BTC"] == ""


def test_flatten_consensus_for_export() -> None:
    rows = flatten_consensus_for_export([
        ConsensusMetrics(
            market=MarketKey.GOLD, label="Gold", mean=3000.0, median=3000.0,
            std_dev=0.0, min=3000.0, max=3000.0, count=1,
        ),
    ])
    assert rows == [{
        "market": "GOLD", "label": "Gold", "mean": 3000.0, "median": 3000.0,
        "std_dev": 0.0, "min": 3000.0, "max": 3000.0, "count": 1,
    }]


def test_insights_for_export() -> None:
    [row] = insights_for_export([
        Insight(
            type=InsightType.DIVERSITY,
            title="Most Divided Predictions",
            description="Bitcoin shows the highest disagreement.",
            severity=InsightSeverity.INFO,
            data={"market": "BTC", "count": 3},
        ),
    ])
    assert row["type"] == "diversity"
    assert row["severity"] == "info"
    assert row["data"] == {"market": "BTC", "count": 3}
    json.dumps(row)

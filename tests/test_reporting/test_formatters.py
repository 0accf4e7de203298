"""Tests for forecast_scorecard.reporting.formatters."""

from __future__ import annotations

from forecast_scorecard.models.accuracy import AccuracyRecord, ConsensusMetrics
from forecast_scorecard.models.insight import Insight
from forecast_scorecard.models.prediction import Forecaster
from forecast_scorecard.reporting.formatters import (
    format_consensus_table,
    format_forecaster_list,
    format_insights,
    format_leaderboard_table,
    format_selection_banner,
)
from forecast_scorecard.session import FilterSelection
from forecast_scorecard.taxonomy.market_taxonomy import (
    InsightSeverity,
    InsightType,
    MarketKey,
)

SELECTION = FilterSelection(
    years=[2024, 2023],
    markets=[MarketKey.SP500, MarketKey.BTC],
    forecasters=["@alice", "Bob"],
)


def _record(name: str, mape: float, **kwargs) -> AccuracyRecord:
    return AccuracyRecord(
        forecaster=Forecaster(id=name, name=name),
        overall_mape=mape,
        **kwargs,
    )


# ── Selection banner ──────────────────────────────────────────────────────────

def test_selection_banner() -> None:
    banner = format_selection_banner(SELECTION, 7)
    assert "2023, 2024" in banner
    assert "SP500, BTC" in banner
    assert "2 selected | 7 predictions" in banner


def test_selection_banner_empty_selection() -> None:
    banner = format_selection_banner(FilterSelection(years=[], markets=[]), 0)
    assert banner.count("(none)") == 2


# ── Leaderboard ───────────────────────────────────────────────────────────────

def test_leaderboard_table_rows_in_order() -> None:
    records = [
        _record("@alice", 3.2, bias=-1.4, range_capture=50.0,
                market_mape={MarketKey.BTC: 2.1}),
        _record("Bob", 12.5, bias=6.0),
    ]
    out = format_leaderboard_table(records, SELECTION, 4)
    lines = out.splitlines()

    assert "=== Forecaster Leaderboard ===" in out
    alice_line = next(line for line in lines if "@alice" in line)
    bob_line = next(line for line in lines if "Bob" in line)
    assert lines.index(alice_line) < lines.index(bob_line)
    assert "A+" in alice_line
    assert "3.2%" in alice_line
    assert "-1.4%" in alice_line
    assert "2.1%" in alice_line
    assert bob_line.split()[2] == "B"
    assert "+6.0%" in bob_line


def test_leaderboard_missing_market_shown_as_dash() -> None:
    out = format_leaderboard_table([_record("Bob", 12.5)], SELECTION, 1)
    bob_line = next(line for line in out.splitlines() if "Bob" in line)
    assert bob_line.rstrip().endswith("-")


def test_leaderboard_table_empty() -> None:
    out = format_leaderboard_table([], SELECTION, 0)
    assert "no forecasters with scoreable predictions" in out


# ── Insights ──────────────────────────────────────────────────────────────────

def test_format_insights() -> None:
    insights = [
        Insight(
            type=InsightType.CONSENSUS,
            title="Strong Recession Consensus",
            description="75% of forecasters predict a recession.",
            severity=InsightSeverity.CRITICAL,
        ),
        Insight(
            type=InsightType.ACCURACY,
            title="Participation Summary",
            description="2 forecasters contributed 3 total predictions.",
        ),
    ]
    out = format_insights(insights)
    assert "[CRITICAL] Strong Recession Consensus (consensus)" in out
    assert "[INFO] Participation Summary (accuracy)" in out
    assert "75% of forecasters" in out


def test_format_insights_empty() -> None:
    assert "no insights" in format_insights([])


# ── Consensus ─────────────────────────────────────────────────────────────────

def test_format_consensus_table() -> None:
    rows = [
        ConsensusMetrics(
            market=MarketKey.BTC, label="Bitcoin", mean=100000.0, median=95000.0,
            std_dev=12345.678, min=50000.0, max=150000.0, count=12,
        ),
    ]
    out = format_consensus_table(rows)
    line = next(line for line in out.splitlines() if "Bitcoin" in line)
    assert "100,000.00" in line
    assert "12,345.68" in line
    assert " 12 " in line


def test_format_consensus_table_empty() -> None:
    assert "no close predictions" in format_consensus_table([])


# ── Forecasters ───────────────────────────────────────────────────────────────

def test_format_forecaster_list() -> None:
    out = format_forecaster_list([
        Forecaster(id="@alice", name="@alice", handle="@alice"),
        Forecaster(id="Bob", name="Bob"),
    ])
    assert "=== Forecasters (2) ===" in out
    assert "@alice  (handle @alice)" in out
    assert "\n  Bob" in out

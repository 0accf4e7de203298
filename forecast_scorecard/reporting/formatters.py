"""
ASCII terminal formatters for CLI reporting commands.

All formatters accept scoring models and return plain multi-line strings
suitable for ``typer.echo()``. No third-party dependencies (no ``rich``).

Every report starts with a selection banner so readers can tell which
years, markets and how many forecasters the numbers cover::

  Years:       2023, 2024, 2025
  Markets:     SP500, NDQ, GOLD, BTC, ETH, SOL, FARTCOIN
  Forecasters: 14 selected | 37 predictions
"""

from __future__ import annotations

from typing import Sequence

from forecast_scorecard.models.accuracy import AccuracyRecord, ConsensusMetrics
from forecast_scorecard.models.insight import Insight
from forecast_scorecard.models.prediction import Forecaster
from forecast_scorecard.session import FilterSelection
from forecast_scorecard.taxonomy.market_taxonomy import ALL_MARKETS, InsightSeverity

_SEVERITY_TAGS: dict[InsightSeverity, str] = {
    InsightSeverity.INFO:     "[INFO]",
    InsightSeverity.NOTABLE:  "[NOTABLE]",
    InsightSeverity.CRITICAL: "[CRITICAL]",
}


# ── Selection banner ─────────────────────────────────────────────────────────


def format_selection_banner(selection: FilterSelection, n_predictions: int) -> str:
    years = ", ".join(str(y) for y in sorted(selection.years)) or "(none)"
    markets = ", ".join(m.value for m in selection.markets) or "(none)"
    return "\n".join([
        f"  Years:       {years}",
        f"  Markets:     {markets}",
        f"  Forecasters: {len(selection.forecasters)} selected | {n_predictions} predictions",
    ])


# ── Leaderboard ──────────────────────────────────────────────────────────────


def _pct(value: float | None, signed: bool = False) -> str:
    if value is None:
        return "-"
    return f"{value:+.1f}%" if signed else f"{value:.1f}%"


def format_leaderboard_table(
    records: Sequence[AccuracyRecord],
    selection: FilterSelection,
    n_predictions: int,
) -> str:
    """Format ranked accuracy records as an ASCII table.

    Columns: rank, forecaster, grade, overall MAPE, bias, range capture,
    then one MAPE column per market (``-`` where the forecaster has no
    scoreable prediction)::

        Rank  Forecaster      Grade    MAPE     Bias   Range  SP500  ...
        ---------------------------------------------------------------
           1  @alice             A+    3.2%    -1.4%   50.0%   2.1%  ...
    """
    lines: list[str] = ["", "=== Forecaster Leaderboard ==="]
    lines.append(format_selection_banner(selection, n_predictions))

    if not records:
        lines.append("")
        lines.append("  (no forecasters with scoreable predictions for this selection)")
        return "\n".join(lines)

    market_cols = "".join(f"  {m.value:>8}" for m in ALL_MARKETS)
    header = (
        f"  {'Rank':>4}  {'Forecaster':<24}  {'Grade':>5}  {'MAPE':>7}  "
        f"{'Bias':>8}  {'Range':>6}{market_cols}"
    )
    lines.append("")
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))

    for rank, record in enumerate(records, start=1):
        per_market = "".join(
            f"  {_pct(record.market_mape.get(m)):>8}" for m in ALL_MARKETS
        )
        lines.append(
            f"  {rank:>4}  {record.forecaster.name[:24]:<24}  {record.grade:>5}  "
            f"{_pct(record.overall_mape):>7}  {_pct(record.bias, signed=True):>8}  "
            f"{_pct(record.range_capture):>6}{per_market}"
        )
    return "\n".join(lines)


# ── Insights ─────────────────────────────────────────────────────────────────


def format_insights(insights: Sequence[Insight]) -> str:
    """One block per insight: severity tag + title, then the description."""
    lines: list[str] = ["", "=== Insights ==="]
    if not insights:
        lines.append("  (no insights for this selection)")
        return "\n".join(lines)
    for insight in insights:
        lines.append("")
        lines.append(f"  {_SEVERITY_TAGS[insight.severity]} {insight.title} ({insight.type})")
        lines.append(f"    {insight.description}")
    return "\n".join(lines)


# ── Consensus ────────────────────────────────────────────────────────────────


def format_consensus_table(rows: Sequence[ConsensusMetrics]) -> str:
    lines: list[str] = ["", "=== Consensus Predictions (close) ==="]
    if not rows:
        lines.append("  (no close predictions for this selection)")
        return "\n".join(lines)

    header = (
        f"  {'Market':<10}  {'N':>4}  {'Mean':>12}  {'Median':>12}  "
        f"{'StdDev':>12}  {'Min':>12}  {'Max':>12}"
    )
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))
    for row in rows:
        lines.append(
            f"  {row.label:<10}  {row.count:>4}  {row.mean:>12,.2f}  {row.median:>12,.2f}  "
            f"{row.std_dev:>12,.2f}  {row.min:>12,.2f}  {row.max:>12,.2f}"
        )
    return "\n".join(lines)


# ── Forecasters ──────────────────────────────────────────────────────────────


def format_forecaster_list(forecasters: Sequence[Forecaster]) -> str:
    lines: list[str] = ["", f"=== Forecasters ({len(forecasters)}) ==="]
    for forecaster in forecasters:
        handle = f"  (handle {forecaster.handle})" if forecaster.handle else ""
        lines.append(f"  {forecaster.name}{handle}")
    return "\n".join(lines)

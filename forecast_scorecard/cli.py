"""
Forecast Scorecard CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Load the workbook into a ``SessionState`` and apply the filter options.
  4. Score / summarise the filtered view.
  5. Print an ASCII report to stdout (and optionally export it).

Install and run::

    pip install -e .
    forecast-scorecard --help
    forecast-scorecard validate-config
    forecast-scorecard forecasters
    forecast-scorecard leaderboard --year 2024 --market BTC --sort bias
    forecast-scorecard insights --year 2026
    forecast-scorecard consensus --market SP500 --market GOLD
    forecast-scorecard run --source https://example.com/predictions.xlsx
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="forecast-scorecard",
    help="Forecast Scorecard: score yearly market predictions against actual outcomes.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from forecast_scorecard.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from forecast_scorecard.utils.logging import configure_logging
    configure_logging(config.logging)


def _parse_markets(values: Optional[list[str]]):
    """Typer callback: market keys or labels → ``MarketKey`` list."""
    from forecast_scorecard.taxonomy.market_taxonomy import parse_market_key

    if not values:
        return values
    try:
        return [parse_market_key(v) for v in values]
    except ValueError as exc:
        raise typer.BadParameter(str(exc))


def _build_report_or_exit(
    config,
    source: Optional[str],
    years: Optional[list[int]],
    markets: Optional[list],
    forecasters: Optional[list[str]],
    sort_key: str = "mape",
    descending: bool = False,
):
    """Load the workbook, apply filters and build a ``ScorecardReport``."""
    from forecast_scorecard.ingestion.workbook import SourceLoadError
    from forecast_scorecard.pipeline.score import build_report, load_session
    from forecast_scorecard.reference.actuals import load_reference

    try:
        state = load_session(config, source)
        reference = load_reference(config.data.reference_file)
    except (SourceLoadError, FileNotFoundError, ValueError) as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    update: dict = {}
    if years:
        update["years"] = list(years)
    if markets:
        update["markets"] = list(markets)
    if forecasters:
        update["forecasters"] = list(forecasters)
    view = state.select(state.selection.model_copy(update=update))

    try:
        return build_report(view, reference, config, sort_key, descending)
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)


_SOURCE_HELP = "Workbook path or URL. Defaults to config.data.source."
_YEAR_HELP = "Year to include (repeatable). Defaults to config.filters.default_years."
_MARKET_HELP = "Market key or label to include, e.g. BTC or 'S&P 500' (repeatable)."
_FORECASTER_HELP = (
    "Forecaster display name to include, case-insensitive (repeatable). Defaults to all."
)
_CONFIG_HELP = "Path to TOML config file."


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Source:           {config.data.source}")
    typer.echo(f"  Sheets:           {', '.join(config.data.sheets) or '(all year sheets)'}")
    typer.echo(f"  Reference file:   {config.data.reference_file or '(built-in)'}")
    typer.echo(f"  Scored years:     {', '.join(str(y) for y in config.scoring.scored_years)}")
    typer.echo(f"  Default years:    {', '.join(str(y) for y in config.filters.default_years)}")
    typer.echo(f"  Output dir:       {config.reporting.output_dir}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("forecasters")
def list_forecasters(
    source: Optional[str] = typer.Option(None, "--source", help=_SOURCE_HELP),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """List every forecaster found in the workbook, deduplicated across years."""
    from forecast_scorecard.ingestion.workbook import SourceLoadError
    from forecast_scorecard.pipeline.score import load_session
    from forecast_scorecard.reporting.formatters import format_forecaster_list

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        state = load_session(config, source)
    except SourceLoadError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(format_forecaster_list(state.forecasters))
    typer.echo("")
    typer.echo(f"[OK] {len(state.predictions)} predictions loaded.")


@app.command("leaderboard")
def leaderboard(
    year: Optional[list[int]] = typer.Option(None, "--year", "-y", help=_YEAR_HELP),
    market: Optional[list[str]] = typer.Option(
        None, "--market", "-m", help=_MARKET_HELP, callback=_parse_markets,
    ),
    forecaster: Optional[list[str]] = typer.Option(
        None, "--forecaster", "-f", help=_FORECASTER_HELP,
    ),
    sort: str = typer.Option(
        "mape",
        "--sort",
        help="Sort key: name, mape, bias (closest to zero first), range_capture.",
    ),
    desc: bool = typer.Option(False, "--desc", help="Reverse the sort order."),
    source: Optional[str] = typer.Option(None, "--source", help=_SOURCE_HELP),
    export: Optional[str] = typer.Option(
        None, "--export", help="Also write the leaderboard to this CSV path.",
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """Rank forecasters by close-price accuracy against actual outcomes.

    \b
    Grades by overall MAPE:
      A+ < 5%  |  A < 10%  |  B < 15%  |  C < 20%  |  D < 30%  |  F otherwise
      N/A when nothing was scoreable.
    """
    from forecast_scorecard.reporting.export import (
        export_to_csv,
        flatten_leaderboard_for_export,
        leaderboard_fieldnames,
    )
    from forecast_scorecard.reporting.formatters import format_leaderboard_table

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    report = _build_report_or_exit(config, source, year, market, forecaster, sort, desc)
    typer.echo(format_leaderboard_table(
        report.leaderboard, report.view.selection, report.n_predictions,
    ))

    if export:
        scored_years = config.scoring.scored_years
        path = export_to_csv(
            flatten_leaderboard_for_export(report.leaderboard, scored_years),
            Path(export),
            fieldnames=leaderboard_fieldnames(scored_years),
        )
        typer.echo(f"\n  Exported leaderboard to {path}")


@app.command("insights")
def insights(
    year: Optional[list[int]] = typer.Option(None, "--year", "-y", help=_YEAR_HELP),
    market: Optional[list[str]] = typer.Option(
        None, "--market", "-m", help=_MARKET_HELP, callback=_parse_markets,
    ),
    forecaster: Optional[list[str]] = typer.Option(
        None, "--forecaster", "-f", help=_FORECASTER_HELP,
    ),
    source: Optional[str] = typer.Option(None, "--source", help=_SOURCE_HELP),
    export: Optional[str] = typer.Option(
        None, "--export", help="Also write the insights to this JSON path.",
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """Show heuristic observations: disagreement, range width, recession consensus."""
    from forecast_scorecard.reporting.export import export_to_json, insights_for_export
    from forecast_scorecard.reporting.formatters import (
        format_insights,
        format_selection_banner,
    )

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    report = _build_report_or_exit(config, source, year, market, forecaster)
    typer.echo(format_selection_banner(report.view.selection, report.n_predictions))
    typer.echo(format_insights(report.insights))

    if export:
        path = export_to_json(insights_for_export(report.insights), Path(export))
        typer.echo(f"\n  Exported insights to {path}")


@app.command("consensus")
def consensus(
    year: Optional[list[int]] = typer.Option(None, "--year", "-y", help=_YEAR_HELP),
    market: Optional[list[str]] = typer.Option(
        None, "--market", "-m", help=_MARKET_HELP, callback=_parse_markets,
    ),
    forecaster: Optional[list[str]] = typer.Option(
        None, "--forecaster", "-f", help=_FORECASTER_HELP,
    ),
    source: Optional[str] = typer.Option(None, "--source", help=_SOURCE_HELP),
    export: Optional[str] = typer.Option(
        None, "--export", help="Also write the consensus table to this CSV path.",
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """Summarise the crowd's close predictions per market."""
    from forecast_scorecard.models.accuracy import ConsensusMetrics
    from forecast_scorecard.reporting.export import export_to_csv, flatten_consensus_for_export
    from forecast_scorecard.reporting.formatters import (
        format_consensus_table,
        format_selection_banner,
    )

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    report = _build_report_or_exit(config, source, year, market, forecaster)
    typer.echo(format_selection_banner(report.view.selection, report.n_predictions))
    typer.echo(format_consensus_table(report.consensus))

    if export:
        path = export_to_csv(
            flatten_consensus_for_export(report.consensus),
            Path(export),
            fieldnames=list(ConsensusMetrics.model_fields),
        )
        typer.echo(f"\n  Exported consensus to {path}")


@app.command("run")
def run(
    year: Optional[list[int]] = typer.Option(None, "--year", "-y", help=_YEAR_HELP),
    market: Optional[list[str]] = typer.Option(
        None, "--market", "-m", help=_MARKET_HELP, callback=_parse_markets,
    ),
    forecaster: Optional[list[str]] = typer.Option(
        None, "--forecaster", "-f", help=_FORECASTER_HELP,
    ),
    sort: str = typer.Option("mape", "--sort", help="Leaderboard sort key."),
    desc: bool = typer.Option(False, "--desc", help="Reverse the sort order."),
    source: Optional[str] = typer.Option(None, "--source", help=_SOURCE_HELP),
    output_dir: Optional[str] = typer.Option(
        None, "--output-dir", help="Override config.reporting.output_dir.",
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """Run the full score pipeline and write every report to the output directory.

    \b
    Writes to {output_dir}/score_{timestamp}/:
      leaderboard.csv, insights.json, consensus.csv, manifest.json
    """
    from forecast_scorecard.pipeline.score import ScoreStage

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    stage = ScoreStage(config=config, output_dir=output_dir)
    try:
        run_meta = stage.run(
            source=source,
            years=year,
            markets=market,
            forecasters=forecaster,
            sort_key=sort,
            descending=desc,
        )
    except Exception as exc:
        typer.echo(f"[ERROR] Score stage failed: {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"  status={run_meta.status} | ranked forecasters={run_meta.rows_processed}")
    typer.echo(f"  outputs: {stage.run_dir(run_meta)}")
    typer.echo("[OK] Scorecard complete.")


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()

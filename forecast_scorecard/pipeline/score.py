"""
Score stage — load the workbook, apply a selection, and write report files.

Outputs, under ``{output_dir}/score_{timestamp}/``::

  leaderboard.csv   ranked accuracy records (see ``reporting.export``)
  insights.json     generated insights
  consensus.csv     per-market close consensus
  manifest.json     the ``RunMetadata`` record (written by ``PipelineStage``)
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict

from forecast_scorecard.config import AppConfig
from forecast_scorecard.ingestion.workbook import SourceLoadError
from forecast_scorecard.models.accuracy import AccuracyRecord, ConsensusMetrics
from forecast_scorecard.models.insight import Insight
from forecast_scorecard.models.meta import RunMetadata
from forecast_scorecard.pipeline.base import PipelineStage
from forecast_scorecard.reference.actuals import ReferenceTable, load_reference
from forecast_scorecard.reporting.export import (
    export_to_csv,
    export_to_json,
    flatten_consensus_for_export,
    flatten_leaderboard_for_export,
    insights_for_export,
    leaderboard_fieldnames,
)
from forecast_scorecard.scoring.accuracy import compute_leaderboard, sort_leaderboard
from forecast_scorecard.scoring.consensus import compute_consensus
from forecast_scorecard.insights.generator import generate_insights
from forecast_scorecard.session import FilteredView, SessionState
from forecast_scorecard.taxonomy.market_taxonomy import LoadStatus, MarketKey

logger = logging.getLogger(__name__)

LEADERBOARD_FILENAME = "leaderboard.csv"
INSIGHTS_FILENAME = "insights.json"
CONSENSUS_FILENAME = "consensus.csv"


class ScorecardReport(BaseModel):
    """Everything derived from one filtered view."""

    model_config = ConfigDict(frozen=True)

    view: FilteredView
    leaderboard: list[AccuracyRecord]
    insights: list[Insight]
    consensus: list[ConsensusMetrics]

    @property
    def n_predictions(self) -> int:
        return len(self.view.predictions)


def build_report(
    view: FilteredView,
    reference: ReferenceTable,
    config: AppConfig,
    sort_key: str = "mape",
    descending: bool = False,
) -> ScorecardReport:
    """Score, summarise and generate insights for ``view``.

    Only forecasters named in the selection are ranked.

    Raises:
        ValueError: For an unknown ``sort_key``.
    """
    selected = {name.lower() for name in view.selection.forecasters}
    forecasters = [f for f in view.forecasters if f.identity_key in selected]

    leaderboard = compute_leaderboard(
        view.predictions, forecasters, reference, config.scoring.scored_years,
    )
    if sort_key != "mape" or descending:
        leaderboard = sort_leaderboard(leaderboard, sort_key, descending)

    return ScorecardReport(
        view=view,
        leaderboard=leaderboard,
        insights=generate_insights(view.predictions, view.forecasters, config.insights),
        consensus=compute_consensus(view.predictions, view.selection.markets),
    )


def load_session(config: AppConfig, source: Optional[str] = None) -> SessionState:
    """Return a READY session.

    Raises:
        SourceLoadError: If the workbook could not be loaded.
    """
    state = SessionState(config)
    if state.load(source) is not LoadStatus.READY:
        raise SourceLoadError(state.error or "Failed to load predictions.")
    return state


class ScoreStage(PipelineStage):
    """Load predictions, score the selection, and export the results."""

    stage_name = "score"

    def _execute(
        self,
        run: RunMetadata,
        source: Optional[str] = None,
        years: Optional[Sequence[int]] = None,
        markets: Optional[Sequence[MarketKey]] = None,
        forecasters: Optional[Sequence[str]] = None,
        sort_key: str = "mape",
        descending: bool = False,
        **kwargs,
    ) -> int:
        run.source = source or self.config.data.source
        state = load_session(self.config, run.source)
        reference = load_reference(self.config.data.reference_file)

        update: dict = {}
        if years:
            update["years"] = list(years)
        if markets:
            update["markets"] = list(markets)
        if forecasters:
            update["forecasters"] = list(forecasters)
        view = state.select(state.selection.model_copy(update=update))
        run.selection = view.selection.model_dump(mode="json")

        report = build_report(view, reference, self.config, sort_key, descending)

        out_dir = self.run_dir(run)
        scored_years = self.config.scoring.scored_years
        export_to_csv(
            flatten_leaderboard_for_export(report.leaderboard, scored_years),
            out_dir / LEADERBOARD_FILENAME,
            fieldnames=leaderboard_fieldnames(scored_years),
        )
        export_to_json(insights_for_export(report.insights), out_dir / INSIGHTS_FILENAME)
        export_to_csv(
            flatten_consensus_for_export(report.consensus),
            out_dir / CONSENSUS_FILENAME,
            fieldnames=list(ConsensusMetrics.model_fields),
        )
        logger.info(
            "Score outputs written to %s | forecasters=%d insights=%d",
            out_dir, len(report.leaderboard), len(report.insights),
            extra={"run_dir": str(out_dir)},
        )
        return len(report.leaderboard)

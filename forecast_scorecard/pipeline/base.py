"""
Abstract base class for pipeline stages.

Every stage follows the same contract:
  1. Receive ``AppConfig`` at construction.
  2. ``run(**kwargs)`` is the sole public API.
  3. ``run()`` creates a ``RunMetadata`` record, calls ``_execute()``,
     and writes the run record as ``manifest.json`` in the run directory.
  4. ``_execute()`` is the stage-specific implementation.

Status transitions (started → success/failed) are handled here; stages never
swallow exceptions.

Usage::

    class MyStage(PipelineStage):
        stage_name = "score"

        def _execute(self, run: RunMetadata, **kwargs) -> int:
            return 42

    run = MyStage(config=app_config).run(source="data/predictions.xlsx")
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from uuid import uuid4

from forecast_scorecard.config import AppConfig
from forecast_scorecard.models.meta import RunMetadata
from forecast_scorecard.utils.time_utils import run_timestamp, utcnow

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "manifest.json"


class PipelineStage(ABC):
    """Abstract base for pipeline stages.

    Subclasses must:
      1. Set ``stage_name`` class variable.
      2. Implement ``_execute(run, **kwargs) -> int``.

    Attributes:
        stage_name: String identifier matching a valid ``RunMetadata.pipeline_stage``.
        config: The application configuration for this run.
        output_dir: Root directory for run outputs
            (defaults to ``config.reporting.output_dir``).
    """

    stage_name: str  # Override in subclass

    def __init__(
        self,
        config: AppConfig,
        output_dir: str | None = None,
    ) -> None:
        self.config = config
        self.output_dir = Path(output_dir or config.reporting.output_dir)

    def run(self, **kwargs) -> RunMetadata:
        """Execute this pipeline stage.

        Returns:
            ``RunMetadata`` with final ``status``, ``rows_processed``,
            and ``finished_at`` set.

        Raises:
            Exception: Re-raises any exception from ``_execute()`` after
                recording ``status='failed'`` in the run record.
        """
        run = RunMetadata(
            run_slug=str(uuid4()),
            pipeline_stage=self.stage_name,
            config_snapshot=self.config.model_dump(mode="json"),
            started_at=utcnow(),
        )
        logger.info("Stage [%s] starting | run_slug=%s", self.stage_name, run.run_slug)

        try:
            rows = self._execute(run=run, **kwargs)
            run.status = "success"
            run.rows_processed = rows
            run.finished_at = utcnow()
            logger.info(
                "Stage [%s] completed | rows=%d | run_slug=%s",
                self.stage_name, rows, run.run_slug,
            )
        except Exception as exc:
            run.status = "failed"
            run.error_message = str(exc)
            run.finished_at = utcnow()
            logger.error(
                "Stage [%s] FAILED: %s | run_slug=%s",
                self.stage_name, exc, run.run_slug,
            )
            self._persist_run(run)
            raise

        self._persist_run(run)
        return run

    def run_dir(self, run: RunMetadata) -> Path:
        """Directory holding this run's outputs: ``{output_dir}/{stage}_{timestamp}``."""
        return self.output_dir / f"{self.stage_name}_{run_timestamp(run.started_at)}"

    @abstractmethod
    def _execute(self, run: RunMetadata, **kwargs) -> int:
        """Stage-specific implementation.

        Args:
            run: The in-progress ``RunMetadata`` record (mutable).
            **kwargs: Stage-specific parameters.

        Returns:
            Integer count of records produced.
        """
        ...

    def _persist_run(self, run: RunMetadata) -> None:
        """Write the ``RunMetadata`` record to ``manifest.json``.

        Logs rather than raises on failure so a manifest write error
        never masks the pipeline error.
        """
        try:
            path = self.run_dir(run) / MANIFEST_FILENAME
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(
                json.dumps(run.model_dump(mode="json"), indent=2, default=str),
                encoding="utf-8",
            )
        except OSError as exc:
            logger.error(
                "Failed to write manifest for run_slug=%s: %s", run.run_slug, exc,
            )

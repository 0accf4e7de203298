"""
Run metadata — the audit record for one scoring pipeline execution.

``RunMetadata`` captures what was scored and with which configuration:
the full ``config_snapshot`` (``AppConfig.model_dump()``), the workbook
source, the filter selection applied, and how many records were produced.

It is the only model in the package that is NOT frozen: ``status``,
``rows_processed``, ``error_message`` and ``finished_at`` are updated while
the stage executes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

VALID_PIPELINE_STAGES = frozenset({"score"})
VALID_RUN_STATUSES = frozenset({"started", "success", "failed"})


class RunMetadata(BaseModel):
    """Pipeline execution audit record.

    Attributes:
        run_slug: UUID4 string uniquely identifying this run.
        pipeline_stage: Which stage produced this run record.
        status: Current execution status.
        source: Workbook path or URL that was scored.
        config_snapshot: Full ``AppConfig.model_dump()`` at run start time.
        selection: Filter selection applied (years, markets, forecasters).
        rows_processed: Number of output records produced.
        error_message: Error description if ``status == "failed"``.
        started_at: UTC datetime when the run began.
        finished_at: UTC datetime when the run completed or failed.
    """

    model_config = ConfigDict(frozen=False)

    run_slug: str
    pipeline_stage: str
    status: str = "started"
    source: Optional[str] = None
    config_snapshot: dict[str, Any]
    selection: Optional[dict[str, Any]] = None
    rows_processed: int = 0
    error_message: Optional[str] = None
    started_at: datetime
    finished_at: Optional[datetime] = None

    @field_validator("pipeline_stage")
    @classmethod
    def validate_pipeline_stage(cls, v: str) -> str:
        if v not in VALID_PIPELINE_STAGES:
            raise ValueError(
                f"Unknown pipeline_stage '{v}'. Must be one of {sorted(VALID_PIPELINE_STAGES)}."
            )
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in VALID_RUN_STATUSES:
            raise ValueError(
                f"Unknown status '{v}'. Must be one of {sorted(VALID_RUN_STATUSES)}."
            )
        return v

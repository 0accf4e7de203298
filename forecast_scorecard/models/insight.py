"""
Insight model — one human-readable observation about the prediction set.

Type and severity are closed enumerations; ``data`` is an opaque payload for
consumers that want the numbers behind the sentence.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from forecast_scorecard.taxonomy.market_taxonomy import InsightSeverity, InsightType


class Insight(BaseModel):
    """A heuristic observation produced by the insight generator."""

    model_config = ConfigDict(frozen=True)

    type: InsightType
    title: str
    description: str
    severity: InsightSeverity = InsightSeverity.INFO
    data: Optional[dict[str, Any]] = None

    @field_validator("title", "description")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Insight title and description must not be blank.")
        return v

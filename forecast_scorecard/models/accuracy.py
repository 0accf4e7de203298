"""
Derived scoring outputs.

``AccuracyRecord``   — per-forecaster error metrics against reference outcomes.
``ConsensusMetrics`` — per-market summary of the crowd's close predictions.

Both are recomputed on every filter change and never persisted, except as
report exports.

Zero-MAPE ambiguity
-------------------
``overall_mape == 0`` means either a perfect score or no qualifying data.
The leaderboard relies on this (zeros sort last, zero-and-empty records are
dropped). ``has_data`` tells the two apart for callers that care.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from forecast_scorecard.models.prediction import Forecaster
from forecast_scorecard.taxonomy.market_taxonomy import MarketKey

# (upper bound exclusive, grade); 0 is handled separately as "N/A".
GRADE_THRESHOLDS: tuple[tuple[float, str], ...] = (
    (5.0, "A+"),
    (10.0, "A"),
    (15.0, "B"),
    (20.0, "C"),
    (30.0, "D"),
)


def accuracy_grade(mape: float) -> str:
    """Letter grade for a MAPE percentage; 0 is "N/A" (no score)."""
    if mape == 0:
        return "N/A"
    for bound, grade in GRADE_THRESHOLDS:
        if mape < bound:
            return grade
    return "F"


class AccuracyRecord(BaseModel):
    """Accuracy of one forecaster over the filtered predictions.

    Attributes:
        forecaster: The scored forecaster.
        overall_mape: MAPE over every scored (close, actual) pair, in percent.
        market_mape: Market → MAPE; a key is present only if it had a pair.
        bias: Mean signed relative error in percent (positive = bullish).
        range_capture: Percent of predicted ranges containing the actual close.
        yearly_mape: Year → MAPE over all markets for that year.
    """

    model_config = ConfigDict(frozen=True)

    forecaster: Forecaster
    overall_mape: float = 0.0
    market_mape: dict[MarketKey, float] = {}
    bias: float = 0.0
    range_capture: float = 0.0
    yearly_mape: Optional[dict[int, float]] = None

    @property
    def has_data(self) -> bool:
        return bool(self.market_mape)

    @property
    def grade(self) -> str:
        return accuracy_grade(self.overall_mape)


class ConsensusMetrics(BaseModel):
    """Summary statistics of close predictions for one market."""

    model_config = ConfigDict(frozen=True)

    market: MarketKey
    label: str
    mean: float
    median: float
    std_dev: float
    min: float
    max: float
    count: int

"""
Ground-truth outcome model.

An ``ActualOutcome`` records the realised high, low and close for one market
in one year. A ``close`` of exactly 0 is a sentinel meaning the market had no
tracked value that year (e.g. the asset did not exist yet); scoring skips it.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from forecast_scorecard.taxonomy.market_taxonomy import MarketKey


class ActualOutcome(BaseModel):
    """Realised market values for a (year, market) pair."""

    model_config = ConfigDict(frozen=True)

    year: int
    market: MarketKey
    high: float
    low: float
    close: float

    @property
    def is_scoreable(self) -> bool:
        """False for the ``close == 0`` "no data" sentinel."""
        return self.close != 0

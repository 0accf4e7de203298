"""
Prediction models — the canonical shape of one forecaster's yearly submission.

``Forecaster``       — identity; ``name`` is the display name (handle preferred).
``MarketPrediction`` — high/low/close for one market, each independently optional.
``Prediction``       — one spreadsheet row: year, forecaster, recession call,
                       per-market predictions and free-text categorical answers.

All models are frozen. A ``Prediction`` is built once during ingestion and
never mutated afterwards; filters and scoring passes only read it.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from forecast_scorecard.taxonomy.market_taxonomy import MarketKey


class Forecaster(BaseModel):
    """A person submitting predictions.

    Attributes:
        id: Parse-time id (``"{year}-{name}"``) or, after deduplication,
            the display name itself.
        name: Canonical display name. Uniqueness is case-insensitive.
        handle: Telegram/Twitter handle when the sheet provided one.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    handle: Optional[str] = None

    @property
    def identity_key(self) -> str:
        """Case-insensitive key used to unify the same person across sheets."""
        return self.name.lower()


class MarketPrediction(BaseModel):
    """High/low/close prediction for a single market.

    At least one of the three values must be present; rows with none are
    dropped by the parser rather than stored as empty records.
    """

    model_config = ConfigDict(frozen=True)

    market: MarketKey
    high: Optional[float] = None
    low: Optional[float] = None
    close: Optional[float] = None

    @model_validator(mode="after")
    def validate_has_value(self) -> "MarketPrediction":
        if self.high is None and self.low is None and self.close is None:
            raise ValueError(
                f"MarketPrediction for {self.market} needs at least one of high/low/close."
            )
        return self

    @property
    def has_range(self) -> bool:
        return self.high is not None and self.low is not None


class CategoricalAnswers(BaseModel):
    """Free-text answers carried through uninterpreted."""

    model_config = ConfigDict(frozen=True)

    best_llm: Optional[str] = None
    will_ipo: Optional[str] = None
    best_mag7: Optional[str] = None


class Prediction(BaseModel):
    """A forecaster's full submission for one year.

    Attributes:
        year: Prediction year (sheet year).
        forecaster: Who made the prediction.
        recession: 1 if a recession was called for the year, else 0.
        markets: Market key → prediction; only markets with data are present.
        categorical: Optional free-text answers.
    """

    model_config = ConfigDict(frozen=True)

    year: int
    forecaster: Forecaster
    recession: int = 0
    markets: dict[MarketKey, MarketPrediction] = {}
    categorical: Optional[CategoricalAnswers] = None

    @field_validator("recession")
    @classmethod
    def validate_recession(cls, v: int) -> int:
        if v not in (0, 1):
            raise ValueError(f"recession must be 0 or 1, got {v}.")
        return v

    @model_validator(mode="after")
    def validate_market_keys(self) -> "Prediction":
        for key, market in self.markets.items():
            if market.market != key:
                raise ValueError(
                    f"markets[{key}] holds a prediction for {market.market}."
                )
        return self

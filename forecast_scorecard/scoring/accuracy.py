"""
Accuracy engine — score forecasters against reference outcomes.

compute_accuracy(predictions, forecaster)  → AccuracyRecord
compute_leaderboard(predictions, forecasters) → ranked list[AccuracyRecord]

Which pairs are scored
----------------------
A (predicted close, actual close) pair is used only when all of these hold:
  - the prediction's year is in the reference table (``has_data``);
  - the forecaster gave a close for that market;
  - the reference table has an outcome for (year, market);
  - that outcome's close is not the 0 "no data" sentinel.

So 2026 predictions (no reference year) and every FARTCOIN prediction
(sentinel closes) never contribute to MAPE, bias or range capture.

Range capture alignment
-----------------------
High/low pairs are collected whenever an accepted close pair's prediction
also has both a high and a low. They are then scored against the first
``len(highs)`` pooled actual closes. When some accepted predictions lack a
range, highs and actuals drift out of step; this matches the historical
scoreboard numbers and is kept as-is.

Zero MAPE
---------
``overall_mape == 0`` means both "perfect" and "no data". The leaderboard
drops records that are zero with no market entries and sorts remaining
exact zeros last.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from forecast_scorecard.models.accuracy import AccuracyRecord, accuracy_grade  # noqa: F401
from forecast_scorecard.models.prediction import Forecaster, Prediction
from forecast_scorecard.reference.actuals import DEFAULT_REFERENCE, ReferenceTable
from forecast_scorecard.scoring.statistics import average_mape, bias, range_capture_rate
from forecast_scorecard.taxonomy.market_taxonomy import ALL_MARKETS, MarketKey

logger = logging.getLogger(__name__)

DEFAULT_SCORED_YEARS: tuple[int, ...] = (2023, 2024, 2025)

SORT_KEYS = ("name", "mape", "bias", "range_capture")


def scored_close_pair(
    prediction: Prediction,
    market: MarketKey,
    reference: ReferenceTable,
) -> tuple[float, float] | None:
    """Return ``(predicted_close, actual_close)`` if this market is scoreable."""
    if not reference.has_data(prediction.year):
        return None
    market_prediction = prediction.markets.get(market)
    if market_prediction is None or market_prediction.close is None:
        return None
    outcome = reference.actual_outcome(prediction.year, market)
    if outcome is None or not outcome.is_scoreable:
        return None
    return market_prediction.close, outcome.close


def compute_accuracy(
    predictions: Iterable[Prediction],
    forecaster: Forecaster,
    reference: ReferenceTable = DEFAULT_REFERENCE,
    scored_years: Sequence[int] = DEFAULT_SCORED_YEARS,
) -> AccuracyRecord:
    """Compute the accuracy record for one forecaster.

    Args:
        predictions: Prediction set (typically already filtered).
        forecaster: Forecaster to score; matched case-insensitively by name.
        reference: Ground-truth table.
        scored_years: Years eligible for the per-year MAPE breakdown.

    Returns:
        ``AccuracyRecord``; all-zero with empty maps when nothing is scoreable.
    """
    own = [p for p in predictions if p.forecaster.identity_key == forecaster.identity_key]
    if not own:
        return AccuracyRecord(forecaster=forecaster, yearly_mape={})

    market_mape: dict[MarketKey, float] = {}
    pooled_predicted: list[float] = []
    pooled_actual: list[float] = []
    highs: list[float] = []
    lows: list[float] = []

    for market in ALL_MARKETS:
        predicted: list[float] = []
        actual: list[float] = []
        for prediction in own:
            pair = scored_close_pair(prediction, market, reference)
            if pair is None:
                continue
            predicted.append(pair[0])
            actual.append(pair[1])

            market_prediction = prediction.markets[market]
            if market_prediction.has_range:
                highs.append(market_prediction.high)  # type: ignore[arg-type]
                lows.append(market_prediction.low)    # type: ignore[arg-type]

        if predicted:
            market_mape[market] = average_mape(predicted, actual)
            pooled_predicted.extend(predicted)
            pooled_actual.extend(actual)

    yearly_mape: dict[int, float] = {}
    for year in scored_years:
        if not reference.has_data(year):
            continue
        year_predicted: list[float] = []
        year_actual: list[float] = []
        for prediction in own:
            if prediction.year != year:
                continue
            for market in ALL_MARKETS:
                pair = scored_close_pair(prediction, market, reference)
                if pair is not None:
                    year_predicted.append(pair[0])
                    year_actual.append(pair[1])
        if year_predicted:
            yearly_mape[year] = average_mape(year_predicted, year_actual)

    overall = average_mape(pooled_predicted, pooled_actual) if pooled_predicted else 0.0
    signed = bias(pooled_predicted, pooled_actual) if pooled_predicted else 0.0
    captured = (
        range_capture_rate(highs, lows, pooled_actual[: len(highs)]) if highs else 0.0
    )

    return AccuracyRecord(
        forecaster=forecaster,
        overall_mape=overall,
        market_mape=market_mape,
        bias=signed,
        range_capture=captured,
        yearly_mape=yearly_mape,
    )


def compute_leaderboard(
    predictions: Iterable[Prediction],
    forecasters: Iterable[Forecaster],
    reference: ReferenceTable = DEFAULT_REFERENCE,
    scored_years: Sequence[int] = DEFAULT_SCORED_YEARS,
) -> list[AccuracyRecord]:
    """Score every forecaster and rank by overall MAPE (lower is better).

    Forecasters with no scoreable data are left out. Records with an exact
    zero MAPE sort after every non-zero record.
    """
    predictions = list(predictions)
    records: list[AccuracyRecord] = []
    for forecaster in forecasters:
        record = compute_accuracy(predictions, forecaster, reference, scored_years)
        if record.overall_mape == 0 and not record.market_mape:
            continue
        records.append(record)

    ranked = sorted(records, key=lambda r: (r.overall_mape == 0, r.overall_mape))
    logger.debug("Leaderboard: %d ranked forecasters", len(ranked))
    return ranked


def market_mape(
    predictions: Iterable[Prediction],
    forecaster_name: str,
    market: MarketKey,
    reference: ReferenceTable = DEFAULT_REFERENCE,
) -> float:
    """MAPE of one forecaster on one market; 0 when nothing is scoreable."""
    key = forecaster_name.lower()
    predicted: list[float] = []
    actual: list[float] = []
    for prediction in predictions:
        if prediction.forecaster.identity_key != key:
            continue
        pair = scored_close_pair(prediction, market, reference)
        if pair is not None:
            predicted.append(pair[0])
            actual.append(pair[1])
    return average_mape(predicted, actual) if predicted else 0.0


def sort_leaderboard(
    records: Iterable[AccuracyRecord],
    key: str = "mape",
    descending: bool = False,
) -> list[AccuracyRecord]:
    """Re-sort leaderboard rows for display.

    Keys:
      name           alphabetical by display name
      mape           overall MAPE, lowest first
      bias           absolute bias, closest to zero first
      range_capture  capture rate, highest first

    ``descending`` reverses the chosen order.

    Raises:
        ValueError: For an unknown sort key.
    """
    if key == "name":
        sort_key = lambda r: r.forecaster.name.lower()  # noqa: E731
    elif key == "mape":
        sort_key = lambda r: r.overall_mape  # noqa: E731
    elif key == "bias":
        sort_key = lambda r: abs(r.bias)  # noqa: E731
    elif key == "range_capture":
        sort_key = lambda r: -r.range_capture  # noqa: E731
    else:
        raise ValueError(f"Unknown sort key '{key}'. Must be one of {list(SORT_KEYS)}.")
    return sorted(records, key=sort_key, reverse=descending)

"""
Consensus metrics — what the crowd predicted for each market.

One ``ConsensusMetrics`` row per market with at least one close prediction,
summarising the spread of closes across every forecaster and year in the
(filtered) prediction set.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from forecast_scorecard.models.accuracy import ConsensusMetrics
from forecast_scorecard.models.prediction import Prediction
from forecast_scorecard.scoring.statistics import mean, median, standard_deviation
from forecast_scorecard.taxonomy.market_taxonomy import ALL_MARKETS, MARKET_LABELS, MarketKey


def close_predictions(predictions: Iterable[Prediction], market: MarketKey) -> list[float]:
    """All non-missing close predictions for ``market``, in prediction order."""
    closes: list[float] = []
    for prediction in predictions:
        market_prediction = prediction.markets.get(market)
        if market_prediction is not None and market_prediction.close is not None:
            closes.append(market_prediction.close)
    return closes


def compute_consensus(
    predictions: Iterable[Prediction],
    markets: Sequence[MarketKey] = ALL_MARKETS,
) -> list[ConsensusMetrics]:
    """Summarise close predictions per market, in ``markets`` order."""
    predictions = list(predictions)
    rows: list[ConsensusMetrics] = []
    for market in markets:
        closes = close_predictions(predictions, market)
        if not closes:
            continue
        rows.append(ConsensusMetrics(
            market=market,
            label=MARKET_LABELS[market],
            mean=mean(closes),
            median=median(closes),
            std_dev=standard_deviation(closes),
            min=min(closes),
            max=max(closes),
            count=len(closes),
        ))
    return rows

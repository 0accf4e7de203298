"""
Insight generator — heuristic observations over a prediction set.

Four independent passes, concatenated in this order:

  diversity      Which markets the crowd disagrees on (coefficient of
                 variation of close predictions), plus the single market with
                 the widest spread. FARTCOIN is not assessed here.

  range width    Who submits the narrowest ("Most Precise") and widest
                 ("Most Cautious") high-low ranges relative to their close.
                 Emitted with type ``bias`` for historical reasons; it measures
                 range width, not directional bias.

  consensus      Share of predictions calling a recession. A strong majority
                 either way produces an insight; a split crowd produces none.

  participation  Always one summary of forecaster and prediction counts.

The generator does not consult reference outcomes and never fails on sparse
data; a pass with nothing to say simply contributes no insights.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from typing import Any, Sequence

from forecast_scorecard.config import InsightsConfig
from forecast_scorecard.models.insight import Insight
from forecast_scorecard.models.prediction import Forecaster, Prediction
from forecast_scorecard.scoring.consensus import close_predictions
from forecast_scorecard.scoring.statistics import mean, standard_deviation
from forecast_scorecard.taxonomy.market_taxonomy import (
    MARKET_LABELS,
    InsightSeverity,
    InsightType,
    MarketKey,
)

logger = logging.getLogger(__name__)

# FARTCOIN is left out of the diversity pass.
DIVERSITY_MARKETS: tuple[MarketKey, ...] = (
    MarketKey.SP500,
    MarketKey.NDQ,
    MarketKey.GOLD,
    MarketKey.BTC,
    MarketKey.ETH,
    MarketKey.SOL,
)


def generate_insights(
    predictions: Sequence[Prediction],
    forecasters: Sequence[Forecaster],
    settings: InsightsConfig | None = None,
) -> list[Insight]:
    """Run every insight pass and return the concatenated results."""
    settings = settings or InsightsConfig()
    insights: list[Insight] = []
    insights.extend(analyze_diversity(predictions, settings))
    insights.extend(analyze_range_width(predictions, settings))
    insights.extend(analyze_consensus(predictions, settings))
    insights.extend(analyze_participation(predictions, forecasters))
    logger.debug("Generated %d insights from %d predictions", len(insights), len(predictions))
    return insights


def analyze_diversity(
    predictions: Sequence[Prediction],
    settings: InsightsConfig,
) -> list[Insight]:
    insights: list[Insight] = []
    most_divided: dict[str, Any] | None = None

    for market in DIVERSITY_MARKETS:
        closes = close_predictions(predictions, market)
        if len(closes) < settings.min_diversity_samples:
            continue

        label = MARKET_LABELS[market]
        std_dev = standard_deviation(closes)
        avg = mean(closes)
        cv = std_dev / avg * 100 if avg != 0 else math.nan

        if most_divided is None or std_dev > most_divided["std_dev"]:
            most_divided = {
                "market": market.value,
                "label": label,
                "std_dev": std_dev,
                "count": len(closes),
            }

        if cv > settings.disagreement_cv_pct:
            insights.append(Insight(
                type=InsightType.DIVERSITY,
                title=f"High Disagreement on {label}",
                description=(
                    f"Forecasters show significant disagreement on {label} with a "
                    f"standard deviation of {std_dev:,.0f}. This suggests uncertainty "
                    "about the market direction."
                ),
                severity=InsightSeverity.NOTABLE,
                data={
                    "market": market.value,
                    "std_dev": std_dev,
                    "coefficient_of_variation": cv,
                },
            ))

    if most_divided is not None:
        insights.append(Insight(
            type=InsightType.DIVERSITY,
            title="Most Divided Predictions",
            description=(
                f"{most_divided['label']} shows the highest disagreement among "
                f"forecasters with predictions ranging widely across "
                f"{most_divided['count']} forecasters."
            ),
            severity=InsightSeverity.INFO,
            data=most_divided,
        ))
    return insights


def analyze_range_width(
    predictions: Sequence[Prediction],
    settings: InsightsConfig,
) -> list[Insight]:
    """Flag the forecasters with the narrowest and widest predicted ranges.

    Range width is ``(high - low) / close * 100`` per market prediction that
    has all three values. Forecasters with no such prediction average 0.
    """
    widths: dict[str, list[float]] = defaultdict(list)
    display: dict[str, str] = {}
    for prediction in predictions:
        key = prediction.forecaster.identity_key
        display.setdefault(key, prediction.forecaster.name)
        samples = widths[key]
        for market_prediction in prediction.markets.values():
            high, low, close = market_prediction.high, market_prediction.low, market_prediction.close
            if high is None or low is None or close is None or close == 0:
                continue
            samples.append((high - low) / close * 100)

    if not widths:
        return []

    stats = sorted(
        (
            {"name": display[key], "avg_range": mean(samples), "count": len(samples)}
            for key, samples in widths.items()
        ),
        key=lambda s: s["avg_range"],
    )
    most_precise = stats[0]
    most_cautious = stats[-1]

    insights: list[Insight] = []
    if most_precise["count"] >= settings.min_range_samples:
        insights.append(Insight(
            type=InsightType.BIAS,
            title="Most Precise Forecaster",
            description=(
                f"{most_precise['name']} provides the narrowest prediction ranges "
                f"(avg {most_precise['avg_range']:.1f}% range), suggesting high "
                "confidence in their forecasts."
            ),
            severity=InsightSeverity.INFO,
            data=most_precise,
        ))

    if (
        most_cautious["count"] >= settings.min_range_samples
        and most_cautious["avg_range"] > settings.cautious_range_pct
    ):
        insights.append(Insight(
            type=InsightType.BIAS,
            title="Most Cautious Forecaster",
            description=(
                f"{most_cautious['name']} uses the widest prediction ranges "
                f"(avg {most_cautious['avg_range']:.1f}% range), indicating more "
                "uncertainty or hedging in their predictions."
            ),
            severity=InsightSeverity.INFO,
            data=most_cautious,
        ))
    return insights


def analyze_consensus(
    predictions: Sequence[Prediction],
    settings: InsightsConfig,
) -> list[Insight]:
    if not predictions:
        return []

    total = len(predictions)
    recession_yes = sum(1 for p in predictions if p.recession == 1)
    recession_no = sum(1 for p in predictions if p.recession == 0)
    recession_percent = recession_yes / total * 100
    data = {
        "recession_yes": recession_yes,
        "recession_no": recession_no,
        "recession_percent": recession_percent,
    }

    if recession_percent > settings.recession_consensus_pct:
        return [Insight(
            type=InsightType.CONSENSUS,
            title="Strong Recession Consensus",
            description=(
                f"{recession_percent:.0f}% of forecasters ({recession_yes} out of "
                f"{total}) predict a recession, showing strong bearish consensus."
            ),
            severity=InsightSeverity.CRITICAL,
            data=data,
        )]
    if recession_percent < settings.optimistic_pct:
        return [Insight(
            type=InsightType.CONSENSUS,
            title="Optimistic Outlook",
            description=(
                f"Only {recession_percent:.0f}% of forecasters ({recession_yes} out of "
                f"{total}) predict a recession, indicating bullish sentiment."
            ),
            severity=InsightSeverity.NOTABLE,
            data=data,
        )]
    return []


def analyze_participation(
    predictions: Sequence[Prediction],
    forecasters: Sequence[Forecaster],
) -> list[Insight]:
    n_forecasters = len(forecasters)
    n_predictions = len(predictions)
    avg_predictions = n_predictions / n_forecasters if n_forecasters else 0.0
    return [Insight(
        type=InsightType.ACCURACY,
        title="Participation Summary",
        description=(
            f"{n_forecasters} forecasters contributed {n_predictions} total predictions "
            f"across all years (avg {avg_predictions:.1f} predictions per forecaster)."
        ),
        severity=InsightSeverity.INFO,
        data={
            "forecasters": n_forecasters,
            "predictions": n_predictions,
            "avg_predictions": avg_predictions,
        },
    )]

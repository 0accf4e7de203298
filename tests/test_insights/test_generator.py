"""
Tests for the insight generator.

What we test
------------
1. Diversity — high-disagreement threshold, zero-mean markets, FARTCOIN
   excluded, "Most Divided" first-wins tie break.
2. Range width — most precise / most cautious with sample minimums.
3. Recession consensus — critical above 70%, notable below 30%, none between.
4. Participation summary — always present, zero forecasters safe.
5. generate_insights pass order.
"""

from __future__ import annotations

import pytest

from forecast_scorecard.config import InsightsConfig
from forecast_scorecard.insights.generator import (
    analyze_consensus,
    analyze_diversity,
    analyze_participation,
    analyze_range_width,
    generate_insights,
)
from forecast_scorecard.taxonomy.market_taxonomy import InsightSeverity, InsightType

SETTINGS = InsightsConfig()


# ── Diversity ─────────────────────────────────────────────────────────────────

def test_high_disagreement_flagged(make_prediction) -> None:
    """BTC closes 50k / 100k / 150k: CV ≈ 40.8% > 15%."""
    predictions = [
        make_prediction(f"@f{i}", 2025, BTC=(None, None, close))
        for i, close in enumerate([50000, 100000, 150000])
    ]
    insights = analyze_diversity(predictions, SETTINGS)

    high = [i for i in insights if i.title == "High Disagreement on Bitcoin"]
    assert len(high) == 1
    assert high[0].severity is InsightSeverity.NOTABLE
    assert high[0].type is InsightType.DIVERSITY
    assert high[0].data is not None
    assert high[0].data["market"] == "BTC"
    assert high[0].data["coefficient_of_variation"] == pytest.approx(40.82, abs=0.01)


def test_low_disagreement_not_flagged(make_prediction) -> None:
    predictions = [
        make_prediction(f"@f{i}", 2025, GOLD=(None, None, close))
        for i, close in enumerate([3000, 3050, 3100])
    ]
    titles = [i.title for i in analyze_diversity(predictions, SETTINGS)]
    assert titles == ["Most Divided Predictions"]


def test_too_few_samples_skipped(make_prediction) -> None:
    predictions = [
        make_prediction("@a", 2025, BTC=(None, None, 10)),
        make_prediction("@b", 2025, BTC=(None, None, 100000)),
    ]
    assert analyze_diversity(predictions, SETTINGS) == []


def test_zero_mean_market_never_flagged(make_prediction) -> None:
    predictions = [
        make_prediction(f"@f{i}", 2025, SOL=(None, None, close))
        for i, close in enumerate([-100, 0, 100])
    ]
    insights = analyze_diversity(predictions, SETTINGS)
    assert [i.title for i in insights] == ["Most Divided Predictions"]


def test_fartcoin_excluded_from_diversity(make_prediction) -> None:
    predictions = [
        make_prediction(f"@f{i}", 2025, FARTCOIN=(None, None, close))
        for i, close in enumerate([0.1, 5.0, 50.0])
    ]
    assert analyze_diversity(predictions, SETTINGS) == []


def test_most_divided_picks_largest_std_dev(make_prediction) -> None:
    predictions = [
        make_prediction(
            f"@f{i}", 2025,
            SP500=(None, None, sp),
            BTC=(None, None, btc),
        )
        for i, (sp, btc) in enumerate([(5000, 50000), (6000, 100000), (7000, 150000)])
    ]
    [most_divided] = [
        i for i in analyze_diversity(predictions, SETTINGS)
        if i.title == "Most Divided Predictions"
    ]
    assert most_divided.severity is InsightSeverity.INFO
    assert most_divided.data is not None
    assert most_divided.data["market"] == "BTC"
    assert most_divided.data["count"] == 3


def test_most_divided_tie_goes_to_first_market(make_prediction) -> None:
    predictions = [
        make_prediction(
            f"@f{i}", 2025,
            SP500=(None, None, close),
            NDQ=(None, None, close),
        )
        for i, close in enumerate([100, 200, 300])
    ]
    [most_divided] = [
        i for i in analyze_diversity(predictions, SETTINGS)
        if i.title == "Most Divided Predictions"
    ]
    assert most_divided.data is not None
    assert most_divided.data["market"] == "SP500"


# ── Range width ───────────────────────────────────────────────────────────────

def _ranged(make_prediction, name: str, width_pct: float, n: int):
    """``n`` predictions whose range is ``width_pct`` percent of a 100 close."""
    return [
        make_prediction(name, 2023 + i, SP500=(100 + width_pct / 2, 100 - width_pct / 2, 100))
        for i in range(n)
    ]


def test_most_precise_and_cautious(make_prediction) -> None:
    predictions = (
        _ranged(make_prediction, "@tight", 10, 3)
        + _ranged(make_prediction, "@mid", 20, 3)
        + _ranged(make_prediction, "@wide", 40, 3)
    )
    insights = analyze_range_width(predictions, SETTINGS)

    assert [i.title for i in insights] == ["Most Precise Forecaster", "Most Cautious Forecaster"]
    assert all(i.type is InsightType.BIAS for i in insights)
    assert insights[0].data == {"name": "@tight", "avg_range": pytest.approx(10.0), "count": 3}
    assert insights[1].data == {"name": "@wide", "avg_range": pytest.approx(40.0), "count": 3}


def test_cautious_requires_width_above_threshold(make_prediction) -> None:
    predictions = (
        _ranged(make_prediction, "@tight", 10, 3)
        + _ranged(make_prediction, "@wide", 20, 3)
    )
    titles = [i.title for i in analyze_range_width(predictions, SETTINGS)]
    assert titles == ["Most Precise Forecaster"]


def test_range_width_requires_min_samples(make_prediction) -> None:
    predictions = (
        _ranged(make_prediction, "@tight", 10, 2)
        + _ranged(make_prediction, "@wide", 40, 2)
    )
    assert analyze_range_width(predictions, SETTINGS) == []


def test_range_width_groups_case_variant_names(make_prediction) -> None:
    predictions = (
        _ranged(make_prediction, "Dan", 10, 2)
        + [make_prediction("dan", 2025, SP500=(105, 95, 100))]
        + _ranged(make_prediction, "@wide", 40, 3)
    )
    insights = analyze_range_width(predictions, SETTINGS)

    assert insights[0].title == "Most Precise Forecaster"
    assert insights[0].data == {"name": "Dan", "avg_range": pytest.approx(10.0), "count": 3}


def test_forecaster_without_ranges_averages_zero(make_prediction) -> None:
    """A close-only forecaster has avg_range 0 and count 0, so is never 'precise'."""
    predictions = (
        [make_prediction("@closeonly", 2025, BTC=(None, None, 100000))]
        + _ranged(make_prediction, "@wide", 40, 3)
    )
    titles = [i.title for i in analyze_range_width(predictions, SETTINGS)]
    assert titles == ["Most Cautious Forecaster"]


def test_range_width_skips_zero_close(make_prediction) -> None:
    predictions = [
        make_prediction("@a", 2023 + i, SOL=(10, 0, 0)) for i in range(3)
    ]
    assert analyze_range_width(predictions, SETTINGS) == []


def test_range_width_empty() -> None:
    assert analyze_range_width([], SETTINGS) == []


# ── Recession consensus ───────────────────────────────────────────────────────

def test_strong_recession_consensus(make_prediction) -> None:
    """6 of 8 (75%) → critical."""
    predictions = [
        make_prediction(f"@f{i}", 2025, recession=1 if i < 6 else 0) for i in range(8)
    ]
    [insight] = analyze_consensus(predictions, SETTINGS)

    assert insight.title == "Strong Recession Consensus"
    assert insight.severity is InsightSeverity.CRITICAL
    assert insight.data == {
        "recession_yes": 6,
        "recession_no": 2,
        "recession_percent": 75.0,
    }


def test_optimistic_outlook(make_prediction) -> None:
    predictions = [
        make_prediction(f"@f{i}", 2025, recession=1 if i < 1 else 0) for i in range(5)
    ]
    [insight] = analyze_consensus(predictions, SETTINGS)
    assert insight.title == "Optimistic Outlook"
    assert insight.severity is InsightSeverity.NOTABLE


@pytest.mark.parametrize("yes", [3, 5, 7])
def test_split_crowd_no_insight(make_prediction, yes) -> None:
    """30%, 50% and 70% exactly produce nothing."""
    predictions = [
        make_prediction(f"@f{i}", 2025, recession=1 if i < yes else 0) for i in range(10)
    ]
    assert analyze_consensus(predictions, SETTINGS) == []


def test_consensus_empty() -> None:
    assert analyze_consensus([], SETTINGS) == []


def test_consensus_thresholds_configurable(make_prediction) -> None:
    predictions = [
        make_prediction(f"@f{i}", 2025, recession=1 if i < 6 else 0) for i in range(10)
    ]
    settings = InsightsConfig(recession_consensus_pct=55.0)
    [insight] = analyze_consensus(predictions, settings)
    assert insight.severity is InsightSeverity.CRITICAL


# ── Participation ─────────────────────────────────────────────────────────────

def test_participation_summary(make_prediction, forecaster) -> None:
    predictions = [make_prediction("@a", 2023), make_prediction("@a", 2024), make_prediction("@b", 2024)]
    [insight] = analyze_participation(predictions, [forecaster("@a"), forecaster("@b")])

    assert insight.type is InsightType.ACCURACY
    assert insight.title == "Participation Summary"
    assert insight.data == {"forecasters": 2, "predictions": 3, "avg_predictions": 1.5}


def test_participation_no_forecasters() -> None:
    [insight] = analyze_participation([], [])
    assert insight.data == {"forecasters": 0, "predictions": 0, "avg_predictions": 0.0}


# ── generate_insights ─────────────────────────────────────────────────────────

def test_generate_insights_pass_order(make_prediction, forecaster) -> None:
    predictions = [
        make_prediction(f"@f{i}", 2025, recession=1, BTC=(close * 1.2, close * 0.8, close))
        for i, close in enumerate([50000, 100000, 150000])
    ]
    forecasters = [forecaster(f"@f{i}") for i in range(3)]
    settings = InsightsConfig(min_range_samples=1)
    types = [i.type for i in generate_insights(predictions, forecasters, settings)]

    assert types == [
        InsightType.DIVERSITY,   # High Disagreement on Bitcoin
        InsightType.DIVERSITY,   # Most Divided Predictions
        InsightType.BIAS,        # Most Precise
        InsightType.BIAS,        # Most Cautious (every range is 40% wide)
        InsightType.CONSENSUS,
        InsightType.ACCURACY,
    ]


def test_generate_insights_empty() -> None:
    insights = generate_insights([], [])
    assert [i.title for i in insights] == ["Participation Summary"]

"""
Statistics primitives for scoring forecaster predictions.

Every function is total over finite numeric sequences: degenerate input
(empty sequences, mismatched lengths, zero denominators) returns 0 rather
than raising. Callers rely on this so sparse spreadsheet data never crashes
a scoring pass.

Metric conventions
------------------
MAPE
  ``|predicted - actual| / actual * 100``. An actual of 0 yields 0; the
  accuracy engine excludes zero-actual pairs before this point, so the
  fallback only guards against division by zero.

Bias
  Mean of ``(predicted - actual) / actual`` in percent. Positive means the
  forecaster runs above reality ("bullish"), negative below ("bearish").

Range capture
  Percent of (high, low, actual) triples with ``low <= actual <= high``.

Standard deviation is the population form (divide by N), matching how the
crowd of forecasters is treated as the whole population, not a sample.
"""

from __future__ import annotations

import math
import numbers
from typing import Any, Optional, Sequence


def mape(predicted: float, actual: float) -> float:
    """Absolute percentage error of one prediction; 0 when ``actual == 0``."""
    if actual == 0:
        return 0.0
    return abs(predicted - actual) / actual * 100


def average_mape(predictions: Sequence[float], actuals: Sequence[float]) -> float:
    """Mean of element-wise MAPE, ignoring non-finite terms."""
    if len(predictions) != len(actuals) or not predictions:
        return 0.0
    terms = [mape(p, a) for p, a in zip(predictions, actuals)]
    terms = [t for t in terms if math.isfinite(t)]
    return sum(terms) / len(terms) if terms else 0.0


def bias(predictions: Sequence[float], actuals: Sequence[float]) -> float:
    """Mean signed relative error in percent (positive = bullish)."""
    if len(predictions) != len(actuals) or not predictions:
        return 0.0
    errors = [(p - a) / a if a != 0 else 0.0 for p, a in zip(predictions, actuals)]
    errors = [e for e in errors if math.isfinite(e)]
    return sum(errors) / len(errors) * 100 if errors else 0.0


def in_range(high: float, low: float, actual: float) -> bool:
    """True when ``actual`` falls inside the closed interval [low, high]."""
    return low <= actual <= high


def range_capture_rate(
    highs: Sequence[float],
    lows: Sequence[float],
    actuals: Sequence[float],
) -> float:
    """Percent of aligned (high, low, actual) triples where the range held."""
    if not highs or len(highs) != len(lows) or len(lows) != len(actuals):
        return 0.0
    captured = sum(1 for h, l, a in zip(highs, lows, actuals) if in_range(h, l, a))
    return captured / len(highs) * 100


def brier_score(probability: float, outcome: float) -> float:
    """Squared error of a probability against a 0/1 outcome; lower is better."""
    return (probability - outcome) ** 2


def average_brier_score(
    probabilities: Sequence[float],
    outcomes: Sequence[float],
) -> float:
    if len(probabilities) != len(outcomes) or not probabilities:
        return 0.0
    scores = [brier_score(p, o) for p, o in zip(probabilities, outcomes)]
    return sum(scores) / len(scores)


def implied_volatility(high: float, low: float, close: float) -> float:
    """Predicted range width relative to the predicted close."""
    if close == 0:
        return 0.0
    return (high - low) / close


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def median(values: Sequence[float]) -> float:
    """Middle value; even-length input averages the two middle values."""
    if not values:
        return 0.0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation."""
    if not values:
        return 0.0
    avg = mean(values)
    variance = sum((v - avg) ** 2 for v in values) / len(values)
    return math.sqrt(variance)


def correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson correlation; 0 when either series has zero variance."""
    if len(x) != len(y) or not x:
        return 0.0
    mean_x = mean(x)
    mean_y = mean(y)
    numerator = sum((xi - mean_x) * (yi - mean_y) for xi, yi in zip(x, y))
    denom_x = math.sqrt(sum((xi - mean_x) ** 2 for xi in x))
    denom_y = math.sqrt(sum((yi - mean_y) ** 2 for yi in y))
    if denom_x == 0 or denom_y == 0:
        return 0.0
    return numerator / (denom_x * denom_y)


def parse_number(value: Any) -> Optional[float]:
    """Parse a spreadsheet cell into a float, or ``None`` if it holds no number.

    Numbers pass through (NaN/inf become ``None``). Text has thousands
    separators stripped before parsing, so ``"1,234.5"`` → ``1234.5``.
    Empty strings, ``None`` and unparsable text all yield ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        number = float(value)
        return number if math.isfinite(number) else None
    text = str(value).replace(",", "").strip()
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None

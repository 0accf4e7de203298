"""
Sheet row parser — raw spreadsheet rows → canonical ``Prediction`` records.

Input contract
--------------
One row per forecaster per year, as a mapping of column header → cell value
(string, number, or ``None``). Expected headers:

  Name / TG Handle                          "Real Name / @handle" or just one part
  Recession (0 no, 1 yes)                   0 or 1
  <Label> High / <Label> Low / <Label> Close   per market; labels are
                                            S&P, NDQ, GOLD, BTC, ETH, SOL, Fartcoin
  Best LLM Model Provider EoY               free text
  Will OAI/Anthropic File for IPO By EoY?   free text
  Best Mag 7 Performer                      free text

Tolerance policy
----------------
Sheets are hand-maintained and messy. Nothing here raises on bad data:
aggregate rows (Mean, Median, ...) and nameless rows are skipped, unparsable
numbers become ``None``, markets with no values are omitted, and a missing
or odd recession cell defaults to 0.

Identity
--------
At parse time a forecaster's id is ``"{year}-{display_name}"``. The same
person appears once per year sheet; ``unique_forecasters()`` merges them
case-insensitively by display name.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from forecast_scorecard.models.prediction import (
    CategoricalAnswers,
    Forecaster,
    MarketPrediction,
    Prediction,
)
from forecast_scorecard.scoring.statistics import parse_number
from forecast_scorecard.taxonomy.market_taxonomy import (
    ALL_MARKETS,
    MARKET_COLUMN_LABELS,
    MarketKey,
)

logger = logging.getLogger(__name__)

NAME_COLUMN = "Name / TG Handle"
RECESSION_COLUMN = "Recession (0 no, 1 yes)"
BEST_LLM_COLUMN = "Best LLM Model Provider EoY"
WILL_IPO_COLUMN = "Will OAI/Anthropic File for IPO By EoY?"
BEST_MAG7_COLUMN = "Best Mag 7 Performer"

# Summary rows some sheets append below the forecaster rows.
AGGREGATE_ROW_LABELS = frozenset({
    "mean", "median", "min", "max", "results", "result", "actual", "actuals",
})

RawRow = Mapping[str, Any]


def parse_sheet_rows(rows: Iterable[RawRow], year: int) -> list[Prediction]:
    """Parse every forecaster row of one year sheet.

    Args:
        rows: Header → cell mappings, one per spreadsheet row.
        year: Year the sheet belongs to.

    Returns:
        Predictions in sheet order; skipped rows are simply absent.
    """
    predictions: list[Prediction] = []
    skipped = 0
    for row in rows:
        prediction = parse_row(row, year)
        if prediction is None:
            skipped += 1
            continue
        predictions.append(prediction)

    logger.debug(
        "Parsed year=%d: %d predictions, %d rows skipped", year, len(predictions), skipped
    )
    return predictions


def parse_row(row: RawRow, year: int) -> Optional[Prediction]:
    """Parse one row, or return ``None`` for aggregate and nameless rows."""
    name = _cell_text(row.get(NAME_COLUMN))
    if name is None or name.lower() in AGGREGATE_ROW_LABELS:
        return None

    forecaster = parse_forecaster(name, year)
    if forecaster is None:
        return None

    markets: dict[MarketKey, MarketPrediction] = {}
    for market in ALL_MARKETS:
        label = MARKET_COLUMN_LABELS[market]
        high = parse_number(row.get(f"{label} High"))
        low = parse_number(row.get(f"{label} Low"))
        close = parse_number(row.get(f"{label} Close"))
        if high is None and low is None and close is None:
            continue
        markets[market] = MarketPrediction(market=market, high=high, low=low, close=close)

    return Prediction(
        year=year,
        forecaster=forecaster,
        recession=_parse_recession(row.get(RECESSION_COLUMN)),
        markets=markets,
        categorical=CategoricalAnswers(
            best_llm=_free_text(row.get(BEST_LLM_COLUMN)),
            will_ipo=_free_text(row.get(WILL_IPO_COLUMN)),
            best_mag7=_free_text(row.get(BEST_MAG7_COLUMN)),
        ),
    )


def parse_forecaster(name: str, year: int) -> Optional[Forecaster]:
    """Split ``"Real Name / @handle"`` and prefer the handle for display.

    Returns ``None`` when both parts are blank (e.g. a lone ``"/"``).
    """
    parts = name.split("/")
    real_name = parts[0].strip()
    handle = parts[1].strip() if len(parts) > 1 else ""
    display_name = handle or real_name
    if not display_name:
        return None
    return Forecaster(
        id=f"{year}-{display_name}",
        name=display_name,
        handle=handle or None,
    )


def unique_forecasters(predictions: Iterable[Prediction]) -> list[Forecaster]:
    """Collapse per-year forecaster entries into one entity per person.

    Keys on the lower-cased display name; the first occurrence wins and its
    id becomes the display name. A handle seen on any later occurrence is
    attached if the first one had none. Sorted by name, ignoring a leading
    ``@`` and case.
    """
    by_key: dict[str, Forecaster] = {}
    for prediction in predictions:
        seen = prediction.forecaster
        key = seen.identity_key
        existing = by_key.get(key)
        if existing is None:
            by_key[key] = Forecaster(id=seen.name, name=seen.name, handle=seen.handle)
        elif existing.handle is None and seen.handle is not None:
            by_key[key] = existing.model_copy(update={"handle": seen.handle})

    return sorted(by_key.values(), key=lambda f: f.name.removeprefix("@").lower())


# ── Private helpers ────────────────────────────────────────────────────────────

def _cell_text(value: Any) -> Optional[str]:
    """Return stripped cell text, or ``None`` for empty / missing cells."""
    if value is None:
        return None
    if isinstance(value, float) and value != value:  # NaN from pandas
        return None
    text = str(value).strip()
    return text or None


def _free_text(value: Any) -> Optional[str]:
    """Return the cell as text, unmodified, or ``None`` when it is blank."""
    if _cell_text(value) is None:
        return None
    return str(value)


def _parse_recession(value: Any) -> int:
    number = parse_number(value)
    if number == 1:
        return 1
    if number is not None and number != 0:
        logger.debug("Recession cell %r is not 0/1; treating as 0", value)
    return 0

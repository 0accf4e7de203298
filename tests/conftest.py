"""
Shared pytest fixtures for the Forecast Scorecard test suite.

Provides:
  - ``reference``: a small synthetic ``ReferenceTable`` with round numbers,
    so expected MAPE / bias values can be worked out by hand.
  - ``make_prediction``: factory for ``Prediction`` records.
  - ``workbook_path``: a real .xlsx file written with pandas + openpyxl.
  - ``app_config``: an ``AppConfig`` pointing at ``workbook_path`` with
    outputs under ``tmp_path``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

import pandas as pd
import pytest

from forecast_scorecard.config import AppConfig, DataConfig, ReportingConfig
from forecast_scorecard.models.prediction import (
    CategoricalAnswers,
    Forecaster,
    MarketPrediction,
    Prediction,
)
from forecast_scorecard.reference.actuals import ReferenceTable
from forecast_scorecard.taxonomy.market_taxonomy import MarketKey

MarketValues = tuple[Optional[float], Optional[float], Optional[float]]


# ── Reference data ────────────────────────────────────────────────────────────

@pytest.fixture
def reference() -> ReferenceTable:
    """Synthetic outcomes for 2023 and 2024; no 2025 or 2026 entry.

    FARTCOIN carries the close == 0 sentinel, as in the built-in table.
    """
    return ReferenceTable.from_values({
        2023: {
            MarketKey.SP500:    (5000, 4000, 4000),
            MarketKey.BTC:      (50000, 10000, 40000),
            MarketKey.GOLD:     (2200, 1800, 2000),
            MarketKey.FARTCOIN: (0, 0, 0),
        },
        2024: {
            MarketKey.SP500:    (6000, 4500, 5000),
            MarketKey.BTC:      (110000, 40000, 100000),
            MarketKey.FARTCOIN: (0, 0, 0),
        },
    })


# ── Prediction factories ──────────────────────────────────────────────────────

@pytest.fixture
def make_prediction() -> Callable[..., Prediction]:
    """Return a factory building a ``Prediction``.

    Usage::

        p = make_prediction("@alice", 2023, BTC=(50000, 30000, 44000), recession=1)

    Market keyword values are ``(high, low, close)`` tuples; ``None`` entries
    are allowed.
    """

    def _make(
        name: str,
        year: int,
        recession: int = 0,
        handle: Optional[str] = None,
        categorical: Optional[CategoricalAnswers] = None,
        **markets: MarketValues,
    ) -> Prediction:
        market_predictions: dict[MarketKey, MarketPrediction] = {}
        for key, (high, low, close) in markets.items():
            market = MarketKey(key)
            market_predictions[market] = MarketPrediction(
                market=market, high=high, low=low, close=close,
            )
        return Prediction(
            year=year,
            forecaster=Forecaster(id=f"{year}-{name}", name=name, handle=handle),
            recession=recession,
            markets=market_predictions,
            categorical=categorical,
        )

    return _make


@pytest.fixture
def forecaster() -> Callable[[str], Forecaster]:
    """Return a factory building a deduplicated ``Forecaster`` (id == name)."""

    def _make(name: str, handle: Optional[str] = None) -> Forecaster:
        return Forecaster(id=name, name=name, handle=handle)

    return _make


# ── Workbook fixtures ─────────────────────────────────────────────────────────

WORKBOOK_SHEETS: dict[str, list[dict]] = {
    "2023": [
        {
            "Name / TG Handle": "Alice / @alice",
            "Recession (0 no, 1 yes)": 1,
            "S&P High": 4800, "S&P Low": 3900, "S&P Close": 4700,
            "BTC High": 50000, "BTC Low": 15000, "BTC Close": "42,000",
        },
        {
            "Name / TG Handle": "Bob",
            "Recession (0 no, 1 yes)": 0,
            "S&P Close": 4500,
            "GOLD Close": 1900,
        },
        {"Name / TG Handle": "Mean", "S&P Close": 4600},
    ],
    "2024": [
        {
            "Name / TG Handle": "@alice",
            "Recession (0 no, 1 yes)": 0,
            "BTC High": 120000, "BTC Low": 40000, "BTC Close": 90000,
            "Best LLM Model Provider EoY": "Anthropic",
        },
    ],
    "2026 Financial": [
        {
            "Name / TG Handle": "Carol / @carol",
            "Recession (0 no, 1 yes)": 1,
            "ETH Close": 6000,
        },
    ],
    "Notes": [
        {"Name / TG Handle": "ignore me", "S&P Close": 1},
    ],
}


def write_workbook(path: Path, sheets: dict[str, list[dict]]) -> Path:
    """Write ``{sheet_name: rows}`` to an .xlsx file with openpyxl."""
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for name, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=name, index=False)
    return path


@pytest.fixture
def workbook_path(tmp_path: Path) -> Path:
    """A small prediction workbook covering 2023, 2024 and a 2026 sheet."""
    return write_workbook(tmp_path / "predictions.xlsx", WORKBOOK_SHEETS)


@pytest.fixture
def app_config(workbook_path: Path, tmp_path: Path) -> AppConfig:
    """``AppConfig`` reading ``workbook_path`` and writing under ``tmp_path``."""
    return AppConfig(
        data=DataConfig(source=str(workbook_path)),
        reporting=ReportingConfig(output_dir=str(tmp_path / "outputs")),
    )

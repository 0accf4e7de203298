"""
Market and insight taxonomy for the forecast scorecard.

Closed enumerations used across ingestion, scoring and reporting:
  - ``MarketKey``        — the fixed set of scored markets.
  - ``InsightType``      — which analysis pass produced an insight.
  - ``InsightSeverity``  — how prominently an insight should be shown.
  - ``LoadStatus``       — lifecycle of a workbook load within a session.

Column labels describe the spreadsheet contract: each market has a
``"<label> High"``, ``"<label> Low"`` and ``"<label> Close"`` column.

Usage example::

    from forecast_scorecard.taxonomy.market_taxonomy import MarketKey, MARKET_LABELS

    label = MARKET_LABELS[MarketKey.BTC]   # "Bitcoin"

This module has NO imports from any other ``forecast_scorecard`` package.
"""

from enum import StrEnum


class MarketKey(StrEnum):
    """Markets forecasters submit high/low/close predictions for."""

    SP500 = "SP500"
    NDQ = "NDQ"
    GOLD = "GOLD"
    BTC = "BTC"
    ETH = "ETH"
    SOL = "SOL"
    FARTCOIN = "FARTCOIN"
    """Newest market; the reference table has no tracked closes for it yet."""


# Fixed iteration order used by every scoring pass.
ALL_MARKETS: tuple[MarketKey, ...] = tuple(MarketKey)

MARKET_LABELS: dict[MarketKey, str] = {
    MarketKey.SP500:    "S&P 500",
    MarketKey.NDQ:      "Nasdaq",
    MarketKey.GOLD:     "Gold",
    MarketKey.BTC:      "Bitcoin",
    MarketKey.ETH:      "Ethereum",
    MarketKey.SOL:      "Solana",
    MarketKey.FARTCOIN: "Fartcoin",
}

# Prefix of the High/Low/Close column headers in each year sheet.
MARKET_COLUMN_LABELS: dict[MarketKey, str] = {
    MarketKey.SP500:    "S&P",
    MarketKey.NDQ:      "NDQ",
    MarketKey.GOLD:     "GOLD",
    MarketKey.BTC:      "BTC",
    MarketKey.ETH:      "ETH",
    MarketKey.SOL:      "SOL",
    MarketKey.FARTCOIN: "Fartcoin",
}


def parse_market_key(value: str) -> MarketKey:
    """Resolve a market key or display label (case-insensitive) to a ``MarketKey``.

    Raises:
        ValueError: If ``value`` is neither a known key nor a label.
    """
    text = value.strip()
    try:
        return MarketKey(text.upper())
    except ValueError:
        pass
    for market, label in MARKET_LABELS.items():
        if label.lower() == text.lower():
            return market
    raise ValueError(
        f"Unknown market '{value}'. Must be one of {[m.value for m in MarketKey]}."
    )


class InsightType(StrEnum):
    """Which heuristic pass produced an insight."""

    ACCURACY = "accuracy"
    BIAS = "bias"
    DIVERSITY = "diversity"
    CLUSTER = "cluster"
    CONSENSUS = "consensus"


class InsightSeverity(StrEnum):
    """Display prominence of an insight, lowest to highest."""

    INFO = "info"
    NOTABLE = "notable"
    CRITICAL = "critical"


class LoadStatus(StrEnum):
    """Workbook load lifecycle: NOT_LOADED → LOADING → READY | FAILED."""

    NOT_LOADED = "not_loaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"

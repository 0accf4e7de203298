"""
Reference outcomes — the ground truth predictions are scored against.

``ReferenceTable`` wraps a ``{year: {market: ActualOutcome}}`` mapping and
exposes the two lookups the accuracy engine needs:

  actual_outcome(year, market) → ActualOutcome | None
  has_data(year)               → bool   (year present at all)

``DEFAULT_REFERENCE`` holds the built-in table for 2023–2025. There is no
entry for 2026 (the year is still open), and FARTCOIN carries the
``close == 0`` sentinel in every year because no close was tracked.

Scoring functions take the table as a parameter so tests can inject a
synthetic one; ``ReferenceTable.from_json()`` loads an override file for
the same purpose in production (``data.reference_file`` in config).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from forecast_scorecard.models.outcome import ActualOutcome
from forecast_scorecard.taxonomy.market_taxonomy import MarketKey

logger = logging.getLogger(__name__)

# (high, low, close) per year per market. Close 0 = no tracked data.
_BUILTIN_ACTUALS: dict[int, dict[MarketKey, tuple[float, float, float]]] = {
    2023: {
        MarketKey.SP500:    (4793, 3808, 4770),
        MarketKey.NDQ:      (16969, 10440, 16825),
        MarketKey.GOLD:     (2135, 1810, 2063),
        MarketKey.BTC:      (44700, 16500, 42300),
        MarketKey.ETH:      (2445, 1196, 2290),
        MarketKey.SOL:      (126, 10, 102),
        MarketKey.FARTCOIN: (0, 0, 0),
    },
    2024: {
        MarketKey.SP500:    (6051, 4742, 5881),
        MarketKey.NDQ:      (21615, 16200, 21012),
        MarketKey.GOLD:     (2790, 1984, 2625),
        MarketKey.BTC:      (106490, 38500, 92380),
        MarketKey.ETH:      (3986, 2150, 3355),
        MarketKey.SOL:      (252, 80, 191),
        MarketKey.FARTCOIN: (0, 0, 0),
    },
    2025: {
        MarketKey.SP500:    (6945, 4835, 6902),
        MarketKey.NDQ:      (26182, 19145, 25250),
        MarketKey.GOLD:     (4584, 2624, 4336),
        MarketKey.BTC:      (126000, 75000, 87500),
        MarketKey.ETH:      (4600, 1552, 2965),
        MarketKey.SOL:      (257, 106, 124),
        MarketKey.FARTCOIN: (0, 0, 0),
    },
}


class ReferenceTable:
    """Immutable lookup of actual outcomes by (year, market).

    Usage::

        table = ReferenceTable.from_values({
            2023: {MarketKey.BTC: (44700, 16500, 42300)},
        })
        table.has_data(2023)                     # True
        table.actual_outcome(2023, MarketKey.BTC).close   # 42300.0
    """

    def __init__(self, outcomes: Mapping[int, Mapping[MarketKey, ActualOutcome]]) -> None:
        self._outcomes: dict[int, dict[MarketKey, ActualOutcome]] = {
            int(year): dict(markets) for year, markets in outcomes.items()
        }

    @classmethod
    def from_values(
        cls,
        values: Mapping[int, Mapping[MarketKey, tuple[float, float, float]]],
    ) -> "ReferenceTable":
        """Build a table from ``{year: {market: (high, low, close)}}`` tuples."""
        return cls({
            year: {
                MarketKey(market): ActualOutcome(
                    year=year, market=market, high=high, low=low, close=close,
                )
                for market, (high, low, close) in markets.items()
            }
            for year, markets in values.items()
        })

    @classmethod
    def from_json(cls, path: Path) -> "ReferenceTable":
        """Load a table from a JSON file.

        Expected shape::

            {"2023": {"SP500": {"high": 4793, "low": 3808, "close": 4770}, ...}}

        Raises:
            FileNotFoundError: If ``path`` does not exist.
            ValueError: If the file is not valid JSON or an entry is malformed.
        """
        if not path.exists():
            raise FileNotFoundError(f"Reference file not found: {path}")
        try:
            raw: dict[str, Any] = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Reference file {path.name} is not valid JSON: {exc}")

        outcomes: dict[int, dict[MarketKey, ActualOutcome]] = {}
        for year_str, markets in raw.items():
            try:
                year = int(year_str)
                outcomes[year] = {
                    MarketKey(market): ActualOutcome(year=year, market=market, **values)
                    for market, values in markets.items()
                }
            except (TypeError, ValueError, ValidationError) as exc:
                raise ValueError(
                    f"Invalid reference entry for year '{year_str}' in {path.name}: {exc}"
                )

        logger.info("Loaded reference outcomes for %d years from %s", len(outcomes), path.name)
        return cls(outcomes)

    @property
    def years(self) -> list[int]:
        return sorted(self._outcomes)

    def has_data(self, year: int) -> bool:
        """True iff ``year`` appears in the table, whatever its markets hold."""
        return year in self._outcomes

    def actual_outcome(self, year: int, market: MarketKey) -> Optional[ActualOutcome]:
        return self._outcomes.get(year, {}).get(market)

    def actual_close(self, year: int, market: MarketKey) -> Optional[float]:
        outcome = self.actual_outcome(year, market)
        return outcome.close if outcome is not None else None

    def actual_high(self, year: int, market: MarketKey) -> Optional[float]:
        outcome = self.actual_outcome(year, market)
        return outcome.high if outcome is not None else None

    def actual_low(self, year: int, market: MarketKey) -> Optional[float]:
        outcome = self.actual_outcome(year, market)
        return outcome.low if outcome is not None else None

    def to_dict(self) -> dict[str, dict[str, dict[str, float]]]:
        """Serialise to the ``from_json`` shape."""
        return {
            str(year): {
                market.value: {"high": o.high, "low": o.low, "close": o.close}
                for market, o in markets.items()
            }
            for year, markets in sorted(self._outcomes.items())
        }


DEFAULT_REFERENCE = ReferenceTable.from_values(_BUILTIN_ACTUALS)


def load_reference(reference_file: Optional[str]) -> ReferenceTable:
    """Return the override table at ``reference_file`` or the built-in one."""
    if not reference_file:
        return DEFAULT_REFERENCE
    return ReferenceTable.from_json(Path(reference_file))

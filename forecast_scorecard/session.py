"""
Session state — the loaded prediction set plus the user's filter selection.

``SessionState`` owns everything that changes over a session:

  status       NOT_LOADED → LOADING → READY | FAILED  (one load, no retries)
  error        load failure message when status is FAILED
  predictions  every parsed prediction (immutable once loaded)
  forecasters  deduplicated forecaster list
  selection    current ``FilterSelection``

Computation stays outside it: ``apply_filters(state, selection)`` is a pure
function returning a ``FilteredView``, and the accuracy engine and insight
generator consume that view.

Stale results
-------------
Callers that compute views asynchronously take a token from
``begin_computation()`` and hand the result to ``publish()``. Only the most
recently issued token is accepted, so a slow, stale computation can never
replace a fresher view.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from forecast_scorecard.config import AppConfig, DataConfig
from forecast_scorecard.ingestion.sheet_parser import unique_forecasters
from forecast_scorecard.ingestion.workbook import SourceLoadError, load_predictions
from forecast_scorecard.models.prediction import Forecaster, Prediction
from forecast_scorecard.taxonomy.market_taxonomy import ALL_MARKETS, LoadStatus, MarketKey

logger = logging.getLogger(__name__)

PredictionLoader = Callable[[str, DataConfig], list[Prediction]]


class FilterSelection(BaseModel):
    """Years, markets and forecaster names a view is restricted to."""

    model_config = ConfigDict(frozen=True)

    years: list[int]
    markets: list[MarketKey] = list(ALL_MARKETS)
    forecasters: list[str] = []

    @classmethod
    def default_for(
        cls,
        forecasters: Iterable[Forecaster],
        years: Sequence[int] = (2023, 2024, 2025, 2026),
    ) -> "FilterSelection":
        """Select every year in ``years``, every market and every forecaster."""
        return cls(
            years=list(years),
            markets=list(ALL_MARKETS),
            forecasters=[f.name for f in forecasters],
        )


class FilteredView(BaseModel):
    """Predictions passing a selection, with the full forecaster list."""

    model_config = ConfigDict(frozen=True)

    selection: FilterSelection
    predictions: list[Prediction]
    forecasters: list[Forecaster]


def filter_predictions(
    predictions: Iterable[Prediction],
    selection: FilterSelection,
) -> list[Prediction]:
    """Keep predictions in a selected year, by a selected forecaster, with
    at least one selected market present.

    Forecaster names match case-insensitively, so "Bob" and "bob" rows from
    different sheets both pass a selection of either spelling.
    """
    years = set(selection.years)
    names = {name.lower() for name in selection.forecasters}
    markets = set(selection.markets)
    return [
        p for p in predictions
        if p.year in years
        and p.forecaster.identity_key in names
        and any(m in markets for m in p.markets)
    ]


def apply_filters(state: "SessionState", selection: FilterSelection) -> FilteredView:
    return FilteredView(
        selection=selection,
        predictions=filter_predictions(state.predictions, selection),
        forecasters=list(state.forecasters),
    )


class SessionState:
    """Externally owned state for one scoring session.

    Usage::

        state = SessionState(config)
        state.load()
        if state.status is LoadStatus.READY:
            view = state.select(state.selection.model_copy(update={"years": [2024]}))
    """

    def __init__(
        self,
        config: AppConfig,
        loader: PredictionLoader = load_predictions,
    ) -> None:
        self.config = config
        self._loader = loader
        self.status: LoadStatus = LoadStatus.NOT_LOADED
        self.error: Optional[str] = None
        self.predictions: list[Prediction] = []
        self.forecasters: list[Forecaster] = []
        self.selection: FilterSelection = FilterSelection(
            years=list(config.filters.default_years)
        )
        self._generation = 0
        self._view: Optional[FilteredView] = None

    # ── Load lifecycle ─────────────────────────────────────────────────────────

    def load(self, source: Optional[str] = None) -> LoadStatus:
        """Load the workbook once.

        A ``SourceLoadError`` moves the session to FAILED and stores the
        message in ``error``; it is not raised. Any other exception also marks
        the session FAILED and is re-raised.

        Raises:
            RuntimeError: If ``load()`` was already called on this session.
        """
        if self.status is not LoadStatus.NOT_LOADED:
            raise RuntimeError(f"Session already loaded (status={self.status}).")

        source = source or self.config.data.source
        self.status = LoadStatus.LOADING
        logger.info("Loading predictions from %s", source)

        try:
            predictions = self._loader(source, self.config.data)
        except SourceLoadError as exc:
            self.status = LoadStatus.FAILED
            self.error = str(exc)
            logger.error("Load FAILED: %s", exc)
            return self.status
        except Exception as exc:
            self.status = LoadStatus.FAILED
            self.error = str(exc)
            logger.error("Load FAILED unexpectedly: %s", exc)
            raise

        self.predictions = predictions
        self.forecasters = unique_forecasters(predictions)
        self.selection = FilterSelection.default_for(
            self.forecasters, self.config.filters.default_years
        )
        self.status = LoadStatus.READY
        logger.info(
            "Session ready: %d predictions, %d forecasters",
            len(self.predictions), len(self.forecasters),
        )
        return self.status

    @property
    def loading(self) -> bool:
        return self.status is LoadStatus.LOADING

    # ── Views ──────────────────────────────────────────────────────────────────

    def begin_computation(self) -> int:
        """Issue a token for a new view computation."""
        self._generation += 1
        return self._generation

    def publish(self, token: int, view: FilteredView) -> bool:
        """Store ``view`` if ``token`` is the latest issued; report whether it was."""
        if token != self._generation:
            logger.debug("Discarding stale view (token=%d, latest=%d)", token, self._generation)
            return False
        self._view = view
        return True

    @property
    def current_view(self) -> Optional[FilteredView]:
        return self._view

    def select(self, selection: FilterSelection) -> FilteredView:
        """Replace the selection and publish the matching view."""
        self.selection = selection
        return self.refresh()

    def refresh(self) -> FilteredView:
        token = self.begin_computation()
        view = apply_filters(self, self.selection)
        self.publish(token, view)
        return view

    @property
    def filtered_predictions(self) -> list[Prediction]:
        if self._view is None or self._view.selection != self.selection:
            return self.refresh().predictions
        return self._view.predictions

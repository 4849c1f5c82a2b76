"""Orchestrated trend analysis for a single item.

Executes the full analysis flow:
Resolve item -> Parameters -> History -> Forecast -> Insights.
Each step is timed and logged.  A missing item is reported as
``ItemNotFoundError``; any other failure is a defect and propagates after
being logged.
"""

from __future__ import annotations

import datetime as dt
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from trendmodel.config import TrendAnalysisConfig
from trendmodel.errors import ItemNotFoundError
from trendmodel.export import (
    insights_to_dict,
    item_to_dict,
    parameters_to_dict,
    series_to_records,
)
from trendmodel.forecaster import Forecast, build_forecast
from trendmodel.insights import analyze_insights
from trendmodel.integrator import NoiseSource, noise_for_variant, simulate_history
from trendmodel.parameters import derive_parameters
from trendmodel.scenarios import Scenario
from trendmodel.types import (
    Insights,
    Item,
    ModelParameters,
    ModelVariant,
    TrendSeries,
)

logger = logging.getLogger(__name__)


# ===================================================================
# Item cache
# ===================================================================


class ItemCache:
    """Thread-safe map from item id to the last item payload seen."""

    def __init__(self) -> None:
        self._items: dict[str, Item] = {}
        self._lock = threading.Lock()

    def get(self, item_id: str) -> Item | None:
        with self._lock:
            return self._items.get(item_id)

    def put(self, item_id: str, item: Item) -> None:
        with self._lock:
            self._items[item_id] = item

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __contains__(self, item_id: object) -> bool:
        with self._lock:
            return item_id in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


_default_cache: ItemCache | None = None
_default_cache_lock = threading.Lock()


def get_item_cache() -> ItemCache:
    """Process-wide cache, created on first use."""
    global _default_cache
    with _default_cache_lock:
        if _default_cache is None:
            _default_cache = ItemCache()
        return _default_cache


# ===================================================================
# Request / result data classes
# ===================================================================


@dataclass
class AnalysisRequest:
    """Envelope received from the routing layer."""

    item_id: str
    variant: ModelVariant = ModelVariant.SIS
    item: Item | None = None  # Preferred over any cached copy
    prediction_days: int = 30
    history_days: int = 180

    def __post_init__(self):
        self.variant = ModelVariant.parse(self.variant)
        if self.prediction_days < 1:
            raise ValueError(f"prediction_days must be positive, got {self.prediction_days}")
        if self.history_days < 1:
            raise ValueError(f"history_days must be positive, got {self.history_days}")


@dataclass
class StepResult:
    """Result from a single analysis step."""

    step_name: str
    output: Any
    duration_seconds: float


@dataclass
class AnalysisResult:
    """Complete analysis result handed to the presentation layer."""

    item: Item
    variant: ModelVariant
    parameters: ModelParameters
    history: TrendSeries
    predictions: TrendSeries
    insights: Insights
    scenario: Scenario
    step_results: list[StepResult] = field(default_factory=list)
    total_duration: float = 0.0

    @property
    def step_timings(self) -> dict[str, float]:
        return {s.step_name: s.duration_seconds for s in self.step_results}


# ===================================================================
# Analyzer
# ===================================================================


class TrendAnalyzer:
    """Runs one synchronous analysis per request.

    Parameters
    ----------
    config : TrendAnalysisConfig, optional
    cache : ItemCache, optional
        Defaults to the process-wide cache.
    noise_factory : callable, optional
        ``variant -> NoiseSource`` for the historical run.  Defaults to
        uniform noise in the variant's configured band.
    clock : callable, optional
        Returns "today".  Defaults to :meth:`datetime.date.today`.
    """

    def __init__(
        self,
        config: TrendAnalysisConfig | None = None,
        cache: ItemCache | None = None,
        noise_factory: Callable[[ModelVariant], NoiseSource] | None = None,
        clock: Callable[[], dt.date] | None = None,
    ) -> None:
        self.config = config or TrendAnalysisConfig()
        self.cache = cache if cache is not None else get_item_cache()
        self._noise_factory = noise_factory or (
            lambda variant: noise_for_variant(variant, self.config.integrator)
        )
        self._clock = clock or dt.date.today

    # ---------------------------------------------------------------
    # Item resolution
    # ---------------------------------------------------------------

    def resolve_item(self, request: AnalysisRequest) -> Item:
        """Prefer the request payload (and cache it), then the cache."""
        if request.item is not None:
            self.cache.put(request.item_id, request.item)
            return request.item
        item = self.cache.get(request.item_id)
        if item is None:
            logger.error("Item not found for id %r", request.item_id)
            raise ItemNotFoundError(request.item_id)
        return item

    # ---------------------------------------------------------------
    # Public run API
    # ---------------------------------------------------------------

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """Execute the full analysis for *request*.

        Raises
        ------
        ItemNotFoundError
            No payload and no cached item for ``request.item_id``.
        """
        t0 = time.monotonic()
        item = self.resolve_item(request)
        variant = request.variant
        today = self._clock()
        logger.info("Analyzing %r by %r (%s)", item.title, item.artist, variant.value)

        steps: list[StepResult] = []

        step = self.run_step(
            "parameters", derive_parameters, item, variant, today, self.config.bounds,
        )
        steps.append(step)
        parameters: ModelParameters = step.output

        start = today - dt.timedelta(days=request.history_days)
        step = self.run_step(
            "history",
            simulate_history,
            parameters,
            start,
            request.history_days,
            variant,
            item=item,
            noise=self._noise_factory(variant),
            config=self.config.integrator,
        )
        steps.append(step)
        history: TrendSeries = step.output

        step = self.run_step(
            "forecast",
            build_forecast,
            item,
            parameters,
            history,
            request.prediction_days,
            variant=variant,
            today=today,
            config=self.config,
        )
        steps.append(step)
        projection: Forecast = step.output

        step = self.run_step(
            "insights",
            analyze_insights,
            history,
            projection.series,
            variant,
            item,
            self.config.insight,
        )
        steps.append(step)

        return AnalysisResult(
            item=item,
            variant=variant,
            parameters=parameters,
            history=history,
            predictions=projection.series,
            insights=step.output,
            scenario=projection.scenario,
            step_results=steps,
            total_duration=time.monotonic() - t0,
        )

    # ---------------------------------------------------------------
    # Step runner with timing and logging
    # ---------------------------------------------------------------

    def run_step(
        self, step_name: str, fn: Callable, *args: Any, **kwargs: Any
    ) -> StepResult:
        """Run a single step with timing and logging.

        Exceptions are logged with their traceback and re-raised.
        """
        t0 = time.monotonic()
        try:
            output = fn(*args, **kwargs)
        except Exception as exc:
            logger.error(
                "Step '%s' failed after %.4f s: %s",
                step_name,
                time.monotonic() - t0,
                exc,
                exc_info=True,
            )
            raise
        duration = time.monotonic() - t0
        logger.info("Step '%s' completed in %.4f s", step_name, duration)
        return StepResult(step_name=step_name, output=output, duration_seconds=duration)


# ===================================================================
# Serialisation
# ===================================================================


def result_to_dict(result: AnalysisResult) -> dict[str, Any]:
    """JSON-ready view of *result* for the presentation layer."""
    return {
        "item": item_to_dict(result.item),
        "model_type": result.variant.value,
        "parameters": parameters_to_dict(result.parameters),
        "scenario": result.scenario.value,
        "historical_data": series_to_records(result.history),
        "predictions": series_to_records(result.predictions),
        "insights": insights_to_dict(result.insights),
    }

"""Scenario-weighted forecaster.

Future audience is projected from the recent historical baseline under one
scenario chosen deterministically from the item and the current date.  Each
day combines the scenario shape, a day-of-week effect, short-term momentum
and a seeded daily jitter; the result is then smoothed and the seed day is
dropped.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass

import numpy as np

from trendmodel.compartments import round_half_up, seir_point, sis_point
from trendmodel.config import ForecastConfig, TrendAnalysisConfig
from trendmodel.errors import EmptySeriesError
from trendmodel.parameters import classify_item
from trendmodel.scenarios import (
    Scenario,
    ScenarioDay,
    scenario_multipliers,
    scenario_weights,
    select_scenario,
)
from trendmodel.seeded import SeededRandom, item_seed
from trendmodel.smoothing import smooth_predictions
from trendmodel.types import (
    DataPoint,
    Item,
    ItemClassification,
    ModelParameters,
    ModelVariant,
    TrendSeries,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Forecast:
    """Forecast together with the scenario that produced it."""
    scenario: Scenario
    weights: dict[Scenario, float]
    raw: TrendSeries  # Before smoothing, seed day included
    series: TrendSeries  # Smoothed, seed day dropped


def forecast_seed(item: Item, today: dt.date) -> int:
    """Seed shared by all forecast draws for *item* on *today*."""
    return item_seed(item) + today.toordinal()


def choose_scenario(
    item: Item,
    classification: ItemClassification,
    today: dt.date,
) -> tuple[Scenario, dict[Scenario, float]]:
    weights = scenario_weights(classification)
    draw = SeededRandom(forecast_seed(item, today)).draw()
    return select_scenario(weights, draw), weights


def day_of_week_multiplier(day: dt.date, config: ForecastConfig) -> float:
    weekday = day.weekday()
    if weekday >= 5:
        return config.weekend_boost
    if weekday == 4:
        return config.friday_boost
    return config.weekday_damping


def _classification_modifiers(
    base: float,
    volatility: float,
    c: ItemClassification,
) -> tuple[float, float]:
    if c.is_viral:
        volatility *= 1.08
    if c.is_classic:
        base = (base + 1.0) / 2.0
        volatility *= 0.9
    if c.is_recent and c.popularity > 0.8:
        volatility *= 1.15
    return base, volatility


def _momentum(trail: list[float], config: ForecastConfig) -> float:
    """1 + bounded (recent slope / running average)."""
    recent = trail[-config.momentum_window:]
    if len(recent) < 2:
        return 1.0
    slope = (recent[-1] - recent[0]) / (len(recent) - 1)
    running = max(1.0, float(np.mean(trail[-config.baseline_window:])))
    relative = float(np.clip(slope / running, -config.momentum_cap, config.momentum_cap))
    return 1.0 + config.momentum_weight * relative


def _window_trend(values: np.ndarray) -> tuple[float, float]:
    """Last value and mean per-day change over *values*."""
    if len(values) == 0:
        return 0.0, 0.0
    if len(values) == 1:
        return float(values[-1]), 0.0
    return float(values[-1]), float(values[-1] - values[0]) / (len(values) - 1)


def build_forecast(
    item: Item,
    parameters: ModelParameters,
    history: TrendSeries,
    prediction_days: int = 30,
    variant: ModelVariant | str | None = None,
    today: dt.date | None = None,
    config: TrendAnalysisConfig | None = None,
) -> Forecast:
    """Project *prediction_days* of audience beyond *today*.

    Parameters
    ----------
    item : Item
        Seeds scenario choice and daily jitter.
    parameters : ModelParameters
    history : TrendSeries
        Non-empty historical series ending at *today*.
    prediction_days : int
        Positive horizon; the returned series has ``prediction_days - 1``
        points because the first day only seeds the momentum window.
    variant : ModelVariant or str, optional
        Inferred from ``parameters.sigma`` when omitted.
    today : date, optional
        "Now"; defaults to the current date.  Identical dates give
        identical forecasts.
    config : TrendAnalysisConfig, optional

    Returns
    -------
    Forecast
    """
    if prediction_days < 1:
        raise ValueError(f"prediction_days must be a positive integer, got {prediction_days}")
    if not history:
        raise EmptySeriesError("forecast requires a non-empty history")

    config = config or TrendAnalysisConfig()
    fc = config.forecast
    if variant is None:
        variant = ModelVariant.SIS if parameters.sigma is None else ModelVariant.SEIR
    variant = ModelVariant.parse(variant)
    today = today or dt.date.today()

    classification = classify_item(item, variant, today)
    scenario, weights = choose_scenario(item, classification, today)
    rng = SeededRandom(forecast_seed(item, today))

    tail = history[-fc.baseline_window:]
    trail = [float(v) for v in tail.infected()]
    baseline = max(1.0, float(np.mean(trail)))
    total = parameters.total_population

    e_last, e_slope = _window_trend(tail.exposed())
    r_last, r_slope = _window_trend(tail.recovered())
    decay_sum = 0.0

    points: list[DataPoint] = []
    for d in range(1, prediction_days + 1):
        day = today + dt.timedelta(days=d)
        daily_random = rng.day_draw(d, fc.day_stride)
        noise_factor = fc.noise_low + daily_random * fc.noise_span

        base, volatility = scenario_multipliers(
            scenario,
            ScenarioDay(
                progress=d / prediction_days,
                daily_random=daily_random,
                is_weekend=day.weekday() >= 5,
            ),
        )
        base, volatility = _classification_modifiers(base, volatility, classification)

        projected = (
            baseline
            * base
            * volatility
            * noise_factor
            * day_of_week_multiplier(day, fc)
            * _momentum(trail, fc)
        )
        infected = min(total, max(1, round_half_up(projected)))
        trail.append(float(infected))

        if variant == ModelVariant.SIS:
            points.append(sis_point(day, infected, total))
        else:
            decay = fc.seir_decay ** d
            decay_sum += decay
            exposed = max(0.0, e_last * decay + e_slope * decay_sum)
            recovered = max(0.0, r_last + r_slope * decay_sum)
            points.append(seir_point(
                day, infected, exposed, recovered, total, fc.min_susceptible_share,
            ))

    raw = TrendSeries(points)
    smoothed = smooth_predictions(
        raw, scenario, variant, config.smoothing, fc.min_susceptible_share,
    )
    series = smoothed[1:]
    logger.info(
        "Forecast %r (%s): scenario=%s, %d days",
        item.title, variant.value, scenario.value, len(series),
    )
    return Forecast(scenario=scenario, weights=weights, raw=raw, series=series)


def forecast(
    item: Item,
    parameters: ModelParameters,
    history: TrendSeries,
    prediction_days: int = 30,
    variant: ModelVariant | str | None = None,
    today: dt.date | None = None,
    config: TrendAnalysisConfig | None = None,
) -> TrendSeries:
    """Predicted series only; see :func:`build_forecast`."""
    return build_forecast(
        item, parameters, history, prediction_days, variant, today, config,
    ).series

"""Compartmental integrator for SIS and SEIR audience dynamics.

Fixed-step explicit Euler with daily seasonal/weekly modulation of the
rates.  An optional injected noise source adds a random daily multiplier
that also scales the *reported* compartments; the following integration
step continues from the unscaled internal state.
"""

from __future__ import annotations

import datetime as dt
import logging
import math
from typing import Callable

import numpy as np

from trendmodel.compartments import round_half_up
from trendmodel.config import IntegratorConfig, VariantModulation
from trendmodel.errors import ParameterBoundsError
from trendmodel.parameters import classify_item
from trendmodel.types import (
    DataPoint,
    Item,
    ItemClassification,
    ModelParameters,
    ModelVariant,
    TrendSeries,
)

logger = logging.getLogger(__name__)

NoiseSource = Callable[[], float]

# Compartment indices
SIS_S, SIS_I = 0, 1
SEIR_S, SEIR_E, SEIR_I, SEIR_R = 0, 1, 2, 3

_MAX_RECOVERED_SHARE = 0.35


# ---------------------------------------------------------------------------
# Noise sources
# ---------------------------------------------------------------------------

def uniform_noise(
    low: float,
    high: float,
    rng: np.random.Generator | None = None,
) -> NoiseSource:
    """Noise source drawing uniformly from ``[low, high)``.

    Without *rng* a fresh, OS-seeded generator is used, so repeated runs
    differ.
    """
    if not 0.0 < low <= high:
        raise ValueError(f"noise band must satisfy 0 < low <= high, got ({low}, {high})")
    gen = rng if rng is not None else np.random.default_rng()

    def _draw() -> float:
        return float(gen.uniform(low, high))

    return _draw


def constant_noise(value: float = 1.0) -> NoiseSource:
    """Deterministic stand-in for :func:`uniform_noise`."""
    if value <= 0:
        raise ValueError(f"noise value must be positive, got {value}")
    return lambda: value


def noise_for_variant(
    variant: ModelVariant | str,
    config: IntegratorConfig | None = None,
    rng: np.random.Generator | None = None,
) -> NoiseSource:
    """Uniform noise in the variant's configured band."""
    config = config or IntegratorConfig()
    mod = config.modulation(ModelVariant.parse(variant))
    return uniform_noise(mod.noise_low, mod.noise_high, rng)


# ---------------------------------------------------------------------------
# Calendar modulation
# ---------------------------------------------------------------------------

def seasonal_factor(day: dt.date, amplitude: float) -> float:
    """Annual sine wave around 1, peaking in early spring."""
    day_of_year = day.timetuple().tm_yday
    return 1.0 + amplitude * math.sin(day_of_year / 365.0 * 2.0 * math.pi)


def weekly_factor(day: dt.date, modulation: VariantModulation) -> float:
    if day.weekday() >= 5:
        return modulation.weekend_factor
    return modulation.weekday_factor


# ---------------------------------------------------------------------------
# Right-hand sides
# ---------------------------------------------------------------------------

def sis_derivatives(y: np.ndarray, beta: float, gamma: float, n: float) -> np.ndarray:
    """dS/dt = gamma*I - beta*S*I/N,  dI/dt = beta*S*I/N - gamma*I."""
    S, I = y
    flow = beta * S * I / n
    return np.array([gamma * I - flow, flow - gamma * I])


def seir_derivatives(
    y: np.ndarray, beta: float, sigma: float, gamma: float, n: float,
) -> np.ndarray:
    S, E, I, R = y
    exposure = beta * S * I / n
    return np.array([
        -exposure,
        exposure - sigma * E,
        sigma * E - gamma * I,
        gamma * I,
    ])


# ---------------------------------------------------------------------------
# Initial conditions
# ---------------------------------------------------------------------------

def initial_state(
    params: ModelParameters,
    variant: ModelVariant | str,
    classification: ItemClassification | None = None,
) -> np.ndarray:
    """Initial compartment vector.

    For SEIR the split follows the item classification: new and popular
    items start with a boosted active and exposed audience and almost no
    lapsed listeners, while older items carry a Recovered share that grows
    with age.
    """
    variant = ModelVariant.parse(variant)
    n = float(params.total_population)
    i0 = float(params.initial_infected)

    if variant == ModelVariant.SIS:
        return np.array([n - i0, i0])

    if classification is None:
        e, i, r = 0.0, i0, 0.0
    elif classification.is_new and classification.is_popular:
        e, i, r = i0 * 0.8, i0 * 1.5, i0 * 0.02
    elif classification.is_new:
        e, i, r = i0 * 0.5, i0, i0 * 0.05
    else:
        share = min(_MAX_RECOVERED_SHARE, 0.02 + 0.01 * classification.age)
        e = i0 * (0.3 if classification.is_recent else 0.2)
        i, r = i0, n * share
    return np.array([n - e - i - r, e, i, r])


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------

def _check_rates(params: ModelParameters, variant: ModelVariant) -> None:
    """Reject parameters the Euler scheme cannot run with."""
    rates = {"beta": params.beta, "gamma": params.gamma}
    if variant == ModelVariant.SEIR:
        if params.sigma is None:
            raise ParameterBoundsError("SEIR parameters require sigma")
        rates["sigma"] = params.sigma
    for name, value in rates.items():
        if not (math.isfinite(value) and value > 0):
            raise ParameterBoundsError(f"{name} must be positive and finite, got {value}")
    if not 0 < params.initial_infected < params.total_population:
        raise ParameterBoundsError(
            f"initial_infected must be in (0, {params.total_population}), "
            f"got {params.initial_infected}"
        )


def _clamp_state(y: np.ndarray, variant: ModelVariant, n: float) -> np.ndarray:
    y = np.maximum(y, 0.0)
    if variant == ModelVariant.SIS:
        y = np.minimum(y, n)
        y[SIS_I] = max(y[SIS_I], 1.0)
    else:
        y[SEIR_I] = max(y[SEIR_I], 1.0)
    return y


def _report(
    variant: ModelVariant,
    day: dt.date,
    y: np.ndarray,
    scale: float,
    n: int,
) -> DataPoint:
    if variant == ModelVariant.SIS:
        return DataPoint(
            date=day,
            susceptible=max(0, min(n, round_half_up(y[SIS_S] * scale))),
            infected=max(1, min(n, round_half_up(y[SIS_I] * scale))),
            total_population=n,
        )
    return DataPoint(
        date=day,
        susceptible=max(0, round_half_up(y[SEIR_S] * scale)),
        exposed=max(0, round_half_up(y[SEIR_E] * scale)),
        infected=max(1, round_half_up(y[SEIR_I] * scale)),
        recovered=max(0, round_half_up(y[SEIR_R] * scale)),
        total_population=n,
    )


def _simulate(
    variant: ModelVariant,
    params: ModelParameters,
    y0: np.ndarray,
    start_date: dt.date,
    num_days: int,
    noise: NoiseSource | None,
    config: IntegratorConfig,
) -> TrendSeries:
    if num_days < 1:
        raise ValueError(f"num_days must be a positive integer, got {num_days}")
    _check_rates(params, variant)

    n = params.total_population
    modulation = config.modulation(variant)
    y = _clamp_state(np.asarray(y0, dtype=float), variant, n)
    points: list[DataPoint] = []

    for day in range(num_days + 1):
        current = start_date + dt.timedelta(days=day)
        m = (
            seasonal_factor(current, modulation.seasonal_amplitude)
            * weekly_factor(current, modulation)
        )
        if noise is not None:
            m *= noise()
        # Only noisy runs report the modulated view of the state.
        points.append(_report(variant, current, y, m if noise is not None else 1.0, n))

        beta = params.beta * m
        gamma = params.gamma / m
        if variant == ModelVariant.SIS:
            for _ in range(config.steps_per_day):
                y = _clamp_state(
                    y + config.dt * sis_derivatives(y, beta, gamma, n), variant, n,
                )
        else:
            sigma = params.sigma * (0.8 + 0.4 * m)
            for _ in range(config.steps_per_day):
                y = _clamp_state(
                    y + config.dt * seir_derivatives(y, beta, sigma, gamma, n),
                    variant, n,
                )

    return TrendSeries(points)


def simulate_sis(
    params: ModelParameters,
    start_date: dt.date,
    num_days: int,
    noise: NoiseSource | None = None,
    config: IntegratorConfig | None = None,
) -> TrendSeries:
    """Run the SIS model for ``num_days`` days after *start_date*.

    Returns ``num_days + 1`` daily points, both ends inclusive.
    """
    return _simulate(
        ModelVariant.SIS, params,
        initial_state(params, ModelVariant.SIS),
        start_date, num_days, noise, config or IntegratorConfig(),
    )


def simulate_seir(
    params: ModelParameters,
    start_date: dt.date,
    num_days: int,
    noise: NoiseSource | None = None,
    classification: ItemClassification | None = None,
    config: IntegratorConfig | None = None,
) -> TrendSeries:
    """Run the SEIR model; see :func:`simulate_sis` for the output shape."""
    return _simulate(
        ModelVariant.SEIR, params,
        initial_state(params, ModelVariant.SEIR, classification),
        start_date, num_days, noise, config or IntegratorConfig(),
    )


def simulate_history(
    parameters: ModelParameters,
    start_date: dt.date,
    num_days: int,
    variant: ModelVariant | str,
    item: Item | None = None,
    noise: NoiseSource | None = None,
    config: IntegratorConfig | None = None,
) -> TrendSeries:
    """Simulate the historical trajectory ending at ``start_date + num_days``.

    Parameters
    ----------
    parameters : ModelParameters
    start_date : date
        First reported day.
    num_days : int
        Positive number of days to simulate.
    variant : ModelVariant or str
    item : Item, optional
        Used to pick the SEIR initial split; the item's age is measured at
        the last simulated day.
    noise : callable, optional
        Daily noise multiplier source.  ``None`` disables noise and reports
        the true model state.
    config : IntegratorConfig, optional
    """
    variant = ModelVariant.parse(variant)
    if variant == ModelVariant.SIS:
        series = simulate_sis(parameters, start_date, num_days, noise, config)
    else:
        classification = None
        if item is not None:
            end = start_date + dt.timedelta(days=num_days)
            classification = classify_item(item, variant, end)
        series = simulate_seir(
            parameters, start_date, num_days, noise, classification, config,
        )
    logger.debug(
        "Simulated %d %s history points from %s (noise=%s)",
        len(series), variant.value, start_date, noise is not None,
    )
    return series

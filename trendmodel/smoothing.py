"""Two-pass smoothing of predicted series.

Pass 1 caps the day-over-day change of the active audience; pass 2 damps
isolated spikes against the neighbour midpoint.  Both passes re-derive the
remaining compartments so that population is conserved.
"""

from __future__ import annotations

import math

from trendmodel.compartments import seir_point, sis_point
from trendmodel.config import SmoothingConfig
from trendmodel.scenarios import Scenario
from trendmodel.types import DataPoint, ModelVariant, TrendSeries


def max_change_for(scenario: Scenario, config: SmoothingConfig | None = None) -> float:
    """Largest allowed relative day-over-day change for *scenario*."""
    config = config or SmoothingConfig()
    return config.max_change_volatile if scenario.volatile else config.max_change_default


def rederive_point(
    point: DataPoint,
    infected: float,
    variant: ModelVariant,
    min_susceptible_share: float = 0.10,
) -> DataPoint:
    """Replace the Infected count of *point* and rebalance the rest.

    For SEIR a reduction moves into Recovered and an increase is drawn from
    Exposed first; Susceptible absorbs whatever remains.
    """
    total = point.total_population
    if variant == ModelVariant.SIS:
        return sis_point(point.date, infected, total)

    exposed = float(point.exposed or 0)
    recovered = float(point.recovered or 0)
    delta = point.infected - infected
    if delta > 0:
        recovered += delta
    else:
        exposed -= min(exposed, -delta)
    return seir_point(
        point.date, infected, exposed, recovered, total, min_susceptible_share,
    )


def clamp_day_over_day(
    series: TrendSeries,
    max_change: float,
    variant: ModelVariant | str,
    min_susceptible_share: float = 0.10,
) -> TrendSeries:
    """Limit ``|I[t] - I[t-1]|`` to ``max_change * I[t-1]``, keeping direction.

    Each day is compared with the already clamped previous day.
    """
    variant = ModelVariant.parse(variant)
    if len(series) < 2:
        return series

    out = [series[0]]
    for point in series.points[1:]:
        prev = out[-1].infected
        limit = prev * max_change
        if abs(point.infected - prev) <= limit:
            out.append(point)
            continue
        if point.infected > prev:
            target = math.floor(prev + limit)
        else:
            target = math.ceil(prev - limit)
        out.append(rederive_point(point, max(1, target), variant, min_susceptible_share))
    return TrendSeries(out)


def smooth_outliers(
    series: TrendSeries,
    variant: ModelVariant | str,
    threshold: float = 0.5,
    blend: float = 0.8,
    min_susceptible_share: float = 0.10,
) -> TrendSeries:
    """Blend interior spikes towards the midpoint of their neighbours.

    A point counts as a spike when it deviates from the neighbour midpoint
    by more than ``threshold`` times that midpoint; it is then replaced by
    ``blend * actual + (1 - blend) * expected``.
    """
    variant = ModelVariant.parse(variant)
    out = list(series)
    for i in range(1, len(out) - 1):
        actual = out[i].infected
        expected = (out[i - 1].infected + out[i + 1].infected) / 2.0
        if abs(actual - expected) > threshold * expected:
            blended = blend * actual + (1.0 - blend) * expected
            out[i] = rederive_point(out[i], blended, variant, min_susceptible_share)
    return TrendSeries(out)


def smooth_predictions(
    series: TrendSeries,
    scenario: Scenario,
    variant: ModelVariant | str,
    config: SmoothingConfig | None = None,
    min_susceptible_share: float = 0.10,
) -> TrendSeries:
    """Run the day-over-day clamp and then the outlier pass."""
    config = config or SmoothingConfig()
    clamped = clamp_day_over_day(
        series, max_change_for(scenario, config), variant, min_susceptible_share,
    )
    return smooth_outliers(
        clamped, variant,
        threshold=config.outlier_threshold,
        blend=config.outlier_blend,
        min_susceptible_share=min_susceptible_share,
    )

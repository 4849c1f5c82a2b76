"""Forecast scenario catalog, classification-based weights and selection."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from trendmodel.types import ItemClassification


class Scenario(Enum):
    VIRAL_BREAKTHROUGH = "viral_breakthrough"
    ORGANIC_GROWTH = "organic_growth"
    CYCLICAL_WAVES = "cyclical_waves"
    STEADY_MOMENTUM = "steady_momentum"
    DISCOVERY_SURGE = "discovery_surge"
    GRADUAL_FADE = "gradual_fade"
    WEEKEND_WARRIOR = "weekend_warrior"
    SEASONAL_BOOST = "seasonal_boost"

    @property
    def volatile(self) -> bool:
        """Viral and surge scenarios tolerate larger day-over-day swings."""
        return SCENARIO_CATALOG[self].volatile


@dataclass(frozen=True)
class ScenarioDay:
    """Inputs to a scenario multiplier for one forecast day."""
    progress: float  # day / prediction_days, in (0, 1]
    daily_random: float  # Seeded draw in [0, 1)
    is_weekend: bool


@dataclass(frozen=True)
class ScenarioProfile:
    """Closed-form shape of a scenario.

    ``multipliers`` returns ``(base_multiplier, volatility_multiplier)``.
    """
    scenario: Scenario
    multipliers: Callable[[ScenarioDay], tuple[float, float]]
    volatile: bool = False
    description: str = ""


def _viral_breakthrough(d: ScenarioDay) -> tuple[float, float]:
    return 1.0 + d.progress * 1.8 * math.exp(-d.progress * 1.5), 1.15


def _organic_growth(d: ScenarioDay) -> tuple[float, float]:
    return 1.0 + d.progress * 0.5 + math.sin(d.progress * 6 * math.pi) * 0.06, 1.08


def _cyclical_waves(d: ScenarioDay) -> tuple[float, float]:
    wave = math.sin(d.progress * 3 * math.pi + math.pi) * 0.25
    return 1.0 + wave + d.progress * 0.15, 1.12


def _steady_momentum(d: ScenarioDay) -> tuple[float, float]:
    return 1.0 + math.sin(d.progress * 8 * math.pi) * 0.08, 1.05


def _discovery_surge(d: ScenarioDay) -> tuple[float, float]:
    phase = d.progress * 12 * math.pi + d.daily_random * 2 * math.pi
    return 1.0 + math.sin(phase) * 0.25, 1.2


def _gradual_fade(d: ScenarioDay) -> tuple[float, float]:
    return 1.0 - d.progress * 0.4 - math.sin(d.progress * 4 * math.pi) * 0.06, 1.08


def _weekend_warrior(d: ScenarioDay) -> tuple[float, float]:
    return 1.0 + (0.2 if d.is_weekend else -0.1) + d.progress * 0.08, 1.1


def _seasonal_boost(d: ScenarioDay) -> tuple[float, float]:
    return 1.0 + math.sin(d.progress * 2 * math.pi) * 0.18 + d.progress * 0.1, 1.08


SCENARIO_CATALOG: dict[Scenario, ScenarioProfile] = {
    profile.scenario: profile
    for profile in (
        ScenarioProfile(Scenario.VIRAL_BREAKTHROUGH, _viral_breakthrough, True,
                        "Sharp rise that peaks early and eases off"),
        ScenarioProfile(Scenario.ORGANIC_GROWTH, _organic_growth, False,
                        "Slow, word-of-mouth climb"),
        ScenarioProfile(Scenario.CYCLICAL_WAVES, _cyclical_waves, False,
                        "Dip followed by a resurgence"),
        ScenarioProfile(Scenario.STEADY_MOMENTUM, _steady_momentum, False,
                        "Plateau with gentle oscillation"),
        ScenarioProfile(Scenario.DISCOVERY_SURGE, _discovery_surge, True,
                        "Rapid swings as new listeners find the item"),
        ScenarioProfile(Scenario.GRADUAL_FADE, _gradual_fade, False,
                        "Audience slowly moves on"),
        ScenarioProfile(Scenario.WEEKEND_WARRIOR, _weekend_warrior, False,
                        "Weekend listening spikes, quiet weekdays"),
        ScenarioProfile(Scenario.SEASONAL_BOOST, _seasonal_boost, False,
                        "Single seasonal hump with mild growth"),
    )
}


def scenario_multipliers(scenario: Scenario, day: ScenarioDay) -> tuple[float, float]:
    return SCENARIO_CATALOG[scenario].multipliers(day)


# ---------------------------------------------------------------------------
# Weights
# ---------------------------------------------------------------------------

# (guard, {scenario: factor}); every matching rule multiplies in.
_WEIGHT_RULES: tuple[tuple[Callable[[ItemClassification], bool], dict[Scenario, float]], ...] = (
    (lambda c: c.is_new, {
        Scenario.VIRAL_BREAKTHROUGH: 3.0,
        Scenario.DISCOVERY_SURGE: 2.5,
        Scenario.ORGANIC_GROWTH: 1.5,
        Scenario.GRADUAL_FADE: 0.3,
    }),
    (lambda c: c.is_recent and not c.is_new, {
        Scenario.ORGANIC_GROWTH: 1.5,
        Scenario.CYCLICAL_WAVES: 1.2,
    }),
    (lambda c: c.is_viral, {
        Scenario.VIRAL_BREAKTHROUGH: 2.0,
        Scenario.DISCOVERY_SURGE: 1.5,
        Scenario.WEEKEND_WARRIOR: 1.5,
    }),
    (lambda c: c.is_classic, {
        Scenario.SEASONAL_BOOST: 2.5,
        Scenario.CYCLICAL_WAVES: 2.0,
        Scenario.STEADY_MOMENTUM: 2.0,
        Scenario.VIRAL_BREAKTHROUGH: 0.2,
        Scenario.DISCOVERY_SURGE: 0.5,
    }),
    (lambda c: c.popularity > 0.7, {
        Scenario.STEADY_MOMENTUM: 1.5,
        Scenario.VIRAL_BREAKTHROUGH: 1.3,
    }),
    (lambda c: c.popularity < 0.3, {
        Scenario.GRADUAL_FADE: 2.0,
        Scenario.ORGANIC_GROWTH: 1.3,
    }),
)


def scenario_weights(classification: ItemClassification) -> dict[Scenario, float]:
    """Normalised selection weights in :class:`Scenario` declaration order."""
    weights = {s: 1.0 for s in Scenario}
    for applies, factors in _WEIGHT_RULES:
        if applies(classification):
            for scenario, factor in factors.items():
                weights[scenario] *= factor
    total = sum(weights.values())
    return {s: w / total for s, w in weights.items()}


def select_scenario(weights: dict[Scenario, float], draw: float) -> Scenario:
    """Pick the scenario whose cumulative weight interval contains *draw*."""
    if not weights:
        raise ValueError("weights must not be empty")
    if not 0.0 <= draw < 1.0:
        raise ValueError(f"draw must be in [0, 1), got {draw}")
    cumulative = 0.0
    for scenario, weight in weights.items():
        cumulative += weight
        if draw < cumulative:
            return scenario
    # Rounding can leave the last interval a hair short of 1.0.
    return scenario

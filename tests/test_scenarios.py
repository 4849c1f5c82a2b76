"""Tests for the scenario catalog, weighting and selection."""

from __future__ import annotations

import datetime as dt

import pytest

from trendmodel.parameters import classify_item
from trendmodel.scenarios import (
    SCENARIO_CATALOG,
    Scenario,
    ScenarioDay,
    scenario_multipliers,
    scenario_weights,
    select_scenario,
)
from trendmodel.types import Item

TODAY = dt.date(2026, 10, 18)


def classification(popularity=50, age=10, genres=(), variant="SIS"):
    item = Item(id="x", title="T", artist="A", popularity=popularity,
                release_year=TODAY.year - age, genres=genres)
    return classify_item(item, variant, TODAY)


class TestCatalog:

    def test_every_scenario_has_a_profile(self):
        assert set(SCENARIO_CATALOG) == set(Scenario)

    def test_volatile_scenarios(self):
        volatile = {s for s in Scenario if s.volatile}
        assert volatile == {Scenario.VIRAL_BREAKTHROUGH, Scenario.DISCOVERY_SURGE}

    def test_viral_breakthrough_shape(self):
        start = scenario_multipliers(Scenario.VIRAL_BREAKTHROUGH, ScenarioDay(0.0, 0.5, False))
        assert start == (pytest.approx(1.0), 1.15)
        # Peaks before the end of the window.
        mid = scenario_multipliers(Scenario.VIRAL_BREAKTHROUGH, ScenarioDay(0.6, 0.5, False))
        end = scenario_multipliers(Scenario.VIRAL_BREAKTHROUGH, ScenarioDay(1.0, 0.5, False))
        assert mid[0] > end[0] > 1.0

    def test_weekend_warrior(self):
        weekend = scenario_multipliers(Scenario.WEEKEND_WARRIOR, ScenarioDay(0.5, 0.1, True))
        weekday = scenario_multipliers(Scenario.WEEKEND_WARRIOR, ScenarioDay(0.5, 0.1, False))
        assert weekend[0] == pytest.approx(1.24)
        assert weekday[0] == pytest.approx(0.94)

    def test_gradual_fade_declines(self):
        end = scenario_multipliers(Scenario.GRADUAL_FADE, ScenarioDay(1.0, 0.0, False))
        assert end[0] == pytest.approx(0.6)

    def test_discovery_surge_uses_daily_draw(self):
        a = scenario_multipliers(Scenario.DISCOVERY_SURGE, ScenarioDay(0.5, 0.1, False))
        b = scenario_multipliers(Scenario.DISCOVERY_SURGE, ScenarioDay(0.5, 0.3, False))
        assert a[0] != pytest.approx(b[0])
        assert 0.75 - 1e-9 <= a[0] <= 1.25 + 1e-9


class TestWeights:

    @pytest.mark.parametrize("kwargs", [
        dict(),
        dict(age=0, popularity=90, genres=("Pop",)),
        dict(age=30, popularity=10),
        dict(age=2, genres=("Rap",), variant="SEIR"),
    ])
    def test_normalised(self, kwargs):
        weights = scenario_weights(classification(**kwargs))
        assert sum(weights.values()) == pytest.approx(1.0)
        assert all(w > 0 for w in weights.values())
        assert list(weights) == list(Scenario)

    def test_plain_item_is_uniform(self):
        weights = scenario_weights(classification())
        assert all(w == pytest.approx(1 / 8) for w in weights.values())

    def test_new_item_favours_viral_breakthrough(self):
        weights = scenario_weights(classification(age=0, popularity=90, genres=("Pop",)))
        assert max(weights, key=weights.get) == Scenario.VIRAL_BREAKTHROUGH

    def test_classic_item_favours_seasonal(self):
        weights = scenario_weights(classification(age=30))
        assert max(weights, key=weights.get) == Scenario.SEASONAL_BOOST
        assert weights[Scenario.VIRAL_BREAKTHROUGH] < weights[Scenario.ORGANIC_GROWTH]

    def test_unpopular_item_favours_fade(self):
        weights = scenario_weights(classification(popularity=10))
        assert max(weights, key=weights.get) == Scenario.GRADUAL_FADE


class TestSelection:

    @pytest.fixture
    def weights(self):
        return {
            Scenario.VIRAL_BREAKTHROUGH: 0.25,
            Scenario.ORGANIC_GROWTH: 0.5,
            Scenario.CYCLICAL_WAVES: 0.25,
        }

    def test_cumulative_intervals(self, weights):
        assert select_scenario(weights, 0.0) == Scenario.VIRAL_BREAKTHROUGH
        assert select_scenario(weights, 0.2499) == Scenario.VIRAL_BREAKTHROUGH
        assert select_scenario(weights, 0.25) == Scenario.ORGANIC_GROWTH
        assert select_scenario(weights, 0.74) == Scenario.ORGANIC_GROWTH
        assert select_scenario(weights, 0.99) == Scenario.CYCLICAL_WAVES

    def test_short_total_falls_back_to_last(self):
        weights = {Scenario.STEADY_MOMENTUM: 0.5, Scenario.GRADUAL_FADE: 0.4999}
        assert select_scenario(weights, 0.99995) == Scenario.GRADUAL_FADE

    def test_empty_weights_rejected(self):
        with pytest.raises(ValueError, match="empty"):
            select_scenario({}, 0.5)

    @pytest.mark.parametrize("draw", [-0.1, 1.0, 1.5])
    def test_draw_out_of_range(self, weights, draw):
        with pytest.raises(ValueError, match="draw"):
            select_scenario(weights, draw)

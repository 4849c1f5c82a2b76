"""Tests for the scenario-weighted forecaster."""

from __future__ import annotations

import datetime as dt

import pytest

from trendmodel.config import ForecastConfig
from trendmodel.errors import EmptySeriesError
from trendmodel.forecaster import (
    build_forecast,
    choose_scenario,
    day_of_week_multiplier,
    forecast,
    forecast_seed,
)
from trendmodel.integrator import simulate_history
from trendmodel.parameters import classify_item, derive_parameters
from trendmodel.scenarios import scenario_weights
from trendmodel.seeded import item_seed
from trendmodel.smoothing import max_change_for
from trendmodel.types import Item, ModelVariant, TrendSeries

TODAY = dt.date(2026, 10, 18)


@pytest.fixture
def item():
    return Item(id="t1", title="Test", artist="Creator", popularity=80,
                release_year=TODAY.year, genres=("Pop",))


@pytest.fixture
def classic_item():
    return Item(id="t2", title="Evergreen", artist="Old Guard", popularity=30,
                release_year=TODAY.year - 25, genres=("Rock",))


def _history(item, variant, days=180):
    params = derive_parameters(item, variant, TODAY)
    start = TODAY - dt.timedelta(days=days)
    return params, simulate_history(params, start, days, variant, item=item)


# ============================================================
# Helpers
# ============================================================

class TestHelpers:

    def test_forecast_seed(self, item):
        assert forecast_seed(item, TODAY) == item_seed(item) + TODAY.toordinal()

    def test_day_of_week(self):
        fc = ForecastConfig()
        assert day_of_week_multiplier(dt.date(2026, 10, 17), fc) == 1.08  # Saturday
        assert day_of_week_multiplier(dt.date(2026, 10, 16), fc) == 1.05  # Friday
        assert day_of_week_multiplier(dt.date(2026, 10, 14), fc) == 0.98  # Wednesday

    def test_choose_scenario_is_deterministic(self, item):
        c = classify_item(item, "SIS", TODAY)
        first = choose_scenario(item, c, TODAY)
        second = choose_scenario(item, c, TODAY)
        assert first == second
        assert first[1] == scenario_weights(c)


# ============================================================
# SIS forecast
# ============================================================

class TestSISForecast:

    def test_shape_and_dates(self, item):
        params, history = _history(item, ModelVariant.SIS)
        series = forecast(item, params, history, 30, "SIS", TODAY)
        assert len(series) == 29
        assert series[0].date == TODAY + dt.timedelta(days=2)
        assert series[-1].date == TODAY + dt.timedelta(days=30)
        dates = series.dates()
        assert all(b - a == dt.timedelta(days=1) for a, b in zip(dates, dates[1:]))

    def test_population_conserved(self, item):
        params, history = _history(item, ModelVariant.SIS)
        for point in forecast(item, params, history, 30, "SIS", TODAY):
            assert point.infected >= 1
            assert point.susceptible + point.infected == params.total_population

    def test_deterministic(self, item):
        params, history = _history(item, ModelVariant.SIS)
        a = build_forecast(item, params, history, 30, "SIS", TODAY)
        b = build_forecast(item, params, history, 30, "SIS", TODAY)
        assert a.scenario == b.scenario
        assert a.series == b.series

    def test_day_over_day_change_bounded(self, item):
        params, history = _history(item, ModelVariant.SIS)
        result = build_forecast(item, params, history, 30, "SIS", TODAY)
        limit = max_change_for(result.scenario)
        infected = result.series.infected()
        for prev, cur in zip(infected, infected[1:]):
            assert abs(cur - prev) <= limit * prev + 1e-9

    def test_raw_keeps_seed_day(self, item):
        params, history = _history(item, ModelVariant.SIS)
        result = build_forecast(item, params, history, 30, "SIS", TODAY)
        assert len(result.raw) == 30
        assert result.raw[0].date == TODAY + dt.timedelta(days=1)

    def test_single_day_horizon_is_empty(self, item):
        params, history = _history(item, ModelVariant.SIS)
        assert len(forecast(item, params, history, 1, "SIS", TODAY)) == 0

    def test_short_history(self, item):
        params, history = _history(item, ModelVariant.SIS)
        series = forecast(item, params, history[-1:], 10, "SIS", TODAY)
        assert len(series) == 9
        assert series.infected().min() >= 1


# ============================================================
# SEIR forecast
# ============================================================

class TestSEIRForecast:

    def test_population_conserved(self, classic_item):
        params, history = _history(classic_item, ModelVariant.SEIR)
        for point in forecast(classic_item, params, history, 30, "SEIR", TODAY):
            assert point.compartment_total == params.total_population
            assert min(point.susceptible, point.exposed, point.recovered) >= 0
            assert point.infected >= 1

    def test_variant_inferred_from_sigma(self, item):
        params, history = _history(item, ModelVariant.SEIR)
        series = forecast(item, params, history, 14, today=TODAY)
        assert all(p.exposed is not None for p in series)

    def test_susceptible_floor(self, item):
        params, history = _history(item, ModelVariant.SEIR)
        floor = int(params.total_population * ForecastConfig().min_susceptible_share)
        for point in forecast(item, params, history, 30, "SEIR", TODAY):
            # Only an Infected count above the floor can push S below it.
            if point.infected + point.exposed <= params.total_population - floor:
                assert point.susceptible >= floor


# ============================================================
# Errors
# ============================================================

class TestForecastErrors:

    def test_empty_history(self, item):
        params = derive_parameters(item, "SIS", TODAY)
        with pytest.raises(EmptySeriesError):
            forecast(item, params, TrendSeries(), 30, "SIS", TODAY)

    def test_empty_history_is_value_error(self, item):
        params = derive_parameters(item, "SIS", TODAY)
        with pytest.raises(ValueError):
            forecast(item, params, TrendSeries(), 30, "SIS", TODAY)

    def test_non_positive_horizon(self, item):
        params, history = _history(item, ModelVariant.SIS, days=10)
        with pytest.raises(ValueError, match="prediction_days"):
            forecast(item, params, history, 0, "SIS", TODAY)

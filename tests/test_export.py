"""Tests for dict and DataFrame conversion."""

from __future__ import annotations

import datetime as dt

import pandas as pd

from trendmodel.compartments import seir_point, sis_point
from trendmodel.export import (
    item_to_dict,
    parameters_to_dict,
    point_to_dict,
    series_to_frame,
)
from trendmodel.types import Item, ModelParameters, TrendSeries

DAY0 = dt.date(2026, 10, 18)


class TestExport:

    def test_sis_point_omits_seir_fields(self):
        d = point_to_dict(sis_point(DAY0, 10, 100))
        assert d == {"date": "2026-10-18", "susceptible": 90, "infected": 10,
                     "total_population": 100}

    def test_seir_point_has_all_fields(self):
        d = point_to_dict(seir_point(DAY0, 10, 5, 20, 100))
        assert (d["exposed"], d["recovered"], d["susceptible"]) == (5, 20, 65)

    def test_sis_frame_drops_empty_columns(self):
        series = TrendSeries(sis_point(DAY0 + dt.timedelta(days=k), 10 + k, 100)
                             for k in range(3))
        frame = series_to_frame(series)
        assert list(frame.columns) == ["susceptible", "infected", "total_population"]
        assert frame.index[0] == pd.Timestamp("2026-10-18")
        assert frame["infected"].tolist() == [10, 11, 12]

    def test_seir_frame_keeps_all_columns(self):
        frame = series_to_frame(TrendSeries([seir_point(DAY0, 10, 5, 20, 100)]))
        assert list(frame.columns) == [
            "susceptible", "exposed", "infected", "recovered", "total_population",
        ]

    def test_parameters_sigma_only_for_seir(self):
        sis = ModelParameters(beta=0.2, gamma=0.05, initial_infected=10, total_population=100)
        assert "sigma" not in parameters_to_dict(sis)
        seir = ModelParameters(beta=0.2, gamma=0.05, initial_infected=10,
                               total_population=100, sigma=0.1)
        assert parameters_to_dict(seir)["sigma"] == 0.1

    def test_item_genres_as_list(self):
        item = Item(id="a", title="T", artist="A", popularity=10, genres=("Pop",))
        assert item_to_dict(item)["genres"] == ["Pop"]

"""Conversion of model outputs to plain dicts and DataFrames."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

import pandas as pd

from trendmodel.types import DataPoint, Insights, Item, ModelParameters, TrendSeries


def point_to_dict(point: DataPoint) -> dict[str, Any]:
    """JSON-ready dict; SEIR-only compartments are omitted for SIS points."""
    d: dict[str, Any] = {
        "date": point.date.isoformat(),
        "susceptible": point.susceptible,
        "infected": point.infected,
        "total_population": point.total_population,
    }
    if point.exposed is not None:
        d["exposed"] = point.exposed
    if point.recovered is not None:
        d["recovered"] = point.recovered
    return d


def series_to_records(series: TrendSeries) -> list[dict[str, Any]]:
    return [point_to_dict(p) for p in series]


def series_to_frame(series: TrendSeries) -> pd.DataFrame:
    """DataFrame indexed by date with one column per compartment."""
    columns = ["susceptible", "exposed", "infected", "recovered", "total_population"]
    frame = pd.DataFrame(
        [
            {
                "date": pd.Timestamp(p.date),
                "susceptible": p.susceptible,
                "exposed": p.exposed,
                "infected": p.infected,
                "recovered": p.recovered,
                "total_population": p.total_population,
            }
            for p in series
        ],
        columns=["date"] + columns,
    )
    frame = frame.set_index("date")
    return frame.dropna(axis=1, how="all")


def item_to_dict(item: Item) -> dict[str, Any]:
    d = asdict(item)
    d["genres"] = list(item.genres)
    return d


def parameters_to_dict(params: ModelParameters) -> dict[str, Any]:
    d = asdict(params)
    if params.sigma is None:
        del d["sigma"]
    return d


def insights_to_dict(insights: Insights) -> dict[str, Any]:
    rec = insights.recommendation
    return {
        "peak_date": insights.peak_date.isoformat(),
        "peak_value": insights.peak_value,
        "current_trend": insights.current_trend.value,
        "future_outlook": insights.future_outlook.value,
        "metrics": asdict(insights.metrics),
        "recommendation": {
            "action": rec.action,
            "timing": rec.timing,
            "confidence": rec.confidence,
            "platforms": list(rec.platforms),
        },
    }

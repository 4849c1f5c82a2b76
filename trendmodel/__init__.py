"""Audience contagion trend model - SIS/SEIR simulation and forecasting core."""

from trendmodel.types import (
    DataPoint,
    Insights,
    Item,
    ModelParameters,
    ModelVariant,
    Outlook,
    Trend,
    TrendSeries,
)

"""Core data types for audience contagion trend modelling."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

import numpy as np


# --- Enums ---

class ModelVariant(Enum):
    SIS = "SIS"
    SEIR = "SEIR"

    @classmethod
    def parse(cls, value: "str | ModelVariant") -> "ModelVariant":
        """Accept an enum member or a case-insensitive name."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            valid = ", ".join(v.value for v in cls)
            raise ValueError(
                f"Unknown model variant {value!r}; expected one of: {valid}"
            ) from None


class Trend(Enum):
    RISING = "rising"
    DECLINING = "declining"
    STABLE = "stable"


class Outlook(Enum):
    """Future outlook categories, declared from highest to lowest intensity."""
    EXPLOSIVE_GROWTH = "explosive_growth"
    VIRAL_POTENTIAL = "viral_potential"
    SUSTAINED_MOMENTUM = "sustained_momentum"
    COMEBACK_LIKELY = "comeback_likely"
    STABLE_NICHE = "stable_niche"
    STEADY_DECLINE = "steady_decline"

    @property
    def intensity(self) -> int:
        """Rank where 0 is the most intense outlook."""
        return list(Outlook).index(self)


# --- Item and classification ---

@dataclass(frozen=True)
class Item:
    """A content item (track) as delivered by the catalog collaborator."""
    id: str
    title: str
    artist: str
    popularity: float  # [0, 100]
    album: str | None = None
    release_year: int | None = None
    genres: tuple[str, ...] = ()

    def __post_init__(self):
        if not self.title:
            raise ValueError("Item title must be non-empty")
        if not 0.0 <= self.popularity <= 100.0:
            raise ValueError(
                f"popularity must be in [0, 100], got {self.popularity}"
            )
        # Lists are accepted for convenience but stored immutably.
        object.__setattr__(self, "genres", tuple(self.genres))


@dataclass(frozen=True)
class ItemClassification:
    """Boolean axes derived from item age, popularity and genres."""
    age: int
    popularity: float  # [0, 1]
    is_new: bool
    is_recent: bool
    is_classic: bool
    is_viral: bool

    @property
    def is_popular(self) -> bool:
        return self.popularity >= 0.6


# --- Model parameters and series ---

@dataclass(frozen=True)
class ModelParameters:
    """Rates and sizes for one (item, variant) pair."""
    beta: float  # Transmission (discovery) rate
    gamma: float  # Recovery (loss of interest) rate
    initial_infected: int  # Initial active listeners
    total_population: int  # Addressable audience
    sigma: float | None = None  # Exposed -> active conversion, SEIR only


@dataclass(frozen=True)
class DataPoint:
    """Compartment counts for one calendar day."""
    date: dt.date
    susceptible: int
    infected: int
    total_population: int
    exposed: int | None = None
    recovered: int | None = None

    @property
    def compartment_total(self) -> int:
        return (
            self.susceptible
            + self.infected
            + (self.exposed or 0)
            + (self.recovered or 0)
        )


@dataclass(frozen=True)
class TrendSeries:
    """Date-ascending sequence of data points."""
    points: tuple[DataPoint, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "points", tuple(self.points))

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[DataPoint]:
        return iter(self.points)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return TrendSeries(self.points[index])
        return self.points[index]

    def __bool__(self) -> bool:
        return bool(self.points)

    def infected(self) -> np.ndarray:
        return np.array([p.infected for p in self.points], dtype=float)

    def dates(self) -> list[dt.date]:
        return [p.date for p in self.points]

    def exposed(self) -> np.ndarray:
        return np.array([p.exposed or 0 for p in self.points], dtype=float)

    def recovered(self) -> np.ndarray:
        return np.array([p.recovered or 0 for p in self.points], dtype=float)


# --- Insights ---

@dataclass(frozen=True)
class TrendMetrics:
    """Ratios summarising history vs predictions."""
    slope: float
    current: float
    growth_potential: float  # max(future) / current
    volatility: float  # (max - min) / mean(future)
    momentum: float  # mean(second half) / mean(first half)
    overall_trend: float  # mean(future) / current


@dataclass(frozen=True)
class Recommendation:
    """Creator-facing action derived from trend and outlook."""
    action: str
    timing: str
    confidence: float  # [0, 1]
    platforms: tuple[str, ...] = ()


@dataclass(frozen=True)
class Insights:
    """Categorical summary of a historical + predicted trajectory."""
    peak_date: dt.date
    peak_value: int
    current_trend: Trend
    future_outlook: Outlook
    metrics: TrendMetrics
    recommendation: Recommendation

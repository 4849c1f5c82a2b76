"""Configuration management for audience trend modelling."""

from __future__ import annotations

from dataclasses import dataclass, field

from trendmodel.types import ModelVariant


@dataclass
class ParameterBounds:
    """Clamp bounds for derived rates, one set per model variant."""
    sis_beta: tuple[float, float] = (0.001, 0.6)
    sis_gamma: tuple[float, float] = (0.005, 0.15)
    seir_beta: tuple[float, float] = (0.001, 0.7)
    seir_gamma: tuple[float, float] = (0.005, 0.12)
    seir_sigma: tuple[float, float] = (0.02, 0.25)

    def __post_init__(self):
        for name in ("sis_beta", "sis_gamma", "seir_beta", "seir_gamma", "seir_sigma"):
            lo, hi = getattr(self, name)
            if not 0.0 < lo <= hi:
                raise ValueError(f"{name} must satisfy 0 < lo <= hi, got ({lo}, {hi})")

    def for_variant(self, variant: ModelVariant) -> dict[str, tuple[float, float]]:
        """Return the ``{rate_name: (lo, hi)}`` table for *variant*."""
        if variant == ModelVariant.SIS:
            return {"beta": self.sis_beta, "gamma": self.sis_gamma}
        return {
            "beta": self.seir_beta,
            "gamma": self.seir_gamma,
            "sigma": self.seir_sigma,
        }


@dataclass
class VariantModulation:
    """Seasonal, weekly and noise bands applied by the integrator."""
    seasonal_amplitude: float
    weekend_factor: float
    weekday_factor: float
    noise_low: float
    noise_high: float

    def __post_init__(self):
        if not 0.0 <= self.seasonal_amplitude < 1.0:
            raise ValueError(
                f"seasonal_amplitude must be in [0, 1), got {self.seasonal_amplitude}"
            )
        if self.weekend_factor <= 0 or self.weekday_factor <= 0:
            raise ValueError("weekly factors must be positive")
        if not 0.0 < self.noise_low <= self.noise_high:
            raise ValueError(
                f"noise band must satisfy 0 < low <= high, got "
                f"({self.noise_low}, {self.noise_high})"
            )


@dataclass
class IntegratorConfig:
    """Configuration for the Euler integrator."""
    dt: float = 0.1  # Step size in days
    steps_per_day: int = 10
    sis: VariantModulation = field(default_factory=lambda: VariantModulation(
        seasonal_amplitude=0.3, weekend_factor=1.2, weekday_factor=0.9,
        noise_low=0.8, noise_high=1.2,
    ))
    seir: VariantModulation = field(default_factory=lambda: VariantModulation(
        seasonal_amplitude=0.2, weekend_factor=1.15, weekday_factor=0.95,
        noise_low=0.85, noise_high=1.15,
    ))

    def __post_init__(self):
        if self.dt <= 0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        if self.steps_per_day < 1:
            raise ValueError(f"steps_per_day must be >= 1, got {self.steps_per_day}")

    def modulation(self, variant: ModelVariant) -> VariantModulation:
        return self.sis if variant == ModelVariant.SIS else self.seir


@dataclass
class ForecastConfig:
    """Configuration for the scenario-weighted forecaster."""
    baseline_window: int = 7  # Historical points averaged into the baseline
    momentum_window: int = 3
    momentum_weight: float = 0.5
    momentum_cap: float = 0.05  # Max |slope / running average|
    noise_low: float = 0.92
    noise_span: float = 0.16
    day_stride: int = 7  # Seed stride for day-indexed draws
    weekend_boost: float = 1.08
    friday_boost: float = 1.05
    weekday_damping: float = 0.98
    seir_decay: float = 0.97  # Per-day decay of E/R trend extrapolation
    min_susceptible_share: float = 0.10

    def __post_init__(self):
        if self.baseline_window < 1:
            raise ValueError(f"baseline_window must be >= 1, got {self.baseline_window}")
        if self.momentum_window < 2:
            raise ValueError(f"momentum_window must be >= 2, got {self.momentum_window}")
        if not 0.0 < self.seir_decay <= 1.0:
            raise ValueError(f"seir_decay must be in (0, 1], got {self.seir_decay}")
        if not 0.0 <= self.min_susceptible_share < 1.0:
            raise ValueError(
                f"min_susceptible_share must be in [0, 1), got {self.min_susceptible_share}"
            )


@dataclass
class SmoothingConfig:
    """Configuration for the two-pass smoothing pipeline."""
    max_change_volatile: float = 0.30  # Viral / surge scenarios
    max_change_default: float = 0.18
    outlier_threshold: float = 0.5  # Fraction of the expected value
    outlier_blend: float = 0.8  # Weight kept on the actual value

    def __post_init__(self):
        for name in ("max_change_volatile", "max_change_default"):
            val = getattr(self, name)
            if not 0.0 < val < 1.0:
                raise ValueError(f"{name} must be in (0, 1), got {val}")
        if self.outlier_threshold <= 0:
            raise ValueError(f"outlier_threshold must be positive, got {self.outlier_threshold}")
        if not 0.0 <= self.outlier_blend <= 1.0:
            raise ValueError(f"outlier_blend must be in [0, 1], got {self.outlier_blend}")


@dataclass
class InsightConfig:
    """Configuration for insight extraction."""
    trend_window: int = 14  # Trailing historical points for the slope
    trend_threshold: float = 50.0  # Absolute listeners/day

    def __post_init__(self):
        if self.trend_window < 2:
            raise ValueError(f"trend_window must be >= 2, got {self.trend_window}")
        if self.trend_threshold < 0:
            raise ValueError(f"trend_threshold must be non-negative, got {self.trend_threshold}")


@dataclass
class TrendAnalysisConfig:
    """Master configuration for the entire system."""
    bounds: ParameterBounds = field(default_factory=ParameterBounds)
    integrator: IntegratorConfig = field(default_factory=IntegratorConfig)
    forecast: ForecastConfig = field(default_factory=ForecastConfig)
    smoothing: SmoothingConfig = field(default_factory=SmoothingConfig)
    insight: InsightConfig = field(default_factory=InsightConfig)
    history_days: int = 180
    prediction_days: int = 30

    def __post_init__(self):
        if self.history_days < 1:
            raise ValueError(f"history_days must be >= 1, got {self.history_days}")
        if self.prediction_days < 2:
            raise ValueError(f"prediction_days must be >= 2, got {self.prediction_days}")

"""Insight and recommendation analyzer.

Reduces a historical + predicted trajectory to a peak, a current trend,
one of six future-outlook categories and a creator recommendation.  The
outlook and recommendation tables are ordered; the first matching rule
wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import numpy as np
from scipy.stats import linregress

from trendmodel.config import InsightConfig
from trendmodel.errors import EmptySeriesError
from trendmodel.seeded import SeededRandom, item_seed
from trendmodel.types import (
    Insights,
    Item,
    ModelVariant,
    Outlook,
    Recommendation,
    Trend,
    TrendMetrics,
    TrendSeries,
)

_CONFIDENCE_DRAW = 5
_MAX_PLATFORMS = 4
_DEFAULT_PLATFORMS = ("Spotify", "YouTube")

GENRE_PLATFORMS: dict[str, tuple[str, ...]] = {
    "pop": ("TikTok", "Instagram Reels", "Spotify"),
    "k-pop": ("TikTok", "YouTube", "Instagram Reels"),
    "hip-hop": ("TikTok", "YouTube", "SoundCloud"),
    "rap": ("TikTok", "YouTube", "SoundCloud"),
    "r&b": ("Instagram Reels", "Spotify", "TikTok"),
    "electronic": ("SoundCloud", "Beatport", "TikTok"),
    "dance": ("TikTok", "Beatport", "SoundCloud"),
    "alternative": ("Spotify", "Bandcamp", "Instagram Reels"),
    "indie": ("Bandcamp", "Spotify", "Instagram Reels"),
    "rock": ("YouTube", "Spotify", "Reddit"),
    "metal": ("YouTube", "Bandcamp", "Reddit"),
    "country": ("Spotify", "Facebook", "YouTube"),
    "jazz": ("Bandcamp", "YouTube", "Apple Music"),
    "classical": ("YouTube", "Apple Music", "Spotify"),
    "latin": ("YouTube", "TikTok", "Spotify"),
}


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

def compute_metrics(
    history: TrendSeries,
    predictions: TrendSeries,
    config: InsightConfig | None = None,
) -> TrendMetrics:
    """Ratios comparing the predicted series with the present.

    Every divisor is floored at 1 so degenerate series never produce
    non-finite values.
    """
    config = config or InsightConfig()
    hist = history.infected()
    if len(hist) == 0:
        raise EmptySeriesError("insights require a non-empty history")

    window = hist[-config.trend_window:]
    slope = 0.0
    if len(window) >= 2:
        slope = float(linregress(np.arange(len(window), dtype=float), window).slope)

    current = max(1.0, float(hist[-1]))
    future = predictions.infected() if predictions else np.array([current])
    f_max = float(future.max())
    f_min = float(future.min())
    f_mean = float(future.mean())

    half = len(future) // 2
    if half == 0:
        momentum = 1.0
    else:
        momentum = float(future[half:].mean()) / max(1.0, float(future[:half].mean()))

    return TrendMetrics(
        slope=slope,
        current=current,
        growth_potential=f_max / current,
        volatility=(f_max - f_min) / max(1.0, f_mean),
        momentum=momentum,
        overall_trend=f_mean / current,
    )


def classify_trend(slope: float, threshold: float = 50.0) -> Trend:
    if slope > threshold:
        return Trend.RISING
    if slope < -threshold:
        return Trend.DECLINING
    return Trend.STABLE


# ---------------------------------------------------------------------------
# Outlook
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OutlookRule:
    outlook: Outlook
    applies: Callable[[TrendMetrics, ModelVariant], bool]


OUTLOOK_RULES: tuple[OutlookRule, ...] = (
    OutlookRule(Outlook.EXPLOSIVE_GROWTH,
                lambda m, v: m.growth_potential > 2.5 and m.volatility > 0.8),
    OutlookRule(Outlook.VIRAL_POTENTIAL,
                lambda m, v: m.growth_potential > 1.8 and m.volatility > 0.5),
    OutlookRule(Outlook.SUSTAINED_MOMENTUM,
                lambda m, v: m.momentum > 1.15 and m.overall_trend > 1.1),
    # SIS audiences can be re-infected, so volatility alone hints at a return.
    OutlookRule(Outlook.COMEBACK_LIKELY,
                lambda m, v: (v == ModelVariant.SIS and m.volatility > 0.3
                              and m.growth_potential > 1.3)
                or (m.slope < 0 and m.momentum > 1.05 and m.growth_potential > 1.2)),
    OutlookRule(Outlook.STEADY_DECLINE,
                lambda m, v: (m.overall_trend < 0.7 and m.growth_potential < 1.2)
                or (m.momentum < 0.85 and m.overall_trend < 0.9)),
    OutlookRule(Outlook.STABLE_NICHE, lambda m, v: True),
)


def classify_outlook(metrics: TrendMetrics, variant: ModelVariant | str) -> Outlook:
    variant = ModelVariant.parse(variant)
    for rule in OUTLOOK_RULES:
        if rule.applies(metrics, variant):
            return rule.outlook
    return Outlook.STABLE_NICHE


# ---------------------------------------------------------------------------
# Recommendation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RecommendationRule:
    """``None`` for *trend* or *outlook* matches any value."""
    trend: Trend | None
    outlook: Outlook | None
    action: str
    timing: str
    confidence: tuple[float, float]

    def matches(self, trend: Trend, outlook: Outlook) -> bool:
        return (
            (self.trend is None or self.trend == trend)
            and (self.outlook is None or self.outlook == outlook)
        )


RECOMMENDATION_RULES: tuple[RecommendationRule, ...] = (
    RecommendationRule(None, Outlook.EXPLOSIVE_GROWTH,
                       "Release follow-up content now", "immediate", (0.85, 0.95)),
    RecommendationRule(Trend.RISING, Outlook.VIRAL_POTENTIAL,
                       "Push promotion while momentum builds", "within 48 hours", (0.75, 0.90)),
    RecommendationRule(None, Outlook.VIRAL_POTENTIAL,
                       "Seed short-form clips to trigger discovery", "this week", (0.65, 0.80)),
    RecommendationRule(Trend.DECLINING, Outlook.SUSTAINED_MOMENTUM,
                       "Re-engage lapsed listeners before the rebound", "this week", (0.60, 0.75)),
    RecommendationRule(None, Outlook.SUSTAINED_MOMENTUM,
                       "Scale paid promotion", "next 2 weeks", (0.65, 0.80)),
    RecommendationRule(Trend.DECLINING, Outlook.COMEBACK_LIKELY,
                       "Plan a remix or anniversary push", "next month", (0.50, 0.70)),
    RecommendationRule(None, Outlook.COMEBACK_LIKELY,
                       "Re-engage the existing audience", "next 2 weeks", (0.55, 0.70)),
    RecommendationRule(Trend.RISING, Outlook.STABLE_NICHE,
                       "Convert new listeners into followers", "this month", (0.60, 0.75)),
    RecommendationRule(None, Outlook.STABLE_NICHE,
                       "Cultivate the core community", "ongoing", (0.60, 0.75)),
    RecommendationRule(None, Outlook.STEADY_DECLINE,
                       "Shift focus to new material", "next quarter", (0.40, 0.60)),
)


def platforms_for(genres: tuple[str, ...] | list[str]) -> tuple[str, ...]:
    """Platforms suggested by *genres*, in genre order, without duplicates."""
    seen: list[str] = []
    for genre in genres:
        for platform in GENRE_PLATFORMS.get(genre.strip().lower(), ()):
            if platform not in seen:
                seen.append(platform)
    if not seen:
        return _DEFAULT_PLATFORMS
    return tuple(seen[:_MAX_PLATFORMS])


def recommend(
    trend: Trend,
    outlook: Outlook,
    item: Item,
    seed: int | None = None,
) -> Recommendation:
    """Look up the creator recommendation for *trend* and *outlook*.

    The confidence is a seeded draw inside the rule's band, so the same
    item always receives the same score.
    """
    rule = next(r for r in RECOMMENDATION_RULES if r.matches(trend, outlook))
    lo, hi = rule.confidence
    rng = SeededRandom(item_seed(item) if seed is None else seed)
    confidence = round(rng.uniform(lo, hi, _CONFIDENCE_DRAW), 2)
    return Recommendation(
        action=rule.action,
        timing=rule.timing,
        confidence=confidence,
        platforms=platforms_for(item.genres),
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def analyze_insights(
    history: TrendSeries,
    predictions: TrendSeries,
    variant: ModelVariant | str,
    item: Item,
    config: InsightConfig | None = None,
) -> Insights:
    """Summarise a trajectory into :class:`Insights`.

    Parameters
    ----------
    history : TrendSeries
        Non-empty historical series; its last point is "current".
    predictions : TrendSeries
        Predicted series (may be empty).
    variant : ModelVariant or str
    item : Item
        Supplies genres for platform suggestions and the confidence seed.
    config : InsightConfig, optional
    """
    config = config or InsightConfig()
    variant = ModelVariant.parse(variant)
    if not history:
        raise EmptySeriesError("insights require a non-empty history")

    peak = history[0]
    for point in list(history) + list(predictions):
        if point.infected > peak.infected:
            peak = point

    metrics = compute_metrics(history, predictions, config)
    trend = classify_trend(metrics.slope, config.trend_threshold)
    outlook = classify_outlook(metrics, variant)
    return Insights(
        peak_date=peak.date,
        peak_value=peak.infected,
        current_trend=trend,
        future_outlook=outlook,
        metrics=metrics,
        recommendation=recommend(trend, outlook, item),
    )

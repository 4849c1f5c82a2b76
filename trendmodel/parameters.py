"""Parameter deriver -- maps an item to SIS/SEIR model parameters."""

from __future__ import annotations

import datetime as dt
import logging
import math
from dataclasses import dataclass
from typing import Callable

from trendmodel.config import ParameterBounds
from trendmodel.errors import ParameterBoundsError
from trendmodel.seeded import SeededRandom, item_seed
from trendmodel.types import Item, ItemClassification, ModelParameters, ModelVariant

logger = logging.getLogger(__name__)

VIRAL_GENRES = frozenset({
    "pop", "alternative", "hip-hop", "rap", "electronic", "dance", "k-pop",
})

# Seed offsets of the individual draws
_BETA_DRAW = 0
_GAMMA_DRAW = 1
_POPULATION_DRAW = 2
_INITIAL_DRAW = 3
_SIGMA_DRAW = 4

_POPULATION_BASE = 5_000_000
_POPULATION_SPAN = 5_000_000
_INITIAL_WEIGHT = 50_000
_INITIAL_JITTER = 50_000


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def item_age(item: Item, today: dt.date | None = None) -> int:
    """Years since release; items without a release year count as this year's."""
    year = (today or dt.date.today()).year
    release = item.release_year if item.release_year is not None else year
    return year - release


def classify_item(
    item: Item,
    variant: ModelVariant | str,
    today: dt.date | None = None,
) -> ItemClassification:
    """Classify *item* along the new / recent / classic / viral axes.

    The recency window is one year tighter for SEIR, whose exposed
    compartment already carries the early-discovery phase.
    """
    variant = ModelVariant.parse(variant)
    age = item_age(item, today)
    recent_limit = 3 if variant == ModelVariant.SIS else 2
    genres = {g.strip().lower() for g in item.genres}
    return ItemClassification(
        age=age,
        popularity=item.popularity / 100.0,
        is_new=age <= 1,
        is_recent=age <= recent_limit,
        is_classic=age > 20,
        is_viral=bool(genres & VIRAL_GENRES),
    )


# ---------------------------------------------------------------------------
# Rate profiles
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RateProfile:
    """Base rate ranges for one classification bucket."""
    name: str
    applies: Callable[[ItemClassification], bool]
    beta_low: float
    beta_span: float
    gamma_low: float
    gamma_span: float
    initial_base: int


# Evaluated in order; first match wins.
RATE_PROFILES: tuple[RateProfile, ...] = (
    # New releases: fast spread, audience barely churns yet
    RateProfile("new", lambda c: c.is_new, 0.45, 0.20, 0.010, 0.010, 20_000),
    RateProfile("viral_recent", lambda c: c.is_recent and c.is_viral,
                0.40, 0.20, 0.080, 0.050, 15_000),
    # Classics: stable, recurring popularity
    RateProfile("classic", lambda c: c.is_classic, 0.15, 0.10, 0.020, 0.030, 5_000),
    RateProfile("viral", lambda c: c.is_viral, 0.25, 0.15, 0.040, 0.040, 10_000),
    RateProfile("default", lambda c: True, 0.10, 0.08, 0.030, 0.020, 5_000),
)


def rate_profile(classification: ItemClassification) -> RateProfile:
    for profile in RATE_PROFILES:
        if profile.applies(classification):
            return profile
    return RATE_PROFILES[-1]


def _clamp(value: float, bounds: tuple[float, float]) -> float:
    lo, hi = bounds
    return max(lo, min(hi, value))


# ---------------------------------------------------------------------------
# Derivation
# ---------------------------------------------------------------------------

def derive_parameters(
    item: Item,
    variant: ModelVariant | str,
    today: dt.date | None = None,
    bounds: ParameterBounds | None = None,
) -> ModelParameters:
    """Derive model parameters for *item* deterministically.

    Parameters
    ----------
    item : Item
        The analysed item; title and artist seed every draw.
    variant : ModelVariant or str
        ``SIS`` or ``SEIR``.
    today : date, optional
        Reference date for the item's age.  Defaults to the current date.
    bounds : ParameterBounds, optional
        Clamp bounds for the rates.

    Returns
    -------
    ModelParameters
        Always within *bounds*; the function never fails for a valid item.
    """
    variant = ModelVariant.parse(variant)
    bounds = bounds or ParameterBounds()
    classification = classify_item(item, variant, today)
    profile = rate_profile(classification)
    rng = SeededRandom(item_seed(item))
    popularity = classification.popularity

    beta = profile.beta_low + rng.draw(_BETA_DRAW) * profile.beta_span
    gamma = profile.gamma_low + rng.draw(_GAMMA_DRAW) * profile.gamma_span
    beta *= 0.5 + popularity * 0.5

    total_population = _POPULATION_BASE + int(
        math.floor(rng.draw(_POPULATION_DRAW) * _POPULATION_SPAN)
    )
    initial_infected = int(math.floor(
        profile.initial_base
        + popularity * _INITIAL_WEIGHT
        + rng.draw(_INITIAL_DRAW) * _INITIAL_JITTER
    ))

    table = bounds.for_variant(variant)
    if variant == ModelVariant.SIS:
        params = ModelParameters(
            beta=_clamp(beta, table["beta"]),
            gamma=_clamp(gamma, table["gamma"]),
            initial_infected=initial_infected,
            total_population=total_population,
        )
    else:
        seir_gamma = gamma * 0.9
        if classification.is_new:
            seir_gamma *= 0.7
        sigma = 0.1 + popularity * 0.15 + rng.draw(_SIGMA_DRAW) * 0.1
        params = ModelParameters(
            beta=_clamp(beta * 1.1, table["beta"]),
            gamma=_clamp(seir_gamma, table["gamma"]),
            sigma=_clamp(sigma, table["sigma"]),
            initial_infected=initial_infected,
            total_population=total_population,
        )

    check_parameters(params, variant, bounds)
    logger.debug(
        "Derived %s parameters for %r (profile=%s): beta=%.4f gamma=%.4f sigma=%s",
        variant.value, item.title, profile.name, params.beta, params.gamma,
        params.sigma,
    )
    return params


def check_parameters(
    params: ModelParameters,
    variant: ModelVariant | str,
    bounds: ParameterBounds | None = None,
) -> None:
    """Raise :class:`ParameterBoundsError` if *params* are malformed."""
    variant = ModelVariant.parse(variant)
    bounds = bounds or ParameterBounds()

    if params.total_population <= 0:
        raise ParameterBoundsError(
            f"total_population must be positive, got {params.total_population}"
        )
    if not 0 < params.initial_infected < params.total_population:
        raise ParameterBoundsError(
            f"initial_infected must be in (0, {params.total_population}), "
            f"got {params.initial_infected}"
        )
    if variant == ModelVariant.SEIR and params.sigma is None:
        raise ParameterBoundsError("SEIR parameters require sigma")
    if variant == ModelVariant.SIS and params.sigma is not None:
        raise ParameterBoundsError("SIS parameters must not carry sigma")

    for name, (lo, hi) in bounds.for_variant(variant).items():
        value = getattr(params, name)
        if not (math.isfinite(value) and lo <= value <= hi):
            raise ParameterBoundsError(
                f"{variant.value} {name}={value} outside [{lo}, {hi}]"
            )

"""Population-conserving construction of projected data points."""

from __future__ import annotations

import datetime as dt
import math

from trendmodel.types import DataPoint


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def sis_point(day: dt.date, infected: float, total: int) -> DataPoint:
    """SIS point with ``S = N - I``."""
    i = int(min(total, max(1, round_half_up(infected))))
    return DataPoint(
        date=day,
        susceptible=max(0, total - i),
        infected=i,
        total_population=total,
    )


def rebalance_seir(
    infected: float,
    exposed: float,
    recovered: float,
    total: int,
    min_susceptible_share: float = 0.10,
) -> tuple[int, int, int, int]:
    """Return ``(S, E, I, R)`` summing exactly to *total*.

    Susceptible is whatever the other compartments leave over.  When that
    would fall below ``min_susceptible_share`` of the population, Recovered
    is lowered first; Exposed only gives way once Recovered is exhausted.
    """
    i = int(min(total, max(1, round_half_up(infected))))
    e = int(max(0, round_half_up(exposed)))
    r = int(max(0, round_half_up(recovered)))

    floor_s = int(total * min_susceptible_share)
    s = total - e - i - r
    if s < floor_s:
        r = max(0, total - e - i - floor_s)
        s = total - e - i - r
    if s < 0:
        e = max(0, total - i)
        r = 0
        s = total - e - i
    return s, e, i, r


def seir_point(
    day: dt.date,
    infected: float,
    exposed: float,
    recovered: float,
    total: int,
    min_susceptible_share: float = 0.10,
) -> DataPoint:
    s, e, i, r = rebalance_seir(infected, exposed, recovered, total, min_susceptible_share)
    return DataPoint(
        date=day,
        susceptible=s,
        exposed=e,
        infected=i,
        recovered=r,
        total_population=total,
    )

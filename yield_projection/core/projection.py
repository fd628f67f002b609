from __future__ import annotations

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from yield_projection.core.rates import Number, accrue, elapsed_seconds, to_decimal
from yield_projection.domain.models import ChartPoint, Regime, as_utc
from yield_projection.settings import DEFAULT_SETTINGS, EngineSettings

logger = logging.getLogger(__name__)


def projection_end(start: datetime, horizon: Optional[datetime], settings: EngineSettings) -> datetime:
    """Clamp ``horizon`` to [start, start + max_projection_days]."""
    if horizon is None:
        return start
    cap = start + timedelta(days=settings.max_projection_days)
    return max(start, min(as_utc(horizon), cap))


def project_balance(
    last_balance: Number,
    cost_basis: Number,
    base_rate: Number,
    emission_rate: Number,
    start: datetime,
    horizon: Optional[datetime] = None,
    settings: Optional[EngineSettings] = None,
) -> List[ChartPoint]:
    """
    Build the forward tail of the chart.

    The first point is the *current* one: it sits at ``start`` and carries
    ``last_balance`` untouched. Every following point is *projected*, one
    step (default one day) apart, up to ``horizon``; a final partial step
    lands exactly on the horizon when it is not step-aligned.

    Compounding conventions (``settings.compounding``):
      - additive:    base + emission are summed and compound together on
                     the running balance.
      - independent: each source compounds on ``last_balance`` as its own
                     sequence and the two interest amounts are added.
    The deposit component stays at ``cost_basis`` for the whole tail.
    """
    settings = settings or DEFAULT_SETTINGS
    last_balance = to_decimal(last_balance)
    cost_basis = to_decimal(cost_basis)
    base_rate = to_decimal(base_rate)
    emission_rate = to_decimal(emission_rate)
    start = as_utc(start)
    end = projection_end(start, horizon, settings)
    tz = settings.tz

    def point(instant: datetime, balance: Decimal, regime: Regime) -> ChartPoint:
        return ChartPoint(
            date=instant.astimezone(tz).date(),
            timestamp=instant,
            balance=balance,
            deposit=cost_basis,
            regime=regime,
        )

    points = [point(start, last_balance, Regime.CURRENT)]

    step = timedelta(days=settings.projection_step_days)
    instants: List[datetime] = []
    cursor = start
    while cursor + step <= end:
        cursor += step
        instants.append(cursor)
    if cursor < end:
        instants.append(end)

    balance = last_balance
    previous = start
    for instant in instants:
        if settings.compounding == "independent":
            elapsed = elapsed_seconds(start, instant)
            balance = (
                last_balance
                + accrue(last_balance, base_rate, elapsed)
                + accrue(last_balance, emission_rate, elapsed)
            )
        else:
            balance = balance + accrue(
                balance, base_rate + emission_rate, elapsed_seconds(previous, instant)
            )
        points.append(point(instant, balance, Regime.PROJECTED))
        previous = instant

    logger.debug(
        "projected %d points from %s to %s (%s compounding)",
        len(points) - 1,
        start.isoformat(),
        end.isoformat(),
        settings.compounding,
    )
    return points

"""Entry point tying the engine stages together for one request."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Union

from yield_projection.core.periods import (
    Period,
    PeriodScope,
    parse_period,
    period_future_days,
    select_period,
)
from yield_projection.core.projection import project_balance
from yield_projection.core.rates import Number, RateHistory, to_decimal
from yield_projection.core.reconcile import (
    detect_position_changes,
    reconcile_observations,
    zero_series,
)
from yield_projection.core.summary import earnings_stats, summarize
from yield_projection.domain.errors import EmptySeriesError
from yield_projection.domain.models import (
    BalanceObservation,
    BalancePayload,
    ObservationKind,
    RateQuote,
    RateSource,
    as_utc,
)
from yield_projection.settings import DEFAULT_SETTINGS, EngineSettings

logger = logging.getLogger(__name__)


def build_balance_payload(
    observations: Iterable[BalanceObservation],
    rates: Iterable[RateQuote],
    period: Union[str, Period],
    *,
    scope: PeriodScope = "wallet",
    now: Optional[datetime] = None,
    current_balance: Optional[Number] = None,
    horizon: Optional[datetime] = None,
    settings: Optional[EngineSettings] = None,
) -> BalancePayload:
    """
    observations + rates + period -> {series, summary}.

    ``current_balance`` is the live on-chain value; when given it is folded
    in as a snapshot at ``now`` and becomes the current point. A wallet
    without any observation gets a zero-balance series instead of an error.
    """
    settings = settings or DEFAULT_SETTINGS
    now = as_utc(now) if now is not None else datetime.now(timezone.utc)
    resolved = parse_period(period, scope)
    history = RateHistory(rates)

    rows = list(observations)
    if current_balance is not None:
        rows.append(
            BalanceObservation(
                timestamp=now, amount=to_decimal(current_balance), kind=ObservationKind.SNAPSHOT
            )
        )

    substituted = False
    try:
        series = reconcile_observations(rows, history, settings)
    except EmptySeriesError:
        logger.info("no balance history; substituting a zero-balance series at %s", now.isoformat())
        series = zero_series(now)
        substituted = True

    if horizon is None and period_future_days(resolved):
        horizon = now + timedelta(days=period_future_days(resolved))

    projection = project_balance(
        series.last_balance,
        series.cost_basis,
        history.current_rate(RateSource.BASE),
        history.current_rate(RateSource.EMISSION),
        start=now,
        horizon=horizon,
        settings=settings,
    )

    return BalancePayload(
        series=select_period(series, resolved, now, projection, settings),
        summary=summarize(series, history),
        earnings=earnings_stats(series),
        position_changes=detect_position_changes(series),
        substituted_empty_series=substituted,
        horizon=projection[-1].timestamp,
    )

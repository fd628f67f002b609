"""Fold raw balance observations into a single reconciled series."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from itertools import groupby
from typing import Iterable, List, Optional, Sequence, Union

from yield_projection.core.rates import (
    ZERO,
    RateHistory,
    elapsed_seconds,
    to_decimal,
)
from yield_projection.domain.errors import EmptySeriesError
from yield_projection.domain.models import (
    BalanceObservation,
    ObservationKind,
    PositionChange,
    RateQuote,
    RateSource,
    ReconciledSeries,
    SeriesPoint,
)
from yield_projection.settings import DEFAULT_SETTINGS, EngineSettings

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def reconcile_observations(
    observations: Iterable[BalanceObservation],
    rates: Union[RateHistory, Iterable[RateQuote]] = (),
    settings: Optional[EngineSettings] = None,
) -> ReconciledSeries:
    """
    Sort observations and fold them into (timestamp, balance, cost basis) points.

    Per timestamp, in insertion order:
      - deposit:    balance += amount, cost basis += amount
      - withdrawal: balance -= amount, cost basis -= amount (both floored at 0)
      - snapshot:   balance = amount; cost basis unchanged, except for the
                    very first observation which opens the position.
    Between timestamps the balance accrues base interest, switching rate at
    every base quote that takes effect inside the interval. Snapshot-to-snapshot gaps wider than the configured
    threshold get synthetic daily points.
    """
    settings = settings or DEFAULT_SETTINGS
    history = rates if isinstance(rates, RateHistory) else RateHistory(rates)

    # sorted() is stable, so equal timestamps keep insertion order
    ordered = sorted(observations, key=lambda obs: obs.timestamp)
    if not ordered:
        raise EmptySeriesError("no balance observations to reconcile")

    points: List[SeriesPoint] = []
    balance = ZERO
    cost_basis = ZERO
    previous_was_snapshot = False

    for timestamp, grouped in groupby(ordered, key=lambda obs: obs.timestamp):
        group = list(grouped)
        all_snapshots = all(obs.kind is ObservationKind.SNAPSHOT for obs in group)

        if points:
            prev = points[-1]
            elapsed = elapsed_seconds(prev.timestamp, timestamp)
            if (
                settings.gap_fill_enabled
                and previous_was_snapshot
                and all_snapshots
                and elapsed > settings.gap_fill_threshold_seconds
            ):
                points.extend(_fill_gap(prev, timestamp, group[-1].amount, history))
            balance = prev.balance + history.accrue_between(
                RateSource.BASE, prev.balance, prev.timestamp, timestamp
            )

        for index, obs in enumerate(group):
            opening = not points and index == 0
            balance, cost_basis = _apply(obs, balance, cost_basis, opening)

        points.append(SeriesPoint(timestamp=timestamp, balance=balance, cost_basis=cost_basis))
        previous_was_snapshot = all_snapshots

    logger.debug(
        "reconciled %d observations into %d points (%d synthetic)",
        len(ordered),
        len(points),
        sum(1 for point in points if point.synthetic),
    )
    return ReconciledSeries(cost_basis=cost_basis, points=tuple(points), last_balance=balance)


def _apply(
    obs: BalanceObservation, balance: Decimal, cost_basis: Decimal, opening: bool
) -> tuple[Decimal, Decimal]:
    if obs.kind is ObservationKind.DEPOSIT:
        return balance + obs.amount, cost_basis + obs.amount

    if obs.kind is ObservationKind.WITHDRAWAL:
        if obs.amount > balance:
            logger.warning(
                "withdrawal of %s at %s exceeds balance %s; clamping to zero",
                obs.amount,
                obs.timestamp.isoformat(),
                balance,
            )
        return max(balance - obs.amount, ZERO), max(cost_basis - obs.amount, ZERO)

    if opening:
        return obs.amount, obs.amount
    return obs.amount, cost_basis


def _fill_gap(
    prev: SeriesPoint,
    end: datetime,
    observed: Decimal,
    history: RateHistory,
) -> List[SeriesPoint]:
    """Daily points strictly between ``prev`` and ``end``.

    The path compounds at the base rate in effect along the way; whatever the
    compounded path misses at ``end`` is spread linearly over the gap so the
    last synthetic point leads straight into the observed value.
    """
    path: List[tuple[datetime, Decimal]] = []
    cursor = prev.timestamp
    value = prev.balance
    while cursor + ONE_DAY < end:
        value += history.accrue_between(RateSource.BASE, value, cursor, cursor + ONE_DAY)
        cursor += ONE_DAY
        path.append((cursor, value))

    accrued_end = value + history.accrue_between(RateSource.BASE, value, cursor, end)
    residual = observed - accrued_end
    span = elapsed_seconds(prev.timestamp, end)

    return [
        SeriesPoint(
            timestamp=instant,
            balance=max(amount + residual * elapsed_seconds(prev.timestamp, instant) / span, ZERO),
            cost_basis=prev.cost_basis,
            synthetic=True,
        )
        for instant, amount in path
    ]


def zero_series(now: datetime) -> ReconciledSeries:
    """Single zero-balance point at ``now``, used when a wallet has no history."""
    return ReconciledSeries(
        cost_basis=ZERO,
        points=(SeriesPoint(timestamp=now, balance=ZERO, cost_basis=ZERO, synthetic=True),),
        last_balance=ZERO,
    )


def detect_position_changes(
    series: ReconciledSeries, threshold: Union[Decimal, float, str] = Decimal("0.01")
) -> List[PositionChange]:
    """Points where principal moved (deposits and withdrawals), for chart markers."""
    threshold = to_decimal(threshold)
    points: Sequence[SeriesPoint] = series.points
    changes: List[PositionChange] = []
    for index in range(1, len(points)):
        prev, curr = points[index - 1], points[index]
        principal_change = curr.cost_basis - prev.cost_basis
        if abs(principal_change) > threshold:
            changes.append(
                PositionChange(
                    index=index,
                    timestamp=curr.timestamp,
                    principal_change=principal_change,
                    balance_change=curr.balance - prev.balance,
                )
            )
    return changes

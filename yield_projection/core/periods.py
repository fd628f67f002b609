"""Period tokens and the windowing of a reconciled series for display."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, List, Literal, Optional, Sequence, Union

from yield_projection.core.rates import elapsed_seconds
from yield_projection.domain.errors import InvalidPeriodError
from yield_projection.domain.models import (
    ChartPoint,
    ReconciledSeries,
    Regime,
    SeriesPoint,
    as_utc,
)
from yield_projection.settings import DEFAULT_SETTINGS, EngineSettings

logger = logging.getLogger(__name__)


class WalletPeriod(str, Enum):
    DAY = "24h"
    WEEK = "7d"
    MONTH = "1mo"


class ExplorePeriod(str, Enum):
    CURRENT = "current"
    WEEK = "7d"
    MONTH = "30d"
    QUARTER = "90d"
    HALF_YEAR = "180d"


Period = Union[WalletPeriod, ExplorePeriod]
PeriodScope = Literal["wallet", "explore"]

_SCOPES: Dict[str, type] = {"wallet": WalletPeriod, "explore": ExplorePeriod}

_LOOKBACK: Dict[str, timedelta] = {
    "current": timedelta(0),
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "1mo": timedelta(days=30),
    "90d": timedelta(days=90),
    "180d": timedelta(days=180),
}


def parse_period(token: Union[str, Period], scope: PeriodScope = "wallet") -> Period:
    """Resolve a caller's period token within that caller's enumeration."""
    enum_cls = _SCOPES.get(scope)
    if enum_cls is None:
        raise InvalidPeriodError(str(token), sorted(_SCOPES))
    value = token.value if isinstance(token, Enum) else token
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidPeriodError(str(value), [member.value for member in enum_cls]) from None


def period_duration(period: Period) -> timedelta:
    return _LOOKBACK[period.value]


def period_future_days(period: Period) -> int:
    # None of the current tokens look forward; kept so callers size the projection here.
    return 0


def select_period(
    series: ReconciledSeries,
    period: Period,
    now: datetime,
    projection: Optional[Sequence[ChartPoint]] = None,
    settings: Optional[EngineSettings] = None,
) -> List[ChartPoint]:
    """
    Slice ``series`` to the requested window and close it with "now".

    1) cutoff = now - lookback; keep history in [cutoff, now).
    2) If no point sits exactly on the cutoff, interpolate one from the
       bracketing points (or carry the last earlier point forward).
    3) Down-sample history to one point per display day, then to at most
       ``max_display_points`` in total.
    4) Append the current point, or the projection when one is given
       (its first point is the current one).
    """
    settings = settings or DEFAULT_SETTINGS
    now = as_utc(now)
    tz = settings.tz
    cutoff = now - period_duration(period)

    window: List[SeriesPoint] = [p for p in series.points if cutoff <= p.timestamp < now]
    anchored = bool(window) and window[0].timestamp == cutoff
    if cutoff < now and not anchored:
        boundary = _boundary_point(series.points, cutoff)
        if boundary is not None:
            window.insert(0, boundary)
            anchored = True

    if projection:
        tail = list(projection)
        if tail[0].regime is not Regime.CURRENT:
            raise ValueError("projection must start with the current point")
    else:
        tail = [
            ChartPoint(
                date=now.astimezone(tz).date(),
                timestamp=now,
                balance=series.last_balance,
                deposit=series.cost_basis,
                regime=Regime.CURRENT,
            )
        ]

    history = [
        ChartPoint(
            date=p.timestamp.astimezone(tz).date(),
            timestamp=p.timestamp,
            balance=p.balance,
            deposit=p.cost_basis,
            regime=Regime.HISTORICAL,
        )
        for p in window
    ]
    history = _one_per_day(history, reserved=tail[0].date, anchored=anchored)
    history = _thin(history, settings.max_display_points - 1)

    logger.debug(
        "period %s: %d historical, %d forward points", period.value, len(history), len(tail)
    )
    return history + tail


def _boundary_point(points: Sequence[SeriesPoint], cutoff: datetime) -> Optional[SeriesPoint]:
    left: Optional[SeriesPoint] = None
    right: Optional[SeriesPoint] = None
    for point in points:
        if point.timestamp < cutoff:
            left = point
        else:
            right = point
            break
    if left is None:
        return None
    if right is None:
        return SeriesPoint(cutoff, left.balance, left.cost_basis, synthetic=True)

    fraction = elapsed_seconds(left.timestamp, cutoff) / elapsed_seconds(left.timestamp, right.timestamp)
    balance = left.balance + (right.balance - left.balance) * fraction
    return SeriesPoint(cutoff, balance, left.cost_basis, synthetic=True)


def _one_per_day(
    points: List[ChartPoint], reserved: date, anchored: bool = False
) -> List[ChartPoint]:
    """Keep the last point of each calendar day; ``reserved`` belongs to the tail.

    When ``anchored``, the first point sits on the cutoff and owns its day.
    """
    head: List[ChartPoint] = []
    if anchored and points and points[0].date != reserved:
        head, points = points[:1], points[1:]
    by_day: Dict[date, ChartPoint] = {}
    for point in points:
        if point.date != reserved and (not head or point.date != head[0].date):
            by_day[point.date] = point
    return head + list(by_day.values())


def _thin(points: List[ChartPoint], limit: int) -> List[ChartPoint]:
    if len(points) <= limit:
        return points
    if limit == 1:
        return points[-1:]
    last = len(points) - 1
    keep = sorted({round(i * last / (limit - 1)) for i in range(limit)})
    return [points[i] for i in keep]

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from yield_projection.core.periods import (
    ExplorePeriod,
    WalletPeriod,
    parse_period,
    period_duration,
    select_period,
)
from yield_projection.core.projection import project_balance
from yield_projection.core.reconcile import reconcile_observations
from yield_projection.domain.errors import InvalidPeriodError
from yield_projection.domain.models import (
    BalanceObservation,
    ObservationKind,
    RateQuote,
    RateSource,
    Regime,
)
from yield_projection.settings import EngineSettings

NOW = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)
NO_SMOOTHING = EngineSettings(gap_fill_enabled=False)


def snapshot(days_ago: float, amount) -> BalanceObservation:
    return BalanceObservation(timestamp=NOW - timedelta(days=days_ago), amount=amount)


def assert_well_formed(points):
    stamps = [p.timestamp for p in points]
    assert stamps == sorted(stamps)
    assert len(set(stamps)) == len(stamps)


def test_wallet_and_explore_tokens_are_scoped():
    assert parse_period("24h", "wallet") is WalletPeriod.DAY
    assert parse_period("1mo") is WalletPeriod.MONTH
    assert parse_period("90d", "explore") is ExplorePeriod.QUARTER
    assert parse_period("current", "explore") is ExplorePeriod.CURRENT

    with pytest.raises(InvalidPeriodError):
        parse_period("1mo", "explore")
    with pytest.raises(InvalidPeriodError):
        parse_period("current", "wallet")
    with pytest.raises(InvalidPeriodError):
        parse_period("7d", "portfolio")


def test_invalid_period_lists_allowed_tokens():
    with pytest.raises(InvalidPeriodError) as excinfo:
        parse_period("1y", "wallet")
    assert excinfo.value.allowed == ["24h", "7d", "1mo"]


def test_period_durations():
    assert period_duration(WalletPeriod.DAY) == timedelta(hours=24)
    assert period_duration(WalletPeriod.MONTH) == timedelta(days=30)
    assert period_duration(ExplorePeriod.CURRENT) == timedelta(0)
    assert period_duration(ExplorePeriod.HALF_YEAR) == timedelta(days=180)


def test_24h_over_stale_history_returns_boundary_and_current():
    """
    The only observation is three days old: the window still shows it, carried to the cutoff.
    """
    series = reconcile_observations([snapshot(3, 500)])
    points = select_period(series, WalletPeriod.DAY, NOW)

    assert len(points) == 2
    boundary, current = points
    assert boundary.regime is Regime.HISTORICAL
    assert boundary.timestamp == NOW - timedelta(hours=24)
    assert boundary.balance == 500
    assert current.regime is Regime.CURRENT
    assert current.timestamp == NOW
    assert current.balance == 500


def test_boundary_is_linearly_interpolated():
    series = reconcile_observations([snapshot(9, 1000), snapshot(5, 1040)], settings=NO_SMOOTHING)
    points = select_period(series, WalletPeriod.WEEK, NOW, settings=NO_SMOOTHING)

    assert [p.date for p in points] == [date(2024, 6, 3), date(2024, 6, 5), date(2024, 6, 10)]
    assert points[0].balance == Decimal(1020)
    assert points[0].deposit == 1000
    assert points[1].balance == 1040
    assert [p.regime for p in points] == [Regime.HISTORICAL, Regime.HISTORICAL, Regime.CURRENT]


def test_existing_point_on_cutoff_is_kept():
    series = reconcile_observations([snapshot(7, 1000), snapshot(2, 1010)], settings=NO_SMOOTHING)
    points = select_period(series, WalletPeriod.WEEK, NOW, settings=NO_SMOOTHING)

    assert points[0].timestamp == NOW - timedelta(days=7)
    assert points[0].balance == 1000
    assert len(points) == 3
    assert_well_formed(points)


def test_window_starting_after_history_has_no_boundary():
    series = reconcile_observations([snapshot(2, 1000)])
    points = select_period(series, WalletPeriod.WEEK, NOW)
    assert points[0].timestamp == NOW - timedelta(days=2)
    assert len(points) == 2


def test_current_period_is_only_the_current_point():
    series = reconcile_observations([snapshot(30, 1000), snapshot(1, 1010)])
    points = select_period(series, ExplorePeriod.CURRENT, NOW)

    assert len(points) == 1
    assert points[0].regime is Regime.CURRENT
    assert points[0].balance == 1010


def test_projection_closes_the_sequence():
    series = reconcile_observations([snapshot(3, 1000)])
    projection = project_balance(
        series.last_balance, series.cost_basis, "0.05", "0.01", NOW, NOW + timedelta(days=3)
    )
    points = select_period(series, WalletPeriod.WEEK, NOW, projection)

    assert [p.regime for p in points[-4:]] == [
        Regime.CURRENT,
        Regime.PROJECTED,
        Regime.PROJECTED,
        Regime.PROJECTED,
    ]
    assert points[-4].balance == series.last_balance
    assert_well_formed(points)


def test_history_is_thinned_for_display():
    rates = [RateQuote(source=RateSource.BASE, annual_rate="0.05", effective_from=NOW - timedelta(days=400))]
    settings = EngineSettings(max_display_points=10)
    series = reconcile_observations([snapshot(200, 1000), snapshot(1, 1030)], rates, settings)
    points = select_period(series, ExplorePeriod.HALF_YEAR, NOW, settings=settings)

    assert len(points) == 10
    assert points[0].timestamp == NOW - timedelta(days=180)
    assert points[-2].balance == 1030
    assert points[-1].regime is Regime.CURRENT
    assert_well_formed(points)


def test_intraday_points_collapse_to_one_per_day():
    series = reconcile_observations(
        [
            BalanceObservation(timestamp=NOW - timedelta(days=3, hours=2), amount=100, kind=ObservationKind.DEPOSIT),
            BalanceObservation(timestamp=NOW - timedelta(days=3, hours=1), amount=50, kind=ObservationKind.DEPOSIT),
            BalanceObservation(timestamp=NOW - timedelta(hours=1), amount=25, kind=ObservationKind.DEPOSIT),
        ]
    )
    points = select_period(series, WalletPeriod.WEEK, NOW)

    assert len(points) == 2
    assert points[0].balance == 150
    assert points[0].deposit == 150
    assert points[1].regime is Regime.CURRENT
    assert points[1].balance == 175


def test_interpolated_boundary_owns_its_day():
    """
    A later observation on the cutoff's day must not push the boundary out of the window.
    """
    series = reconcile_observations(
        [snapshot(9, 1000), snapshot(7 - 0.25, 1030), snapshot(2, 1050)], settings=NO_SMOOTHING
    )
    points = select_period(series, WalletPeriod.WEEK, NOW, settings=NO_SMOOTHING)

    assert points[0].timestamp == NOW - timedelta(days=7)
    assert points[0].date == date(2024, 6, 3)
    assert len({p.date for p in points}) == len(points)
    assert [p.balance for p in points[1:]] == [1050, 1050]
    assert_well_formed(points)

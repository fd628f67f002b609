from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from math import isclose

from yield_projection.core.projection import project_balance
from yield_projection.core.reconcile import reconcile_observations
from yield_projection.domain.models import BalanceObservation, ObservationKind, Regime
from yield_projection.settings import EngineSettings

DAY0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_first_point_is_current_and_exact():
    series = reconcile_observations(
        [BalanceObservation(timestamp=DAY0, amount="1234.5678901", kind=ObservationKind.DEPOSIT)]
    )
    points = project_balance(
        series.last_balance, series.cost_basis, "0.1", "0.02", DAY0, DAY0 + timedelta(days=3)
    )

    assert points[0].regime is Regime.CURRENT
    assert points[0].balance == series.last_balance
    assert all(p.regime is Regime.PROJECTED for p in points[1:])


def test_one_year_projection_matches_daily_compounding():
    """
    1000 deposited at 10% base + 2% emission, projected one year ahead.
    """
    series = reconcile_observations(
        [BalanceObservation(timestamp=DAY0, amount=1000, kind=ObservationKind.DEPOSIT)]
    )
    points = project_balance(
        series.last_balance, series.cost_basis, "0.10", "0.02", DAY0, DAY0 + timedelta(days=365)
    )

    assert len(points) == 366
    assert points[-1].timestamp == DAY0 + timedelta(days=365)
    expected = 1000 * (1 + 0.12 / 365) ** 365
    assert isclose(float(points[-1].balance), expected, abs_tol=0.01)
    assert isclose(float(points[-1].balance), 1127.47, abs_tol=0.01)
    assert points[-1].deposit == 1000
    assert isclose(float(points[-1].yield_amount), 127.47, abs_tol=0.01)


def test_projection_increases_strictly_with_positive_rate():
    points = project_balance(500, 500, "0.04", "0.01", DAY0, DAY0 + timedelta(days=60))
    balances = [p.balance for p in points]
    assert all(later > earlier for earlier, later in zip(balances, balances[1:]))


def test_projection_is_flat_with_zero_rate():
    points = project_balance(500, 500, 0, 0, DAY0, DAY0 + timedelta(days=10))
    assert all(p.balance == 500 for p in points)


def test_horizon_is_capped_at_one_year():
    points = project_balance(100, 100, "0.05", 0, DAY0, DAY0 + timedelta(days=900))
    assert points[-1].timestamp == DAY0 + timedelta(days=365)
    assert len(points) == 366


def test_no_horizon_yields_only_current_point():
    points = project_balance(100, 100, "0.05", "0.01", DAY0)
    assert len(points) == 1
    assert points[0].regime is Regime.CURRENT


def test_partial_last_step_lands_on_horizon():
    points = project_balance(100, 100, "0.05", 0, DAY0, DAY0 + timedelta(hours=36))
    assert [p.timestamp for p in points] == [
        DAY0,
        DAY0 + timedelta(days=1),
        DAY0 + timedelta(hours=36),
    ]


def test_independent_compounding_is_below_additive():
    horizon = DAY0 + timedelta(days=365)
    additive = project_balance(1000, 1000, "0.10", "0.02", DAY0, horizon)
    independent = project_balance(
        1000, 1000, "0.10", "0.02", DAY0, horizon, EngineSettings(compounding="independent")
    )

    assert independent[0].balance == additive[0].balance == Decimal(1000)
    assert 1000 < independent[-1].balance < additive[-1].balance


def test_independent_matches_additive_for_a_single_source():
    horizon = DAY0 + timedelta(days=30)
    additive = project_balance(1000, 1000, "0.07", 0, DAY0, horizon)
    independent = project_balance(
        1000, 1000, "0.07", 0, DAY0, horizon, EngineSettings(compounding="independent")
    )
    for a, b in zip(additive, independent):
        assert isclose(float(a.balance), float(b.balance), rel_tol=1e-12)


def test_weekly_step_setting():
    points = project_balance(
        100, 100, "0.05", 0, DAY0, DAY0 + timedelta(days=28), EngineSettings(projection_step_days=7)
    )
    assert len(points) == 5


def test_defaults_ignore_process_environment(monkeypatch):
    baseline = project_balance(1000, 1000, "0.10", "0.02", DAY0, DAY0 + timedelta(days=365))

    monkeypatch.setenv("YIELD_ENGINE_COMPOUNDING", "independent")
    monkeypatch.setenv("YIELD_ENGINE_MAX_PROJECTION_DAYS", "30")
    again = project_balance(1000, 1000, "0.10", "0.02", DAY0, DAY0 + timedelta(days=365))

    assert again == baseline
    assert len(again) == 366

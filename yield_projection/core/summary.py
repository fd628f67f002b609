from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Union

from yield_projection.core.formatting import format_usd_amount
from yield_projection.core.rates import (
    DAYS_PER_YEAR,
    SECONDS_PER_DAY,
    SECONDS_PER_YEAR,
    ZERO,
    RateHistory,
    accrue,
    elapsed_seconds,
)
from yield_projection.domain.models import (
    BalanceSummary,
    EarningsStats,
    RateQuote,
    RateSource,
    ReconciledSeries,
)

HUNDRED = Decimal(100)


def summarize(
    series: ReconciledSeries,
    rates: Union[RateHistory, Iterable[RateQuote]],
) -> BalanceSummary:
    """
    Scalar figures for the balance card.

    interest_earned may be negative (principal loss); growth is reported as
    a percentage of cost basis and is 0 when there is no cost basis.
    The annual estimate compounds the current balance for a year at the
    latest base + emission rates.
    """
    history = rates if isinstance(rates, RateHistory) else RateHistory(rates)
    base_rate = history.current_rate(RateSource.BASE)
    emission_rate = history.current_rate(RateSource.EMISSION)

    balance = series.last_balance
    interest_earned = balance - series.cost_basis
    growth = interest_earned / series.cost_basis * HUNDRED if series.cost_basis > ZERO else ZERO

    return BalanceSummary(
        display_balance=format_usd_amount(balance),
        raw_balance=balance,
        cost_basis=series.cost_basis,
        base_apy_percentage=base_rate * HUNDRED,
        emission_apy_percentage=emission_rate * HUNDRED,
        interest_earned=interest_earned,
        annual_yield_estimate=accrue(balance, base_rate + emission_rate, SECONDS_PER_YEAR),
        base_annual_yield=accrue(balance, base_rate, SECONDS_PER_YEAR),
        emission_annual_yield=accrue(balance, emission_rate, SECONDS_PER_YEAR),
        growth_percentage=growth,
    )


def earnings_stats(series: ReconciledSeries) -> EarningsStats:
    """Realized performance over the observed history.

    The realized APY annualizes interest over the average observed position;
    it is simple (not compounded) and zero for histories shorter than a day.
    """
    points = series.points
    if len(points) < 2:
        return EarningsStats()

    days = elapsed_seconds(points[0].timestamp, points[-1].timestamp) / SECONDS_PER_DAY
    if days < 1:
        return EarningsStats()

    total_interest = series.last_balance - series.cost_basis
    average_position = sum((point.balance for point in points), ZERO) / len(points)
    if average_position > ZERO:
        apy = total_interest / average_position * (DAYS_PER_YEAR / days) * HUNDRED
    else:
        apy = ZERO

    return EarningsStats(
        total_interest=total_interest,
        day_count=int(days),
        avg_daily_interest=total_interest / days,
        average_position=average_position,
        realized_apy_percentage=apy,
        projected_annual=series.last_balance * apy / HUNDRED,
    )

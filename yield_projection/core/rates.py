"""Daily-compounding rate model and rate-history lookup."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from yield_projection.domain.errors import InvalidRateError
from yield_projection.domain.models import ApyPoint, RateQuote, RateSource

Number = Union[Decimal, int, float, str]

SECONDS_PER_DAY = Decimal(86400)
DAYS_PER_YEAR = Decimal(365)
SECONDS_PER_YEAR = SECONDS_PER_DAY * DAYS_PER_YEAR

ZERO = Decimal(0)
ONE = Decimal(1)


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps floats at their shortest repr instead of the binary expansion
    return Decimal(str(value))


def elapsed_seconds(start: datetime, end: datetime) -> Decimal:
    """Exact seconds between two instants, to the microsecond."""
    return Decimal((end - start) // timedelta(microseconds=1)) / Decimal(1_000_000)


def _check_rate(annual_rate: Decimal) -> None:
    if annual_rate < -ONE:
        raise InvalidRateError(f"annual rate {annual_rate} is below -100%")


def accrue(principal: Number, annual_rate: Number, elapsed_seconds: Number) -> Decimal:
    """Interest earned on ``principal`` over ``elapsed_seconds``.

    interest = principal * ((1 + rate/365) ** (elapsed/86400) - 1)

    Zero rate or a non-positive principal earns nothing.
    """
    principal = to_decimal(principal)
    annual_rate = to_decimal(annual_rate)
    elapsed = to_decimal(elapsed_seconds)

    _check_rate(annual_rate)
    if elapsed < ZERO:
        raise InvalidRateError(f"elapsed time {elapsed}s is negative")

    if principal <= ZERO or annual_rate == ZERO or elapsed == ZERO:
        return ZERO

    growth = (ONE + annual_rate / DAYS_PER_YEAR) ** (elapsed / SECONDS_PER_DAY)
    return principal * (growth - ONE)


def inverse_duration(principal: Number, annual_rate: Number, target_interest: Number) -> Decimal:
    """Seconds needed for ``principal`` to accrue ``target_interest``."""
    principal = to_decimal(principal)
    annual_rate = to_decimal(annual_rate)
    target = to_decimal(target_interest)

    _check_rate(annual_rate)
    if target == ZERO:
        return ZERO
    if principal <= ZERO or annual_rate == ZERO:
        raise InvalidRateError("target interest is unreachable without principal and rate")

    ratio = ONE + target / principal
    if ratio <= ZERO:
        raise InvalidRateError(f"cannot lose more than the principal ({target} on {principal})")

    seconds = SECONDS_PER_DAY * ratio.ln() / (ONE + annual_rate / DAYS_PER_YEAR).ln()
    if seconds < ZERO:
        raise InvalidRateError(
            f"interest of {target} never accrues at an annual rate of {annual_rate}"
        )
    return seconds


class RateHistory:
    """Per-source quote history, ordered by ``effective_from``."""

    def __init__(self, quotes: Iterable[RateQuote] = ()):
        by_source: Dict[RateSource, List[RateQuote]] = {source: [] for source in RateSource}
        for quote in quotes:
            _check_rate(quote.annual_rate)
            by_source[quote.source].append(quote)
        self._quotes: Dict[RateSource, Tuple[RateQuote, ...]] = {
            source: tuple(sorted(rows, key=lambda q: q.effective_from))
            for source, rows in by_source.items()
        }

    def quotes(self, source: RateSource) -> Tuple[RateQuote, ...]:
        return self._quotes[source]

    def rate_at(self, source: RateSource, instant: datetime) -> Decimal:
        """Rate in effect at ``instant``.

        Before the first quote the earliest known rate applies; a source with
        no quotes yields zero.
        """
        quotes = self._quotes[source]
        if not quotes:
            return ZERO
        active = quotes[0]
        for quote in quotes:
            if quote.effective_from > instant:
                break
            active = quote
        return active.annual_rate

    def accrue_between(
        self, source: RateSource, principal: Number, start: datetime, end: datetime
    ) -> Decimal:
        """Interest on ``principal`` from ``start`` to ``end``, splitting the
        interval at every quote change inside it."""
        principal = to_decimal(principal)
        value = principal
        cursor = start
        for quote in self._quotes[source]:
            if quote.effective_from <= cursor:
                continue
            if quote.effective_from >= end:
                break
            value += accrue(
                value, self.rate_at(source, cursor), elapsed_seconds(cursor, quote.effective_from)
            )
            cursor = quote.effective_from
        value += accrue(value, self.rate_at(source, cursor), elapsed_seconds(cursor, end))
        return value - principal

    def current_rate(self, source: RateSource) -> Decimal:
        quotes = self._quotes[source]
        return quotes[-1].annual_rate if quotes else ZERO

    def total_rate_at(self, instant: datetime) -> Decimal:
        return sum((self.rate_at(source, instant) for source in RateSource), ZERO)

    def current_total_rate(self) -> Decimal:
        return sum((self.current_rate(source) for source in RateSource), ZERO)


def apy_from_index_rates(samples: Sequence[Tuple[date, Optional[Number]]]) -> List[ApyPoint]:
    """Daily APY (percent) from a pool's supply index history.

    Days without an index (forward-filled rows) share the growth observed at
    the next real sample, so a multi-day jump is spread over the whole gap
    rather than attributed to a single day.
    """
    rows = sorted(
        ((day, to_decimal(index)) for day, index in samples if index is not None),
        key=lambda row: row[0],
    )
    rows = [(day, index) for day, index in rows if index > ZERO]

    points: List[ApyPoint] = []
    for (prev_day, prev_index), (day, index) in zip(rows, rows[1:]):
        days = (day - prev_day).days
        if days <= 0:
            continue
        apy = ((index / prev_index) ** (DAYS_PER_YEAR / Decimal(days)) - ONE) * 100
        apy = max(apy, ZERO)  # shrinking index reads as 0
        for offset in range(1, days + 1):
            points.append(ApyPoint(date=prev_day + timedelta(days=offset), apy=apy))
    return points

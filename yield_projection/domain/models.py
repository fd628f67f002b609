"""Entities passed between the engine stages.

Everything here is immutable and rebuilt on every call; nothing is cached
between requests.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ObservationKind(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    SNAPSHOT = "snapshot"


class RateSource(str, Enum):
    BASE = "base"
    EMISSION = "emission"


class Regime(str, Enum):
    HISTORICAL = "historical"
    CURRENT = "current"
    PROJECTED = "projected"


class BalanceObservation(BaseModel):
    """One recorded balance event.

    For deposits and withdrawals ``amount`` is the principal moved; for
    snapshots it is the absolute balance observed on chain.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    amount: Decimal = Field(ge=0)
    kind: ObservationKind = ObservationKind.SNAPSHOT

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class RateQuote(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: RateSource
    annual_rate: Decimal
    effective_from: datetime

    @field_validator("effective_from")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


@dataclass(frozen=True)
class SeriesPoint:
    timestamp: datetime
    balance: Decimal
    cost_basis: Decimal
    # True for points synthesized by gap smoothing rather than observed.
    synthetic: bool = False


@dataclass(frozen=True)
class ReconciledSeries:
    cost_basis: Decimal
    points: Tuple[SeriesPoint, ...]
    last_balance: Decimal

    @property
    def first_timestamp(self) -> datetime:
        return self.points[0].timestamp

    @property
    def last_timestamp(self) -> datetime:
        return self.points[-1].timestamp


class ChartPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: dt.date
    timestamp: datetime
    balance: Decimal
    deposit: Decimal
    regime: Regime

    @property
    def yield_amount(self) -> Decimal:
        return self.balance - self.deposit


class BalanceSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    display_balance: str
    raw_balance: Decimal
    cost_basis: Decimal
    base_apy_percentage: Decimal
    emission_apy_percentage: Decimal
    interest_earned: Decimal
    annual_yield_estimate: Decimal
    base_annual_yield: Decimal
    emission_annual_yield: Decimal
    growth_percentage: Decimal


class EarningsStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_interest: Decimal = Decimal(0)
    day_count: int = 0
    avg_daily_interest: Decimal = Decimal(0)
    average_position: Decimal = Decimal(0)
    realized_apy_percentage: Decimal = Decimal(0)
    projected_annual: Decimal = Decimal(0)


class PositionChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    timestamp: datetime
    principal_change: Decimal
    balance_change: Decimal


class ApyPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: dt.date
    apy: Decimal


class BalancePayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    series: List[ChartPoint]
    summary: BalanceSummary
    earnings: EarningsStats
    position_changes: List[PositionChange] = Field(default_factory=list)
    substituted_empty_series: bool = False
    horizon: Optional[datetime] = None

"""JSON contracts returned by the projection endpoints."""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field

from yield_projection.core.formatting import format_percent_with_sign, format_usd_amount
from yield_projection.domain.models import (
    ApyPoint,
    BalancePayload,
    BalanceSummary,
    ChartPoint,
    EarningsStats,
    PositionChange,
)


class ChartPointOut(BaseModel):
    """Single chart row; ``yield`` is balance minus deposit."""

    date: str
    balance: float
    deposit: float
    yield_: float = Field(serialization_alias="yield")
    type: Literal["historical", "current", "projected"]

    @classmethod
    def from_point(cls, point: ChartPoint) -> "ChartPointOut":
        return cls(
            date=point.date.isoformat(),
            balance=float(point.balance),
            deposit=float(point.deposit),
            yield_=float(point.yield_amount),
            type=point.regime.value,
        )


class SummaryOut(BaseModel):
    """Scalar figures for the balance card, plus ready-made display strings."""

    displayBalance: str
    rawBalance: float
    costBasis: float
    baseApyPercentage: float
    emissionApyPercentage: float
    interestEarned: float
    interestEarnedDisplay: str
    annualYieldEstimate: float
    annualYieldDisplay: str
    baseAnnualYield: float
    emissionAnnualYield: float
    growthPercentage: float
    growthDisplay: str

    @classmethod
    def from_summary(cls, summary: BalanceSummary) -> "SummaryOut":
        return cls(
            displayBalance=summary.display_balance,
            rawBalance=float(summary.raw_balance),
            costBasis=float(summary.cost_basis),
            baseApyPercentage=float(summary.base_apy_percentage),
            emissionApyPercentage=float(summary.emission_apy_percentage),
            interestEarned=float(summary.interest_earned),
            interestEarnedDisplay=format_usd_amount(summary.interest_earned),
            annualYieldEstimate=float(summary.annual_yield_estimate),
            annualYieldDisplay=format_usd_amount(summary.annual_yield_estimate),
            baseAnnualYield=float(summary.base_annual_yield),
            emissionAnnualYield=float(summary.emission_annual_yield),
            growthPercentage=float(summary.growth_percentage),
            growthDisplay=format_percent_with_sign(summary.growth_percentage),
        )


class EarningsOut(BaseModel):
    totalInterest: float
    dayCount: int
    avgDailyInterest: float
    averagePosition: float
    realizedApyPercentage: float
    projectedAnnual: float

    @classmethod
    def from_stats(cls, stats: EarningsStats) -> "EarningsOut":
        return cls(
            totalInterest=float(stats.total_interest),
            dayCount=stats.day_count,
            avgDailyInterest=float(stats.avg_daily_interest),
            averagePosition=float(stats.average_position),
            realizedApyPercentage=float(stats.realized_apy_percentage),
            projectedAnnual=float(stats.projected_annual),
        )


class PositionChangeOut(BaseModel):
    timestamp: str
    principalChange: float
    balanceChange: float

    @classmethod
    def from_change(cls, change: PositionChange) -> "PositionChangeOut":
        return cls(
            timestamp=change.timestamp.isoformat(),
            principalChange=float(change.principal_change),
            balanceChange=float(change.balance_change),
        )


class BalanceProjectionResponse(BaseModel):
    series: List[ChartPointOut]
    summary: SummaryOut
    earnings: EarningsOut
    positionChanges: List[PositionChangeOut]
    emptyHistory: bool

    @classmethod
    def from_payload(cls, payload: BalancePayload) -> "BalanceProjectionResponse":
        return cls(
            series=[ChartPointOut.from_point(point) for point in payload.series],
            summary=SummaryOut.from_summary(payload.summary),
            earnings=EarningsOut.from_stats(payload.earnings),
            positionChanges=[PositionChangeOut.from_change(c) for c in payload.position_changes],
            emptyHistory=payload.substituted_empty_series,
        )


class ApyPointOut(BaseModel):
    date: str
    apy: float


class ApyHistoryResponse(BaseModel):
    """Daily APY (percent) derived from the supply index history."""

    count: int
    history: List[ApyPointOut]

    @classmethod
    def from_points(cls, points: List[ApyPoint]) -> "ApyHistoryResponse":
        return cls(
            count=len(points),
            history=[ApyPointOut(date=p.date.isoformat(), apy=float(p.apy)) for p in points],
        )

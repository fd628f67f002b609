from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from yield_projection.domain.models import (
    BalanceObservation,
    ObservationKind,
    RateQuote,
    RateSource,
)


class ObservationRow(BaseModel):
    model_config = ConfigDict(extra="forbid")

    timestamp: dt.datetime
    amount: Decimal = Field(ge=0)
    kind: Literal["deposit", "withdrawal", "snapshot"] = "snapshot"

    def to_observation(self) -> BalanceObservation:
        return BalanceObservation(
            timestamp=self.timestamp, amount=self.amount, kind=ObservationKind(self.kind)
        )


class RateRow(BaseModel):
    model_config = ConfigDict(extra="forbid")

    source: Literal["base", "emission"]
    annualRate: Decimal = Field(ge=-1, le=100)
    effectiveFrom: dt.datetime

    def to_quote(self) -> RateQuote:
        return RateQuote(
            source=RateSource(self.source),
            annual_rate=self.annualRate,
            effective_from=self.effectiveFrom,
        )


class BalanceProjectionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    observations: List[ObservationRow] = Field(default_factory=list)
    rates: List[RateRow] = Field(default_factory=list)
    period: str
    scope: Literal["wallet", "explore"] = "wallet"

    now: Optional[dt.datetime] = None
    currentBalance: Optional[Decimal] = Field(default=None, ge=0)
    horizonDays: Optional[int] = Field(default=None, ge=0, le=365)

    @model_validator(mode="after")
    def ensure_horizon_has_anchor(self) -> "BalanceProjectionRequest":
        if self.horizonDays and self.now is None:
            # horizon is resolved against the server clock at call time
            self.now = dt.datetime.now(dt.timezone.utc)
        return self

    def horizon(self) -> Optional[dt.datetime]:
        if self.horizonDays is None or self.now is None:
            return None
        return self.now + dt.timedelta(days=self.horizonDays)


class IndexSampleRow(BaseModel):
    model_config = ConfigDict(extra="forbid")

    date: dt.date
    index: Optional[Decimal] = None


class ApyHistoryRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    samples: List[IndexSampleRow] = Field(default_factory=list)

    def as_pairs(self) -> List[Tuple[dt.date, Optional[Decimal]]]:
        return [(row.date, row.index) for row in self.samples]

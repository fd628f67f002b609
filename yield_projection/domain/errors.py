from __future__ import annotations


class YieldEngineError(ValueError):
    """Base class for errors raised by the projection engine."""


class InvalidRateError(YieldEngineError):
    """Rate below -100% per period, negative elapsed time, or an unreachable target."""


class EmptySeriesError(YieldEngineError):
    """No balance observations were supplied."""


class InvalidPeriodError(YieldEngineError):
    def __init__(self, token: str, allowed: list[str]):
        super().__init__(f"unknown period {token!r}; expected one of {', '.join(allowed)}")
        self.token = token
        self.allowed = allowed

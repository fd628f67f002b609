"""Balance and yield projection engine for lending-pool positions."""

from yield_projection.core.engine import build_balance_payload

__all__ = ["build_balance_payload"]

"""HTTP routes for the Flask API."""

import logging
from http import HTTPStatus
from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from yield_projection.core.engine import build_balance_payload
from yield_projection.core.rates import apy_from_index_rates
from yield_projection.domain.errors import InvalidPeriodError, InvalidRateError
from yield_projection.models import ApyHistoryRequest, BalanceProjectionRequest
from yield_projection.schemas.projection import ApyHistoryResponse, BalanceProjectionResponse

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)


@api_bp.errorhandler(ValidationError)
def _handle_validation_error(exc: ValidationError):
    """Convert Pydantic validation errors into JSON responses."""
    detail = exc.errors(include_url=False, include_context=False)
    return jsonify({"detail": detail}), HTTPStatus.UNPROCESSABLE_ENTITY


@api_bp.errorhandler(InvalidPeriodError)
def _handle_invalid_period(exc: InvalidPeriodError):
    return jsonify({"error": str(exc), "allowed": exc.allowed}), HTTPStatus.BAD_REQUEST


@api_bp.errorhandler(InvalidRateError)
def _handle_invalid_rate(exc: InvalidRateError):
    logger.warning("rejected rate input: %s", exc)
    return jsonify({"error": str(exc)}), HTTPStatus.UNPROCESSABLE_ENTITY


@api_bp.post("/projection/balance")
def balance_projection() -> Any:
    """Historical, current and projected balance series with summary figures."""
    raw_payload: Dict[str, Any] = request.get_json(force=True, silent=False)
    payload = BalanceProjectionRequest.model_validate(raw_payload)

    result = build_balance_payload(
        [row.to_observation() for row in payload.observations],
        [row.to_quote() for row in payload.rates],
        payload.period,
        scope=payload.scope,
        now=payload.now,
        current_balance=payload.currentBalance,
        horizon=payload.horizon(),
        settings=current_app.config["ENGINE_SETTINGS"],
    )
    response = BalanceProjectionResponse.from_payload(result)
    return jsonify(response.model_dump(by_alias=True))


@api_bp.post("/rates/apy-history")
def apy_history() -> Any:
    """Daily APY derived from a pool's supply index samples."""
    raw_payload: Dict[str, Any] = request.get_json(force=True, silent=False)
    payload = ApyHistoryRequest.model_validate(raw_payload)
    response = ApyHistoryResponse.from_points(apy_from_index_rates(payload.as_pairs()))
    return jsonify(response.model_dump())

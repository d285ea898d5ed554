"""Invocation entry point: ``{eventId, profileId?}`` in, JSON body out.

An absent ``profileId`` recomputes the whole event; a present one recomputes
only that profile against everyone else.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from src.networking.engine import SimilarityEngine
from src.networking.errors import InvalidRequest, SimilarityError
from src.networking.models import (
    CalculateSimilarityRequest,
    CalculateSimilarityResponse,
    ErrorResponse,
    RecomputeResult,
)

logger = logging.getLogger(__name__)


def parse_request(payload: Any) -> CalculateSimilarityRequest:
    if not isinstance(payload, dict):
        raise InvalidRequest("Request body must be a JSON object")
    try:
        return CalculateSimilarityRequest.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        msg = first.get("msg", "Invalid request")
        if first.get("type") == "missing":
            msg = f"{'.'.join(str(p) for p in first['loc'])} is required"
        raise InvalidRequest(msg.removeprefix("Value error, ")) from exc


def calculate_similarity(
    engine: SimilarityEngine, request: CalculateSimilarityRequest,
) -> CalculateSimilarityResponse:
    if request.profile_id:
        result = engine.recompute_for_profile(request.event_id, request.profile_id)
    else:
        result = engine.recompute_for_event(request.event_id)
    return CalculateSimilarityResponse(
        success=True,
        scores_calculated=result.scores_calculated,
        message=_summary(result),
    )


def _summary(result: RecomputeResult) -> str:
    if result.nothing_to_compute:
        return "No similar profiles yet"
    return (
        f"Successfully calculated and stored {result.scores_calculated} "
        f"similarity scores"
    )


def handle_calculate_similarity(
    engine: SimilarityEngine, payload: Any,
) -> tuple[int, dict[str, Any]]:
    """Run a recomputation and map the outcome to ``(status, body)``."""
    try:
        request = parse_request(payload)
        response = calculate_similarity(engine, request)
    except SimilarityError as exc:
        logger.error("Error in calculate-similarity: %s", exc.message)
        body = ErrorResponse(error=exc.message, code=exc.code)
        return exc.status_code, body.model_dump(exclude_none=True)
    except Exception as exc:
        logger.exception("Unexpected error in calculate-similarity")
        body = ErrorResponse(error=str(exc) or "Unknown error")
        return 500, body.model_dump(exclude_none=True)
    return 200, response.model_dump(by_alias=True)

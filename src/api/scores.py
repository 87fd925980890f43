"""Building match score endpoints.

The calculator endpoint keeps the path and response shapes the web client
already calls as a serverless function, including its own permissive CORS
headers on every response.  The remaining endpoints read stored scores back
and manage the per-building shortlist flag kept on the same rows.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from src.config import get_settings
from src.db.base import ScoreRepository
from src.db.factory import get_score_repository
from src.exceptions import CORS_HEADERS, NotFoundError, ScoringServiceError, error_response
from src.schemas.scores import (
    BuildingScoreResponse,
    CalculateScoresRequest,
    CalculateScoresResponse,
    ErrorResponse,
    NothingToScoreResponse,
    ShortlistRequest,
    StoredScoreResponse,
)
from src.services.calculator import MatchScoreCalculator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["scores"])

CALCULATE_PATH = "/functions/v1/calculate-building-scores"


def get_calculator(
    repo: Annotated[ScoreRepository, Depends(get_score_repository)],
) -> MatchScoreCalculator:
    """Build a calculator over the request's repository using the configured limits."""
    settings = get_settings()
    return MatchScoreCalculator(
        repo,
        rate_limit_seconds=settings.RATE_LIMIT_SECONDS,
        default_radius_km=settings.DEFAULT_SEARCH_RADIUS_KM,
    )


# ---------------------------------------------------------------------------
# Calculator
# ---------------------------------------------------------------------------


@router.options(CALCULATE_PATH, include_in_schema=False)
async def calculate_building_scores_preflight() -> Response:
    """Answer CORS preflight requests with no body."""
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post(
    CALCULATE_PATH,
    response_model=CalculateScoresResponse | NothingToScoreResponse,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def calculate_building_scores(
    request: CalculateScoresRequest,
    calculator: Annotated[MatchScoreCalculator, Depends(get_calculator)],
) -> JSONResponse:
    """Compute, store and return match scores for a user's buildings."""
    try:
        result = await calculator.calculate(request.user_id, request.building_ids)
    except ScoringServiceError:
        raise
    except Exception as exc:
        logger.exception("Unexpected error calculating scores for user %r", request.user_id)
        return error_response(500, str(exc) or exc.__class__.__name__)

    scores = [BuildingScoreResponse.model_validate(r, from_attributes=True) for r in result.scores]
    if result.message is not None:
        body: CalculateScoresResponse | NothingToScoreResponse = NothingToScoreResponse(
            message=result.message, scores=scores
        )
    else:
        body = CalculateScoresResponse(scores=scores)
    return JSONResponse(content=body.model_dump(mode="json"), headers=CORS_HEADERS)


# ---------------------------------------------------------------------------
# Stored scores and shortlist
# ---------------------------------------------------------------------------


@router.get("/api/users/{user_id}/building-scores", response_model=list[StoredScoreResponse])
async def list_building_scores(
    user_id: str,
    repo: Annotated[ScoreRepository, Depends(get_score_repository)],
) -> list[StoredScoreResponse]:
    """Return every stored score row for a user, best match first."""
    rows = await repo.list_scores_for_user(user_id)
    return [StoredScoreResponse.model_validate(r, from_attributes=True) for r in rows]


@router.get(
    "/api/users/{user_id}/building-scores/{building_id}",
    response_model=StoredScoreResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_building_score(
    user_id: str,
    building_id: str,
    repo: Annotated[ScoreRepository, Depends(get_score_repository)],
) -> StoredScoreResponse:
    """Return the stored score row for one building."""
    row = await repo.get_score(user_id, building_id)
    if row is None:
        raise NotFoundError(f"No score found for building {building_id!r}")
    return StoredScoreResponse.model_validate(row, from_attributes=True)


@router.put(
    "/api/users/{user_id}/building-scores/{building_id}/shortlist",
    response_model=StoredScoreResponse,
    responses={404: {"model": ErrorResponse}},
)
async def set_building_shortlist(
    user_id: str,
    building_id: str,
    request: ShortlistRequest,
    repo: Annotated[ScoreRepository, Depends(get_score_repository)],
) -> StoredScoreResponse:
    """Add a building to, or remove it from, the user's shortlist."""
    building = await repo.get_building_by_id(building_id)
    if building is None:
        raise NotFoundError(f"Building not found: {building_id!r}")

    row = await repo.set_shortlist(user_id, building_id, request.shortlisted, request.notes)
    logger.info("User %r %s building %r", user_id, "shortlisted" if request.shortlisted else "unshortlisted", building_id)
    return StoredScoreResponse.model_validate(row, from_attributes=True)

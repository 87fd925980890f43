"""Pydantic schemas for the building score endpoints."""

from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict


class CalculateScoresRequest(BaseModel):
    """Body of a calculator invocation.

    ``user_id`` is optional at the schema level so that its absence is
    reported as a 400 by the calculator rather than as a schema error.
    """

    user_id: str | None = None
    building_ids: list[str] | None = None


class BuildingScoreResponse(BaseModel):
    """A freshly computed score row."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str
    building_id: str
    location_match_score: float
    budget_match_score: float
    lifestyle_match_score: float
    overall_match_score: float
    last_calculation_time: datetime.datetime


class CalculateScoresResponse(BaseModel):
    """Calculator response when at least one building was scored."""

    success: bool = True
    scores: list[BuildingScoreResponse]


class NothingToScoreResponse(BaseModel):
    """Calculator response when the user has no preferences or no buildings matched."""

    message: str
    scores: list[BuildingScoreResponse] = []


class StoredScoreResponse(BaseModel):
    """A stored (user, building) row; score fields are null until first calculated."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str
    building_id: str
    location_match_score: float | None = None
    budget_match_score: float | None = None
    lifestyle_match_score: float | None = None
    overall_match_score: float | None = None
    last_calculation_time: datetime.datetime | None = None
    shortlisted: bool = False
    notes: str | None = None


class ShortlistRequest(BaseModel):
    """Request body for adding a building to, or removing it from, a shortlist."""

    shortlisted: bool
    notes: str | None = None


class ErrorResponse(BaseModel):
    error: str

"""Building match-score calculator.

Scores a user's candidate buildings against their stored preferences and
upserts the results, one row per (user, building) pair.  Each call is a
single sequential pass: rate-limit check, preferences, weights, buildings,
compute, write.  Nothing is held between calls.

The rate-limit check reads the user's most recent calculation time and the
write happens later in the same call, so two overlapping requests for one
user can both pass the check.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from src.db.base import ScoreRecord, ScoreRepository
from src.exceptions import InvalidRequestError, RateLimitExceededError
from src.services.scoring import (
    DEFAULT_SEARCH_RADIUS_KM,
    MatchScorer,
    building_from_orm,
    preferences_from_orm,
    resolve_weights,
)

logger = logging.getLogger(__name__)

DEFAULT_RATE_LIMIT_SECONDS = 30.0

NO_PREFERENCES_MESSAGE = "No user preferences found"
NO_BUILDINGS_MESSAGE = "No buildings found"


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass
class CalculationResult:
    """Outcome of one calculator run.

    ``message`` is set only when there was nothing to score.
    """

    scores: list[ScoreRecord] = field(default_factory=list)
    message: str | None = None


class MatchScoreCalculator:
    """Computes and persists building match scores for one user at a time."""

    def __init__(
        self,
        repo: ScoreRepository,
        rate_limit_seconds: float = DEFAULT_RATE_LIMIT_SECONDS,
        default_radius_km: float = DEFAULT_SEARCH_RADIUS_KM,
        clock: Callable[[], datetime.datetime] = _utcnow,
    ) -> None:
        self._repo = repo
        self._rate_limit_seconds = rate_limit_seconds
        self._default_radius_km = default_radius_km
        self._clock = clock

    async def calculate(self, user_id: str | None, building_ids: list[str] | None = None) -> CalculationResult:
        """Score *building_ids* (or every building) for *user_id* and upsert the rows.

        Raises:
            InvalidRequestError: *user_id* is missing or blank.
            RateLimitExceededError: the user's scores were calculated inside the cooldown window.
            StoreError: a read or write against the store failed.
        """
        if not user_id or not user_id.strip():
            raise InvalidRequestError("user_id is required")

        now = self._clock()
        await self._check_rate_limit(user_id, now)

        preferences_row = await self._repo.get_user_preferences(user_id)
        if preferences_row is None:
            logger.info("No preferences found for user %r", user_id)
            return CalculationResult(message=NO_PREFERENCES_MESSAGE)

        weights = resolve_weights(await self._repo.get_preference_weights(user_id))

        buildings = await self._repo.get_buildings(building_ids)
        if not buildings:
            logger.info("No buildings to score for user %r (requested ids: %r)", user_id, building_ids)
            return CalculationResult(message=NO_BUILDINGS_MESSAGE)

        scorer = MatchScorer(preferences_from_orm(preferences_row, self._default_radius_km), weights)
        logger.info("Scoring %d buildings for user %r with weights %r", len(buildings), user_id, weights)

        records: list[ScoreRecord] = []
        for card in scorer.score_buildings([building_from_orm(b) for b in buildings]):
            logger.debug(
                "Building %r: location=%.3f budget=%.3f lifestyle=%.3f overall=%.3f",
                card.building_id,
                card.location,
                card.budget,
                card.lifestyle,
                card.overall,
            )
            records.append(
                ScoreRecord(
                    user_id=user_id,
                    building_id=card.building_id,
                    location_match_score=card.location,
                    budget_match_score=card.budget,
                    lifestyle_match_score=card.lifestyle,
                    overall_match_score=card.overall,
                    last_calculation_time=now,
                )
            )

        await self._repo.upsert_scores(records)
        logger.info("Stored %d building scores for user %r", len(records), user_id)
        return CalculationResult(scores=records)

    async def _check_rate_limit(self, user_id: str, now: datetime.datetime) -> None:
        last = await self._repo.get_latest_calculation_time(user_id)
        if last is None:
            return
        elapsed = (now - last).total_seconds()
        if elapsed < self._rate_limit_seconds:
            logger.warning("Rate limit hit for user %r: last calculation %.1fs ago", user_id, elapsed)
            raise RateLimitExceededError(user_id, self._rate_limit_seconds, self._rate_limit_seconds - elapsed)

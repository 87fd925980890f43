from __future__ import annotations

import datetime
from abc import ABC, abstractmethod
from dataclasses import dataclass

from src.db.models import Building, UserBuildingScore, UserPreferences, UserPreferenceWeights


@dataclass(frozen=True)
class ScoreRecord:
    """One computed (user, building) score row, ready to be upserted."""

    user_id: str
    building_id: str
    location_match_score: float
    budget_match_score: float
    lifestyle_match_score: float
    overall_match_score: float
    last_calculation_time: datetime.datetime

    def as_row(self) -> dict[str, object]:
        return {
            "user_id": self.user_id,
            "building_id": self.building_id,
            "location_match_score": self.location_match_score,
            "budget_match_score": self.budget_match_score,
            "lifestyle_match_score": self.lifestyle_match_score,
            "overall_match_score": self.overall_match_score,
            "last_calculation_time": self.last_calculation_time,
        }


class ScoreRepository(ABC):
    """Abstract interface for all building, preference and score data access.

    Implementations raise :class:`src.exceptions.StoreError` when the
    underlying store fails.
    """

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @abstractmethod
    async def init_db(self) -> None:
        """Create the backing tables if they do not already exist."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release every pooled connection held by the repository."""
        ...

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_user_preferences(self, user_id: str) -> UserPreferences | None:
        """Return the user's preferences row, or ``None`` if the user has none."""
        ...

    @abstractmethod
    async def get_preference_weights(self, user_id: str) -> UserPreferenceWeights | None:
        """Return the user's weights row, or ``None`` if the user has none."""
        ...

    # ------------------------------------------------------------------
    # Buildings
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_buildings(self, building_ids: list[str] | None = None) -> list[Building]:
        """Return the buildings with the given ids, or every building when *building_ids* is ``None``."""
        ...

    @abstractmethod
    async def get_building_by_id(self, building_id: str) -> Building | None:
        """Return a single building by primary key, or ``None`` if not found."""
        ...

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_latest_calculation_time(self, user_id: str) -> datetime.datetime | None:
        """Return the most recent ``last_calculation_time`` across the user's rows (UTC)."""
        ...

    @abstractmethod
    async def upsert_scores(self, records: list[ScoreRecord]) -> None:
        """Insert or overwrite score rows keyed on (user_id, building_id).

        Only the score columns and ``last_calculation_time`` are written on
        conflict; ``shortlisted`` and ``notes`` are preserved.
        """
        ...

    @abstractmethod
    async def list_scores_for_user(self, user_id: str) -> list[UserBuildingScore]:
        """Return the user's rows, best overall score first, unscored rows last."""
        ...

    @abstractmethod
    async def get_score(self, user_id: str, building_id: str) -> UserBuildingScore | None:
        """Return the row for one (user, building) pair, or ``None``."""
        ...

    @abstractmethod
    async def set_shortlist(
        self, user_id: str, building_id: str, shortlisted: bool, notes: str | None = None
    ) -> UserBuildingScore:
        """Upsert the shortlist flag (and notes when given) without touching score columns."""
        ...

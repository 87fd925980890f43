from __future__ import annotations

import datetime
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from src.db.base import ScoreRecord, ScoreRepository
from src.db.models import Base, Building, UserBuildingScore, UserPreferences, UserPreferenceWeights
from src.exceptions import StoreError

logger = logging.getLogger(__name__)

# Rows per INSERT statement; 8 bound parameters each keeps us under SQLite's
# historical 999-variable limit.
UPSERT_BATCH_SIZE = 100

_SCORE_COLUMNS = (
    "location_match_score",
    "budget_match_score",
    "lifestyle_match_score",
    "overall_match_score",
    "last_calculation_time",
)


def _as_utc(value: datetime.datetime | None) -> datetime.datetime | None:
    """SQLite drops tzinfo on the way out; every stored timestamp is UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=datetime.timezone.utc)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class SQLiteScoreRepository(ScoreRepository):
    """SQLite-backed implementation of :class:`ScoreRepository`.

    Uses *aiosqlite* via SQLAlchemy's async engine.  Every store failure is
    logged and re-raised as :class:`StoreError` carrying the driver message.
    """

    def __init__(self, sqlite_path: str = "./data/buildings.db") -> None:
        url = f"sqlite+aiosqlite:///{sqlite_path}"
        self._engine = create_async_engine(url, echo=False)
        self._session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self._engine, expire_on_commit=False
        )

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def init_db(self) -> None:
        """Create all tables if they do not already exist."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Dispose of the engine; pooled aiosqlite connections and their threads are closed."""
        await self._engine.dispose()

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.exception("Store operation failed: %s", operation)
            raise StoreError(f"Failed to {operation}: {exc}") from exc

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    async def get_user_preferences(self, user_id: str) -> UserPreferences | None:
        stmt = select(UserPreferences).where(UserPreferences.user_id == user_id)
        async with self._session("fetch user preferences") as session:
            result = await session.execute(stmt)
            return result.scalars().first()

    async def get_preference_weights(self, user_id: str) -> UserPreferenceWeights | None:
        stmt = select(UserPreferenceWeights).where(UserPreferenceWeights.user_id == user_id)
        async with self._session("fetch preference weights") as session:
            result = await session.execute(stmt)
            return result.scalars().first()

    # ------------------------------------------------------------------
    # Buildings
    # ------------------------------------------------------------------

    async def get_buildings(self, building_ids: list[str] | None = None) -> list[Building]:
        stmt = select(Building)
        if building_ids is not None:
            if not building_ids:
                return []
            stmt = stmt.where(Building.id.in_(building_ids))
        stmt = stmt.order_by(Building.name, Building.id)

        async with self._session("fetch buildings") as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def get_building_by_id(self, building_id: str) -> Building | None:
        async with self._session("fetch building") as session:
            return await session.get(Building, building_id)

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    async def get_latest_calculation_time(self, user_id: str) -> datetime.datetime | None:
        stmt = select(func.max(UserBuildingScore.last_calculation_time)).where(UserBuildingScore.user_id == user_id)
        async with self._session("fetch last calculation time") as session:
            result = await session.execute(stmt)
            return _as_utc(result.scalar_one_or_none())

    async def upsert_scores(self, records: list[ScoreRecord]) -> None:
        if not records:
            return

        async with self._session("upsert building scores") as session:
            for start in range(0, len(records), UPSERT_BATCH_SIZE):
                batch = records[start : start + UPSERT_BATCH_SIZE]
                stmt = sqlite_insert(UserBuildingScore).values([{**r.as_row(), "shortlisted": False} for r in batch])
                stmt = stmt.on_conflict_do_update(
                    index_elements=["user_id", "building_id"],
                    set_={col: stmt.excluded[col] for col in _SCORE_COLUMNS},
                )
                await session.execute(stmt)
            await session.commit()

    async def list_scores_for_user(self, user_id: str) -> list[UserBuildingScore]:
        stmt = (
            select(UserBuildingScore)
            .where(UserBuildingScore.user_id == user_id)
            .order_by(
                UserBuildingScore.overall_match_score.is_(None),
                UserBuildingScore.overall_match_score.desc(),
                UserBuildingScore.building_id,
            )
        )
        async with self._session("fetch building scores") as session:
            result = await session.execute(stmt)
            rows = list(result.scalars().all())
        for row in rows:
            row.last_calculation_time = _as_utc(row.last_calculation_time)
        return rows

    async def get_score(self, user_id: str, building_id: str) -> UserBuildingScore | None:
        stmt = select(UserBuildingScore).where(
            UserBuildingScore.user_id == user_id,
            UserBuildingScore.building_id == building_id,
        )
        async with self._session("fetch building score") as session:
            result = await session.execute(stmt)
            row = result.scalars().first()
        if row is not None:
            row.last_calculation_time = _as_utc(row.last_calculation_time)
        return row

    async def set_shortlist(
        self, user_id: str, building_id: str, shortlisted: bool, notes: str | None = None
    ) -> UserBuildingScore:
        values: dict[str, object] = {"user_id": user_id, "building_id": building_id, "shortlisted": shortlisted}
        update_columns = ["shortlisted"]
        if notes is not None:
            values["notes"] = notes
            update_columns.append("notes")

        stmt = sqlite_insert(UserBuildingScore).values(values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "building_id"],
            set_={col: stmt.excluded[col] for col in update_columns},
        )
        async with self._session("update shortlist") as session:
            await session.execute(stmt)
            await session.commit()

        row = await self.get_score(user_id, building_id)
        if row is None:  # pragma: no cover - the upsert above guarantees a row
            raise StoreError(f"Shortlist row for building {building_id!r} disappeared after upsert")
        return row

"""Tests for the SQLite score repository: lookups, upsert semantics and the shortlist."""

from __future__ import annotations

import datetime

import pytest

from src.db.base import ScoreRecord
from src.db.sqlite_repo import UPSERT_BATCH_SIZE, SQLiteScoreRepository
from src.exceptions import StoreError
from tests.seed_test_data import USER_CUSTOM_WEIGHTS, USER_DEFAULT_WEIGHTS, USER_NO_PREFERENCES

T0 = datetime.datetime(2026, 3, 1, 9, 0, 0, tzinfo=datetime.timezone.utc)


def _record(building_id: str, overall: float, when: datetime.datetime = T0, user_id: str = USER_DEFAULT_WEIGHTS):
    return ScoreRecord(
        user_id=user_id,
        building_id=building_id,
        location_match_score=overall,
        budget_match_score=overall,
        lifestyle_match_score=overall,
        overall_match_score=overall,
        last_calculation_time=when,
    )


# ---------------------------------------------------------------------------
# Preferences and buildings
# ---------------------------------------------------------------------------


class TestLookups:
    @pytest.mark.asyncio
    async def test_get_user_preferences(self, test_repo: SQLiteScoreRepository):
        prefs = await test_repo.get_user_preferences(USER_DEFAULT_WEIGHTS)
        assert prefs is not None
        assert prefs.lifestyle_cohort == "3"
        assert prefs.max_budget == 8_000_000

    @pytest.mark.asyncio
    async def test_missing_preferences_returns_none(self, test_repo: SQLiteScoreRepository):
        assert await test_repo.get_user_preferences(USER_NO_PREFERENCES) is None

    @pytest.mark.asyncio
    async def test_get_preference_weights(self, test_repo: SQLiteScoreRepository):
        assert await test_repo.get_preference_weights(USER_DEFAULT_WEIGHTS) is None
        weights = await test_repo.get_preference_weights(USER_CUSTOM_WEIGHTS)
        assert weights is not None
        assert (weights.location_weight, weights.budget_weight, weights.lifestyle_weight) == (0.5, 0.3, 0.2)

    @pytest.mark.asyncio
    async def test_get_all_buildings(self, test_repo: SQLiteScoreRepository):
        buildings = await test_repo.get_buildings()
        assert [b.name for b in buildings] == ["Alpha Residency", "Bravo Heights", "Charlie Towers", "Delta Enclave"]

    @pytest.mark.asyncio
    async def test_get_selected_buildings(self, test_repo: SQLiteScoreRepository):
        buildings = await test_repo.get_buildings(["bld-far", "bld-north", "missing"])
        assert {b.id for b in buildings} == {"bld-far", "bld-north"}

    @pytest.mark.asyncio
    async def test_empty_selection_returns_nothing(self, test_repo: SQLiteScoreRepository):
        assert await test_repo.get_buildings([]) == []

    @pytest.mark.asyncio
    async def test_get_building_by_id(self, test_repo: SQLiteScoreRepository):
        building = await test_repo.get_building_by_id("bld-center")
        assert building is not None
        assert building.amenities_cohort == 4
        assert await test_repo.get_building_by_id("missing") is None


# ---------------------------------------------------------------------------
# Score upserts
# ---------------------------------------------------------------------------


class TestUpsertScores:
    @pytest.mark.asyncio
    async def test_latest_calculation_time_is_none_without_rows(self, test_repo: SQLiteScoreRepository):
        assert await test_repo.get_latest_calculation_time(USER_DEFAULT_WEIGHTS) is None

    @pytest.mark.asyncio
    async def test_latest_calculation_time_is_utc_max(self, test_repo: SQLiteScoreRepository):
        later = T0 + datetime.timedelta(minutes=5)
        await test_repo.upsert_scores([_record("bld-north", 0.5, T0), _record("bld-center", 0.6, later)])

        latest = await test_repo.get_latest_calculation_time(USER_DEFAULT_WEIGHTS)
        assert latest == later
        assert latest.tzinfo is not None

    @pytest.mark.asyncio
    async def test_upsert_overwrites_existing_pair(self, test_repo: SQLiteScoreRepository):
        await test_repo.upsert_scores([_record("bld-north", 0.2, T0)])
        later = T0 + datetime.timedelta(minutes=1)
        await test_repo.upsert_scores([_record("bld-north", 0.9, later)])

        rows = await test_repo.list_scores_for_user(USER_DEFAULT_WEIGHTS)
        assert len(rows) == 1
        assert rows[0].overall_match_score == 0.9
        assert rows[0].last_calculation_time == later

    @pytest.mark.asyncio
    async def test_pairs_are_scoped_per_user(self, test_repo: SQLiteScoreRepository):
        await test_repo.upsert_scores(
            [_record("bld-north", 0.2), _record("bld-north", 0.8, user_id=USER_CUSTOM_WEIGHTS)]
        )
        assert len(await test_repo.list_scores_for_user(USER_DEFAULT_WEIGHTS)) == 1
        assert len(await test_repo.list_scores_for_user(USER_CUSTOM_WEIGHTS)) == 1

    @pytest.mark.asyncio
    async def test_upsert_in_multiple_batches(self, test_repo: SQLiteScoreRepository):
        count = UPSERT_BATCH_SIZE * 2 + 5
        await test_repo.upsert_scores([_record(f"bld-{i:04d}", i / count) for i in range(count)])
        assert len(await test_repo.list_scores_for_user(USER_DEFAULT_WEIGHTS)) == count

    @pytest.mark.asyncio
    async def test_upsert_nothing_is_a_no_op(self, test_repo: SQLiteScoreRepository):
        await test_repo.upsert_scores([])
        assert await test_repo.list_scores_for_user(USER_DEFAULT_WEIGHTS) == []

    @pytest.mark.asyncio
    async def test_list_orders_best_first_and_unscored_last(self, test_repo: SQLiteScoreRepository):
        await test_repo.set_shortlist(USER_DEFAULT_WEIGHTS, "bld-bare", True)
        await test_repo.upsert_scores([_record("bld-north", 0.4), _record("bld-center", 0.9), _record("bld-far", 0.1)])

        rows = await test_repo.list_scores_for_user(USER_DEFAULT_WEIGHTS)
        assert [r.building_id for r in rows] == ["bld-center", "bld-north", "bld-far", "bld-bare"]


# ---------------------------------------------------------------------------
# Shortlist
# ---------------------------------------------------------------------------


class TestShortlist:
    @pytest.mark.asyncio
    async def test_shortlist_creates_unscored_row(self, test_repo: SQLiteScoreRepository):
        row = await test_repo.set_shortlist(USER_DEFAULT_WEIGHTS, "bld-north", True, notes="Near the metro")

        assert row.shortlisted is True
        assert row.notes == "Near the metro"
        assert row.overall_match_score is None
        assert row.last_calculation_time is None

    @pytest.mark.asyncio
    async def test_shortlist_keeps_scores(self, test_repo: SQLiteScoreRepository):
        await test_repo.upsert_scores([_record("bld-north", 0.7)])
        row = await test_repo.set_shortlist(USER_DEFAULT_WEIGHTS, "bld-north", True)

        assert row.shortlisted is True
        assert row.overall_match_score == 0.7
        assert row.last_calculation_time == T0

    @pytest.mark.asyncio
    async def test_unshortlist_without_notes_keeps_notes(self, test_repo: SQLiteScoreRepository):
        await test_repo.set_shortlist(USER_DEFAULT_WEIGHTS, "bld-north", True, notes="Ask about parking")
        row = await test_repo.set_shortlist(USER_DEFAULT_WEIGHTS, "bld-north", False)

        assert row.shortlisted is False
        assert row.notes == "Ask about parking"

    @pytest.mark.asyncio
    async def test_get_score_missing_returns_none(self, test_repo: SQLiteScoreRepository):
        assert await test_repo.get_score(USER_DEFAULT_WEIGHTS, "bld-north") is None


# ---------------------------------------------------------------------------
# Store failures
# ---------------------------------------------------------------------------


class TestStoreFailures:
    @pytest.mark.asyncio
    async def test_missing_tables_raise_store_error(self, tmp_path):
        repo = SQLiteScoreRepository(str(tmp_path / "empty.db"))

        with pytest.raises(StoreError, match="Failed to fetch user preferences"):
            await repo.get_user_preferences(USER_DEFAULT_WEIGHTS)

    @pytest.mark.asyncio
    async def test_failed_write_raises_store_error(self, tmp_path):
        repo = SQLiteScoreRepository(str(tmp_path / "empty.db"))

        with pytest.raises(StoreError, match="Failed to upsert building scores"):
            await repo.upsert_scores([_record("bld-north", 0.5)])

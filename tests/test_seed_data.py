"""Tests that exercise the demo seed, both by reading it directly and via the calculator."""

from __future__ import annotations

import pytest

from src.db.seed import DEMO_USER_ID, demo_buildings, main, seed
from src.db.sqlite_repo import SQLiteScoreRepository
from src.services.calculator import MatchScoreCalculator


class TestDemoData:
    def test_building_ids_are_unique(self):
        ids = [b.id for b in demo_buildings()]
        assert len(ids) == len(set(ids))

    def test_buildings_have_names(self):
        assert all(b.name for b in demo_buildings())


class TestSeed:
    @pytest.mark.asyncio
    async def test_seeded_database_is_scorable(self, tmp_path):
        db_path = tmp_path / "nested" / "seed.db"
        seed(db_path)

        repo = SQLiteScoreRepository(str(db_path))
        result = await MatchScoreCalculator(repo).calculate(DEMO_USER_ID)

        assert len(result.scores) == len(demo_buildings())
        for record in result.scores:
            assert 0.0 <= record.overall_match_score <= 1.0

    @pytest.mark.asyncio
    async def test_reseeding_is_repeatable(self, tmp_path):
        db_path = tmp_path / "seed.db"
        seed(db_path)
        seed(db_path)

        repo = SQLiteScoreRepository(str(db_path))
        assert len(await repo.get_buildings()) == len(demo_buildings())
        assert await repo.get_user_preferences(DEMO_USER_ID) is not None

    @pytest.mark.asyncio
    async def test_reset_clears_scores(self, tmp_path):
        db_path = tmp_path / "seed.db"
        seed(db_path)
        repo = SQLiteScoreRepository(str(db_path))
        await MatchScoreCalculator(repo).calculate(DEMO_USER_ID)

        main(["--db", str(db_path), "--reset"])

        assert await repo.list_scores_for_user(DEMO_USER_ID) == []

"""Tests for repository backend selection."""

from __future__ import annotations

import pytest

from src.config import get_settings
from src.db.factory import get_score_repository
from src.db.sqlite_repo import SQLiteScoreRepository


@pytest.fixture()
def fresh_settings(monkeypatch, tmp_path):
    monkeypatch.setenv("SQLITE_PATH", str(tmp_path / "factory.db"))
    get_settings.cache_clear()
    get_score_repository.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()
    get_score_repository.cache_clear()


class TestGetScoreRepository:
    def test_sqlite_is_the_default(self, fresh_settings):
        assert isinstance(get_score_repository(), SQLiteScoreRepository)

    def test_instance_is_cached(self, fresh_settings):
        assert get_score_repository() is get_score_repository()

    @pytest.mark.parametrize("backend", ["postgres", "mysql"])
    def test_unknown_backend_is_rejected(self, fresh_settings, backend):
        fresh_settings.setenv("DB_BACKEND", backend)
        with pytest.raises(ValueError, match="Unknown DB_BACKEND"):
            get_score_repository()

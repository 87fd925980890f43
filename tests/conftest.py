"""Shared pytest fixtures for the building scores test suite."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from src.db.base import ScoreRepository
from src.db.factory import get_score_repository
from src.db.models import Base
from src.db.sqlite_repo import SQLiteScoreRepository
from src.main import app
from tests.seed_test_data import (
    FrozenClock,
    _generate_test_buildings,
    _generate_test_preferences,
    _generate_test_weights,
)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def db_path(tmp_path) -> str:
    """Create a temporary SQLite database seeded with test data and return its path."""
    path = str(tmp_path / "test_buildings.db")
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)

    with Session(sync_engine) as session:
        session.add_all(_generate_test_buildings())
        session.add_all(_generate_test_preferences())
        session.add_all(_generate_test_weights())
        session.commit()

    sync_engine.dispose()
    return path


@pytest.fixture()
def test_repo(db_path) -> SQLiteScoreRepository:
    """Return an async :class:`SQLiteScoreRepository` backed by the test database."""
    return SQLiteScoreRepository(db_path)


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def test_client(db_path) -> TestClient:
    """Return a FastAPI ``TestClient`` wired to the test database."""
    repo = SQLiteScoreRepository(db_path)

    def _override() -> ScoreRepository:
        return repo

    app.dependency_overrides[get_score_repository] = _override

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()

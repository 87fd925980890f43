from __future__ import annotations

from functools import lru_cache

from src.config import get_settings
from src.db.base import ScoreRepository
from src.db.sqlite_repo import SQLiteScoreRepository


@lru_cache
def get_score_repository() -> ScoreRepository:
    """Return the process-wide :class:`ScoreRepository` for the configured backend.

    The backend is selected by the ``DB_BACKEND`` setting; ``"sqlite"`` (the
    default) is the only one.  The instance is cached so every request shares
    one engine and connection pool.  The application lifespan closes it and
    clears the cache on shutdown.

    Raises:
        ValueError: If ``DB_BACKEND`` names an unknown backend.
    """
    settings = get_settings()
    backend = settings.DB_BACKEND.lower()

    if backend == "sqlite":
        return SQLiteScoreRepository(settings.SQLITE_PATH)

    raise ValueError(f"Unknown DB_BACKEND: {backend!r}. Supported values: 'sqlite'.")

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from src.api.health import router as health_router
from src.api.scores import router as scores_router
from src.config import get_settings
from src.db.factory import get_score_repository
from src.exceptions import (
    ScoringServiceError,
    scoring_error_handler,
    unexpected_error_handler,
    validation_error_handler,
)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Ensure the data directory and tables exist, and close the shared repository on shutdown."""
    settings = get_settings()
    db_path = Path(settings.SQLITE_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    repo = get_score_repository()
    await repo.init_db()

    yield

    await repo.close()
    get_score_repository.cache_clear()


_settings = get_settings()

logging.basicConfig(
    level=_settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Building Match Scores API",
    description="Scores buildings against each user's location, budget and lifestyle preferences",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_exception_handler(ScoringServiceError, scoring_error_handler)  # type: ignore[arg-type]
app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
app.add_exception_handler(Exception, unexpected_error_handler)

_cors_origins = [o.strip() for o in _settings.CORS_ORIGINS.split(",") if o.strip()] if _settings.CORS_ORIGINS else []
if _cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(health_router)
app.include_router(scores_router)


if __name__ == "__main__":
    uvicorn.run("src.main:app", host="0.0.0.0", port=8000, reload=True)

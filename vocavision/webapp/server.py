import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vocavision.config import get_settings
from vocavision.db import async_engine, get_db, init_db
from vocavision.logging_setup import configure_logging
from vocavision.webapp import (
    admin, auth, bookmarks, collections, goals, learning, progress, subscription, visuals, words,
)
from vocavision.webapp.errors import register_error_handlers

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    settings.warn_missing()
    await init_db()
    logger.info("VocaVision API started")
    yield
    await async_engine.dispose()
    logger.info("VocaVision API stopped")


def create_app(use_lifespan=True) -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="VocaVision API", lifespan=lifespan if use_lifespan else None)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    for module in (auth, words, visuals, progress, learning, collections, bookmarks, goals, subscription,
                   admin):
        app.include_router(module.router)

    @app.get("/health")
    async def health(db: AsyncSession = Depends(get_db)):
        try:
            await db.execute(text("SELECT 1"))
            database = "ok"
        except SQLAlchemyError as e:
            logger.error("Health check: database unavailable: %s", e)
            database = "error"
        return {"status": "healthy", "database": database}

    return app


app = create_app()

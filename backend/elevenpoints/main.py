"""ElevenPoints API: FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map GameShowError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup; live connections, upstream clients and
      the pool are released on shutdown

Design Decisions:
    - Lifespan over @app.on_event
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from elevenpoints.api.dependencies import close_upstream_clients
from elevenpoints.api.error_handlers import register_error_handlers
from elevenpoints.api.routes import conversation, game_flow, health, session_feed, sessions, tools
from elevenpoints.config import get_settings
from elevenpoints.infrastructure import database
from elevenpoints.infrastructure.observability import setup_logging
from elevenpoints.services.host_connection import get_host_registry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info("ElevenPoints API started")
    yield
    logger.info("ElevenPoints API shutting down")
    await get_host_registry().shutdown()
    await close_upstream_clients()
    if database.db_manager is not None:
        await database.db_manager.dispose()


app = FastAPI(
    title="ElevenPoints API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(sessions.router)
app.include_router(session_feed.router)
app.include_router(game_flow.router)
app.include_router(conversation.router)
app.include_router(tools.router)

register_error_handlers(app)

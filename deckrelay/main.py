"""DeckRelay API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery, ExMA anti-pattern)
    - Global error handlers map RelayError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - One relay runtime per process, built in the lifespan and stored on app.state.relay
    - On shutdown the serial queue is closed before the database pool is disposed

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Audit sink optional (settings.audit_tool_calls): the relay works without a database
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from deckrelay.api.error_handlers import register_error_handlers
from deckrelay.api.routes import embed_socket, health, tools
from deckrelay.config import get_settings
from deckrelay.infrastructure.database import init_db
from deckrelay.infrastructure.observability import setup_logging
from deckrelay.infrastructure.tool_call_audit import ToolCallAudit
from deckrelay.services.relay_runtime import build_runtime

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    audit = ToolCallAudit(manager) if settings.audit_tool_calls else None
    app.state.relay = build_runtime(
        dedup_window_seconds=settings.dedup_window_seconds, audit=audit,
    )
    logger.info("DeckRelay API started")
    yield
    logger.info("DeckRelay API shutting down")
    await app.state.relay.aclose()
    await manager.dispose()


app = FastAPI(title="DeckRelay API", version="1.0.0", lifespan=lifespan)

# CORS: configured from settings, not hardcoded
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes: explicit registration
app.include_router(health.router)
app.include_router(tools.router)
app.include_router(embed_socket.router)

register_error_handlers(app)

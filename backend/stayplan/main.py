"""FastAPI application entrypoint."""

from __future__ import annotations

from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stayplan.api.routes import api_router
from stayplan.config import get_settings
from stayplan.core.logging import setup_logging
from stayplan.core.telemetry import setup_telemetry
from stayplan.db.init import init_store_database
from stayplan.db.session import get_engine

settings = get_settings()
app = FastAPI(title=settings.app_name, version="0.1.0")
setup_logging()
setup_telemetry(
    app,
    settings,
    engine=get_engine(settings.store_database_url) if settings.store_database_url else None,
)

# OPTIONS pre-flight for /store is answered here
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["traceparent", "tracestate", "x-trace-id"],
)


@app.on_event("startup")
async def startup() -> None:
    """Create the remote record table when a store database is configured."""

    if settings.store_database_url:
        await init_store_database(settings.store_database_url)


@app.get("/health", tags=["health"])
async def health() -> dict[str, str | bool]:
    """Return service readiness metadata."""

    return {
        "status": "ok",
        "timestamp": datetime.now().isoformat(),
        "store_configured": bool(settings.store_database_url),
    }


def configure_app() -> FastAPI:
    """Attach routes."""

    app.include_router(api_router)
    return app


configure_app()

__all__ = ["app", "configure_app"]

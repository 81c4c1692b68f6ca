"""FastAPI application factory.

Creates and configures the FastAPI application with all routes and middleware.

## Usage

```python
from city_journal.api import create_app

app = create_app()

# Run with uvicorn
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
```

## Configuration

The app is configured via environment variables. See `city_journal.config`
for available settings.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from city_journal.config import get_settings
from city_journal.database.connection import Database
from city_journal.errors import JournalError, StorageFailure
from city_journal.logging_config import configure_logging
from city_journal.providers import create_weather_provider

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Builds the shared database and weather provider handles on startup and
    closes them on shutdown. Handles supplied before startup (tests) are
    kept as they are.
    """
    settings = get_settings()

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    owns_db = getattr(app.state, "db", None) is None
    if owns_db:
        app.state.db = Database.from_settings(settings)
        if settings.is_sqlite:
            await app.state.db.create_tables()

    owns_provider = getattr(app.state, "weather_provider", None) is None
    if owns_provider:
        app.state.weather_provider = create_weather_provider(settings)

    yield

    logger.info("Shutting down")
    if owns_provider:
        await app.state.weather_provider.aclose()
        app.state.weather_provider = None
    if owns_db:
        await app.state.db.dispose()
        app.state.db = None


async def journal_error_handler(request: Request, exc: JournalError) -> JSONResponse:
    """Render domain errors as ``{"detail": ...}`` with their status code."""
    if isinstance(exc, StorageFailure):
        logger.error(f"{request.method} {request.url.path} failed: {exc.__cause__!r}")
    elif exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")

    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Per-day city journal with weather and travel statistics",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
        allow_headers=["*"],
    )

    app.add_exception_handler(JournalError, journal_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Include routers
    from city_journal.api.routes import auth, calendar, statistics, weather

    app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
    app.include_router(calendar.router, prefix="/api/calendar", tags=["Calendar"])
    app.include_router(weather.router, prefix="/api/weather", tags=["Weather"])
    app.include_router(statistics.router, prefix="/api/statistics", tags=["Statistics"])

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": settings.app_version}

    return app

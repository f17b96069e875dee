from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI


def _validate_env() -> None:
    """
    Validate LLM-related environment variables at startup.

    Raises RuntimeError listing every invalid variable so the operator can
    fix all problems in one restart cycle. A missing API key is NOT an
    error: the service then runs with degraded AI responses.
    """

    from app.config import load_env_files

    load_env_files()

    errors: list[str] = []

    adapter = os.getenv("LLM_ADAPTER", "openai").strip().lower()
    if adapter not in {"openai", "mock"}:
        errors.append(
            f"LLM_ADAPTER='{adapter}' is not valid. Allowed values: ['mock', 'openai']."
        )

    for name in (
        "LLM_MAX_RETRIES",
        "FORECAST_HISTORY_POINTS",
        "MAX_UPLOAD_BYTES",
        "DASHBOARD_MAX_SESSIONS",
    ):
        raw = os.getenv(name)
        if raw is not None and not raw.strip().isdigit():
            errors.append(f"{name}='{raw}' must be a non-negative integer.")

    if errors:
        raise RuntimeError(
            "Startup validation failed - invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Build the dashboard service on boot; drop sessions and cached AI results on exit."""
    from app.services.dashboard_service import get_dashboard_service

    service = get_dashboard_service()
    log = logging.getLogger(__name__)
    if service.client.has_credentials:
        log.info("AI enrichment enabled")
    else:
        log.warning("No LLM API key configured; AI enrichment runs in degraded mode")
    try:
        yield
    finally:
        service.reset()
        log.info("Dashboard service shut down")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="InsightX API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import dashboard_router

    application.include_router(dashboard_router)

    @application.get("/health")
    def healthcheck() -> dict:
        return {"status": "ok"}

    return application


app = create_app()

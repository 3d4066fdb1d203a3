"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures routers and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import aiohttp
from fastapi import FastAPI, Request
from psycopg_pool import AsyncConnectionPool

from src.adapters.identity.toolkit import IdentityToolkitGateway
from src.adapters.repository.postgres import PostgresProfileStore, run_migrations
from src.api.flows import FlowRegistry
from src.api.v1 import router as v1_router
from src.config.settings import get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Action link API v1 - Verify emails, reset passwords, resend verification",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Opens the database connection pool and runs migrations
    - Opens the HTTP session used for the identity provider
    - Closes flows, HTTP session and pool on shutdown
    """
    settings = get_settings()

    logger.info("Starting application...")
    logger.info("Connecting to database...")

    pool = AsyncConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        open=False,
    )
    await pool.open()

    logger.info("Running database migrations...")
    await run_migrations(pool)

    if not settings.identity_api_key:
        logger.warning("IDENTITY_API_KEY is not set; identity provider calls will fail")

    http = aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=settings.identity_timeout_seconds)
    )
    gateway = IdentityToolkitGateway(http, settings.identity_api_key, settings.identity_base_url)

    app.state.pool = pool
    app.state.gateway = gateway
    app.state.flows = FlowRegistry(
        gateway,
        PostgresProfileStore(pool),
        verified_redirect=settings.verified_redirect_path,
        reset_redirect=settings.reset_redirect_path,
        redirect_delay=settings.redirect_delay_seconds,
        max_flows=settings.max_active_flows,
    )

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    app.state.flows.close_all()
    await http.close()
    await pool.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="actionflow",
    description="Account action-link service - email verification and password reset flows",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
async def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails.
    """
    pool = request.app.state.pool
    async with pool.connection() as conn:
        await conn.execute("SELECT 1")

    return {"status": "healthy"}

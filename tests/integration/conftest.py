"""
Shared fixtures for integration tests.

Requires PostgreSQL reachable at DATABASE_URL.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from src.adapters.repository.postgres import PostgresProfileStore, run_migrations
from src.config.settings import get_settings


@pytest_asyncio.fixture
async def pool() -> AsyncGenerator[AsyncConnectionPool, None]:
    """Open a connection pool, migrate, and clean the profiles table."""
    settings = get_settings()
    pool = AsyncConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=10,
        open=False,
    )
    await pool.open()
    await run_migrations(pool)
    async with pool.connection() as conn:
        await conn.execute("DELETE FROM user_profiles")
    yield pool
    await pool.close()


@pytest_asyncio.fixture
async def store(pool: AsyncConnectionPool) -> PostgresProfileStore:
    return PostgresProfileStore(pool)


@pytest.fixture
def fetch_profile(pool: AsyncConnectionPool) -> Callable[[str], Awaitable[dict | None]]:
    """Read one profile row as a dict, or None."""

    async def fetch(uid: str) -> dict | None:
        async with pool.connection() as conn:
            cur = conn.cursor(row_factory=dict_row)
            await cur.execute("SELECT * FROM user_profiles WHERE uid = %s", (uid,))
            return await cur.fetchone()

    return fetch

"""
PostgreSQL profile store adapter - Implements ProfileStore protocol.

This module provides the PostgreSQL implementation of the domain's profile
store port using psycopg3's async connection pool.

Merge Semantics:
----------------
Every write is a single ``INSERT ... ON CONFLICT (uid) DO UPDATE`` that
names only the columns supplied by the caller. Columns owned by other flows
are never part of the statement, so concurrent writers cannot lose each
other's updates. ``Increment`` values are applied by the database
(``col = col + n``), which keeps counters exact without a read-modify-write
round trip.
"""

import logging
from pathlib import Path
from typing import Any

import psycopg
from psycopg import sql
from psycopg_pool import AsyncConnectionPool

from src.domain.exceptions import ProfileStoreError
from src.domain.ports import Increment

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = frozenset(
    {
        "email_verified",
        "email_verified_at",
        "verification_method",
        "verification_email_sent_at",
        "resend_count",
    }
)


class PostgresProfileStore:
    """
    Implements ProfileStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Column names are whitelisted and composed with psycopg.sql; values are
    always passed as parameters.
    """

    def __init__(self, pool: AsyncConnectionPool) -> None:
        """
        Initialize store with connection pool.

        Args:
            pool: psycopg3 AsyncConnectionPool for database connections
        """
        self._pool = pool

    async def merge_update(self, uid: str, fields: dict[str, Any]) -> None:
        """
        Upsert the given fields of the profile row for ``uid``.

        Args:
            uid: Identity provider user id
            fields: Column name to value; ``Increment`` adds to the stored value

        Raises:
            ValueError: unknown column name
            ProfileStoreError: database write failed
        """
        unknown = set(fields) - PROFILE_COLUMNS
        if unknown:
            raise ValueError(f"Unknown profile fields: {sorted(unknown)}")
        if not fields:
            return

        columns = list(fields)
        values = [
            fields[c].amount if isinstance(fields[c], Increment) else fields[c] for c in columns
        ]

        assignments = []
        for column in columns:
            ident = sql.Identifier(column)
            if isinstance(fields[column], Increment):
                assignments.append(
                    sql.SQL("{col} = user_profiles.{col} + EXCLUDED.{col}").format(col=ident)
                )
            else:
                assignments.append(sql.SQL("{col} = EXCLUDED.{col}").format(col=ident))

        query = sql.SQL(
            """
            INSERT INTO user_profiles (uid, {columns}, updated_at)
            VALUES (%s, {placeholders}, NOW())
            ON CONFLICT (uid) DO UPDATE
            SET {assignments}, updated_at = NOW()
            """
        ).format(
            columns=sql.SQL(", ").join(sql.Identifier(c) for c in columns),
            placeholders=sql.SQL(", ").join(sql.Placeholder() for _ in columns),
            assignments=sql.SQL(", ").join(assignments),
        )

        try:
            async with self._pool.connection() as conn:
                await conn.execute(query, [uid, *values])
        except psycopg.Error as e:
            raise ProfileStoreError(f"merge_update failed for uid={uid}") from e


async def run_migrations(pool: AsyncConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 AsyncConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            async with pool.connection() as conn:
                await conn.execute(sql_file.read_text())
            logger.info(f"Migration complete: {sql_file.name}")
        except psycopg.Error as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e

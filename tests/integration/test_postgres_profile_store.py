"""
Integration tests for PostgresProfileStore.

Tests merge-update semantics against a real PostgreSQL database.
"""

import asyncio
from datetime import datetime, timezone

import pytest
from psycopg_pool import AsyncConnectionPool

from src.adapters.repository.postgres import PostgresProfileStore, run_migrations
from src.domain.ports import Increment

pytestmark = pytest.mark.integration


class TestMergeUpdate:
    """Tests for merge_update."""

    @pytest.mark.asyncio
    async def test_creates_missing_row(self, store: PostgresProfileStore, fetch_profile) -> None:
        verified_at = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

        await store.merge_update(
            "uid-1",
            {
                "email_verified": True,
                "email_verified_at": verified_at,
                "verification_method": "email_link",
            },
        )

        row = await fetch_profile("uid-1")
        assert row["email_verified"] is True
        assert row["email_verified_at"] == verified_at
        assert row["verification_method"] == "email_link"
        assert row["resend_count"] == 0

    @pytest.mark.asyncio
    async def test_leaves_unnamed_fields_untouched(
        self, store: PostgresProfileStore, fetch_profile
    ) -> None:
        await store.merge_update("uid-1", {"resend_count": Increment(1)})
        await store.merge_update("uid-1", {"email_verified": True})

        row = await fetch_profile("uid-1")
        assert row["resend_count"] == 1
        assert row["email_verified"] is True

    @pytest.mark.asyncio
    async def test_increment_is_exact(self, store: PostgresProfileStore, fetch_profile) -> None:
        await store.merge_update("uid-1", {"resend_count": Increment(1)})
        await store.merge_update("uid-1", {"resend_count": Increment(1)})

        row = await fetch_profile("uid-1")
        assert row["resend_count"] == 2

    @pytest.mark.asyncio
    async def test_concurrent_increments_not_lost(
        self, store: PostgresProfileStore, fetch_profile
    ) -> None:
        await store.merge_update("uid-1", {"email_verified": False})

        await asyncio.gather(
            *(store.merge_update("uid-1", {"resend_count": Increment(1)}) for _ in range(5))
        )

        row = await fetch_profile("uid-1")
        assert row["resend_count"] == 5

    @pytest.mark.asyncio
    async def test_unknown_field_rejected(self, store: PostgresProfileStore, fetch_profile) -> None:
        with pytest.raises(ValueError):
            await store.merge_update("uid-1", {"password": "nope"})

        assert await fetch_profile("uid-1") is None

    @pytest.mark.asyncio
    async def test_empty_fields_is_noop(self, store: PostgresProfileStore, fetch_profile) -> None:
        await store.merge_update("uid-1", {})

        assert await fetch_profile("uid-1") is None


class TestMigrations:
    """Tests for run_migrations."""

    @pytest.mark.asyncio
    async def test_migrations_are_idempotent(self, pool: AsyncConnectionPool) -> None:
        await run_migrations(pool)
        await run_migrations(pool)

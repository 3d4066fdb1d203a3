"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- Mocked identity gateway (AsyncMock per port method)
- In-memory profile store with merge-update semantics
- Recording navigator
"""

from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest

from src.domain.exceptions import ProfileStoreError
from src.domain.ports import AppliedCode, Increment
from src.domain.session import PendingCredentialUser


class InMemoryProfileStore:
    """Implements ProfileStore protocol with a dict, applying Increment values."""

    def __init__(self) -> None:
        self.records: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.fail = False

    async def merge_update(self, uid: str, fields: dict[str, Any]) -> None:
        self.calls.append((uid, dict(fields)))
        if self.fail:
            raise ProfileStoreError("store unavailable")
        record = self.records.setdefault(uid, {})
        for name, value in fields.items():
            if isinstance(value, Increment):
                record[name] = record.get(name, 0) + value.amount
            else:
                record[name] = value


@pytest.fixture
def gateway() -> Mock:
    """Identity gateway with every port method as an AsyncMock."""
    mock = Mock()
    mock.apply_verification_code = AsyncMock(
        return_value=AppliedCode(email="user@example.com", uid="uid-123")
    )
    mock.confirm_password_reset = AsyncMock(return_value=None)
    mock.reload_user = AsyncMock(
        return_value=PendingCredentialUser(
            uid="uid-123", email="user@example.com", display_name="Ada", email_verified=True
        )
    )
    mock.send_verification_email = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def profile_store() -> InMemoryProfileStore:
    return InMemoryProfileStore()


@pytest.fixture
def navigator() -> Mock:
    return Mock()

"""
tests.conftest

Shared fixtures: test settings, an in-memory principal store and a service locator
wired to it.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime

import pytest

from polls_api.models import Principal
from polls_api.services.locator import ServiceLocator
from polls_api.settings import Settings

TEST_KEY = "test-signing-key-0123456789abcdef"
OTHER_KEY = "other-signing-key-0123456789abcdef"

TEST_ROLES = {
    "user": {
        "default": True,
        "capabilities": ["read:users", "write:profile", "read:polls", "create:polls", "create:comments"],
    },
    "guest": {"capabilities": ["read:polls"]},
    "admin": {
        "capabilities": [
            "read:users",
            "write:profile",
            "write:users",
            "delete:users",
            "read:polls",
            "create:polls",
            "delete:polls",
            "create:comments",
        ],
    },
}


class InMemoryPrincipalStore:
    def __init__(self, *principals: Principal) -> None:
        self._by_id = {p.subject: p for p in principals}
        self.lookups: list[str] = []

    def add(self, principal: Principal) -> None:
        self._by_id[principal.subject] = principal

    def remove(self, principal: Principal) -> None:
        self._by_id.pop(principal.subject, None)

    async def find_by_id(self, principal_id: str) -> Principal | None:
        await asyncio.sleep(0)
        self.lookups.append(principal_id)
        return self._by_id.get(principal_id)


def make_principal(role: str = "user", name: str = "alice") -> Principal:
    now = datetime(2024, 1, 1, 12, 0, 0)
    return Principal(
        id=uuid.uuid4(),
        email=f"{name}@example.com",
        name=name,
        role=role,
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        jwt_secret=TEST_KEY,
        hash_cost_factor=4,
        roles=TEST_ROLES,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'polls.db'}",
    )


@pytest.fixture
def store() -> InMemoryPrincipalStore:
    return InMemoryPrincipalStore()


@pytest.fixture
def locator(settings: Settings, store: InMemoryPrincipalStore) -> ServiceLocator:
    return ServiceLocator(settings, overrides={"principals": store})

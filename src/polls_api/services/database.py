"""
polls_api.services.database

Async SQLAlchemy engine/session lifecycle, plus the DB-backed principal store.

Responsibilities:
- Create the async engine and session factory from settings.
- Create tables in dev/test; production is expected to run migrations.
- Resolve principals by id for `AuthenticationService`.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from polls_api.db import models  # noqa: F401  # register models on Base.metadata
from polls_api.db.base import Base
from polls_api.db.repositories.users import UserRepo
from polls_api.models import Principal
from polls_api.services.base import Service


class DatabaseService(Service):
    name = "db"

    def __init__(self, locator) -> None:
        super().__init__(locator)
        # Engine creation is lazy: no connection is opened until first use.
        self.engine: AsyncEngine = create_async_engine(
            self.settings.database_url,
            pool_pre_ping=True,
        )
        self.sessionmaker: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
            autoflush=False,
        )

    async def connect(self) -> None:
        if self.settings.env in ("dev", "test"):
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        self.log.info("database_connected", env=self.settings.env)

    async def disconnect(self) -> None:
        await self.engine.dispose()
        self.log.info("database_disconnected")

    async def ping(self) -> None:
        async with self.session() as session:
            await session.execute(text("SELECT 1"))

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        # Commit/rollback is managed explicitly by the caller.
        async with self.sessionmaker() as session:
            yield session


class DatabasePrincipalStore:
    def __init__(self, db: DatabaseService) -> None:
        self._db = db

    async def find_by_id(self, principal_id: str) -> Principal | None:
        try:
            key = uuid.UUID(principal_id)
        except ValueError:
            return None
        async with self._db.session() as session:
            user = await UserRepo(session).get(key)
            return user.to_principal() if user is not None else None

"""
polls_api.db.repositories.users

Repository for `User` entities.

Responsibilities:
- Create, fetch, list and delete user rows.
- Accept only already-hashed secrets (hashing belongs to `UserService`).
"""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from polls_api.db.models import User


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, email: str, name: str, password_hash: str, role: str) -> User:
        user = User(email=email, name=name, password_hash=password_hash, role=role)
        self._session.add(user)
        await self._session.flush()
        return user

    async def get(self, user_id: uuid.UUID) -> User | None:
        return await self._session.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_all(self, *, limit: int = 100, offset: int = 0) -> list[User]:
        stmt = select(User).order_by(User.created_at).limit(limit).offset(offset)
        return list((await self._session.execute(stmt)).scalars().all())

    async def delete(self, user_id: uuid.UUID) -> bool:
        user = await self._session.get(User, user_id)
        if user is None:
            return False
        await self._session.delete(user)
        await self._session.flush()
        return True

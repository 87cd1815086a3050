"""
polls_api.services.users

User write path.

Responsibilities:
- Register, modify, update and delete users.
- Hash secrets via `CryptoService` before persistence, and only when they change.
- Assign the configured default role on registration.
"""

from __future__ import annotations

import uuid

from sqlalchemy.exc import IntegrityError

from polls_api.db.models import User
from polls_api.db.repositories.users import UserRepo
from polls_api.errors import Conflict, NotFound, ValidationError
from polls_api.models import Principal
from polls_api.services.base import Service


class UserService(Service):
    name = "users"

    async def find_by_email(self, email: str) -> Principal | None:
        async with self.locator.db.session() as session:
            user = await UserRepo(session).get_by_email(email)
            return user.to_principal() if user is not None else None

    async def get(self, user_id: uuid.UUID) -> Principal:
        async with self.locator.db.session() as session:
            user = await UserRepo(session).get(user_id)
            if user is None:
                raise NotFound("User not found")
            return user.to_principal()

    async def list_all(self, *, limit: int = 100, offset: int = 0) -> list[Principal]:
        async with self.locator.db.session() as session:
            users = await UserRepo(session).list_all(limit=limit, offset=offset)
            return [u.to_principal() for u in users]

    async def register(
        self, *, email: str, name: str, password: str, role: str | None = None
    ) -> Principal:
        role = self.locator.perms.default_role() if role is None else role
        self._check_role(role)

        password_hash = await self.locator.crypto.hash_async(password)
        async with self.locator.db.session() as session:
            repo = UserRepo(session)
            if await repo.get_by_email(email) is not None:
                raise Conflict("Email already registered")
            try:
                user = await repo.create(
                    email=email, name=name, password_hash=password_hash, role=role
                )
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise Conflict("Email already registered") from e
            self.log.info("user_registered", user_id=str(user.id), role=role)
            return user.to_principal()

    async def update(
        self,
        user_id: uuid.UUID,
        *,
        email: str | None = None,
        name: str | None = None,
        password: str | None = None,
        role: str | None = None,
    ) -> Principal:
        """
        Apply the given fields; `None` leaves a field untouched. The secret is
        rehashed only when the supplied password differs from the stored one.
        """

        if role is not None:
            self._check_role(role)

        async with self.locator.db.session() as session:
            user = await UserRepo(session).get(user_id)
            if user is None:
                raise NotFound("User not found")

            if email is not None:
                user.email = email
            if name is not None:
                user.name = name
            if role is not None:
                user.role = role
            if password is not None:
                await self._apply_secret(user, password)

            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise Conflict("Email already registered") from e
            return user.to_principal()

    async def modify(
        self, user_id: uuid.UUID, *, email: str, name: str, password: str
    ) -> Principal:
        return await self.update(user_id, email=email, name=name, password=password)

    async def delete(self, user_id: uuid.UUID) -> None:
        async with self.locator.db.session() as session:
            if not await UserRepo(session).delete(user_id):
                raise NotFound("User not found")
            await session.commit()
        self.log.info("user_deleted", user_id=str(user_id))

    def _check_role(self, role: str) -> None:
        # Reject before anything is written.
        if role not in self.locator.perms.roles():
            raise ValidationError(f"Unknown role '{role}'", code="unknown_role")

    async def _apply_secret(self, user: User, password: str) -> None:
        crypto = self.locator.crypto
        if await crypto.verify_async(password, user.password_hash):
            return
        user.password_hash = await crypto.hash_async(password)
        self.log.info("user_secret_changed", user_id=str(user.id))

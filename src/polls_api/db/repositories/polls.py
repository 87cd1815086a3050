"""
polls_api.db.repositories.polls

Repository for `Poll` entities.

Responsibilities:
- Create, fetch, list (newest first) and delete polls.
- Deleting a poll removes its comments through the ORM cascade.
"""

from __future__ import annotations

import uuid

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from polls_api.db.models import Poll


class PollRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, author_id: uuid.UUID, title: str, options: list[str]) -> Poll:
        poll = Poll(author_id=author_id, title=title, options=options)
        self._session.add(poll)
        await self._session.flush()
        return poll

    async def get(self, poll_id: uuid.UUID) -> Poll | None:
        return await self._session.get(Poll, poll_id)

    async def list_all(self, *, limit: int = 100) -> list[Poll]:
        stmt = select(Poll).order_by(desc(Poll.created_at)).limit(limit)
        return list((await self._session.execute(stmt)).scalars().all())

    async def delete(self, poll_id: uuid.UUID) -> bool:
        poll = await self._session.get(Poll, poll_id)
        if poll is None:
            return False
        await self._session.delete(poll)
        await self._session.flush()
        return True

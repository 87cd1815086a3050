"""
polls_api.db.repositories.comments

Repository for `Comment` entities.
"""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from polls_api.db.models import Comment


class CommentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, *, poll_id: uuid.UUID, author_id: uuid.UUID, content: str) -> Comment:
        comment = Comment(poll_id=poll_id, author_id=author_id, content=content)
        self._session.add(comment)
        await self._session.flush()
        return comment

    async def list_for_poll(self, poll_id: uuid.UUID, *, limit: int = 200) -> list[Comment]:
        # Oldest first so threads read top-down.
        stmt = (
            select(Comment)
            .where(Comment.poll_id == poll_id)
            .order_by(Comment.created_at)
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars().all())

"""
polls_api.controllers.comments

Comment endpoints nested under a poll.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from polls_api.db.repositories.comments import CommentRepo
from polls_api.db.repositories.polls import PollRepo
from polls_api.errors import NotFound
from polls_api.services.context import RequestContext
from polls_api.services.controllers import Endpoint

if TYPE_CHECKING:
    from polls_api.services.locator import ServiceLocator


class CommentCreateRequest(BaseModel):
    content: str = Field(min_length=1, max_length=2000)


async def list_comments(locator: ServiceLocator, ctx: RequestContext) -> dict[str, Any]:
    poll_id = ctx.path_uuid("id")
    async with locator.db.session() as session:
        if await PollRepo(session).get(poll_id) is None:
            raise NotFound("Poll not found")
        comments = await CommentRepo(session).list_for_poll(poll_id)
        return {"comments": [c.to_dict() for c in comments]}


async def create_comment(locator: ServiceLocator, ctx: RequestContext) -> dict[str, Any]:
    author = ctx.require_principal()
    poll_id = ctx.path_uuid("id")
    body = ctx.parse(CommentCreateRequest)
    async with locator.db.session() as session:
        if await PollRepo(session).get(poll_id) is None:
            raise NotFound("Poll not found")
        comment = await CommentRepo(session).add(poll_id=poll_id, author_id=author.id, content=body.content)
        await session.commit()
        return {"id": str(comment.id)}


def endpoints() -> list[Endpoint]:
    tags = ("comments",)
    return [
        Endpoint("GET", "/polls/{id}/comments", list_comments, description="Gets the comments of a poll", tags=tags),
        Endpoint("POST", "/polls/{id}/comments", create_comment, capability="create:comments", status_code=201, description="Comments a poll", tags=tags),
    ]

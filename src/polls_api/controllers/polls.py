"""
polls_api.controllers.polls

Poll endpoints: public reads, capability-gated creation and deletion.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field
from starlette.responses import Response

from polls_api.db.repositories.polls import PollRepo
from polls_api.errors import NotFound
from polls_api.services.context import RequestContext
from polls_api.services.controllers import Endpoint

if TYPE_CHECKING:
    from polls_api.services.locator import ServiceLocator


class PollCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    options: list[str] = Field(min_length=2, max_length=20)


async def list_polls(locator: ServiceLocator, ctx: RequestContext) -> dict[str, Any]:
    async with locator.db.session() as session:
        polls = await PollRepo(session).list_all()
        return {"polls": [p.to_dict() for p in polls]}


async def get_poll(locator: ServiceLocator, ctx: RequestContext) -> dict[str, Any]:
    async with locator.db.session() as session:
        poll = await PollRepo(session).get(ctx.path_uuid("id"))
        if poll is None:
            raise NotFound("Poll not found")
        return {
            "poll": poll.to_dict(),
            "links": [
                {"rel": "Gets the poll comments", "action": "GET", "href": f"{ctx.base_url}/polls/{poll.id}/comments"},
            ],
        }


async def create_poll(locator: ServiceLocator, ctx: RequestContext) -> dict[str, Any]:
    author = ctx.require_principal()
    body = ctx.parse(PollCreateRequest)
    async with locator.db.session() as session:
        poll = await PollRepo(session).create(author_id=author.id, title=body.title, options=body.options)
        await session.commit()
        return {
            "id": str(poll.id),
            "links": [{"rel": "Gets the created poll", "action": "GET", "href": f"{ctx.base_url}/polls/{poll.id}"}],
        }


async def delete_poll(locator: ServiceLocator, ctx: RequestContext) -> Response:
    async with locator.db.session() as session:
        if not await PollRepo(session).delete(ctx.path_uuid("id")):
            raise NotFound("Poll not found")
        await session.commit()
    return Response(status_code=204)


def endpoints() -> list[Endpoint]:
    tags = ("polls",)
    return [
        Endpoint("GET", "/polls", list_polls, description="Gets all polls", tags=tags),
        Endpoint("GET", "/polls/{id}", get_poll, description="Gets a specific poll", tags=tags),
        Endpoint("POST", "/polls", create_poll, capability="create:polls", status_code=201, description="Creates a poll", tags=tags),
        Endpoint("DELETE", "/polls/{id}", delete_poll, capability="delete:polls", status_code=204, description="Deletes a poll", tags=tags),
    ]

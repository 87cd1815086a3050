"""
polls_api.controllers.users

User endpoints.

Responsibilities:
- Read the authenticated user (`/users/me`) and other users.
- Modify (PUT), update (PATCH) and delete users.

A principal may change its own profile with `write:profile`; changing someone
else's profile, or any role, additionally requires `write:users`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field
from starlette.responses import Response

from polls_api.controllers.auth import EMAIL_PATTERN
from polls_api.models import Principal
from polls_api.services.context import RequestContext
from polls_api.services.controllers import Endpoint, authenticate

if TYPE_CHECKING:
    from polls_api.services.locator import ServiceLocator


class UserModifyRequest(BaseModel):
    email: str = Field(pattern=EMAIL_PATTERN, max_length=320)
    name: str = Field(min_length=3, max_length=30)
    password: str = Field(min_length=8, max_length=72)


class UserUpdateRequest(BaseModel):
    email: str | None = Field(default=None, pattern=EMAIL_PATTERN, max_length=320)
    name: str | None = Field(default=None, min_length=3, max_length=30)
    password: str | None = Field(default=None, min_length=8, max_length=72)
    role: str | None = None


def _link(ctx: RequestContext, rel: str, action: str, user: Principal) -> dict[str, str]:
    return {"rel": rel, "action": action, "href": f"{ctx.base_url}/users/{user.id}"}


def _require_profile_access(locator: ServiceLocator, ctx: RequestContext, target_id) -> None:
    principal = ctx.require_principal()
    if principal.id != target_id:
        locator.perms.require(principal.role, "write:users")


async def get_me(locator: ServiceLocator, ctx: RequestContext) -> dict[str, Any]:
    user = ctx.require_principal()
    return {
        "user": user.public(),
        "links": [_link(ctx, "Gets the user informations from his ID", "GET", user)],
    }


async def list_users(locator: ServiceLocator, ctx: RequestContext) -> dict[str, Any]:
    users = await locator.users.list_all()
    return {"users": [u.public() for u in users]}


async def get_user(locator: ServiceLocator, ctx: RequestContext) -> dict[str, Any]:
    user = await locator.users.get(ctx.path_uuid("id"))
    return {
        "user": user.public(),
        "links": [
            _link(ctx, "Modify the user", "PUT", user),
            _link(ctx, "Update the user", "PATCH", user),
        ],
    }


async def modify_user(locator: ServiceLocator, ctx: RequestContext) -> dict[str, Any]:
    user_id = ctx.path_uuid("id")
    _require_profile_access(locator, ctx, user_id)
    body = ctx.parse(UserModifyRequest)
    user = await locator.users.modify(
        user_id, email=body.email, name=body.name, password=body.password
    )
    return {"id": str(user.id), "links": [_link(ctx, "Gets the modified user", "GET", user)]}


async def update_user(locator: ServiceLocator, ctx: RequestContext) -> dict[str, Any]:
    user_id = ctx.path_uuid("id")
    _require_profile_access(locator, ctx, user_id)
    body = ctx.parse(UserUpdateRequest)
    if body.role is not None:
        locator.perms.require(ctx.require_principal().role, "write:users")
    user = await locator.users.update(
        user_id, email=body.email, name=body.name, password=body.password, role=body.role
    )
    return {"id": str(user.id), "links": [_link(ctx, "Gets the updated user", "GET", user)]}


async def delete_user(locator: ServiceLocator, ctx: RequestContext) -> Response:
    await locator.users.delete(ctx.path_uuid("id"))
    return Response(status_code=204)


def endpoints() -> list[Endpoint]:
    tags = ("users",)
    return [
        Endpoint("GET", "/users/me", get_me, gates=(authenticate,), description="Gets the user from a provided token", tags=tags),
        Endpoint("GET", "/users", list_users, capability="read:users", description="Gets all users", tags=tags),
        Endpoint("GET", "/users/{id}", get_user, capability="read:users", description="Gets a specific user", tags=tags),
        Endpoint("PUT", "/users/{id}", modify_user, capability="write:profile", description="Modifies a user", tags=tags),
        Endpoint("PATCH", "/users/{id}", update_user, capability="write:profile", description="Updates a user", tags=tags),
        Endpoint("DELETE", "/users/{id}", delete_user, capability="delete:users", status_code=204, description="Deletes a user", tags=tags),
    ]

"""
polls_api.controllers.auth

Public registration and login endpoints.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from polls_api.services.context import RequestContext
from polls_api.services.controllers import Endpoint

if TYPE_CHECKING:
    from polls_api.services.locator import ServiceLocator

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$"


class RegisterRequest(BaseModel):
    email: str = Field(pattern=EMAIL_PATTERN, max_length=320)
    name: str = Field(min_length=3, max_length=30)
    password: str = Field(min_length=8, max_length=72)


class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


async def register(locator: ServiceLocator, ctx: RequestContext) -> dict[str, Any]:
    body = ctx.parse(RegisterRequest)
    user = await locator.users.register(email=body.email, name=body.name, password=body.password)
    return {
        "id": str(user.id),
        "links": [
            {"rel": "Request an access token", "action": "POST", "href": f"{ctx.base_url}/auth/token"},
        ],
    }


async def issue_token(locator: ServiceLocator, ctx: RequestContext) -> dict[str, Any]:
    body = ctx.parse(LoginRequest)
    principal, token = await locator.auth.login(body.email, body.password)
    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_in": int(locator.tokens.default_ttl.total_seconds()),
        "links": [
            {"rel": "Gets the authenticated user", "action": "GET", "href": f"{ctx.base_url}/users/me"},
        ],
    }


def endpoints() -> list[Endpoint]:
    return [
        Endpoint("POST", "/auth/register", register, status_code=201, description="Registers a user", tags=("auth",)),
        Endpoint("POST", "/auth/token", issue_token, description="Exchanges credentials for a token", tags=("auth",)),
    ]

"""
polls_api.services.context

Per-request state threaded through the access pipeline.

Responsibilities:
- Abstract where a caller placed its credential (`CredentialSource`).
- Carry path params, parsed body, the resolved principal and a cancellation probe.

A `RequestContext` is created for exactly one request and never shared.
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from starlette.requests import Request

from polls_api.errors import NotFound, RequestCancelled, Unauthenticated, ValidationError
from polls_api.models import Principal

M = TypeVar("M", bound=BaseModel)


class CredentialSource(Protocol):
    def header_token(self) -> str | None: ...

    def body_token(self) -> str | None: ...


@dataclass(frozen=True, slots=True)
class StaticCredentials:
    """
    Credential source with explicit values; used outside HTTP (tests, internal calls).
    """

    header: str | None = None
    body: str | None = None

    def header_token(self) -> str | None:
        return self.header

    def body_token(self) -> str | None:
        return self.body


@dataclass(frozen=True, slots=True)
class HttpCredentials:
    """
    `Authorization: Bearer <token>` first, then a `token` field in the JSON body.
    """

    authorization: str | None
    body: Mapping[str, Any]

    def header_token(self) -> str | None:
        if not self.authorization:
            return None
        scheme, _, value = self.authorization.partition(" ")
        if scheme.lower() != "bearer" or not value.strip():
            return None
        return value.strip()

    def body_token(self) -> str | None:
        token = self.body.get("token")
        return token if isinstance(token, str) and token else None


@dataclass(slots=True, eq=False)
class RequestContext:
    credentials: CredentialSource
    params: Mapping[str, str] = field(default_factory=dict)
    body: Mapping[str, Any] = field(default_factory=dict)
    principal: Principal | None = None
    base_url: str = ""
    is_cancelled: Callable[[], Awaitable[bool]] | None = None

    @classmethod
    async def from_request(cls, request: Request) -> RequestContext:
        body: Any = {}
        # Body is read before any gate runs so the disconnect probe cannot consume it.
        raw = await request.body()
        if raw:
            try:
                body = json.loads(raw)
            except json.JSONDecodeError as e:
                raise ValidationError("Request body must be valid JSON") from e
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")

        return cls(
            credentials=HttpCredentials(request.headers.get("authorization"), body),
            params=dict(request.path_params),
            body=body,
            base_url=str(request.base_url).rstrip("/"),
            is_cancelled=request.is_disconnected,
        )

    async def check_cancelled(self) -> None:
        if self.is_cancelled is not None and await self.is_cancelled():
            raise RequestCancelled()

    def require_principal(self) -> Principal:
        if self.principal is None:
            raise Unauthenticated()
        return self.principal

    def path_uuid(self, name: str) -> uuid.UUID:
        # A malformed id cannot match any row.
        try:
            return uuid.UUID(self.params[name])
        except (KeyError, ValueError) as e:
            raise NotFound() from e

    def parse(self, model: type[M]) -> M:
        data = {k: v for k, v in self.body.items() if k != "token"}
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            fields = [
                {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                for err in e.errors()
            ]
            raise ValidationError("Invalid request body", fields=fields) from e

"""
polls_api.services.controllers

Access pipeline: endpoint registry + gate chain dispatch.

Responsibilities:
- Hold the merged `Endpoint` declarations of every resource module.
- Dispatch a request through its endpoint's gates, then its handler.
- Mount the registry onto a FastAPI application.

Standard chain for a protected endpoint is `authenticate` -> `authorize`.
A gate signals failure by raising a `ServiceError`; the handler never runs then.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI
from starlette.requests import Request

from polls_api.errors import Forbidden, ServiceError
from polls_api.services.base import Service
from polls_api.services.context import RequestContext

if TYPE_CHECKING:
    from polls_api.services.locator import ServiceLocator

Handler = Callable[["ServiceLocator", RequestContext], Awaitable[Any]]
Gate = Callable[["ServiceLocator", "Endpoint", RequestContext], Awaitable[None]]


async def authenticate(locator: ServiceLocator, endpoint: Endpoint, ctx: RequestContext) -> None:
    await locator.auth.authenticate(ctx)


async def authorize(locator: ServiceLocator, endpoint: Endpoint, ctx: RequestContext) -> None:
    if endpoint.capability is None:
        return
    principal = ctx.require_principal()
    if not locator.perms.is_allowed(principal.role, endpoint.capability):
        raise Forbidden(
            f"Role '{principal.role}' lacks '{endpoint.capability}'",
            code="missing_capability",
        )


@dataclass(frozen=True, slots=True)
class Endpoint:
    method: str
    path: str
    handler: Handler
    capability: str | None = None
    gates: tuple[Gate, ...] | None = None
    description: str | None = None
    status_code: int = 200
    tags: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", self.method.upper())
        if self.gates is None:
            default = (authenticate, authorize) if self.capability is not None else ()
            object.__setattr__(self, "gates", default)
        if self.capability is not None and authorize not in self.gates:
            raise ValueError(f"{self.method} {self.path}: capability declared without authorize gate")

    @property
    def key(self) -> tuple[str, str]:
        return self.method, self.path

    @property
    def is_public(self) -> bool:
        return not self.gates


class ControllerService(Service):
    name = "controllers"

    def __init__(self, locator, endpoints: Iterable[Endpoint] = ()) -> None:
        super().__init__(locator)
        self._endpoints: dict[tuple[str, str], Endpoint] = {}
        for endpoint in endpoints:
            self.register(endpoint)

    @property
    def endpoints(self) -> tuple[Endpoint, ...]:
        return tuple(self._endpoints.values())

    def register(self, endpoint: Endpoint) -> None:
        if endpoint.key in self._endpoints:
            raise ValueError(f"Duplicate endpoint {endpoint.method} {endpoint.path}")
        self._endpoints[endpoint.key] = endpoint

    def find(self, method: str, path: str) -> Endpoint | None:
        return self._endpoints.get((method.upper(), path))

    async def dispatch(self, endpoint: Endpoint, ctx: RequestContext) -> Any:
        for gate in endpoint.gates:
            await ctx.check_cancelled()
            try:
                await gate(self.locator, endpoint, ctx)
            except ServiceError as e:
                self.log.info(
                    "gate_rejected",
                    endpoint=f"{endpoint.method} {endpoint.path}",
                    gate=gate.__name__,
                    reason=e.code,
                )
                raise
        await ctx.check_cancelled()
        return await endpoint.handler(self.locator, ctx)

    def mount(self, app: FastAPI) -> None:
        for endpoint in self._endpoints.values():
            app.add_api_route(
                endpoint.path,
                self._route(endpoint),
                methods=[endpoint.method],
                status_code=endpoint.status_code,
                response_model=None,
                name=endpoint.handler.__name__,
                description=endpoint.description,
                tags=list(endpoint.tags),
            )
            access = endpoint.capability or ("authenticated" if endpoint.gates else "public")
            self.log.info(
                "endpoint_registered",
                method=endpoint.method,
                path=endpoint.path,
                access=access,
            )

    def _route(self, endpoint: Endpoint):
        async def route(request: Request) -> Any:
            ctx = await RequestContext.from_request(request)
            return await self.dispatch(endpoint, ctx)

        route.__name__ = endpoint.handler.__name__
        return route


# --- Module Notes -----------------------------------------------------------
# Resource modules never subclass anything here: they only build `Endpoint`
# tuples (see `polls_api.controllers`).

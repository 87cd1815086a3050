"""
tests.test_pipeline

Access pipeline dispatch: gate ordering, short-circuiting and the
authenticate -> authorize -> handle chain end to end.
"""

from __future__ import annotations

import pytest

from conftest import OTHER_KEY, InMemoryPrincipalStore, make_principal
from polls_api.errors import Forbidden, Unauthenticated
from polls_api.services.context import RequestContext, StaticCredentials
from polls_api.services.controllers import ControllerService, Endpoint, authenticate, authorize
from polls_api.services.locator import ServiceLocator


class RecordingHandler:
    def __init__(self) -> None:
        self.calls: list[RequestContext] = []
        self.__name__ = "recording_handler"

    async def __call__(self, locator: ServiceLocator, ctx: RequestContext) -> dict:
        self.calls.append(ctx)
        return {"ok": True}


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def pipeline(locator: ServiceLocator, handler: RecordingHandler) -> tuple[ControllerService, Endpoint]:
    endpoint = Endpoint("PATCH", "/users/{id}", handler, capability="write:profile")
    return ControllerService(locator, endpoints=[endpoint]), endpoint


def _ctx(token: str | None) -> RequestContext:
    return RequestContext(credentials=StaticCredentials(header=token))


@pytest.mark.asyncio
async def test_permitted_principal_reaches_handler(locator, store: InMemoryPrincipalStore, pipeline, handler) -> None:
    controllers, endpoint = pipeline
    u1 = make_principal(role="user")
    store.add(u1)

    result = await controllers.dispatch(endpoint, _ctx(locator.tokens.issue(u1.subject)))

    assert result == {"ok": True}
    assert len(handler.calls) == 1
    assert handler.calls[0].principal == u1


@pytest.mark.asyncio
async def test_foreign_signature_rejected_before_handler(locator, store, pipeline, handler) -> None:
    controllers, endpoint = pipeline
    u1 = make_principal(role="user")
    store.add(u1)
    token = locator.tokens.issue(u1.subject, signing_key=OTHER_KEY)

    with pytest.raises(Unauthenticated):
        await controllers.dispatch(endpoint, _ctx(token))
    assert handler.calls == []


@pytest.mark.asyncio
async def test_missing_capability_is_forbidden(locator, store, pipeline, handler) -> None:
    controllers, endpoint = pipeline
    guest = make_principal(role="guest", name="gus")
    store.add(guest)
    ctx = _ctx(locator.tokens.issue(guest.subject))

    with pytest.raises(Forbidden) as exc:
        await controllers.dispatch(endpoint, ctx)

    # Authentication itself succeeded; only the capability was missing.
    assert ctx.principal == guest
    assert exc.value.code == "missing_capability"
    assert handler.calls == []


@pytest.mark.asyncio
async def test_unknown_role_is_forbidden_not_an_error(locator, store, pipeline, handler) -> None:
    controllers, endpoint = pipeline
    ghost = make_principal(role="retired-role", name="ghost")
    store.add(ghost)

    with pytest.raises(Forbidden):
        await controllers.dispatch(endpoint, _ctx(locator.tokens.issue(ghost.subject)))


@pytest.mark.asyncio
async def test_public_endpoint_runs_no_gates(locator, handler) -> None:
    endpoint = Endpoint("GET", "/polls", handler)
    assert endpoint.is_public
    await ControllerService(locator).dispatch(endpoint, _ctx(None))
    assert handler.calls[0].principal is None


@pytest.mark.asyncio
async def test_gates_run_in_order_and_stop_at_first_failure(locator, handler) -> None:
    seen: list[str] = []

    async def first(loc, ep, ctx) -> None:
        seen.append("first")

    async def failing(loc, ep, ctx) -> None:
        seen.append("failing")
        raise Forbidden()

    async def never(loc, ep, ctx) -> None:
        seen.append("never")

    endpoint = Endpoint("POST", "/x", handler, gates=(first, failing, never))
    with pytest.raises(Forbidden):
        await ControllerService(locator).dispatch(endpoint, _ctx(None))

    assert seen == ["first", "failing"]
    assert handler.calls == []


def test_default_gate_chains(handler) -> None:
    assert Endpoint("GET", "/a", handler).gates == ()
    assert Endpoint("GET", "/b", handler, capability="read:users").gates == (authenticate, authorize)
    assert Endpoint("get", "/c", handler).method == "GET"


def test_capability_requires_authorize_gate(handler) -> None:
    with pytest.raises(ValueError):
        Endpoint("GET", "/a", handler, capability="read:users", gates=(authenticate,))


def test_duplicate_endpoint_rejected(locator, handler) -> None:
    controllers = ControllerService(locator, endpoints=[Endpoint("GET", "/a", handler)])
    with pytest.raises(ValueError):
        controllers.register(Endpoint("get", "/a", handler))
    assert controllers.find("GET", "/a") is not None


def test_default_registry_declares_resources(locator) -> None:
    keys = {e.key for e in locator.controllers.endpoints}
    assert ("GET", "/users/me") in keys
    assert ("PATCH", "/users/{id}") in keys
    assert ("POST", "/polls") in keys
    assert ("POST", "/polls/{id}/comments") in keys
    assert locator.controllers.find("DELETE", "/users/{id}").capability == "delete:users"

"""
tests.test_authentication

AuthenticationService: credential channels, token failures and principal lookup.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import OTHER_KEY, InMemoryPrincipalStore, make_principal
from polls_api.errors import RequestCancelled, Unauthenticated
from polls_api.services.context import HttpCredentials, RequestContext, StaticCredentials
from polls_api.services.locator import ServiceLocator


@pytest.fixture
def alice(store: InMemoryPrincipalStore):
    principal = make_principal()
    store.add(principal)
    return principal


def _ctx(header: str | None = None, body: str | None = None) -> RequestContext:
    return RequestContext(credentials=StaticCredentials(header=header, body=body))


@pytest.mark.asyncio
async def test_header_token_resolves_principal(locator: ServiceLocator, alice) -> None:
    ctx = _ctx(header=locator.tokens.issue(alice.subject))
    principal = await locator.auth.authenticate(ctx)
    assert principal == alice
    assert ctx.principal == alice


@pytest.mark.asyncio
async def test_body_token_used_when_header_absent(locator: ServiceLocator, alice) -> None:
    ctx = _ctx(body=locator.tokens.issue(alice.subject))
    assert await locator.auth.authenticate(ctx) == alice


@pytest.mark.asyncio
async def test_header_wins_over_body(locator: ServiceLocator, alice) -> None:
    good = locator.tokens.issue(alice.subject)
    with pytest.raises(Unauthenticated) as exc:
        await locator.auth.authenticate(_ctx(header="garbage", body=good))
    assert exc.value.code == "malformed_token"


@pytest.mark.asyncio
async def test_missing_token(locator: ServiceLocator) -> None:
    with pytest.raises(Unauthenticated) as exc:
        await locator.auth.authenticate(_ctx())
    assert exc.value.code == "missing_token"


@pytest.mark.asyncio
async def test_expired_token(locator: ServiceLocator, alice) -> None:
    token = locator.tokens.issue(alice.subject, ttl=timedelta(seconds=-1))
    with pytest.raises(Unauthenticated) as exc:
        await locator.auth.authenticate(_ctx(header=token))
    assert exc.value.code == "token_expired"


@pytest.mark.asyncio
async def test_foreign_key_token(locator: ServiceLocator, alice, store) -> None:
    token = locator.tokens.issue(alice.subject, signing_key=OTHER_KEY)
    with pytest.raises(Unauthenticated) as exc:
        await locator.auth.authenticate(_ctx(header=token))
    assert exc.value.code == "invalid_signature"
    # Claims of an unverified token are never used.
    assert store.lookups == []


@pytest.mark.asyncio
async def test_deleted_principal_with_valid_token(locator: ServiceLocator, alice, store) -> None:
    token = locator.tokens.issue(alice.subject)
    store.remove(alice)
    with pytest.raises(Unauthenticated) as exc:
        await locator.auth.authenticate(_ctx(header=token))
    assert exc.value.code == "unknown_subject"


@pytest.mark.asyncio
async def test_attached_principal_short_circuits(locator: ServiceLocator, alice, store) -> None:
    ctx = _ctx()
    ctx.principal = alice
    assert await locator.auth.authenticate(ctx) is alice
    assert store.lookups == []


@pytest.mark.asyncio
async def test_cancelled_request_stops_before_lookup(locator: ServiceLocator, alice, store) -> None:
    async def disconnected() -> bool:
        return True

    ctx = _ctx(header=locator.tokens.issue(alice.subject))
    ctx.is_cancelled = disconnected
    with pytest.raises(RequestCancelled):
        await locator.auth.authenticate(ctx)
    assert store.lookups == []


@pytest.mark.parametrize(
    ("authorization", "expected"),
    [
        ("Bearer abc.def.ghi", "abc.def.ghi"),
        ("bearer   abc.def.ghi  ", "abc.def.ghi"),
        ("Basic dXNlcjpwYXNz", None),
        ("Bearer ", None),
        (None, None),
    ],
)
def test_http_header_channel(authorization, expected) -> None:
    assert HttpCredentials(authorization, {}).header_token() == expected


def test_http_body_channel() -> None:
    assert HttpCredentials(None, {"token": "abc"}).body_token() == "abc"
    assert HttpCredentials(None, {"token": 42}).body_token() is None
    assert HttpCredentials(None, {}).body_token() is None

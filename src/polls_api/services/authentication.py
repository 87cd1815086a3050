"""
polls_api.services.authentication

Request authentication.

Responsibilities:
- Turn a request's credential into a `Principal` (token decode + store lookup).
- Issue access tokens for the login flow.

Token failures are surfaced as `Unauthenticated` with a machine-readable reason
(`token_expired`, `invalid_signature`, ...) and no further detail.
"""

from __future__ import annotations

from typing import Protocol

from polls_api.errors import TokenError, Unauthenticated
from polls_api.models import Principal
from polls_api.services.base import Service
from polls_api.services.context import RequestContext


class PrincipalStore(Protocol):
    async def find_by_id(self, principal_id: str) -> Principal | None: ...


class AuthenticationService(Service):
    name = "auth"

    def __init__(self, locator) -> None:
        super().__init__(locator)
        self._dummy_hash: str | None = None

    async def authenticate(self, ctx: RequestContext) -> Principal:
        # An earlier gate already resolved the caller.
        if ctx.principal is not None:
            return ctx.principal

        raw = ctx.credentials.header_token() or ctx.credentials.body_token()
        if not raw:
            raise Unauthenticated("Missing access token", code="missing_token")

        try:
            payload = self.locator.tokens.decode(raw, self.settings.jwt_secret)
        except TokenError as e:
            self.log.info("token_rejected", reason=e.code)
            raise Unauthenticated(e.description, code=e.code) from e

        await ctx.check_cancelled()

        principal = await self.locator.principals.find_by_id(payload.subject)
        if principal is None:
            # Valid token for a deleted account.
            self.log.info("token_subject_unknown", subject=payload.subject)
            raise Unauthenticated("Unknown principal", code="unknown_subject")

        ctx.principal = principal
        return principal

    async def login(self, email: str, password: str) -> tuple[Principal, str]:
        crypto = self.locator.crypto
        principal = await self.locator.users.find_by_email(email)
        if principal is None:
            # Spend the same hashing time whether or not the account exists.
            if self._dummy_hash is None:
                self._dummy_hash = await crypto.hash_async("polls-api-dummy-secret")
            await crypto.verify_async(password, self._dummy_hash)
            raise Unauthenticated("Invalid email or password", code="invalid_credentials")

        if not await crypto.verify_async(password, principal.password_hash):
            raise Unauthenticated("Invalid email or password", code="invalid_credentials")

        token = self.locator.tokens.issue(principal.subject, claims={"role": principal.role})
        self.log.info("login_succeeded", subject=principal.subject)
        return principal, token

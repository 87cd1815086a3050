"""
polls_api.services.tokens

Signed, time-bound access tokens (JWT, HS256 by default).

Responsibilities:
- Encode a `TokenPayload` (subject, issued-at, expiry, custom claims) and sign it.
- Decode and validate a token: signature first, then expiry, then claim shape.
- Map every PyJWT failure onto `InvalidSignature`, `TokenExpired` or `MalformedToken`.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

import jwt
from jwt import DecodeError, InvalidSignatureError, InvalidTokenError

from polls_api.errors import (
    ConfigurationError,
    InvalidSignature,
    MalformedToken,
    TokenExpired,
)
from polls_api.services.base import Service

RESERVED_CLAIMS = frozenset({"sub", "iat", "exp"})


@dataclass(frozen=True, slots=True)
class TokenPayload:
    """
    Claims carried by an access token. Timestamps are integer epoch seconds.
    """

    subject: str
    issued_at: int
    expires_at: int
    claims: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        clash = RESERVED_CLAIMS.intersection(self.claims)
        if clash:
            raise ValueError(f"Custom claims may not override {sorted(clash)}")

    def to_claims(self) -> dict[str, Any]:
        return {
            **self.claims,
            "sub": self.subject,
            "iat": self.issued_at,
            "exp": self.expires_at,
        }

    @classmethod
    def from_claims(cls, raw: Mapping[str, Any]) -> TokenPayload:
        subject, iat, exp = raw.get("sub"), raw.get("iat"), raw.get("exp")
        if not isinstance(subject, str) or not subject:
            raise MalformedToken("Token subject missing")
        if not isinstance(iat, int) or not isinstance(exp, int):
            raise MalformedToken("Token timestamps must be integers")
        extra = {k: v for k, v in raw.items() if k not in RESERVED_CLAIMS}
        return cls(subject=subject, issued_at=iat, expires_at=exp, claims=extra)


class TokenService(Service):
    name = "tokens"

    def __init__(self, locator, *, clock: Callable[[], float] = time.time) -> None:
        super().__init__(locator)
        self.algorithm = self.settings.jwt_alg
        self.clock = clock

    @property
    def default_ttl(self) -> timedelta:
        return timedelta(minutes=self.settings.access_token_ttl_minutes)

    def _key(self, signing_key: str | None) -> str:
        key = self.settings.jwt_secret if signing_key is None else signing_key
        if not key:
            raise ConfigurationError("Signing key is empty")
        return key

    def encode(self, payload: TokenPayload, signing_key: str | None = None) -> str:
        return jwt.encode(payload.to_claims(), self._key(signing_key), algorithm=self.algorithm)

    def issue(
        self,
        subject: str,
        *,
        ttl: timedelta | None = None,
        claims: Mapping[str, Any] | None = None,
        signing_key: str | None = None,
    ) -> str:
        now = int(self.clock())
        lifetime = int((ttl or self.default_ttl).total_seconds())
        payload = TokenPayload(
            subject=subject,
            issued_at=now,
            expires_at=now + lifetime,
            claims=dict(claims or {}),
        )
        return self.encode(payload, signing_key)

    def decode(self, token: str, signing_key: str | None = None) -> TokenPayload:
        key = self._key(signing_key)
        if not isinstance(token, str) or token.count(".") != 2:
            raise MalformedToken()

        try:
            # Signature is verified by PyJWT before any claim is inspected.
            raw = jwt.decode(
                token,
                key,
                algorithms=[self.algorithm],
                options={
                    "require": ["exp", "iat", "sub"],
                    # Expiry is checked below against our own clock.
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except InvalidSignatureError as e:
            raise InvalidSignature() from e
        except (DecodeError, InvalidTokenError) as e:
            raise MalformedToken() from e

        payload = TokenPayload.from_claims(raw)
        if self.clock() >= payload.expires_at:
            raise TokenExpired()
        return payload


# --- Module Notes -----------------------------------------------------------
# There is no revocation list and the signing key is fixed for the process
# lifetime: a token stays valid until its `exp` passes.

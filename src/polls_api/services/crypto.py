"""
polls_api.services.crypto

One-way secret hashing (bcrypt via passlib).

Responsibilities:
- Hash secrets with a tunable cost factor and verify candidates against a hash.
- Offer thread-offloaded variants so hashing never blocks the event loop.
"""

from __future__ import annotations

import asyncio

from passlib.context import CryptContext
from passlib.exc import UnknownHashError

from polls_api.errors import CryptoError
from polls_api.services.base import Service


class CryptoService(Service):
    name = "crypto"

    def __init__(self, locator) -> None:
        super().__init__(locator)
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto")
        self._handler = self._context.handler("bcrypt")
        # Fail at startup rather than on the first registration.
        self.default_cost_factor = self._check_cost_factor(self.settings.hash_cost_factor)

    @property
    def cost_range(self) -> tuple[int, int]:
        return self._handler.min_rounds, self._handler.max_rounds

    def _check_cost_factor(self, cost_factor: int) -> int:
        low, high = self.cost_range
        if isinstance(cost_factor, bool) or not isinstance(cost_factor, int):
            raise CryptoError(f"Cost factor must be an integer in [{low}, {high}]")
        if not low <= cost_factor <= high:
            raise CryptoError(f"Cost factor {cost_factor} outside [{low}, {high}]")
        return cost_factor

    def hash(self, secret: str, cost_factor: int | None = None) -> str:
        rounds = self._check_cost_factor(
            self.default_cost_factor if cost_factor is None else cost_factor
        )
        try:
            return self._handler.using(rounds=rounds).hash(secret)
        except (ValueError, TypeError) as e:
            # Never include the secret itself in the message.
            raise CryptoError(f"Hashing failed: {type(e).__name__}") from e

    def verify(self, secret: str, hashed: str) -> bool:
        try:
            return self._context.verify(secret, hashed)
        except (UnknownHashError, ValueError, TypeError):
            self.log.warning("hash_verify_rejected_malformed_hash")
            return False

    async def hash_async(self, secret: str, cost_factor: int | None = None) -> str:
        return await asyncio.to_thread(self.hash, secret, cost_factor)

    async def verify_async(self, secret: str, hashed: str) -> bool:
        return await asyncio.to_thread(self.verify, secret, hashed)

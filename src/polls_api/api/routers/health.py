"""
polls_api.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness probe (`/healthz`).
- Provide readiness probe (`/readyz`) with DB connectivity validation.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from polls_api.api.deps import get_locator
from polls_api.services.locator import ServiceLocator

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(locator: ServiceLocator = Depends(get_locator)) -> dict[str, str]:
    await locator.db.ping()
    return {"status": "ready"}

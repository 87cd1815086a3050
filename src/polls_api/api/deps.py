"""
polls_api.api.deps

FastAPI dependency wiring for routers that sit outside the access pipeline.
"""

from __future__ import annotations

from fastapi import Request

from polls_api.services.locator import ServiceLocator


def get_locator(request: Request) -> ServiceLocator:
    # The locator is attached in `polls_api.api.app.create_app`.
    return request.app.state.locator  # type: ignore[attr-defined]

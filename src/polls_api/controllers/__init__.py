"""
polls_api.controllers

Per-resource endpoint declarations.

Each module exposes `endpoints()` returning `Endpoint` tuples (method, path,
required capability, gates, handler). `ControllerService` merges them.
"""

from __future__ import annotations

from polls_api.controllers import auth, comments, polls, users
from polls_api.services.controllers import Endpoint


def default_endpoints() -> list[Endpoint]:
    # Order matters for routing: literal paths (`/users/me`) before templated ones.
    return [
        *auth.endpoints(),
        *users.endpoints(),
        *polls.endpoints(),
        *comments.endpoints(),
    ]

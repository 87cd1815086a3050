"""
polls_api.models

Domain records shared by services and controllers.

Responsibilities:
- Define `Principal`, the authenticated user attached to a request.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Snapshot of a user row. Carries data only; hashing happens in `UserService`.
    """

    id: uuid.UUID
    email: str
    name: str
    role: str
    created_at: datetime
    updated_at: datetime
    password_hash: str = field(default="", repr=False, compare=False)

    @property
    def subject(self) -> str:
        return str(self.id)

    def public(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

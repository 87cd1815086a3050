"""
polls_api.services.permissions

Role -> capability resolution.

Responsibilities:
- Load the role table once (settings or JSON file) into a typed, immutable `RoleTable`.
- Reject tables without exactly one default role at construction time.
- Answer capability membership questions for the access pipeline.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from polls_api.errors import Forbidden, RoleConfigError, UnknownRole
from polls_api.services.base import Service
from polls_api.settings import RoleConfig

_ROLE_FILE_ADAPTER = TypeAdapter(dict[str, RoleConfig])


@dataclass(frozen=True, slots=True)
class Role:
    name: str
    capabilities: frozenset[str]
    default: bool = False


@dataclass(frozen=True, slots=True)
class RoleTable:
    roles: Mapping[str, Role]
    default_role: str

    @classmethod
    def from_config(cls, config: Mapping[str, RoleConfig]) -> RoleTable:
        if not config:
            raise RoleConfigError("Role table is empty")

        roles = {
            name: Role(name=name, capabilities=frozenset(cfg.capabilities), default=cfg.default)
            for name, cfg in config.items()
        }
        defaults = sorted(name for name, role in roles.items() if role.default)
        if len(defaults) != 1:
            raise RoleConfigError(
                f"Exactly one default role is required, found {len(defaults)}: {defaults}"
            )
        return cls(roles=MappingProxyType(roles), default_role=defaults[0])


def load_role_file(path: Path) -> dict[str, RoleConfig]:
    try:
        return _ROLE_FILE_ADAPTER.validate_python(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, json.JSONDecodeError, PydanticValidationError) as e:
        raise RoleConfigError(f"Cannot load role file {path}: {type(e).__name__}") from e


class PermissionService(Service):
    name = "perms"

    def __init__(self, locator) -> None:
        super().__init__(locator)
        source = self.settings.roles
        if self.settings.roles_file is not None:
            source = load_role_file(self.settings.roles_file)
        self.table = RoleTable.from_config(source)
        self.log.info(
            "roles_loaded",
            roles=sorted(self.table.roles),
            default_role=self.table.default_role,
        )

    def roles(self) -> tuple[str, ...]:
        return tuple(self.table.roles)

    def default_role(self) -> str:
        return self.table.default_role

    def capabilities_of(self, role_name: str) -> frozenset[str]:
        role = self.table.roles.get(role_name)
        if role is None:
            raise UnknownRole(f"Unknown role '{role_name}'")
        return role.capabilities

    def is_allowed(self, role_name: str, capability: str) -> bool:
        role = self.table.roles.get(role_name)
        return role is not None and capability in role.capabilities

    def require(self, role_name: str, capability: str) -> None:
        if not self.is_allowed(role_name, capability):
            raise Forbidden(code="missing_capability", description=f"Requires '{capability}'")

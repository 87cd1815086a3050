"""
polls_api.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (e.g., JWT signing key).
- Refuse to build a configuration that must not serve traffic.
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_JWT_SECRET = "dev-secret-change-me-please-32-bytes"


class RoleConfig(BaseModel):
    """
    One entry of the role table as it appears in configuration.
    """

    capabilities: list[str] = Field(default_factory=list)
    default: bool = False


def _default_roles() -> dict[str, RoleConfig]:
    user_caps = [
        "read:users",
        "write:profile",
        "create:polls",
        "create:comments",
    ]
    admin_caps = user_caps + [
        "write:users",
        "delete:users",
        "delete:polls",
    ]
    return {
        "user": RoleConfig(capabilities=user_caps, default=True),
        "admin": RoleConfig(capabilities=admin_caps),
    }


class Settings(BaseSettings):
    """
    - Strict env-driven configuration
    - Defaults safe for local dev
    - Single settings object owned by the service locator
    """

    model_config = SettingsConfigDict(env_prefix="POLLS_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "polls-api"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Auth
    jwt_alg: str = "HS256"
    jwt_secret: str = Field(default=DEV_JWT_SECRET, repr=False)
    access_token_ttl_minutes: int = Field(default=60, gt=0)
    hash_cost_factor: int = Field(default=12, gt=0)

    # Role table: name -> capabilities + default flag. `roles_file` (JSON) wins when set.
    roles: dict[str, RoleConfig] = Field(default_factory=_default_roles)
    roles_file: Path | None = None

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./polls.db"

    @model_validator(mode="after")
    def _check_signing_key(self) -> Settings:
        if not self.jwt_secret:
            raise ValueError("jwt_secret must not be empty")
        if self.env == "prod" and self.jwt_secret == DEV_JWT_SECRET:
            raise ValueError("jwt_secret must be overridden in prod")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars on every call.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Role tables are validated by PermissionService, not here, so that a role file
# loaded from disk goes through the same exactly-one-default check.

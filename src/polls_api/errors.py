"""
polls_api.errors

Error taxonomy shared by services, gates and handlers.

Responsibilities:
- Give every expected failure a machine-readable `code` and an HTTP status.
- Separate caller-recoverable rejections from fatal configuration errors.
"""

from __future__ import annotations

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)


class ServiceError(Exception):
    """
    Base for failures rendered to the caller as `{"error": code, "error_description": ...}`.
    """

    code: str = "server_error"
    status_code: int = HTTP_500_INTERNAL_SERVER_ERROR
    description: str = "Internal server error"

    def __init__(self, description: str | None = None, *, code: str | None = None) -> None:
        if description is not None:
            self.description = description
        if code is not None:
            self.code = code
        super().__init__(self.description)


# --- Gate rejections (recoverable by the caller) ----------------------------


class Unauthenticated(ServiceError):
    code = "unauthenticated"
    status_code = HTTP_401_UNAUTHORIZED
    description = "Authentication required"


class Forbidden(ServiceError):
    code = "forbidden"
    status_code = HTTP_403_FORBIDDEN
    description = "Insufficient permissions"


class ValidationError(ServiceError):
    code = "validation_error"
    status_code = HTTP_400_BAD_REQUEST
    description = "Invalid input"

    def __init__(
        self,
        description: str | None = None,
        *,
        code: str | None = None,
        fields: list[dict[str, str]] | None = None,
    ) -> None:
        super().__init__(description, code=code)
        self.fields = fields or []


class NotFound(ServiceError):
    code = "not_found"
    status_code = HTTP_404_NOT_FOUND
    description = "Resource not found"


class Conflict(ServiceError):
    code = "conflict"
    status_code = HTTP_409_CONFLICT
    description = "Resource already exists"


class RequestCancelled(ServiceError):
    code = "request_cancelled"
    status_code = 499
    description = "Client closed request"


# --- Token decoding ---------------------------------------------------------


class TokenError(ServiceError):
    code = "invalid_token"
    status_code = HTTP_401_UNAUTHORIZED
    description = "Invalid token"


class InvalidSignature(TokenError):
    code = "invalid_signature"
    description = "Token signature mismatch"


class TokenExpired(TokenError):
    code = "token_expired"
    description = "Token expired"


class MalformedToken(TokenError, ValidationError):
    code = "malformed_token"
    status_code = HTTP_401_UNAUTHORIZED
    description = "Token could not be parsed"


# --- Internal / fatal -------------------------------------------------------


class CryptoError(ServiceError):
    code = "crypto_error"
    description = "Secret hashing failed"


class UnknownRole(ServiceError):
    code = "unknown_role"
    description = "Unknown role"


class ConfigurationError(ServiceError):
    """
    Fatal at startup: the process must not serve traffic with this configuration.
    """

    code = "configuration_error"
    description = "Invalid configuration"


class RoleConfigError(ConfigurationError):
    code = "role_config_error"
    description = "Invalid role configuration"


class ServiceCycleError(ConfigurationError):
    code = "service_cycle"

    def __init__(self, path: list[str]) -> None:
        self.path = path
        super().__init__("Service construction cycle: " + " -> ".join(path))


class UnknownServiceError(ConfigurationError):
    code = "unknown_service"


# --- Module Notes -----------------------------------------------------------
# Only gate rejections and resource errors surface their description to callers;
# internal failures are rendered as a generic `server_error` by `api.app`.

"""
polls_api.services.locator

Dependency-injection root for the service graph.

Responsibilities:
- Construct each service on first access and cache it for the locator's lifetime.
- Serialize first-access construction across threads; cached reads take no lock.
- Detect construction-time cycles and report the offending path.

A locator is an ordinary object: `api.app.create_app` builds one per application
and tests build their own. There is no module-level instance.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from typing import Any

from polls_api.controllers import default_endpoints
from polls_api.errors import ConfigurationError, ServiceCycleError, UnknownServiceError
from polls_api.observability.logging import get_logger
from polls_api.services.authentication import AuthenticationService, PrincipalStore
from polls_api.services.controllers import ControllerService
from polls_api.services.crypto import CryptoService
from polls_api.services.database import DatabasePrincipalStore, DatabaseService
from polls_api.services.permissions import PermissionService
from polls_api.services.tokens import TokenService
from polls_api.services.users import UserService
from polls_api.settings import Settings

log = get_logger(__name__)

ServiceFactory = Callable[["ServiceLocator"], Any]


def _principals(locator: ServiceLocator) -> PrincipalStore:
    return DatabasePrincipalStore(locator.db)


def _controllers(locator: ServiceLocator) -> ControllerService:
    return ControllerService(locator, endpoints=default_endpoints())


DEFAULT_FACTORIES: dict[str, ServiceFactory] = {
    "db": DatabaseService,
    "crypto": CryptoService,
    "tokens": TokenService,
    "perms": PermissionService,
    "principals": _principals,
    "auth": AuthenticationService,
    "users": UserService,
    "controllers": _controllers,
}


class ServiceLocator:
    def __init__(
        self,
        settings: Settings,
        factories: Mapping[str, ServiceFactory] | None = None,
        *,
        overrides: Mapping[str, Any] | None = None,
    ) -> None:
        self.settings = settings
        self._factories: dict[str, ServiceFactory] = dict(
            DEFAULT_FACTORIES if factories is None else factories
        )
        # Overrides are pre-constructed instances (e.g. in-memory stores in tests).
        self._instances: dict[str, Any] = dict(overrides or {})
        self._order: list[str] = list(self._instances)
        self._lock = threading.RLock()
        # Names currently under construction; only mutated by the lock holder.
        self._constructing: list[str] = []

    def register(self, name: str, factory: ServiceFactory) -> None:
        with self._lock:
            if name in self._instances:
                raise ConfigurationError(f"Service '{name}' is already constructed")
            self._factories[name] = factory

    def get(self, name: str) -> Any:
        instance = self._instances.get(name)
        if instance is not None:
            return instance

        with self._lock:
            instance = self._instances.get(name)
            if instance is not None:
                return instance
            if name in self._constructing:
                start = self._constructing.index(name)
                raise ServiceCycleError(self._constructing[start:] + [name])
            factory = self._factories.get(name)
            if factory is None:
                raise UnknownServiceError(f"No factory registered for service '{name}'")

            self._constructing.append(name)
            try:
                instance = factory(self)
            finally:
                self._constructing.pop()

            self._instances[name] = instance
            self._order.append(name)
            log.info("service_loaded", service=name, type=type(instance).__name__)
            return instance

    def resolve(self, *names: str) -> None:
        """
        Construct the named services now (all registered ones when none given),
        so configuration errors surface at startup instead of on first request.
        """

        for name in names or tuple(self._factories):
            self.get(name)

    def loaded(self) -> tuple[str, ...]:
        return tuple(self._order)

    # Typed accessors -------------------------------------------------------

    @property
    def db(self) -> DatabaseService:
        return self.get("db")

    @property
    def crypto(self) -> CryptoService:
        return self.get("crypto")

    @property
    def tokens(self) -> TokenService:
        return self.get("tokens")

    @property
    def perms(self) -> PermissionService:
        return self.get("perms")

    @property
    def principals(self) -> PrincipalStore:
        return self.get("principals")

    @property
    def auth(self) -> AuthenticationService:
        return self.get("auth")

    @property
    def users(self) -> UserService:
        return self.get("users")

    @property
    def controllers(self) -> ControllerService:
        return self.get("controllers")


# --- Module Notes -----------------------------------------------------------
# Services may reference each other freely at call time; only a constructor that
# (transitively) asks for a service still being built is a configuration error.

"""
tests.test_locator

ServiceLocator construction semantics: laziness, caching, thread safety, cycles.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from polls_api.errors import ConfigurationError, ServiceCycleError, UnknownServiceError
from polls_api.services.crypto import CryptoService
from polls_api.services.locator import ServiceLocator


def test_services_are_built_lazily_and_cached(locator: ServiceLocator) -> None:
    assert "crypto" not in locator.loaded()

    first = locator.crypto
    assert isinstance(first, CryptoService)
    assert locator.crypto is first
    assert locator.get("crypto") is first
    assert locator.loaded().count("crypto") == 1


def test_dependencies_resolve_on_demand(locator: ServiceLocator) -> None:
    # Building auth must not drag in its dependencies until they are used.
    _ = locator.auth
    assert "tokens" not in locator.loaded()


def test_independent_locators_do_not_share_instances(settings) -> None:
    a, b = ServiceLocator(settings), ServiceLocator(settings)
    assert a.perms is not b.perms


def test_concurrent_first_access_constructs_exactly_once(settings) -> None:
    built: list[object] = []

    def slow_factory(_: ServiceLocator) -> object:
        time.sleep(0.05)
        instance = object()
        built.append(instance)
        return instance

    locator = ServiceLocator(settings, {"slow": slow_factory})
    callers = 16
    barrier = threading.Barrier(callers)

    def access(_: int) -> object:
        barrier.wait()
        return locator.get("slow")

    with ThreadPoolExecutor(max_workers=callers) as pool:
        results = list(pool.map(access, range(callers)))

    assert len(built) == 1
    assert all(r is built[0] for r in results)


def test_construction_cycle_is_reported_with_path(settings) -> None:
    locator = ServiceLocator(
        settings,
        {
            "a": lambda loc: ("a", loc.get("b")),
            "b": lambda loc: ("b", loc.get("c")),
            "c": lambda loc: ("c", loc.get("a")),
        },
    )

    with pytest.raises(ServiceCycleError) as exc:
        locator.get("a")

    assert exc.value.path == ["a", "b", "c", "a"]
    assert "a -> b -> c -> a" in str(exc.value)
    assert locator.loaded() == ()


def test_call_time_references_are_not_cycles(settings) -> None:
    class Ping:
        def __init__(self, loc: ServiceLocator) -> None:
            self.loc = loc

        def partner(self):
            return self.loc.get("pong")

    class Pong(Ping):
        def partner(self):
            return self.loc.get("ping")

    locator = ServiceLocator(settings, {"ping": Ping, "pong": Pong})
    assert locator.get("ping").partner().partner() is locator.get("ping")


def test_unknown_service(settings) -> None:
    with pytest.raises(UnknownServiceError):
        ServiceLocator(settings, {}).get("nope")


def test_register_before_and_after_construction(settings) -> None:
    locator = ServiceLocator(settings, {})
    locator.register("thing", lambda _: "first")
    assert locator.get("thing") == "first"
    with pytest.raises(ConfigurationError):
        locator.register("thing", lambda _: "second")


def test_resolve_builds_the_default_graph(locator: ServiceLocator) -> None:
    locator.resolve()
    assert set(locator.loaded()) >= {"db", "crypto", "tokens", "perms", "auth", "users", "controllers"}

"""
polls_api.services.base

Base type for services managed by the `ServiceLocator`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from polls_api.observability.logging import get_logger

if TYPE_CHECKING:
    from polls_api.services.locator import ServiceLocator
    from polls_api.settings import Settings


class Service:
    """
    A service receives the locator it was built by so it can reach its own
    dependencies lazily. Dependencies should be looked up when first needed,
    not eagerly in `__init__`, unless the constructor genuinely needs them.
    """

    name: str = "service"

    def __init__(self, locator: ServiceLocator) -> None:
        self.locator = locator
        self.log = get_logger(f"polls_api.services.{self.name}")

    @property
    def settings(self) -> Settings:
        return self.locator.settings

"""Shared pytest fixtures for namewire tests."""

import pytest

from namewire.injector import Injector
from namewire.integrations.pytest_plugin import (  # noqa: F401
    namewire_injector,
    namewire_registry,
)
from namewire.providers import ProviderMode, ProviderRegistry


class CountingFactory:
    """Zero-argument factory that records how often it was called."""

    def __init__(self, produce: object = None) -> None:
        self.calls = 0
        self._produce = produce

    def __call__(self) -> object:
        self.calls += 1
        if self._produce is None:
            return object()
        return self._produce


@pytest.fixture()
def registry() -> ProviderRegistry:
    """Default registry: factory mode, thread locks."""
    return ProviderRegistry()


@pytest.fixture()
def registry_singleton() -> ProviderRegistry:
    """Registry with singleton as the default mode."""
    return ProviderRegistry(default_mode=ProviderMode.SINGLETON)


@pytest.fixture()
def injector(registry: ProviderRegistry) -> Injector:
    """Injector bound to the ``registry`` fixture."""
    return Injector(registry)

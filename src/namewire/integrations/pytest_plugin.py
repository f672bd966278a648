"""Pytest fixtures providing isolated namewire injectors.

Enable them in a ``conftest.py``:

.. code-block:: python

    pytest_plugins = ["namewire.integrations.pytest_plugin"]

"""

from __future__ import annotations

import pytest

from namewire.injector import Injector
from namewire.providers import ProviderRegistry


@pytest.fixture()
def namewire_registry() -> ProviderRegistry:
    """Create a per-test provider registry.

    Returns:
        A new, empty ``ProviderRegistry``.

    """
    return ProviderRegistry()


@pytest.fixture()
def namewire_injector(namewire_registry: ProviderRegistry) -> Injector:
    """Create a per-test injector bound to ``namewire_registry``.

    Registrations made in one test never leak into another. Override
    ``namewire_registry`` to pre-populate providers for a test module.

    Returns:
        A new ``Injector``.

    """
    return Injector(namewire_registry)

"""Tests for the namewire pytest fixtures."""

from namewire.injector import Injector
from namewire.providers import ProviderRegistry


def test_injector_fixture_is_bound_to_registry_fixture(
    namewire_injector: Injector,
    namewire_registry: ProviderRegistry,
) -> None:
    assert namewire_injector.registry is namewire_registry
    assert len(namewire_registry) == 0


def test_registrations_made_in_a_test(namewire_injector: Injector) -> None:
    namewire_injector.register_instance("greeting", "hello")

    @namewire_injector.decorate
    def greet(greeting):
        return greeting

    assert greet() == "hello"


def test_registrations_do_not_leak_between_tests(namewire_injector: Injector) -> None:
    assert "greeting" not in namewire_injector.registry

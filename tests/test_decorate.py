"""Tests for Injector.decorate wrappers."""

from __future__ import annotations

import asyncio
import functools
import inspect
from collections.abc import Callable
from typing import Any

import pytest

from namewire.exceptions import InvalidRegistrationError, UnknownDependencyError
from namewire.injection import INJECT_WRAPPER_MARKER
from namewire.injector import Injector
from namewire.markers import NotInjected
from tests.conftest import CountingFactory


class _Greeter:
    def say(self) -> str:
        return "Hi There!"


def _welcome(greeter, punctuation="!"):
    """Welcome someone."""
    return greeter.say() + punctuation


def _greet_person(greeter: Any, who: NotInjected[str]) -> str:
    return f"{greeter.say()} {who}"


def _logged(func: Callable[..., Any]) -> Callable[..., Any]:
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return func(*args, **kwargs)

    return wrapper


def _unwrapped_passthrough(func: Callable[..., Any]) -> Callable[..., Any]:
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return func(*args, **kwargs)

    return wrapper


@pytest.fixture()
def greeter_factory(injector: Injector) -> CountingFactory:
    factory = CountingFactory(_Greeter())
    injector.register("greeter", factory)
    return factory


def test_decorate_wrapper_preserves_callable_metadata(injector: Injector) -> None:
    wrapped = injector.decorate(_welcome)

    assert wrapped.__name__ == "_welcome"
    assert wrapped.__qualname__ == "_welcome"
    assert wrapped.__doc__ == "Welcome someone."
    assert wrapped.__wrapped__ is _welcome  # type: ignore[attr-defined]
    assert getattr(wrapped, INJECT_WRAPPER_MARKER) is True
    assert not hasattr(_welcome, INJECT_WRAPPER_MARKER)


def test_decorate_zero_arguments_resolves_dependencies(
    injector: Injector,
    greeter_factory: CountingFactory,
) -> None:
    wrapped = injector.decorate(_welcome)

    assert wrapped() == "Hi There!!"
    assert greeter_factory.calls == 1


def test_decorate_explicit_arguments_are_not_resolved(
    injector: Injector,
    greeter_factory: CountingFactory,
) -> None:
    """Arguments passed by the caller win over registered providers."""
    injector.register_instance("punctuation", "?")
    wrapped = injector.decorate(_welcome)

    class _Custom:
        def say(self) -> str:
            return "Howdy"

    assert wrapped(_Custom()) == "Howdy?"
    assert wrapped(greeter=_Custom(), punctuation=".") == "Howdy."
    assert greeter_factory.calls == 0


def test_decorate_as_bare_and_called_decorator(
    injector: Injector,
    greeter_factory: CountingFactory,
) -> None:
    @injector.decorate
    def bare(greeter):
        return greeter.say()

    @injector.decorate()
    def called(greeter):
        return greeter.say()

    assert bare() == called() == "Hi There!"


def test_decorate_unknown_dependency_fails_on_call(injector: Injector) -> None:
    """Decoration succeeds; the missing provider surfaces when the wrapper runs."""
    wrapped = injector.decorate(_welcome)

    with pytest.raises(UnknownDependencyError):
        wrapped()


def test_decorate_not_injected_parameter_is_supplied_by_caller(
    injector: Injector,
    greeter_factory: CountingFactory,
) -> None:
    wrapped = injector.decorate(_greet_person)

    assert wrapped(who="doge") == "Hi There! doge"


def test_decorate_rejects_non_callable(injector: Injector) -> None:
    with pytest.raises(InvalidRegistrationError, match="expects a callable"):
        injector.decorate(42)  # type: ignore[call-overload]


class TestComposition:
    def test_double_decoration_resolves_once(
        self,
        injector: Injector,
        greeter_factory: CountingFactory,
    ) -> None:
        """``decorate(decorate(f))`` behaves like ``decorate(f)``."""
        once = injector.decorate(_welcome)
        twice = injector.decorate(injector.decorate(_welcome))

        assert once() == "Hi There!!"
        assert greeter_factory.calls == 1
        assert twice() == "Hi There!!"
        assert greeter_factory.calls == 2
        assert twice.__name__ == "_welcome"

    def test_double_decoration_forwards_explicit_arguments(self, injector: Injector) -> None:
        twice = injector.decorate(injector.decorate(_welcome))

        assert twice(_Greeter(), ".") == "Hi There!."

    def test_composition_through_functools_wraps_decorator(
        self,
        injector: Injector,
        greeter_factory: CountingFactory,
    ) -> None:
        wrapped = injector.decorate(_logged(injector.decorate(_welcome)))

        assert wrapped() == "Hi There!!"
        assert greeter_factory.calls == 1

    def test_composition_through_plain_decorator(
        self,
        injector: Injector,
        greeter_factory: CountingFactory,
    ) -> None:
        wrapped = injector.decorate(_unwrapped_passthrough(injector.decorate(_welcome)))

        assert wrapped() == "Hi There!!"
        assert greeter_factory.calls == 1

    def test_other_injector_wrapper_keeps_its_registry(self, injector: Injector) -> None:
        inner_injector = Injector()
        inner_injector.register("greeter", _Greeter)

        wrapped = injector.decorate(inner_injector.decorate(_welcome))

        assert wrapped() == "Hi There!!"


class TestMethodsAndClasses:
    def test_decorated_method_receives_instance(
        self,
        injector: Injector,
        greeter_factory: CountingFactory,
    ) -> None:
        class Controller:
            def __init__(self, suffix: str) -> None:
                self.suffix = suffix

            @injector.decorate
            def handle(self, greeter):
                return greeter.say() + self.suffix

        assert Controller(" :)").handle() == "Hi There! :)"

    def test_decorated_method_is_invokable_when_bound(
        self,
        injector: Injector,
        greeter_factory: CountingFactory,
    ) -> None:
        class Controller:
            @injector.decorate
            def handle(self, greeter):
                return greeter.say()

        assert injector.invoke(Controller().handle) == "Hi There!"

    def test_decorated_class_builds_instances(self, injector: Injector) -> None:
        class Report:
            """A report."""

            def __init__(self, title: str) -> None:
                self.title = title

        injector.register_instance("title", "Weekly")
        build_report = injector.decorate(Report)

        report = build_report()

        assert isinstance(report, Report)
        assert report.title == "Weekly"
        assert build_report.__name__ == "Report"
        assert build_report.__doc__ == "A report."
        assert "title" not in build_report.__dict__


class TestAsync:
    def test_async_wrapper_is_coroutine_function(self, injector: Injector) -> None:
        async def fetch(greeter):
            return greeter.say()

        wrapped = injector.decorate(fetch)

        assert inspect.iscoroutinefunction(wrapped)

    def test_async_wrapper_resolves_and_awaits(
        self,
        injector: Injector,
        greeter_factory: CountingFactory,
    ) -> None:
        async def fetch(greeter):
            await asyncio.sleep(0)
            return greeter.say()

        wrapped = injector.decorate(injector.decorate(fetch))

        assert asyncio.run(wrapped()) == "Hi There!"
        assert greeter_factory.calls == 1

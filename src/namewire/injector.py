from __future__ import annotations

import functools
import inspect
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Literal, TypeAlias, TypeVar, cast, overload

from namewire.exceptions import InjectionArityMismatchError, InvalidRegistrationError
from namewire.injection import (
    INJECT_WRAPPER_MARKER,
    InjectableParameter,
    InjectableSignature,
    SignatureInspector,
    callable_name,
)
from namewire.providers import DependencyName, FactoryProvider, ProviderMode, ProviderRegistry

F = TypeVar("F", bound=Callable[..., Any])
InjectableF = TypeVar("InjectableF", bound=Callable[..., Any])

SignatureLike: TypeAlias = "InjectableSignature | Sequence[str]"


class Injector:
    """Resolve a callable's parameter names against a provider registry.

    Parameter names are read with ``inspect.signature`` once per callable and
    cached. ``invoke`` resolves every name in declaration order and calls the
    callable; ``decorate`` returns a wrapper that does the same whenever the
    caller leaves an injectable argument out.

    Examples:
        .. code-block:: python

            injector = Injector()
            injector.register("greeter", Greeter)


            @injector.decorate
            def welcome(greeter) -> str:
                return greeter.say()


            welcome()

    """

    def __init__(self, registry: ProviderRegistry | None = None) -> None:
        """Initialize an injector.

        Args:
            registry: Registry to resolve names from. A new empty
                ``ProviderRegistry`` is created when omitted.

        """
        self._registry = registry if registry is not None else ProviderRegistry()
        self._signature_inspector = SignatureInspector()

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    # region Registration Methods
    def register(
        self,
        name: DependencyName,
        provider: Callable[..., Any],
        mode: ProviderMode | Literal["singleton", "factory"] | None = None,
    ) -> None:
        """Register a provider whose own parameters are injected by name.

        A provider declaring injectable parameters is wrapped with ``decorate``
        before it reaches the registry, so its dependencies are resolved from
        the same registry each time it runs.

        Raises:
            DuplicateRegistrationError: If ``name`` is already registered.
            InvalidRegistrationError: If the name, provider or mode is invalid.

        """
        self._registry.register(name, self._compose_provider(provider), mode)

    def register_instance(self, name: DependencyName, value: Any) -> None:
        """Register a ready value as a singleton."""
        self._registry.register_instance(name, value)

    @overload
    def provider(self, name: F) -> F: ...

    @overload
    def provider(
        self,
        name: DependencyName | None = None,
        *,
        mode: ProviderMode | Literal["singleton", "factory"] | None = None,
    ) -> Callable[[F], F]: ...

    def provider(
        self,
        name: DependencyName | F | None = None,
        *,
        mode: ProviderMode | Literal["singleton", "factory"] | None = None,
    ) -> F | Callable[[F], F]:
        """Register the decorated provider and return it unchanged.

        Examples:
            .. code-block:: python

                @injector.provider(mode="singleton")
                def repository(database) -> Repository:
                    return Repository(database)

        """

        def decorator(factory: F) -> F:
            self.register(factory.__name__ if name is None else name, factory, mode)
            return factory

        if callable(name):
            return self.provider(mode=mode)(cast("F", name))
        return decorator

    def unregister(self, name: DependencyName) -> None:
        """Remove the provider for ``name``."""
        self._registry.unregister(name)

    def resolve(self, name: DependencyName) -> Any:
        """Resolve a single dependency name."""
        return self._registry.resolve(name)

    def _compose_provider(self, provider: Callable[..., Any]) -> FactoryProvider:
        if not callable(provider):
            return cast("FactoryProvider", provider)
        try:
            derived = self.derive_signature(provider)
        except InvalidRegistrationError:
            # Builtins such as ``dict`` expose no signature and take no dependencies.
            return provider
        if not derived.parameters:
            return provider
        return self.decorate(provider)

    # endregion Registration Methods

    # region Injection
    def derive_signature(self, callable_obj: Callable[..., Any]) -> InjectableSignature:
        """Return the injectable signature of a callable.

        The first call inspects the callable; later calls return the same cached
        object. A leading ``self``/``cls``, ``*args``/``**kwargs`` and
        ``NotInjected[...]`` parameters are excluded. Parameters with defaults
        stay in the signature but are optional.

        Raises:
            InvalidRegistrationError: If the callable has no introspectable signature.

        """
        return self._signature_inspector.derive(callable_obj)

    def invoke(
        self,
        callable_obj: Callable[..., Any],
        signature: SignatureLike | None = None,
    ) -> Any:
        """Resolve the callable's dependencies and call it.

        Args:
            callable_obj: Callable to invoke.
            signature: Dependency names to resolve instead of the derived
                signature, as an ``InjectableSignature`` or a sequence of names.

        Returns:
            Whatever the callable returns.

        Raises:
            UnknownDependencyError: If a required name has no provider.
            InjectionArityMismatchError: If resolved arguments do not fit the
                callable's parameters.

        """
        derived = self.derive_signature(callable_obj)
        injectable = self._coerce_signature(callable_obj, derived, signature)
        if injectable.is_opaque:
            return callable_obj()
        bound = self._bind_injected_arguments(
            callable_obj=callable_obj,
            derived=derived,
            injectable=injectable,
            args=(),
            kwargs={},
        )
        return callable_obj(*bound.args, **bound.kwargs)

    @overload
    def decorate(self, callable_obj: InjectableF) -> InjectableF: ...

    @overload
    def decorate(
        self,
        callable_obj: Literal["from_decorator"] = "from_decorator",
    ) -> Callable[[InjectableF], InjectableF]: ...

    def decorate(
        self,
        callable_obj: InjectableF | Literal["from_decorator"] = "from_decorator",
    ) -> InjectableF | Callable[[InjectableF], InjectableF]:
        """Wrap a callable so missing injectable arguments are resolved on each call.

        The wrapper keeps the callable's name, docstring and return value.
        Explicitly passed arguments are never resolved. Coroutine functions get
        an async wrapper. Wrapping an injecting wrapper again, directly or
        through other ``functools.wraps`` decorators, forwards calls without
        resolving twice.

        Raises:
            InvalidRegistrationError: If ``callable_obj`` is not callable or has
                no introspectable signature.

        """
        if isinstance(callable_obj, str) and callable_obj == "from_decorator":
            return self.decorate
        if not callable(callable_obj):
            msg = f"decorate() expects a callable, got {callable_obj!r}."
            raise InvalidRegistrationError(msg)
        return self._inject_callable(callable_obj)

    def _inject_callable(self, callable_obj: InjectableF) -> InjectableF:
        derived = self.derive_signature(callable_obj)
        updated = () if inspect.isclass(callable_obj) else functools.WRAPPER_UPDATES

        if inspect.iscoroutinefunction(callable_obj):

            @functools.wraps(callable_obj, updated=updated)
            async def _async_injected(*args: Any, **kwargs: Any) -> Any:
                async_callable = cast("Callable[..., Awaitable[Any]]", callable_obj)
                if derived.is_opaque:
                    return await async_callable(*args, **kwargs)
                bound = self._bind_injected_arguments(
                    callable_obj=callable_obj,
                    derived=derived,
                    injectable=derived,
                    args=args,
                    kwargs=kwargs,
                )
                return await async_callable(*bound.args, **bound.kwargs)

            wrapped_callable: Callable[..., Any] = _async_injected
        else:

            @functools.wraps(callable_obj, updated=updated)
            def _sync_injected(*args: Any, **kwargs: Any) -> Any:
                if derived.is_opaque:
                    return callable_obj(*args, **kwargs)
                bound = self._bind_injected_arguments(
                    callable_obj=callable_obj,
                    derived=derived,
                    injectable=derived,
                    args=args,
                    kwargs=kwargs,
                )
                return callable_obj(*bound.args, **bound.kwargs)

            wrapped_callable = _sync_injected

        wrapped_callable.__dict__[INJECT_WRAPPER_MARKER] = True
        return cast("InjectableF", wrapped_callable)

    def _bind_injected_arguments(
        self,
        *,
        callable_obj: Callable[..., Any],
        derived: InjectableSignature,
        injectable: InjectableSignature,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> inspect.BoundArguments:
        python_signature = cast("inspect.Signature", derived.signature)
        bound_arguments = python_signature.bind_partial(*args, **kwargs)
        for parameter in injectable.parameters:
            if parameter.name in bound_arguments.arguments:
                continue
            if parameter.is_optional and not self._registry.is_registered(parameter.dependency):
                continue
            bound_arguments.arguments[parameter.name] = self._registry.resolve(
                parameter.dependency,
            )
        self._validate_arity(
            callable_obj=callable_obj,
            derived=derived,
            bound_arguments=bound_arguments,
        )
        # A gap in positional-only arguments would push later ones into kwargs.
        for name, declared in python_signature.parameters.items():
            if (
                declared.kind is inspect.Parameter.POSITIONAL_ONLY
                and declared.default is not inspect.Parameter.empty
                and name not in bound_arguments.arguments
            ):
                bound_arguments.arguments[name] = declared.default
        return bound_arguments

    def _validate_arity(
        self,
        *,
        callable_obj: Callable[..., Any],
        derived: InjectableSignature,
        bound_arguments: inspect.BoundArguments,
    ) -> None:
        current = derived
        unexpected: list[str] = []
        if derived.code is not None and getattr(callable_obj, "__code__", None) is not derived.code:
            current = self._signature_inspector.inspect_callable(callable_obj)
            declared = cast("inspect.Signature", current.signature).parameters
            accepts_any_keyword = any(
                parameter.kind is inspect.Parameter.VAR_KEYWORD for parameter in declared.values()
            )
            if not accepts_any_keyword:
                unexpected = [name for name in bound_arguments.arguments if name not in declared]
        missing = sorted(current.required.difference(bound_arguments.arguments))
        if missing or unexpected:
            raise InjectionArityMismatchError(
                derived.callable_name,
                missing=missing,
                unexpected=unexpected,
            )

    def _coerce_signature(
        self,
        callable_obj: Callable[..., Any],
        derived: InjectableSignature,
        signature: SignatureLike | None,
    ) -> InjectableSignature:
        if signature is None:
            return derived
        if isinstance(signature, InjectableSignature):
            names = signature.names
        elif isinstance(signature, str):
            names = (signature,)
        else:
            names = tuple(signature)
        if derived.is_opaque:
            if names:
                raise InjectionArityMismatchError(derived.callable_name, unexpected=names)
            return derived

        by_dependency = {parameter.dependency: parameter for parameter in derived.parameters}
        by_parameter_name = {parameter.name: parameter for parameter in derived.parameters}
        declared = cast("inspect.Signature", derived.signature).parameters
        parameters: list[InjectableParameter] = []
        unexpected: list[str] = []
        for name in names:
            parameter = by_dependency.get(name) or by_parameter_name.get(name)
            if parameter is None and name in declared:
                declared_parameter = declared[name]
                if declared_parameter.kind not in (
                    inspect.Parameter.VAR_POSITIONAL,
                    inspect.Parameter.VAR_KEYWORD,
                ):
                    parameter = InjectableParameter(
                        name=name,
                        dependency=name,
                        kind=declared_parameter.kind,
                        default=declared_parameter.default,
                    )
            if parameter is None:
                unexpected.append(name)
                continue
            parameters.append(parameter)
        if unexpected:
            raise InjectionArityMismatchError(callable_name(callable_obj), unexpected=unexpected)
        return InjectableSignature(
            callable_name=derived.callable_name,
            parameters=tuple(parameters),
            signature=derived.signature,
            required=derived.required,
            code=derived.code,
        )

    # endregion Injection


__all__ = ["Injector", "SignatureLike"]

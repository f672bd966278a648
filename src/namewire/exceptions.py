from __future__ import annotations

from collections.abc import Sequence


class NamewireError(Exception):
    """Represent a base class for all namewire-specific failures.

    Catch this type when you want to handle any namewire error path without
    matching each concrete exception class individually.
    """


class InvalidRegistrationError(NamewireError):
    """Signal invalid registration or injection configuration.

    Raised by ``ProviderRegistry.register``, ``ProviderRegistry.register_instance``
    and the ``Injector`` entrypoints when arguments are invalid.

    Typical fixes include using a valid Python identifier as the dependency name,
    passing a callable provider, and keeping the provider mode of a name stable
    across re-registrations.
    """


class DuplicateRegistrationError(NamewireError):
    """Signal that a dependency name already has a provider.

    Registrations never overwrite silently. Call ``unregister(name)`` first
    when replacing a provider is intended.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Dependency '{name}' is already registered.")


class UnknownDependencyError(NamewireError):
    """Signal that a dependency name has no provider.

    Raised by ``resolve`` and ``unregister`` for unregistered names, and by
    ``invoke`` when a required parameter name cannot be resolved.

    Typical fixes include registering the dependency or giving the parameter a
    default value so injection falls back to it.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Dependency '{name}' is not registered.")


class InjectionArityMismatchError(NamewireError):
    """Signal that resolved arguments do not fit the callable's parameters.

    Raised before the callable runs, either because required parameters were
    left unfilled or because an explicit signature names parameters the callable
    does not declare. This also happens when a function's code is replaced after
    its injectable signature was derived.
    """

    def __init__(
        self,
        callable_name: str,
        *,
        missing: Sequence[str] = (),
        unexpected: Sequence[str] = (),
    ) -> None:
        self.callable_name = callable_name
        self.missing = tuple(missing)
        self.unexpected = tuple(unexpected)
        details = []
        if self.missing:
            details.append(f"missing required {', '.join(self.missing)}")
        if self.unexpected:
            details.append(f"unexpected {', '.join(self.unexpected)}")
        super().__init__(
            f"Cannot inject '{callable_name}': {'; '.join(details)}.",
        )


class DependencyCycleError(NamewireError):
    """Signal that a provider depends on itself, directly or transitively.

    Typical fix is breaking the cycle by resolving one side lazily inside the
    provider body instead of declaring it as a parameter.
    """

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = tuple(cycle)
        super().__init__(f"Circular dependency: {' -> '.join(self.cycle)}")

from __future__ import annotations

import keyword
import logging
import threading
from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, TypeAlias, TypeVar, cast, overload

from namewire.exceptions import (
    DependencyCycleError,
    DuplicateRegistrationError,
    InvalidRegistrationError,
    UnknownDependencyError,
)
from namewire.lock_mode import LockMode

F = TypeVar("F", bound=Callable[..., Any])

DependencyName: TypeAlias = str
"""A dependency name requested by a callable parameter or registered by the user."""

FactoryProvider: TypeAlias = Callable[[], Any]
"""A zero-argument callable that produces a dependency value."""

ModeLike: TypeAlias = "ProviderMode | Literal['singleton', 'factory'] | None"

logger = logging.getLogger(__name__)
_MISSING: Any = object()


class ProviderMode(Enum):
    """Define cache behavior for provider results."""

    SINGLETON = "singleton"
    """Build the value lazily on first resolution and reuse it afterwards."""

    FACTORY = "factory"
    """Disable caching and call the factory for every resolution."""


@dataclass(kw_only=True, eq=False)
class ProviderSpec:
    """Describe how a single dependency name is produced and cached.

    Exactly one source is expected: a ``factory`` callable, or a ready ``value``
    registered through ``register_instance``.
    """

    name: DependencyName
    """The dependency name this provider satisfies."""
    mode: ProviderMode
    """Cache behavior of the provider, fixed for the name once registered."""
    factory: FactoryProvider | None = None
    """Factory called to build the value, if applicable."""
    value: Any = _MISSING
    """Memoized singleton value, or the sentinel while not yet built."""
    lock: AbstractContextManager[Any] = field(default_factory=nullcontext, repr=False)
    """Guards lazy singleton construction."""

    @property
    def is_built(self) -> bool:
        """Return True when a singleton value has been memoized."""
        return self.value is not _MISSING


class ProviderRegistry:
    """Store providers indexed by dependency name.

    Names are unique: registering an existing name raises
    ``DuplicateRegistrationError`` instead of replacing the provider. A name's
    provider mode is fixed the first time it is registered and survives
    ``unregister``.

    With ``LockMode.THREAD`` the registration map is read and written under a
    lock, and every singleton owns a reentrant lock so its factory runs at most
    once even when first resolved from several threads at the same time.
    """

    def __init__(
        self,
        *,
        default_mode: ProviderMode | Literal["singleton", "factory"] = ProviderMode.FACTORY,
        lock_mode: LockMode = LockMode.THREAD,
    ) -> None:
        """Initialize an empty registry.

        Args:
            default_mode: Mode used by registrations that omit ``mode``.
            lock_mode: Locking strategy for registrations and singleton caches.

        Raises:
            InvalidRegistrationError: If ``default_mode`` or ``lock_mode`` is invalid.

        """
        if not isinstance(lock_mode, LockMode):
            msg = f"lock_mode must be a LockMode, got {lock_mode!r}."
            raise InvalidRegistrationError(msg)
        self._lock_mode = lock_mode
        self._default_mode = self._normalize_mode(default_mode)
        self._specs: dict[DependencyName, ProviderSpec] = {}
        self._modes: dict[DependencyName, ProviderMode] = {}
        self._lock: AbstractContextManager[Any] = (
            threading.Lock() if lock_mode is LockMode.THREAD else nullcontext()
        )
        self._resolving = threading.local()
        self._builders: dict[DependencyName, int] = {}
        self._waiting: dict[int, DependencyName] = {}

    @property
    def default_mode(self) -> ProviderMode:
        return self._default_mode

    @property
    def lock_mode(self) -> LockMode:
        return self._lock_mode

    # region Registration Methods
    def register(
        self,
        name: DependencyName,
        provider: FactoryProvider,
        mode: ModeLike = None,
    ) -> None:
        """Register a factory under a dependency name.

        Args:
            name: Dependency name; must be a valid, non-keyword identifier.
            provider: Zero-argument callable producing the dependency.
            mode: ``ProviderMode`` (or its string value). ``None`` uses the
                registry default.

        Raises:
            DuplicateRegistrationError: If ``name`` is already registered.
            InvalidRegistrationError: If the name, provider or mode is invalid,
                or the mode differs from the one fixed for ``name`` earlier.

        Examples:
            .. code-block:: python

                registry.register("clock", time.monotonic)
                registry.register("settings", load_settings, ProviderMode.SINGLETON)

        """
        self._validate_name(name)
        if not callable(provider):
            msg = f"Provider for '{name}' must be callable, got {provider!r}."
            raise InvalidRegistrationError(msg)
        resolved_mode = self._default_mode if mode is None else self._normalize_mode(mode)
        self._add(
            ProviderSpec(
                name=name,
                mode=resolved_mode,
                factory=provider,
                lock=self._new_spec_lock(),
            ),
        )

    def register_instance(self, name: DependencyName, value: Any) -> None:
        """Register a ready value as a singleton.

        Args:
            name: Dependency name; must be a valid, non-keyword identifier.
            value: Value returned by every resolution of ``name``.

        Raises:
            DuplicateRegistrationError: If ``name`` is already registered.
            InvalidRegistrationError: If the name is invalid or was previously
                registered in factory mode.

        """
        self._validate_name(name)
        self._add(
            ProviderSpec(
                name=name,
                mode=ProviderMode.SINGLETON,
                value=value,
                lock=self._new_spec_lock(),
            ),
        )

    @overload
    def provider(self, name: F) -> F: ...

    @overload
    def provider(
        self,
        name: DependencyName | None = None,
        *,
        mode: ModeLike = None,
    ) -> Callable[[F], F]: ...

    def provider(
        self,
        name: DependencyName | F | None = None,
        *,
        mode: ModeLike = None,
    ) -> F | Callable[[F], F]:
        """Register the decorated factory and return it unchanged.

        Without an explicit name the factory's ``__name__`` is used.

        Examples:
            .. code-block:: python

                @registry.provider(mode="singleton")
                def settings() -> Settings:
                    return Settings.from_env()

        """

        def decorator(factory: F) -> F:
            self.register(factory.__name__ if name is None else name, factory, mode)
            return factory

        if callable(name):
            return self.provider(mode=mode)(cast("F", name))
        return decorator

    def unregister(self, name: DependencyName) -> None:
        """Remove the provider for a dependency name, dropping any memoized value.

        Raises:
            UnknownDependencyError: If ``name`` is not registered.

        """
        with self._lock:
            if self._specs.pop(name, None) is None:
                raise UnknownDependencyError(name)
        logger.debug("Unregistered provider for '%s'.", name)

    # endregion Registration Methods

    # region Resolution
    def resolve(self, name: DependencyName) -> Any:
        """Resolve a dependency name to a value.

        Singleton providers are built on first resolution and cached; factory
        providers are called every time. A factory that raises leaves nothing
        cached, so the next resolution calls it again.

        Raises:
            UnknownDependencyError: If ``name`` is not registered.
            DependencyCycleError: If resolving ``name`` requires ``name`` again,
                on the same thread or through singletons that other threads
                are building and waiting on.

        """
        spec = self._get_spec(name)
        stack = self._resolution_stack()
        if name in stack:
            raise DependencyCycleError([*stack[stack.index(name) :], name])
        stack.append(name)
        try:
            if spec.mode is ProviderMode.FACTORY:
                return cast("FactoryProvider", spec.factory)()
            return self._resolve_singleton(spec)
        finally:
            stack.pop()

    def _resolve_singleton(self, spec: ProviderSpec) -> Any:
        value = spec.value
        if value is not _MISSING:
            return value
        current = threading.get_ident()
        with self._lock:
            self._check_cross_thread_cycle(spec.name, current)
            self._waiting[current] = spec.name
        try:
            with spec.lock:
                with self._lock:
                    del self._waiting[current]
                    self._builders[spec.name] = current
                try:
                    if spec.value is _MISSING:
                        spec.value = cast("FactoryProvider", spec.factory)()
                        logger.debug("Built singleton value for '%s'.", spec.name)
                    return spec.value
                finally:
                    with self._lock:
                        self._builders.pop(spec.name, None)
        finally:
            with self._lock:
                self._waiting.pop(current, None)

    def _check_cross_thread_cycle(self, name: DependencyName, current: int) -> None:
        # Follow "name is built by thread T, T waits for name2, ..." until a thread
        # that is not waiting, or back to the current thread.
        visited = [name]
        builder = self._builders.get(name)
        while builder is not None:
            if builder == current:
                raise DependencyCycleError([visited[-1], *visited])
            waiting_for = self._waiting.get(builder)
            if waiting_for is None or waiting_for in visited:
                return
            visited.append(waiting_for)
            builder = self._builders.get(waiting_for)

    def _get_spec(self, name: DependencyName) -> ProviderSpec:
        with self._lock:
            spec = self._specs.get(name)
        if spec is None:
            raise UnknownDependencyError(name)
        return spec

    def _resolution_stack(self) -> list[DependencyName]:
        stack = getattr(self._resolving, "stack", None)
        if stack is None:
            stack = []
            self._resolving.stack = stack
        return stack

    # endregion Resolution

    def is_registered(self, name: DependencyName) -> bool:
        """Return True when ``name`` currently has a provider."""
        with self._lock:
            return name in self._specs

    def mode_of(self, name: DependencyName) -> ProviderMode:
        """Return the provider mode registered for ``name``.

        Raises:
            UnknownDependencyError: If ``name`` is not registered.

        """
        return self._get_spec(name).mode

    def names(self) -> tuple[DependencyName, ...]:
        """Return a snapshot of registered dependency names."""
        with self._lock:
            return tuple(self._specs)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.is_registered(name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._specs)

    def _add(self, spec: ProviderSpec) -> None:
        with self._lock:
            if spec.name in self._specs:
                raise DuplicateRegistrationError(spec.name)
            fixed_mode = self._modes.get(spec.name)
            if fixed_mode is not None and fixed_mode is not spec.mode:
                msg = (
                    f"Dependency '{spec.name}' was registered in {fixed_mode.value} mode and "
                    f"cannot be re-registered in {spec.mode.value} mode."
                )
                raise InvalidRegistrationError(msg)
            self._specs[spec.name] = spec
            self._modes[spec.name] = spec.mode
        logger.debug("Registered %s provider for '%s'.", spec.mode.value, spec.name)

    def _new_spec_lock(self) -> AbstractContextManager[Any]:
        if self._lock_mode is LockMode.THREAD:
            return threading.RLock()
        return nullcontext()

    @staticmethod
    def _normalize_mode(mode: Any) -> ProviderMode:
        if isinstance(mode, ProviderMode):
            return mode
        try:
            return ProviderMode(mode)
        except ValueError:
            msg = f"Provider mode must be 'singleton' or 'factory', got {mode!r}."
            raise InvalidRegistrationError(msg) from None

    @staticmethod
    def _validate_name(name: object) -> None:
        if not isinstance(name, str) or not name.isidentifier() or keyword.iskeyword(name):
            msg = f"Dependency name must be a valid Python identifier, got {name!r}."
            raise InvalidRegistrationError(msg)


__all__ = [
    "DependencyName",
    "FactoryProvider",
    "ProviderMode",
    "ProviderRegistry",
    "ProviderSpec",
]

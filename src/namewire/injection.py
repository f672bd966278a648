from __future__ import annotations

import inspect
import keyword
import logging
import threading
import weakref
from collections.abc import Callable, MutableMapping
from dataclasses import dataclass
from typing import Any, get_type_hints

from namewire.exceptions import InvalidRegistrationError
from namewire.markers import is_not_injected_annotation, named_dependency

INJECT_WRAPPER_MARKER = "__namewire_inject_wrapper__"

logger = logging.getLogger(__name__)
_IMPLICIT_FIRST_PARAMETER_NAMES = {"self", "cls"}
_VARIADIC_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


@dataclass(frozen=True, slots=True)
class InjectableParameter:
    """Injectable parameter metadata for a single declared parameter."""

    name: str
    """Parameter name as declared by the callable."""
    dependency: str
    """Dependency name resolved for the parameter."""
    kind: inspect._ParameterKind = inspect.Parameter.POSITIONAL_OR_KEYWORD
    default: Any = inspect.Parameter.empty

    @property
    def is_optional(self) -> bool:
        """Return True when the parameter falls back to its declared default."""
        return self.default is not inspect.Parameter.empty


@dataclass(frozen=True, slots=True)
class InjectableSignature:
    """Ordered dependency names derived from a callable's declared parameters.

    ``signature`` is ``None`` for callables that already perform their own
    injection; calls to them are forwarded with the caller's arguments.
    """

    callable_name: str
    parameters: tuple[InjectableParameter, ...]
    signature: inspect.Signature | None
    required: frozenset[str] = frozenset()
    """Names of parameters that have no default, injectable or not."""
    code: Any = None
    """Code object of the callable at derivation time, when it has one."""

    @property
    def names(self) -> tuple[str, ...]:
        """Return dependency names in declaration order."""
        return tuple(parameter.dependency for parameter in self.parameters)

    @property
    def is_opaque(self) -> bool:
        return self.signature is None

    def __len__(self) -> int:
        return len(self.parameters)


def callable_name(callable_obj: Callable[..., Any]) -> str:
    if _shares_class_signature(callable_obj):
        return type(callable_obj).__qualname__
    return getattr(callable_obj, "__qualname__", repr(callable_obj))


def _shares_class_signature(callable_obj: object) -> bool:
    """Return True for instances whose signature comes from their class's ``__call__``."""
    if inspect.isclass(callable_obj) or inspect.isroutine(callable_obj):
        return False
    if not inspect.isfunction(getattr(type(callable_obj), "__call__", None)):
        return False
    own_attributes = getattr(callable_obj, "__dict__", {})
    return INJECT_WRAPPER_MARKER not in own_attributes and "__signature__" not in own_attributes


def is_injecting_wrapper(callable_obj: object) -> bool:
    """Return True when ``callable_obj`` is, or wraps, an injecting wrapper."""
    return bool(getattr(callable_obj, INJECT_WRAPPER_MARKER, False))


class SignatureInspector:
    """Derive injectable signatures with ``inspect.signature`` and cache them.

    Every callable is inspected once; later lookups return the same
    ``InjectableSignature`` object. Functions and classes are cached weakly,
    bound methods are cached on their underlying function, and instances of a
    class defining ``__call__`` share one entry keyed on that class. Callables
    that fit none of these, such as builtin bound methods, are inspected on
    every lookup so the cache never keeps them alive.
    """

    def __init__(self) -> None:
        self._cache: MutableMapping[Any, InjectableSignature] = weakref.WeakKeyDictionary()
        self._bound_method_cache: MutableMapping[Any, InjectableSignature] = (
            weakref.WeakKeyDictionary()
        )
        self._instance_cache: MutableMapping[Any, InjectableSignature] = (
            weakref.WeakKeyDictionary()
        )
        self._lock = threading.Lock()

    def derive(self, callable_obj: Callable[..., Any]) -> InjectableSignature:
        """Return the cached injectable signature, deriving it on first use."""
        cache, key = self._cache_slot(callable_obj)
        if cache is None:
            return self.inspect_callable(callable_obj)
        with self._lock:
            cached = cache.get(key)
        if cached is not None:
            return cached
        derived = self.inspect_callable(callable_obj)
        with self._lock:
            return cache.setdefault(key, derived)

    def inspect_callable(self, callable_obj: Callable[..., Any]) -> InjectableSignature:
        """Build an injectable signature without consulting the cache.

        Raises:
            InvalidRegistrationError: If the callable has no introspectable
                signature or a ``Named`` marker carries an invalid name.

        """
        name = callable_name(callable_obj)
        if is_injecting_wrapper(callable_obj):
            return InjectableSignature(callable_name=name, parameters=(), signature=None)

        try:
            signature = inspect.signature(callable_obj)
        except (TypeError, ValueError) as error:
            msg = f"Cannot read declared parameters of '{name}'."
            raise InvalidRegistrationError(msg) from error

        annotations = self.resolved_annotations(callable_obj)
        parameters: list[InjectableParameter] = []
        required: set[str] = set()
        for index, parameter in enumerate(signature.parameters.values()):
            if parameter.kind in _VARIADIC_KINDS:
                continue
            if parameter.default is inspect.Parameter.empty:
                required.add(parameter.name)
            if index == 0 and parameter.name in _IMPLICIT_FIRST_PARAMETER_NAMES:
                continue
            annotation = annotations.get(parameter.name, parameter.annotation)
            if is_not_injected_annotation(annotation):
                continue
            parameters.append(
                InjectableParameter(
                    name=parameter.name,
                    dependency=self.resolve_dependency_name(
                        parameter=parameter,
                        annotation=annotation,
                        callable_name=name,
                    ),
                    kind=parameter.kind,
                    default=parameter.default,
                ),
            )

        derived = InjectableSignature(
            callable_name=name,
            parameters=tuple(parameters),
            signature=signature,
            required=frozenset(required),
            code=getattr(callable_obj, "__code__", None),
        )
        logger.debug("Derived injectable signature %s for '%s'.", derived.names, name)
        return derived

    def resolved_annotations(self, callable_obj: Callable[..., Any]) -> dict[str, Any]:
        """Resolve callable annotations with extras, falling back to an empty mapping."""
        target: Any = callable_obj
        if inspect.isclass(callable_obj):
            target = callable_obj.__init__
        elif not inspect.isroutine(callable_obj) and hasattr(type(callable_obj), "__call__"):
            target = type(callable_obj).__call__
        try:
            return get_type_hints(target, include_extras=True)
        except (AttributeError, NameError, TypeError):
            return {}

    def resolve_dependency_name(
        self,
        *,
        parameter: inspect.Parameter,
        annotation: Any,
        callable_name: str,
    ) -> str:
        dependency = named_dependency(annotation)
        if dependency is None:
            return parameter.name
        if not dependency.isidentifier() or keyword.iskeyword(dependency):
            msg = (
                f"Parameter '{parameter.name}' of '{callable_name}' is named "
                f"{dependency!r}, which is not a valid dependency name."
            )
            raise InvalidRegistrationError(msg)
        return dependency

    def _cache_slot(
        self,
        callable_obj: Callable[..., Any],
    ) -> tuple[MutableMapping[Any, InjectableSignature] | None, Any]:
        if inspect.ismethod(callable_obj):
            return self._bound_method_cache, callable_obj.__func__
        if _shares_class_signature(callable_obj):
            return self._instance_cache, type(callable_obj)
        try:
            hash(callable_obj)
            weakref.ref(callable_obj)
        except TypeError:
            return None, None
        return self._cache, callable_obj


__all__ = [
    "INJECT_WRAPPER_MARKER",
    "InjectableParameter",
    "InjectableSignature",
    "SignatureInspector",
    "callable_name",
    "is_injecting_wrapper",
]

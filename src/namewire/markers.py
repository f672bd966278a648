from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Any, NamedTuple, TypeVar, Union, get_args, get_origin

T = TypeVar("T")
_ANNOTATED_MARKER_MIN_ARGS = 2


class Named(NamedTuple):
    """Resolve a parameter from a dependency name other than its own.

    Attach ``Named`` metadata through ``typing.Annotated``.

    Examples:
        .. code-block:: python

            def report(conn: Annotated[Connection, Named("reporting_db")]) -> str: ...

    """

    value: str


class NotInjectedMarker:
    """Marker that excludes a parameter from the injectable signature."""


if TYPE_CHECKING:
    NotInjected = Union[T, T]  # noqa: UP007,PYI016
    """Exclude a parameter from injection.

    At runtime ``NotInjected[T]`` becomes ``Annotated[T, NotInjectedMarker()]``.
    The caller of an injecting wrapper supplies such parameters explicitly.
    """

else:

    class NotInjected:
        """Exclude a parameter from injection.

        At runtime ``NotInjected[T]`` resolves to
        ``Annotated[T, NotInjectedMarker()]``.

        Examples:
            .. code-block:: python

                @injector.decorate
                def greet(greeter, who: NotInjected[str]) -> str:
                    return greeter.say(who)


                greet(who="doge")

        """

        def __class_getitem__(cls, item: T) -> Annotated[T, NotInjectedMarker]:
            if get_origin(item) is Annotated:
                args = get_args(item)
                return _build_annotated((args[0], *args[1:], NotInjectedMarker()))
            return _build_annotated((item, NotInjectedMarker()))


def _build_annotated(params: tuple[Any, ...]) -> Any:
    try:
        return Annotated.__class_getitem__(params)  # type: ignore[attr-defined]
    except AttributeError:
        return Annotated.__getitem__(params)  # type: ignore[attr-defined]


def _annotated_metadata(annotation: Any) -> tuple[Any, ...]:
    if get_origin(annotation) is not Annotated:
        return ()
    annotation_args = get_args(annotation)
    if len(annotation_args) < _ANNOTATED_MARKER_MIN_ARGS:
        return ()
    return annotation_args[1:]


def is_not_injected_annotation(annotation: Any) -> bool:
    """Return True when annotation is Annotated[..., NotInjectedMarker()]."""
    return any(isinstance(item, NotInjectedMarker) for item in _annotated_metadata(annotation))


def named_dependency(annotation: Any) -> str | None:
    """Return the dependency name carried by a ``Named`` marker, if any."""
    for item in _annotated_metadata(annotation):
        if isinstance(item, Named):
            return item.value
    return None


__all__ = [
    "Named",
    "NotInjected",
    "NotInjectedMarker",
    "is_not_injected_annotation",
    "named_dependency",
]

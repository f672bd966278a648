"""Errors: every failure surfaces to the caller instead of a placeholder value."""

from __future__ import annotations

from namewire import (
    DuplicateRegistrationError,
    InjectionArityMismatchError,
    Injector,
    UnknownDependencyError,
)


def report(title: str, author: str) -> str:
    return f"{title} by {author}"


def main() -> None:
    injector = Injector()
    injector.register_instance("title", "Weekly")

    try:
        injector.register_instance("title", "Monthly")
    except DuplicateRegistrationError as error:
        print(f"duplicate={error.name}")  # => duplicate=title

    try:
        injector.invoke(report)
    except UnknownDependencyError as error:
        print(f"unknown={error.name}")  # => unknown=author

    try:
        injector.invoke(report, ["title"])
    except InjectionArityMismatchError as error:
        print(f"missing={','.join(error.missing)}")  # => missing=author


if __name__ == "__main__":
    main()

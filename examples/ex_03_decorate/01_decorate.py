"""Decorate: wrap a function so calling it without arguments injects them.

Arguments passed explicitly are used as-is. Parameters with defaults fall back
to the default when no provider is registered, and ``NotInjected`` parameters
are always left to the caller.
"""

from __future__ import annotations

from namewire import Injector, NotInjected

injector = Injector()
injector.register_instance("greeting", "Hello")


@injector.decorate
def welcome(greeting: str, who: NotInjected[str], punctuation: str = "!") -> str:
    return f"{greeting}, {who}{punctuation}"


def main() -> None:
    print(welcome(who="doge"))  # => Hello, doge!
    print(welcome("Bonjour", "doge", "?"))  # => Bonjour, doge?
    print(f"name={welcome.__name__}")  # => name=welcome

    double = injector.decorate(welcome)
    print(double(who="again"))  # => Hello, again!


if __name__ == "__main__":
    main()

"""Quickstart: inject dependencies by parameter name.

Register providers under plain names, then let the injector read a function's
parameter names and call it with the matching values.
"""

from __future__ import annotations

from namewire import Injector


class Greeter:
    def say(self) -> str:
        return "Hi There!"


class Doge:
    def bark(self) -> str:
        return "much magic"


def foo(greeter: Greeter, doge: Doge) -> str:
    return greeter.say() + "/" + doge.bark()


def main() -> None:
    injector = Injector()
    injector.register("greeter", Greeter)
    injector.register("doge", Doge)

    print(f"names={injector.derive_signature(foo).names}")  # => names=('greeter', 'doge')
    print(f"result={injector.invoke(foo)}")  # => result=Hi There!/much magic


if __name__ == "__main__":
    main()

"""Provider modes: singleton values are built once, factories on every resolution.

Providers may declare their own parameters; those are injected by name from the
same registry.
"""

from __future__ import annotations

from itertools import count

from namewire import Injector, ProviderMode


class Settings:
    def __init__(self) -> None:
        self.dsn = "sqlite:///app.db"


class Connection:
    _ids = count(1)

    def __init__(self, settings: Settings) -> None:
        self.id = next(self._ids)
        self.dsn = settings.dsn


def main() -> None:
    injector = Injector()
    injector.register("settings", Settings, ProviderMode.SINGLETON)
    injector.register("connection", Connection, ProviderMode.FACTORY)

    first = injector.resolve("connection")
    second = injector.resolve("connection")
    same_settings = injector.resolve("settings") is injector.resolve("settings")

    print(f"same_settings={same_settings}")  # => same_settings=True
    print(f"connection_ids={first.id},{second.id}")  # => connection_ids=1,2
    print(f"dsn={first.dsn}")  # => dsn=sqlite:///app.db


if __name__ == "__main__":
    main()

from __future__ import annotations

from enum import Enum


class LockMode(Enum):
    """Select locking behavior for a provider registry.

    ``THREAD`` is the default and is safe for multi-threaded hosts. Use
    ``NONE`` only when every registration and resolution happens on one thread.
    """

    THREAD = "thread"
    """Guard the registration map and singleton caches with ``threading`` locks."""

    NONE = "none"
    """Disable locking around registration and singleton cache reads/writes."""

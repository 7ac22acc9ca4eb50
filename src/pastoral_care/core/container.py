"""Simple service container for dependency management."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any, TypeVar

T = TypeVar("T")

LOGGER = logging.getLogger(__name__)

REPOSITORY_KEY = "repository"
SERVICE_KEY = "casework"


class ServiceContainer:
    """Minimal dependency container with lazy singleton semantics."""

    def __init__(self) -> None:
        """Initialise container storage."""
        self._factories: dict[str, Callable[[ServiceContainer], Any]] = {}
        self._instances: dict[str, Any] = {}
        self._lock = threading.RLock()

    def register(self, key: str, factory: Callable[[ServiceContainer], T]) -> None:
        """Register a factory under a given key."""
        with self._lock:
            self._factories[key] = factory
            self._instances.pop(key, None)

    def resolve(self, key: str) -> Any:
        """Resolve a dependency by key, invoking its factory once.

        Safe to call from worker threads; factories may resolve other keys.
        """
        with self._lock:
            if key in self._instances:
                return self._instances[key]
            if key not in self._factories:
                msg = f"Service '{key}' is not registered"
                raise KeyError(msg)
            instance = self._factories[key](self)
            self._instances[key] = instance
            return instance

    def close(self) -> None:
        """Close resolved instances that own resources, then forget them."""
        with self._lock:
            instances = list(self._instances.items())
            self._instances.clear()
        for key, instance in reversed(instances):
            closer = getattr(instance, "close", None)
            if callable(closer):
                LOGGER.debug("Closing service '%s'", key)
                closer()


__all__ = ["REPOSITORY_KEY", "SERVICE_KEY", "ServiceContainer"]

"""
Dependency injection container.

Holds named factories for the tracker's repositories and services and caches
the instances they produce. Tests override entries with register_instance().

Usage:
    from discipline_tracker.core.container import get_container

    container = get_container()
    container.register("reminders", lambda c: ReminderService(...))
    reminders = container.get("reminders")
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

logger = logging.getLogger(__name__)

# Either a class (called with no arguments) or a callable receiving the container
Factory = Union[type, Callable[["ServiceContainer"], Any]]

_UNSET = object()


@dataclass
class _Entry:
    factory: Optional[Factory] = None
    singleton: bool = True
    instance: Any = _UNSET

    def build(self, container: "ServiceContainer") -> Any:
        if isinstance(self.factory, type):
            return self.factory()
        return self.factory(container)


class ServiceContainer:
    """Lazy, singleton-by-default registry of named services."""

    def __init__(self):
        self._entries: Dict[str, _Entry] = {}

    def register(self, name: str, factory: Factory, singleton: bool = True) -> None:
        """Register ``factory`` under ``name``, dropping any cached instance."""
        self._entries[name] = _Entry(factory=factory, singleton=singleton)
        logger.debug(f"Registered service: {name} (singleton={singleton})")

    def register_instance(self, name: str, instance: Any) -> None:
        entry = self._entries.setdefault(name, _Entry())
        entry.singleton = True
        entry.instance = instance
        logger.debug(f"Registered instance: {name}")

    def get(self, name: str) -> Any:
        """
        Resolve a service by name.

        Raises:
            KeyError: If nothing is registered under ``name``
        """
        entry = self._entries.get(name)
        if entry is None:
            raise KeyError(f"Service '{name}' is not registered")

        if entry.singleton and entry.instance is not _UNSET:
            return entry.instance

        instance = entry.build(self)
        if entry.singleton:
            entry.instance = instance
            logger.debug(f"Created singleton instance: {name}")
        return instance

    def has(self, name: str) -> bool:
        return name in self._entries

    def clear(self) -> None:
        self._entries.clear()
        logger.debug("Container cleared")


_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """Get the global service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """Replace the global container with an empty one."""
    global _container
    if _container is not None:
        _container.clear()
    _container = ServiceContainer()
    logger.debug("Global container reset")

"""Service container and the definer/subscriber scaffold.

Definers declare how services are built; subscribers attach listeners to the
hook registry at bootstrap. The container builds each service on first use
and hands out that same instance afterwards.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Hashable

from revcat_bridge.logging_config import get_logger

logger = get_logger(__name__)

Factory = Callable[["Container"], Any]


class ServiceNotFoundError(KeyError):
    """Raised when the container has no definition for a key."""

    pass


class Container:
    """Registry of lazily built, shared services."""

    def __init__(self):
        self._factories: Dict[Hashable, Factory] = {}
        self._instances: Dict[Hashable, Any] = {}
        self._lock = threading.RLock()

    def define(self, key: Hashable, factory: Factory) -> None:
        """Register a factory. Redefining a key drops any built instance."""
        with self._lock:
            self._factories[key] = factory
            self._instances.pop(key, None)

    def add_definitions(self, definer: "Definer") -> None:
        for key, factory in definer.define().items():
            self.define(key, factory)

    def set(self, key: Hashable, instance: Any) -> None:
        """Register an already built service."""
        with self._lock:
            self._instances[key] = instance

    def has(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._instances or key in self._factories

    def get(self, key: Hashable) -> Any:
        """Get the service for ``key``, building it on first access.

        Raises:
            ServiceNotFoundError: If nothing is defined for ``key``
        """
        with self._lock:
            if key in self._instances:
                return self._instances[key]

            factory = self._factories.get(key)
            if factory is None:
                raise ServiceNotFoundError(f"No service defined for {_describe(key)}")

            instance = factory(self)
            self._instances[key] = instance
            logger.debug("service_built", service=_describe(key))
            return instance


def _describe(key: Hashable) -> str:
    return getattr(key, "__qualname__", None) or repr(key)


class Definer(ABC):
    """Declares service definitions."""

    @abstractmethod
    def define(self) -> Dict[Hashable, Factory]:
        """Return a mapping of service key to factory."""


class Subscriber(ABC):
    """Registers listeners on the hook registry at bootstrap."""

    def __init__(self, container: Container):
        self.container = container

    @abstractmethod
    def register(self) -> None:
        """Attach this subscriber's listeners."""

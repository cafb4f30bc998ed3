"""Hook registry - the host event system subscribers attach listeners to.

Listeners for an action run in ascending priority; listeners sharing a
priority run in the order they were added.
"""

import itertools
import threading
from typing import Any, Callable, Dict, List, NamedTuple

from revcat_bridge.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_PRIORITY = 10


class _Listener(NamedTuple):
    priority: int
    sequence: int
    callback: Callable[..., Any]
    accepted_args: int


class HookRegistry:
    """Named actions with prioritised listeners."""

    def __init__(self):
        self._actions: Dict[str, List[_Listener]] = {}
        self._sequence = itertools.count()
        self._lock = threading.RLock()

    def add_action(
        self,
        name: str,
        callback: Callable[..., Any],
        priority: int = DEFAULT_PRIORITY,
        accepted_args: int = 1,
    ) -> None:
        """Attach ``callback`` to ``name``.

        Args:
            name: Action name
            callback: Listener
            priority: Lower runs first
            accepted_args: How many of the action's arguments the listener receives
        """
        if accepted_args < 0:
            raise ValueError("accepted_args must not be negative")

        with self._lock:
            listeners = self._actions.setdefault(name, [])
            listeners.append(_Listener(priority, next(self._sequence), callback, accepted_args))
            listeners.sort(key=lambda listener: (listener.priority, listener.sequence))

    def has_action(self, name: str) -> bool:
        with self._lock:
            return bool(self._actions.get(name))

    def remove_all_actions(self, name: str) -> None:
        with self._lock:
            self._actions.pop(name, None)

    def do_action(self, name: str, *args: Any) -> List[Any]:
        """Run every listener of ``name`` and collect their return values.

        Exceptions raised by a listener propagate and stop the remaining ones.
        """
        with self._lock:
            listeners = list(self._actions.get(name, ()))

        if not listeners:
            logger.debug("action_without_listeners", action=name)
            return []

        return [listener.callback(*args[: listener.accepted_args]) for listener in listeners]

"""
Fire-and-forget event emission.

Listeners can be attached to a single instance with ``on()`` or to every
instance of a class with ``on_class()``. Class listeners are useful for
events fired during construction, before any instance listener could exist.
"""

import logging
from typing import Any, Callable, ClassVar, Dict, List

logger = logging.getLogger(__name__)


class Eventable:
    """Mixin providing on/off/trigger. Listener errors are logged, never raised."""

    # Per-class listeners; each class gets its own dict on first on_class()
    _class_listeners: ClassVar[Dict[str, List[Callable[..., None]]]] = {}

    @classmethod
    def on_class(cls, event: str, callback: Callable[..., None]) -> None:
        """Subscribe to ``event`` on every instance of this class and its subclasses.

        The callback receives (instance, *args).
        """
        if '_class_listeners' not in cls.__dict__:
            cls._class_listeners = {}
        listeners = cls._class_listeners.setdefault(event, [])
        if callback not in listeners:
            listeners.append(callback)

    @classmethod
    def off_class(cls, event: str, callback: Callable[..., None]) -> None:
        listeners = cls.__dict__.get('_class_listeners', {}).get(event, [])
        if callback in listeners:
            listeners.remove(callback)

    def on(self, event: str, callback: Callable[..., None]) -> None:
        """Subscribe to ``event`` on this instance. The callback receives *args."""
        listeners = self.__dict__.setdefault('_listeners', {}).setdefault(event, [])
        if callback not in listeners:
            listeners.append(callback)

    def off(self, event: str, callback: Callable[..., None]) -> None:
        listeners = self.__dict__.get('_listeners', {}).get(event, [])
        if callback in listeners:
            listeners.remove(callback)

    def trigger(self, event: str, *args: Any) -> None:
        """Call class listeners (base classes first), then instance listeners."""
        for klass in reversed(type(self).__mro__):
            for callback in list(klass.__dict__.get('_class_listeners', {}).get(event, [])):
                try:
                    callback(self, *args)
                except Exception as e:
                    logger.warning(f"Error in class listener for '{event}' on {klass.__name__}: {e}")

        for callback in list(self.__dict__.get('_listeners', {}).get(event, [])):
            try:
                callback(*args)
            except Exception as e:
                logger.warning(f"Error in listener for '{event}': {e}")

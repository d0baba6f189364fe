"""
Dirty tracking: the undo log since the last successful commit.

Only the first recorded old value per field is kept, so reverting restores
the value the field had at the last commit no matter how many writes followed.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from reactivecore.modes import NO_SAVE, run_in_mode

logger = logging.getLogger(__name__)


class _Missing:
    """Marks a field that did not exist before the change."""

    def __repr__(self):
        return 'MISSING'


MISSING = _Missing()


class DirtyTracking:
    """Mixin over ``self._attributes`` recording pre-change values."""

    def _init_dirty_tracking(self) -> None:
        self._changed_attributes: Dict[str, Any] = {}

    @property
    def changed_attributes(self) -> Dict[str, Any]:
        """Field -> value at the last commit (MISSING if the field was absent)."""
        return self._changed_attributes

    def is_changed(self, key: Optional[str] = None) -> bool:
        if key is None:
            return bool(self._changed_attributes)
        return key in self._changed_attributes

    def changed(self) -> list:
        """Names of the fields changed since the last commit."""
        return list(self._changed_attributes)

    def changes(self) -> Dict[str, Tuple[Any, Any]]:
        """Field -> (was, now)."""
        attributes = self._attributes or {}
        return {key: (self.was(key), attributes.get(key)) for key in self._changed_attributes}

    def was(self, key: str) -> Any:
        old_value = self._changed_attributes.get(key)
        return None if old_value is MISSING else old_value

    def attribute_will_change(self, name: str, old_value: Any) -> None:
        # Placeholders are kept as-is so a revert restores the same child
        if name not in self._changed_attributes:
            self._changed_attributes[name] = old_value

    def revert_changes(self) -> None:
        """Restore every changed field to its last committed value."""
        if not self._changed_attributes:
            return
        logger.debug(f"Reverting {sorted(self._changed_attributes)} on {type(self).__name__} at {self._path!r}")

        size_changed = False
        with run_in_mode(NO_SAVE):
            for key, old_value in self._changed_attributes.items():
                if old_value is MISSING:
                    size_changed = self._attributes.pop(key, MISSING) is not MISSING or size_changed
                else:
                    size_changed = size_changed or _is_nil(self._attributes.get(key)) != _is_nil(old_value)
                    self._attributes[key] = old_value
                self._deps.changed(key)

        if size_changed:
            self._size_dep.changed()
        self.clear_tracked_changes()

    def clear_tracked_changes(self) -> None:
        self._changed_attributes = {}


def _is_nil(value: Any) -> bool:
    """None, or a model that has not been instantiated yet."""
    if value is None:
        return True
    is_nil = getattr(value, 'is_nil', None)
    return bool(is_nil()) if callable(is_nil) else False

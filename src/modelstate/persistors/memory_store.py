"""
In-memory key/value persistence.

MemoryStorePersistor keeps a whole model tree in a MemoryStore under one
key: every change anywhere in the tree serialises the root with to_dict(),
and a root constructed over a populated key loads the stored data.
"""

import copy
import logging
from concurrent.futures import Future
from typing import Any, Callable, Dict, Optional

from reactivecore.modes import NO_SAVE, run_in_mode
from modelstate.errors import PersistenceError
from modelstate.persistors.base import BasePersistor, failed, resolved

logger = logging.getLogger(__name__)


class MemoryStore:
    """Dict-backed store holding deep copies, so callers never share state with it."""

    def __init__(self):
        self._data: Dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return list(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class MemoryStorePersistor(BasePersistor):
    """Persist the root of a model tree into ``store[key]``."""

    def __init__(self, model: Any, store: MemoryStore, key: str):
        super().__init__(model)
        self.store = store
        self.key = key

    @classmethod
    def factory(cls, store: MemoryStore, key: str) -> Callable[[Any], 'MemoryStorePersistor']:
        """Persistor factory for ModelOptions(persistor=...)."""
        return lambda model: cls(model, store, key)

    def loaded(self, initial_state: Optional[str] = None) -> None:
        # Only the root of a tree reads the stored data
        if self.model.parent is not None or self.key not in self.store:
            return
        stored = self.store.get(self.key)
        logger.debug(f"Loading '{self.key}' from memory store")
        with run_in_mode(NO_SAVE):
            self.model.assign_attributes(stored)
        # Stored data is the committed baseline
        self.model.clear_tracked_changes()
        self.model.mark_persisted()

    def changed(self, attribute_name: Optional[str]) -> Optional[Future]:
        return self._save()

    def added(self, model: Any, index: int) -> Optional[Future]:
        future = self._save()
        return future if future.exception() is not None else resolved(model)

    def removed(self, item: Any) -> Optional[Future]:
        return self._save()

    def _save(self) -> Future:
        root = self.model
        while root.parent is not None:
            root = root.parent
        try:
            self.store.set(self.key, root.to_dict() if hasattr(root, 'to_dict') else root.to_list())
        except Exception as e:
            logger.warning(f"Failed to save '{self.key}': {e}")
            return failed(PersistenceError(f"Failed to save '{self.key}': {e}"))
        logger.debug(f"Saved '{self.key}' to memory store")
        return resolved()

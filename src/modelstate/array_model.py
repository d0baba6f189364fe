"""
ArrayModel: ordered child collection for list-valued fields.

Items that are mappings are wrapped into models whose path ends with the
item's index, so ``root['items'][0].path == ('items', '0')``.
"""

import logging
import weakref
from concurrent.futures import Future
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Tuple

from reactivecore.dependency import Dependency
from modelstate.options import ModelOptions
from modelstate.persistors.base import CollectionPersistor, resolved

logger = logging.getLogger(__name__)


class ArrayModel:
    """Reactive list. Reads depend on the contents; mutations notify them."""

    def __init__(self, items: Optional[Iterable[Any]] = None, options: Optional[ModelOptions] = None):
        options = options if options is not None else ModelOptions()
        self._parent_ref = weakref.ref(options.parent) if options.parent is not None else None
        self._path: Tuple[str, ...] = tuple(options.path)
        self._options = options.merge(parent=None)
        self._persistor = options.persistor(self) if options.persistor else None
        self._dep = Dependency()
        self._array: List[Any] = []
        for item in items or ():
            self._array.append(self._wrap(item, len(self._array)))

    @property
    def parent(self) -> Optional[Any]:
        return self._parent_ref() if self._parent_ref is not None else None

    @property
    def path(self) -> Tuple[str, ...]:
        return self._path

    @property
    def options(self) -> ModelOptions:
        return self._options.merge(parent=self.parent)

    @property
    def persistor(self) -> Optional[Any]:
        return self._persistor

    def _wrap(self, value: Any, index: int) -> Any:
        from modelstate.model import Model, class_at_path

        child_options = self._options.for_child(self, str(index))
        if isinstance(value, Model):
            if value.parent is None:
                value.reattach(self, str(index))
            return value
        if isinstance(value, Mapping):
            return class_at_path(child_options)(value, child_options)
        if isinstance(value, (list, tuple)):
            return ArrayModel(value, child_options)
        return value

    def append(self, value: Any) -> Future:
        """Append ``value`` (wrapped). Resolves with the stored item."""
        index = len(self._array)
        item = self._wrap(value, index)
        self._array.append(item)
        self._dep.changed()

        result = None
        if isinstance(self._persistor, CollectionPersistor):
            result = self._persistor.added(item, index)
        return result if result is not None else resolved(item)

    __lshift__ = append

    def buffer(self) -> Any:
        """An empty buffer whose save() appends to this collection."""
        from modelstate.model import class_at_path

        child_options = self._options.for_child(self, str(len(self._array)))
        return class_at_path(child_options)({}, child_options.merge(parent=None, buffer=True, save_to=self, persistor=None))

    def delete_at(self, index: int) -> Any:
        item = self._array.pop(index)
        self._dep.changed()
        if isinstance(self._persistor, CollectionPersistor):
            self._persistor.removed(item)
        return item

    def remove(self, item: Any) -> None:
        for index, existing in enumerate(self._array):
            if existing is item or existing == item:
                self.delete_at(index)
                return
        raise ValueError(f"{item!r} is not in {type(self).__name__}")

    def clear(self) -> None:
        items, self._array = self._array, []
        self._dep.changed()
        if isinstance(self._persistor, CollectionPersistor):
            for item in items:
                self._persistor.removed(item)

    def __len__(self) -> int:
        self._dep.depend()
        return len(self._array)

    def __iter__(self) -> Iterator[Any]:
        self._dep.depend()
        return iter(list(self._array))

    def __getitem__(self, index: int) -> Any:
        self._dep.depend()
        return self._array[index]

    def __contains__(self, item: Any) -> bool:
        self._dep.depend()
        return any(existing is item or existing == item for existing in self._array)

    def to_list(self) -> List[Any]:
        """Deep plain-Python copy of the items."""
        self._dep.depend()
        return [_unwrap(item) for item in self._array]

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, ArrayModel):
            return self is other
        if isinstance(other, (list, tuple)):
            return self._array == list(other)
        return NotImplemented

    __hash__ = object.__hash__

    def __repr__(self) -> str:
        return f"<{type(self).__name__}:{id(self)} {self._array!r}>"


def _unwrap(value: Any) -> Any:
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    if isinstance(value, ArrayModel):
        return value.to_list()
    return value

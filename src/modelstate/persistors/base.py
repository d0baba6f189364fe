"""
Persistence delegate capability interfaces.

A model receives its persistor from ``options.persistor``, a factory called
with the model itself. Optional capabilities are separate protocols and are
detected by isinstance() against the runtime-checkable protocol.
"""

from concurrent.futures import Future
from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class Persistor(Protocol):
    """Required capabilities."""

    def loaded(self, initial_state: Optional[str] = None) -> None:
        """Called once at the end of model construction."""

    def changed(self, attribute_name: Optional[str]) -> Optional[Future]:
        """Called after each successful commit (None for a batch).

        Returns a Future resolved on durable success, or failed with a
        PersistenceError.
        """


@runtime_checkable
class LazyReadPersistor(Persistor, Protocol):
    """Persistor that builds the children materialised by reads of absent fields."""

    def read_new_model(self, name: str) -> Any:
        ...


@runtime_checkable
class CollectionPersistor(Protocol):
    """Persistor attached to an ArrayModel."""

    def added(self, model: Any, index: int) -> Optional[Future]:
        ...

    def removed(self, item: Any) -> Optional[Future]:
        ...


def resolved(value: Any = None) -> Future:
    """A Future that already holds ``value``."""
    future: Future = Future()
    future.set_result(value)
    return future


def failed(error: BaseException) -> Future:
    """A Future that already holds ``error``."""
    future: Future = Future()
    future.set_exception(error)
    return future


class BasePersistor:
    """No-op persistor. Subclass and override what the backing store needs."""

    def __init__(self, model: Any):
        self.model = model

    def loaded(self, initial_state: Optional[str] = None) -> None:
        pass

    def changed(self, attribute_name: Optional[str]) -> Optional[Future]:
        return resolved()

    def added(self, model: Any, index: int) -> Optional[Future]:
        return resolved(model)

    def removed(self, item: Any) -> Optional[Future]:
        return resolved()

"""
ModelOptions: the configuration every Model and ArrayModel is built from.

Options are immutable. A child gets its own copy via ``for_child()``, which
points ``parent`` at the container and extends ``path`` by one segment.
"""

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, Tuple

if TYPE_CHECKING:
    from modelstate.persistors import Persistor


@dataclass(frozen=True)
class ModelOptions:
    """Construction options for a model.

    Attributes:
        parent: Container the model lives in (models hold it weakly).
        path: Field names from the root to the model.
        class_paths: Singular field name -> Model subclass for children read
                     or assigned under that name.
        persistor: Factory called with the model to build its persistor.
        buffer: True for buffers (may hold invalid state).
        save_to: Model or collection a buffer saves into.
    """
    parent: Optional[Any] = None
    path: Tuple[str, ...] = ()
    class_paths: Mapping[str, type] = field(default_factory=dict)
    persistor: Optional[Callable[[Any], 'Persistor']] = None
    buffer: bool = False
    save_to: Optional[Any] = None

    def for_child(self, parent: Any, key: str) -> 'ModelOptions':
        """Options for a child stored at ``key`` inside ``parent``."""
        return replace(self, parent=parent, path=tuple(parent.path) + (key,), save_to=None)

    def merge(self, **changes: Any) -> 'ModelOptions':
        return replace(self, **changes)

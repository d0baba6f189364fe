"""
Model: reactive, hierarchical attribute container.

A Model holds a mapping of field name -> value where values are scalars,
nested Models or ArrayModels. Every read registers the running Computation
as a dependent of that field; every write notifies it, records the old value
and runs the commit protocol:

    validate -> revert on error | persist on success -> clear dirty state

Reading a field that does not exist materialises an uninstantiated child
(``attributes is None``) stored under that name. Writing beneath such a child
expands it and every ancestor, so ``root['a']['b']['c'] = 1`` is visible from
``root``.

Lifecycle:
- Created directly, lazily by a parent read, or by a persistor's
  read_new_model()
- Mutated by assign_attribute(), assign_attributes() and expand()
- No explicit destruction; parents are held weakly
"""

import logging
import weakref
from concurrent.futures import Future
from typing import Any, ClassVar, Dict, Iterator, List, Mapping, Optional, Tuple

from reactivecore.dependency import Dependency, HashDependency
from reactivecore.events import Eventable
from reactivecore.modes import NO_SAVE, NO_VALIDATE, in_mode, run_in_mode
from reactivecore.scheduling import call_soon_or_now
from modelstate import config
from modelstate.array_model import ArrayModel
from modelstate.buffer import Buffer
from modelstate.dirty import MISSING, DirtyTracking, _is_nil
from modelstate.errors import Errors, InvalidFieldName, ModelError, RootCollectionError
from modelstate.fields import RESERVED_FIELD_NAMES, Accessor, build_accessor_map
from modelstate.inflection import is_plural, singularize
from modelstate.options import ModelOptions
from modelstate.persistors.base import CollectionPersistor, LazyReadPersistor, failed
from modelstate.validations import Validations

logger = logging.getLogger(__name__)

ID_FIELD = 'id'

_UNSET = object()


def class_at_path(options: ModelOptions) -> type:
    """Model class for a child built with ``options``.

    Looks up the last non-index path segment (as given, then singularised)
    in ``options.class_paths``; falls back to Model.
    """
    if options.class_paths:
        names = [segment for segment in options.path if not segment.isdigit()]
        if names:
            name = names[-1]
            klass = options.class_paths.get(name) or options.class_paths.get(singularize(name))
            if klass is not None:
                return klass
    return Model


class Model(Eventable, Validations, DirtyTracking, Buffer):
    """Observable attribute container with validated, persisted commits.

    Thread safety: Not thread-safe (one thread of control per model tree).
    """

    _accessors: ClassVar[Dict[str, Accessor]] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls._accessors = build_accessor_map(cls)

    def __init__(self, attributes: Any = _UNSET, options: Optional[ModelOptions] = None,
                 initial_state: Optional[str] = None):
        """
        Args:
            attributes: Initial field values. None builds an uninstantiated
                        model; omitted builds an empty one.
            options: Parent/path/persistor wiring (see ModelOptions). Defaults
                     to config.get_default_model_options().
            initial_state: 'loaded' for data that is already persisted
                           (the model is then not new).
        """
        self._deps = HashDependency()
        self._size_dep = Dependency()
        self._attributes: Optional[Dict[str, Any]] = None
        self._state: Optional[str] = None
        self._init_dirty_tracking()
        self._init_validations()
        self.options = options if options is not None else config.get_default_model_options()

        self._new = initial_state != 'loaded'

        self.assign_attributes({} if attributes is _UNSET else attributes, initial_setup=True)

        self._state = 'loaded'

        if self._persistor is not None:
            self._persistor.loaded(initial_state)

        self.trigger('new', 'new')

    # === Options & hierarchy ===

    @property
    def options(self) -> ModelOptions:
        return self._options.merge(parent=self.parent)

    @options.setter
    def options(self, options: ModelOptions) -> None:
        # The parent is held weakly; options keep everything else
        self._options = options.merge(parent=None)
        self._parent_ref = weakref.ref(options.parent) if options.parent is not None else None
        self._path: Tuple[str, ...] = tuple(options.path)
        self._class_paths = options.class_paths
        self._persistor = options.persistor(self) if options.persistor else None

    @property
    def parent(self) -> Optional[Any]:
        return self._parent_ref() if self._parent_ref is not None else None

    @property
    def path(self) -> Tuple[str, ...]:
        return self._path

    @property
    def persistor(self) -> Optional[Any]:
        return self._persistor

    @property
    def attributes(self) -> Optional[Dict[str, Any]]:
        return self._attributes

    @attributes.setter
    def attributes(self, attrs: Optional[Mapping[str, Any]]) -> None:
        self.assign_attributes(attrs)

    @property
    def id(self) -> Any:
        self._deps.depend(ID_FIELD)
        return (self._attributes or {}).get(ID_FIELD)

    @id.setter
    def id(self, value: Any) -> None:
        self.assign_attribute(ID_FIELD, value)

    @property
    def is_new(self) -> bool:
        """True until the first successful commit."""
        return self._new

    def mark_new(self) -> None:
        self._new = True

    def mark_persisted(self) -> None:
        self._new = False

    @property
    def state(self) -> Optional[str]:
        return self._state

    @classmethod
    def accessors(cls) -> Dict[str, Accessor]:
        """The class's accessor map (declared fields and property setters)."""
        return dict(cls._accessors)

    # === Modes ===

    @staticmethod
    def no_save():
        """Context manager: validate but do not persist changes made inside it."""
        return run_in_mode(NO_SAVE)

    @staticmethod
    def _no_validate():
        # Internal: defers validation and persistence to the end of a batch
        return run_in_mode(NO_VALIDATE)

    # === Mass assignment ===

    def assign_attributes(self, attrs: Optional[Mapping[str, Any]], initial_setup: bool = False) -> Optional[Future]:
        """Replace the whole store with ``attrs``.

        The id is assigned first, then every other field through the class
        accessor map (so property setters can intercept), all without
        validation. Observers get one "everything changed" notification and
        the batch is committed (or, during construction, only validated).

        Returns:
            The persistence Future for the batch, or None.
        """
        if isinstance(attrs, Model):
            attrs = attrs.to_dict()
        attrs = dict(attrs) if attrs is not None else None
        for key in attrs or ():
            self._check_valid_field_name(key)

        previous_store = self._attributes
        previous_changes = dict(self._changed_attributes)
        previous = previous_store or {}
        if not initial_setup:
            # Record the whole batch so a failed commit restores every field
            for key in list(previous) + [key for key in (attrs or ()) if key not in previous]:
                self.attribute_will_change(key, previous.get(key, MISSING))

        try:
            if attrs is None:
                self._attributes = None
            else:
                self._attributes = {}
                id_value = attrs.pop(ID_FIELD, None)
                with self._no_validate():
                    if id_value is not None:
                        self._assign_through_accessor(ID_FIELD, id_value)
                    for key, value in attrs.items():
                        self._assign_through_accessor(key, value)
        except BaseException:
            if not initial_setup:
                # The replaced store is never mutated by the batch
                logger.debug(f"Mass assignment on {type(self).__name__} at {self._path!r} raised, restoring store")
                self._attributes = previous_store
                self._changed_attributes = previous_changes
                self._deps.changed_all()
                self._size_dep.changed()
            raise

        self._deps.changed_all()
        self._deps = HashDependency()
        if previous and not self._attributes:
            self._size_dep.changed()

        if initial_setup:
            self.validate()
            self.clear_tracked_changes()
            return None
        return self._run_changed()

    def _assign_through_accessor(self, name: str, value: Any) -> None:
        accessor = self._accessors.get(name)
        if accessor is not None and accessor.setter is not None:
            accessor.setter(self, value)
        else:
            self.assign_attribute(name, value)

    # === Field access ===

    def assign_attribute(self, name: str, value: Any) -> Optional[Future]:
        """Set one field and run the commit protocol for it.

        Assigning a value equal to the current one does nothing at all.

        Returns:
            The persistence Future, or None if nothing was persisted.

        Raises:
            InvalidFieldName: ``name`` is reserved.
        """
        name = self._check_valid_field_name(name)
        self.expand()

        old_value = self._attributes.get(name, MISSING)
        if old_value is not MISSING and old_value == value:
            return None
        new_value = self.wrap_value(value, name)
        if old_value is not MISSING and old_value == new_value:
            return None

        self.attribute_will_change(name, old_value)
        self._attributes[name] = new_value

        self._deps.changed(name)
        if old_value is MISSING or _is_nil(old_value) or _is_nil(new_value):
            self._size_dep.changed()

        if self._server_errors:
            self.clear_server_errors(name)

        return self._run_changed(name)

    def read_attribute(self, name: str) -> Any:
        """Return a field, materialising an uninstantiated child if it is absent.

        Raises:
            InvalidFieldName: ``name`` is reserved.
        """
        name = self._check_valid_field_name(name)

        if self._attributes is not None and name in self._attributes:
            self._deps.depend(name)
            return self._attributes[name]

        new_model = self.read_new_model(name)
        if self._attributes is None:
            self._attributes = {}
        self._attributes[name] = new_model

        self._notify_size_changed_later()

        self._deps.depend(name)
        return new_model

    def _notify_size_changed_later(self) -> None:
        # Deferred under a running loop so a cascade of lazy reads does not
        # re-enter observers mid-read
        if config.get_size_notification_policy() == 'immediate':
            self._size_dep.changed()
        else:
            call_soon_or_now(self._size_dep.changed)

    def read_new_model(self, name: str) -> Any:
        """Build the child for a read of absent field ``name``."""
        if isinstance(self._persistor, LazyReadPersistor):
            return self._persistor.read_new_model(name)

        options = self._options.for_child(self, name)
        if is_plural(name):
            return self.new_array_model([], options)
        return self.new_model(None, options)

    def new_model(self, attributes: Any, options: ModelOptions) -> 'Model':
        return class_at_path(options)(attributes, options)

    def new_array_model(self, items: Any, options: ModelOptions) -> ArrayModel:
        return ArrayModel(items, options)

    def wrap_value(self, value: Any, name: str) -> Any:
        """Turn plain mappings/sequences into child models stored under ``name``."""
        if isinstance(value, Model):
            if value.parent is None and value is not self:
                value._link(self, name)
            return value
        if isinstance(value, ArrayModel):
            return value
        if isinstance(value, Mapping):
            return self.new_model(value, self._options.for_child(self, name))
        if isinstance(value, (list, tuple)):
            return self.new_array_model(value, self._options.for_child(self, name))
        return value

    def _check_valid_field_name(self, name: Any) -> str:
        name = str(name)
        if name in RESERVED_FIELD_NAMES:
            raise InvalidFieldName(name)
        return name

    # === Expansion ===

    def expand(self) -> 'Model':
        """Promote an uninstantiated model to an empty one linked into its ancestors."""
        if self._attributes is None:
            self._attributes = {}
            parent = self.parent
            if parent is not None:
                if isinstance(parent, Model):
                    parent.expand()
                self.reattach(parent, self._path[-1])
        return self

    def reattach(self, parent: Any, key: str) -> None:
        """Link this model under ``parent`` at ``key`` and store it there."""
        self._link(parent, key)
        if isinstance(parent, Model):
            parent.assign_attribute(key, self)

    def _link(self, parent: Any, key: str) -> None:
        self._parent_ref = weakref.ref(parent)
        self._path = tuple(parent.path) + (key,)

    def append(self, value: Any) -> Future:
        """Append ``value`` to the collection stored at this model's field.

        The field is turned into an ArrayModel if it is still a placeholder.

        Raises:
            RootCollectionError: the model has no parent to hold the collection.
        """
        parent = self.parent
        if not isinstance(parent, Model):
            raise RootCollectionError('Model data should be stored in sub collections.')

        parent.expand()
        key = self._path[-1]
        result = parent.read_attribute(key)

        if result is None or _is_nil(result):
            parent.assign_attribute(key, parent.new_array_model([], parent._options.for_child(parent, key)))
            result = parent.read_attribute(key)
        elif not isinstance(result, ArrayModel):
            raise ModelError(f"Field '{key}' already holds a {type(result).__name__}, not a collection")

        return result.append(value)

    __lshift__ = append

    # === Commit protocol ===

    def _run_changed(self, attribute_name: Optional[str] = None) -> Optional[Future]:
        """Validate, then revert or persist.

        Returns:
            The persistor's Future, or None when nothing was persisted
            (no_validate/no_save mode, buffer, validation failure, no persistor).
        """
        # no_validate defers the whole protocol to the end of a batch
        if in_mode(NO_VALIDATE):
            return None

        self.validate()

        # Buffers may hold invalid state
        if self.is_buffer:
            return None

        if self.error_in_changed_attributes():
            rejected = Errors({
                key: list(messages) for key, messages in self._errors.items()
                if key in self._changed_attributes
            })
            logger.debug(f"Rejected change to {sorted(rejected)} on {type(self).__name__} at {self._path!r}")
            self.revert_changes()

            # Errors for the restored state, plus why the change was rejected
            self.validate()
            self._errors.merge(rejected)
            self._errors_dep.changed()
            return None

        if in_mode(NO_SAVE):
            return None

        result = None
        if self._persistor is not None:
            try:
                result = self._persistor.changed(attribute_name)
            except Exception as e:
                logger.warning(f"Persistor {type(self._persistor).__name__} failed for {attribute_name!r}: {e}")
                result = failed(e)
        self._new = False

        self.clear_tracked_changes()
        return result

    # === Mapping behaviour ===

    def __getitem__(self, name: str) -> Any:
        return self.read_attribute(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self.assign_attribute(name, value)

    def __delitem__(self, name: str) -> None:
        if self.delete(name) is MISSING:
            raise KeyError(name)

    def delete(self, name: str) -> Any:
        """Remove a field without a commit. Returns its value (MISSING if absent)."""
        name = self._check_valid_field_name(name)
        if self._attributes is None or name not in self._attributes:
            return MISSING
        value = self._attributes.pop(name)
        self._size_dep.changed()
        self._deps.delete(name)
        if isinstance(self._persistor, CollectionPersistor):
            self._persistor.removed(name)
        return value

    def clear(self) -> None:
        if not self._attributes:
            return
        for key in list(self._attributes):
            self._deps.changed(key)
        self._attributes.clear()
        self._size_dep.changed()
        if isinstance(self._persistor, CollectionPersistor):
            self._persistor.removed(None)

    def keys(self) -> List[str]:
        self._size_dep.depend()
        return list(self._attributes or ())

    def __len__(self) -> int:
        self._size_dep.depend()
        return len(self._attributes or ())

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __contains__(self, name: str) -> bool:
        self._size_dep.depend()
        return self._attributes is not None and name in self._attributes

    def is_empty(self) -> bool:
        self._size_dep.depend()
        return not self._attributes

    def is_nil(self) -> bool:
        """True while uninstantiated (before expand())."""
        return self._attributes is None

    def __bool__(self) -> bool:
        return self._attributes is not None

    def to_dict(self) -> Optional[Dict[str, Any]]:
        """Deep plain-Python copy; uninstantiated models become None."""
        self._size_dep.depend()
        if self._attributes is None:
            return None
        return {key: _unwrap(value) for key, value in self._attributes.items()}

    def __eq__(self, other: Any) -> bool:
        # Models compare by identity, anything else against the attributes
        if isinstance(other, Model):
            return self is other
        if isinstance(other, ArrayModel):
            return False
        return self._attributes == other

    __hash__ = object.__hash__

    def __repr__(self) -> str:
        return f"<{type(self).__name__}:{id(self)} {self._attributes!r}>"


Model._accessors = build_accessor_map(Model)


def _unwrap(value: Any) -> Any:
    if isinstance(value, Model):
        return value.to_dict()
    if isinstance(value, ArrayModel):
        return value.to_list()
    return value

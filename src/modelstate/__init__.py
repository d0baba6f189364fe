"""
Reactive, hierarchical models with validated commits and pluggable persistence.

Quick Start:
    >>> from modelstate import Model, Field, numericality
    >>>
    >>> class Person(Model):
    ...     name = Field()
    ...     age = Field(numericality(minimum=18))
    >>>
    >>> person = Person({'name': 'Ada', 'age': 36}, initial_state='loaded')
    >>> person.age = 10          # rejected: reverted to 36
    >>> person.age, person.errors
    (36, {'age': ['number must be greater than or equal to 18']})

Architecture:
    Model
      - attribute store (dict, or None while uninstantiated)
      - HashDependency per field + a size Dependency (reactivecore)
      - commit protocol: validate -> revert | persist -> clear dirty state
      - persistor built from ModelOptions.persistor

    ArrayModel holds list-valued fields; Buffer gives staged, saveable copies.

Modules:
    - model: Model, class_at_path
    - array_model: ArrayModel
    - fields: Field descriptor and per-class accessor map
    - validations / validators: rule registry and built-in rules
    - dirty: undo log since the last commit
    - buffer: buffer() / save()
    - persistors: persistence capability protocols, MemoryStorePersistor
    - options / config: per-model options and process-wide defaults
"""

from modelstate.errors import (
    Errors,
    InvalidFieldName,
    ModelError,
    PersistenceError,
    RootCollectionError,
    ValidationError,
)
from modelstate.options import ModelOptions
from modelstate.config import (
    get_default_model_options,
    get_size_notification_policy,
    set_default_model_options,
    set_size_notification_policy,
)
from modelstate.fields import RESERVED_FIELD_NAMES, Accessor, Field
from modelstate.validators import format_of, length, numericality, presence
from modelstate.dirty import MISSING
from modelstate.persistors import (
    BasePersistor,
    CollectionPersistor,
    LazyReadPersistor,
    MemoryStore,
    MemoryStorePersistor,
    Persistor,
)
from modelstate.array_model import ArrayModel
from modelstate.model import ID_FIELD, Model, class_at_path

__all__ = [
    # Core
    'Model',
    'ArrayModel',
    'class_at_path',
    'ID_FIELD',
    'MISSING',
    # Fields & validation
    'Field',
    'Accessor',
    'RESERVED_FIELD_NAMES',
    'presence',
    'length',
    'numericality',
    'format_of',
    # Errors
    'Errors',
    'ModelError',
    'InvalidFieldName',
    'RootCollectionError',
    'ValidationError',
    'PersistenceError',
    # Persistence
    'Persistor',
    'LazyReadPersistor',
    'CollectionPersistor',
    'BasePersistor',
    'MemoryStore',
    'MemoryStorePersistor',
    # Configuration
    'ModelOptions',
    'set_default_model_options',
    'get_default_model_options',
    'set_size_notification_policy',
    'get_size_notification_policy',
]

__version__ = '1.0.0'

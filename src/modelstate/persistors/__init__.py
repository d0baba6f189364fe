"""Persistence delegates: capability protocols and an in-memory reference store."""

from modelstate.persistors.base import (
    BasePersistor,
    CollectionPersistor,
    LazyReadPersistor,
    Persistor,
    failed,
    resolved,
)
from modelstate.persistors.memory_store import MemoryStore, MemoryStorePersistor

__all__ = [
    'BasePersistor',
    'CollectionPersistor',
    'LazyReadPersistor',
    'Persistor',
    'failed',
    'resolved',
    'MemoryStore',
    'MemoryStorePersistor',
]

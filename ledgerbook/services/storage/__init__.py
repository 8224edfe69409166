"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
The in-memory backend is used for tests and demos; Google Sheets is the
hosted backend.
"""

from ledgerbook.services.storage.interface import (
    IdentityInterface,
    NotFoundError,
    PersistenceError,
    RecordStorageInterface,
    Row,
    StorageConnectionError,
)
from ledgerbook.services.storage.memory import (
    InMemoryIdentityStore,
    InMemoryRecordStorage,
)

__all__ = [
    # Interfaces
    "IdentityInterface",
    "RecordStorageInterface",
    "Row",
    # Exceptions
    "NotFoundError",
    "PersistenceError",
    "StorageConnectionError",
    # In-memory implementation
    "InMemoryIdentityStore",
    "InMemoryRecordStorage",
]

"""Services package."""

from ledgerbook.services.storage import (
    IdentityInterface,
    InMemoryIdentityStore,
    InMemoryRecordStorage,
    NotFoundError,
    PersistenceError,
    RecordStorageInterface,
    StorageConnectionError,
)

__all__ = [
    "IdentityInterface",
    "InMemoryIdentityStore",
    "InMemoryRecordStorage",
    "NotFoundError",
    "PersistenceError",
    "RecordStorageInterface",
    "StorageConnectionError",
]

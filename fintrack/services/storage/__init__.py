"""
Storage Services Package

Provides the abstract ledger interface and its two implementations.
The implementation is chosen once at startup with create_storage().
"""

from typing import Optional

from fintrack.config import AppSettings, DatabaseSettings, StorageBackend
from fintrack.services.storage.interface import (
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageConnectionError,
    StorageError,
)
from fintrack.services.storage.memory import InMemoryLedgerStorage
from fintrack.services.storage.sql import SqlClient, SqlLedgerStorage


def create_storage(
    app_settings: Optional[AppSettings] = None,
    database_settings: Optional[DatabaseSettings] = None,
) -> LedgerStorageInterface:
    """
    Build the configured ledger storage.

    The SQL backend connects (and creates its tables) immediately so a bad
    DATABASE_URL fails at startup rather than on the first request.
    """
    app_settings = app_settings or AppSettings()

    if app_settings.storage_backend == StorageBackend.MEMORY:
        return InMemoryLedgerStorage()

    client = SqlClient(database_settings or DatabaseSettings())
    client.connect()
    return SqlLedgerStorage(client)


__all__ = [
    # Interface
    "LedgerStorageInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    # Implementations
    "InMemoryLedgerStorage",
    "SqlClient",
    "SqlLedgerStorage",
    "create_storage",
]

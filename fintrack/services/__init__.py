"""Services package."""

from fintrack.services.auth import (
    AuthenticationError,
    authenticate_user,
    create_access_token,
    decode_access_token,
    hash_password,
    register_user,
    verify_password,
)
from fintrack.services.storage import (
    DuplicateError,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
    NotFoundError,
    SqlClient,
    SqlLedgerStorage,
    StorageConnectionError,
    StorageError,
    create_storage,
)

__all__ = [
    # Access layer
    "AuthenticationError",
    "authenticate_user",
    "create_access_token",
    "decode_access_token",
    "hash_password",
    "register_user",
    "verify_password",
    # Storage services
    "DuplicateError",
    "InMemoryLedgerStorage",
    "LedgerStorageInterface",
    "NotFoundError",
    "SqlClient",
    "SqlLedgerStorage",
    "StorageConnectionError",
    "StorageError",
    "create_storage",
]

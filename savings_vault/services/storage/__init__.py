"""
Storage Services Package

Provides the abstract audit storage interface and its implementations.
Google Sheets is the persistent backend; the in-memory store serves tests
and local runs.
"""

from savings_vault.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    NotFoundError,
    StorageError,
)
from savings_vault.services.storage.memory import InMemoryAuditStorage
from savings_vault.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "InMemoryAuditStorage",
]

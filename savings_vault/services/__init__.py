"""Services package."""

from savings_vault.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    InMemoryAuditStorage,
    NotFoundError,
    StorageError,
)
from savings_vault.services.transfer import (
    Payout,
    RecordingTransfer,
    TransferError,
    ValueTransferInterface,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "InMemoryAuditStorage",
    "NotFoundError",
    "StorageError",
    # Transfer services
    "Payout",
    "RecordingTransfer",
    "TransferError",
    "ValueTransferInterface",
]

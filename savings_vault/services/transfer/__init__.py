"""Value transfer package."""

from savings_vault.services.transfer.interface import TransferError, ValueTransferInterface
from savings_vault.services.transfer.recording import Payout, RecordingTransfer

__all__ = [
    "Payout",
    "RecordingTransfer",
    "TransferError",
    "ValueTransferInterface",
]

"""
Recording Transfer

In-process transfer backend that remembers every payout.
Used by tests, the Streamlit demo and any deployment where payouts are
settled by hand from the recorded list.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from savings_vault.services.transfer.interface import TransferError, ValueTransferInterface


@dataclass(frozen=True)
class Payout:
    account_id: str
    amount: int
    paid_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class RecordingTransfer(ValueTransferInterface):
    """
    Records payouts instead of sending them anywhere.

    Args:
        fail_with: If set, every transfer raises TransferError with this message.
                   Lets callers rehearse the failure path.
    """

    def __init__(self, fail_with: Optional[str] = None):
        self._payouts: list[Payout] = []
        self.fail_with = fail_with

    @property
    def payouts(self) -> list[Payout]:
        return list(self._payouts)

    def total_paid(self, account_id: Optional[str] = None) -> int:
        return sum(
            p.amount for p in self._payouts
            if account_id is None or p.account_id == account_id
        )

    async def transfer(self, account_id: str, amount: int) -> None:
        if self.fail_with:
            raise TransferError(self.fail_with)
        if amount <= 0:
            raise TransferError(f"Refusing to pay out non-positive amount {amount}")
        self._payouts.append(Payout(account_id=account_id, amount=amount))

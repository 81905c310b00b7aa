"""
Value Transfer Interface

The ledger never moves money itself. When a withdrawal executes,
it asks a ValueTransferInterface to pay the account out.

CRITICAL: A transfer that raises TransferError MUST NOT have moved value.
The ledger relies on this to leave balances untouched when a payout fails.
"""

from abc import ABC, abstractmethod


class TransferError(Exception):
    """The payout could not be made. No value was moved."""
    pass


class ValueTransferInterface(ABC):
    """Pays ledger value out to an account holder."""

    @abstractmethod
    async def transfer(self, account_id: str, amount: int) -> None:
        """
        Move amount to account_id.

        Args:
            account_id: Recipient account
            amount: Positive amount to pay out

        Raises:
            TransferError: If the payout failed
        """
        pass

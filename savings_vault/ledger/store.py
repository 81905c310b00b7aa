"""
Account Store

Holds every account record and the process-wide LedgerStatistics.

DESIGN DECISION: Two levels of locking.
1. One asyncio.Lock per account. LedgerService holds it for the whole of an
   operation (checks, payout, commit), so no caller ever observes a
   half-applied deposit or withdrawal on that account.
2. One narrow lock around the statistics aggregate. It is held only for the
   few lines that bump a counter, never across an await, so unrelated
   accounts are never serialized behind each other.

The mutators below are synchronous. Each one either validates and applies
its whole change, or raises before touching anything.

Callers get copies of records, never live references.
"""

import asyncio
import threading
from collections import defaultdict
from datetime import datetime
from typing import Optional

from savings_vault.ledger.errors import (
    AlreadyLockedError,
    DuplicatePartnerError,
    InsufficientBalanceError,
    InvalidAmountError,
    NoGoalSetError,
    NoRequestError,
    RequestAlreadyExistsError,
)
from savings_vault.models.account import (
    AccountRecord,
    LedgerStatistics,
    SavingsGoal,
    WithdrawalRequest,
)


def validate_amount(amount: int, account_id: Optional[str] = None) -> int:
    """Amounts are positive integers. Booleans are not amounts."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError(
            f"Amount must be an integer, got {type(amount).__name__}",
            account_id,
        )
    if amount <= 0:
        raise InvalidAmountError(f"Amount must be positive, got {amount}", account_id)
    return amount


class AccountStore:
    """In-memory account records plus ledger-wide totals."""

    def __init__(self):
        self._accounts: dict[str, AccountRecord] = {}
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

        self._stats = LedgerStatistics()
        self._stats_lock = threading.Lock()

        # Append-only: every account that was ever funded, in funding order
        self._funded_registry: list[str] = []

    # -------------------------------------------------------------------------
    # Records and locks
    # -------------------------------------------------------------------------

    def account_lock(self, account_id: str) -> asyncio.Lock:
        """The lock serializing every mutating operation on account_id."""
        return self._locks[account_id]

    def _record(self, account_id: str) -> AccountRecord:
        record = self._accounts.get(account_id)
        if record is None:
            record = AccountRecord(account_id=account_id)
            self._accounts[account_id] = record
        return record

    def exists(self, account_id: str) -> bool:
        return account_id in self._accounts

    def account_ids(self) -> list[str]:
        return sorted(self._accounts)

    def snapshot(self, account_id: str) -> Optional[AccountRecord]:
        record = self._accounts.get(account_id)
        return record.model_copy(deep=True) if record else None

    # -------------------------------------------------------------------------
    # Balances
    # -------------------------------------------------------------------------

    def get_balance(self, account_id: str) -> int:
        record = self._accounts.get(account_id)
        return record.balance if record else 0

    def add_balance(self, account_id: str, amount: int) -> int:
        """
        Credit account_id and the ledger total.

        Returns:
            The new balance

        Raises:
            InvalidAmountError: amount is not a positive integer
        """
        validate_amount(amount, account_id)
        record = self._record(account_id)
        record.balance += amount
        with self._stats_lock:
            self._stats.total_balance += amount
        return record.balance

    def subtract_balance(self, account_id: str, amount: int) -> int:
        """
        Debit account_id and the ledger total.

        Returns:
            The new balance

        Raises:
            InvalidAmountError: amount is not a positive integer
            InsufficientBalanceError: amount exceeds the balance
        """
        validate_amount(amount, account_id)
        balance = self.get_balance(account_id)
        if amount > balance:
            raise InsufficientBalanceError(
                f"Cannot take {amount} from {account_id}: balance is {balance}",
                account_id,
                balance=balance,
                requested=amount,
            )
        record = self._record(account_id)
        record.balance -= amount
        with self._stats_lock:
            self._stats.total_balance -= amount
        return record.balance

    def mark_funded(self, account_id: str) -> bool:
        """
        Count account_id as funded, once in its lifetime.

        Returns True the first time, False afterwards.
        """
        record = self._record(account_id)
        if record.ever_funded:
            return False
        record.ever_funded = True
        with self._stats_lock:
            self._stats.total_accounts_ever_funded += 1
            self._funded_registry.append(account_id)
        return True

    # -------------------------------------------------------------------------
    # Goals
    # -------------------------------------------------------------------------

    def get_goal(self, account_id: str) -> Optional[SavingsGoal]:
        record = self._accounts.get(account_id)
        if record is None or record.goal is None:
            return None
        return record.goal.model_copy()

    def set_goal(self, account_id: str, goal: SavingsGoal) -> SavingsGoal:
        """Replace any previous goal unconditionally."""
        self._record(account_id).goal = goal.model_copy()
        return goal

    def lock_goal(self, account_id: str) -> None:
        goal = self._existing_goal(account_id)
        if goal.locked:
            raise AlreadyLockedError(f"Goal for {account_id} is already locked", account_id)
        goal.locked = True

    def unlock_goal(self, account_id: str) -> None:
        self._existing_goal(account_id).locked = False

    def mark_goal_achieved(self, account_id: str, at: datetime) -> None:
        goal = self._existing_goal(account_id)
        if goal.achieved_at is None:
            goal.achieved_at = at

    def _existing_goal(self, account_id: str) -> SavingsGoal:
        record = self._accounts.get(account_id)
        if record is None or record.goal is None:
            raise NoGoalSetError(f"No savings goal set for {account_id}", account_id)
        return record.goal

    # -------------------------------------------------------------------------
    # Withdrawal requests
    # -------------------------------------------------------------------------

    def get_pending_withdrawal(self, account_id: str) -> Optional[WithdrawalRequest]:
        record = self._accounts.get(account_id)
        if record is None or record.pending_withdrawal is None:
            return None
        return record.pending_withdrawal.model_copy()

    def set_pending_withdrawal(self, account_id: str, request: WithdrawalRequest) -> None:
        """
        Store a new request.

        Raises:
            RequestAlreadyExistsError: an unexecuted request is outstanding
        """
        record = self._record(account_id)
        current = record.pending_withdrawal
        if current is not None and not current.executed:
            raise RequestAlreadyExistsError(
                f"{account_id} already has a pending withdrawal of {current.amount}",
                account_id,
            )
        record.pending_withdrawal = request.model_copy()

    def mark_withdrawal_executed(self, account_id: str, at: datetime) -> None:
        record = self._accounts.get(account_id)
        if record is None or record.pending_withdrawal is None:
            raise NoRequestError(f"{account_id} has no withdrawal request", account_id)
        record.pending_withdrawal.executed = True
        record.pending_withdrawal.executed_at = at
        with self._stats_lock:
            self._stats.total_withdrawals_executed += 1

    def clear_pending_withdrawal(self, account_id: str) -> None:
        """Return the account to NO_REQUEST. Only executed requests may be cleared."""
        record = self._accounts.get(account_id)
        if record is None or record.pending_withdrawal is None:
            return
        if not record.pending_withdrawal.executed:
            raise RequestAlreadyExistsError(
                f"Cannot clear {account_id}'s unexecuted withdrawal request",
                account_id,
            )
        record.pending_withdrawal = None

    # -------------------------------------------------------------------------
    # Partners
    # -------------------------------------------------------------------------

    def add_partner(self, account_id: str, partner_id: str) -> None:
        record = self._record(account_id)
        if partner_id in record.partners:
            raise DuplicatePartnerError(
                f"{partner_id} is already a partner of {account_id}",
                account_id,
            )
        record.partners.add(partner_id)

    def get_partners(self, account_id: str) -> list[str]:
        record = self._accounts.get(account_id)
        return sorted(record.partners) if record else []

    def is_partner(self, account_id: str, partner_id: str) -> bool:
        record = self._accounts.get(account_id)
        return record is not None and partner_id in record.partners

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    def statistics(self) -> LedgerStatistics:
        with self._stats_lock:
            return self._stats.model_copy()

    def funded_accounts(self) -> list[str]:
        """Every account ever funded, oldest first."""
        with self._stats_lock:
            return list(self._funded_registry)

    def balance_sum(self) -> int:
        """Recomputed sum of balances, for invariant checks."""
        return sum(record.balance for record in self._accounts.values())

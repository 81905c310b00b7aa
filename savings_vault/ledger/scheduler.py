"""
Withdrawal Scheduler

The time-lock state machine, one instance per ledger:

    NO_REQUEST --request(amount)--> PENDING --execute()--> EXECUTED
        ^                                                     |
        +------------- cleared by the next request -----------+

WHY TWO PHASES:
A mandatory cooling-off window sits between asking for money and money
leaving the ledger. A stolen credential cannot drain an account instantly.

DESIGN DECISIONS:
1. No cancel, no amend. A request made is a request that will eventually
   become executable. The caller's only way out is not to execute it.
2. A request does NOT reserve funds. Deposits and balance changes carry on
   while a request is pending, so the amount is checked again at execution.
3. EXECUTED is not terminal. The executed request stays on record (a second
   execute reports AlreadyExecuted) until the next request clears it.

The scheduler never takes locks itself. LedgerService calls it while holding
the account's lock.
"""

from datetime import timedelta

from savings_vault.ledger.clock import Clock
from savings_vault.ledger.errors import (
    AlreadyExecutedError,
    InsufficientBalanceError,
    NoRequestError,
    RequestAlreadyExistsError,
    TimeLockNotExpiredError,
)
from savings_vault.ledger.store import AccountStore, validate_amount
from savings_vault.models.account import WithdrawalRequest, WithdrawalState


class WithdrawalScheduler:
    """
    Creates, validates and completes time-locked withdrawal requests.

    Args:
        store: Account records
        delay: Time between request and earliest execution
        clock: Source of "now"
    """

    def __init__(self, store: AccountStore, delay: timedelta, clock: Clock):
        if delay < timedelta(0):
            raise ValueError("Withdrawal delay cannot be negative")
        self._store = store
        self._delay = delay
        self._clock = clock

    @property
    def delay(self) -> timedelta:
        return self._delay

    def state(self, account_id: str) -> WithdrawalState:
        request = self._store.get_pending_withdrawal(account_id)
        if request is None:
            return WithdrawalState.NO_REQUEST
        return request.state

    def request(self, account_id: str, amount: int) -> WithdrawalRequest:
        """
        NO_REQUEST/EXECUTED → PENDING.

        Returns:
            The stored request (unlock_time = now + delay)

        Raises:
            InvalidAmountError: amount is not a positive integer
            RequestAlreadyExistsError: a PENDING request is outstanding
            InsufficientBalanceError: amount exceeds the current balance
        """
        validate_amount(amount, account_id)

        if self.state(account_id) == WithdrawalState.PENDING:
            current = self._store.get_pending_withdrawal(account_id)
            raise RequestAlreadyExistsError(
                f"{account_id} already has a pending withdrawal of {current.amount}",
                account_id,
            )

        balance = self._store.get_balance(account_id)
        if amount > balance:
            raise InsufficientBalanceError(
                f"Cannot request {amount}: balance is {balance}",
                account_id,
                balance=balance,
                requested=amount,
            )

        now = self._clock.now()
        request = WithdrawalRequest(
            amount=amount,
            requested_at=now,
            unlock_time=now + self._delay,
        )

        # EXECUTED → NO_REQUEST, then NO_REQUEST → PENDING
        self._store.clear_pending_withdrawal(account_id)
        self._store.set_pending_withdrawal(account_id, request)
        return request

    def check_executable(self, account_id: str) -> WithdrawalRequest:
        """
        Verify PENDING → EXECUTED is allowed right now, without changing anything.

        Raises:
            NoRequestError: nothing was ever requested (or it was cleared)
            AlreadyExecutedError: the request already paid out
            TimeLockNotExpiredError: now is before unlock_time
            InsufficientBalanceError: the balance fell below the requested amount
        """
        request = self._store.get_pending_withdrawal(account_id)
        if request is None:
            raise NoRequestError(f"{account_id} has no withdrawal request", account_id)

        if request.executed:
            raise AlreadyExecutedError(
                f"Withdrawal of {request.amount} for {account_id} was already executed",
                account_id,
            )

        now = self._clock.now()
        if not request.is_unlocked(now):
            remaining = request.unlock_time - now
            raise TimeLockNotExpiredError(
                f"Withdrawal for {account_id} unlocks at "
                f"{request.unlock_time.isoformat()} ({remaining} remaining)",
                account_id,
                unlock_time=request.unlock_time,
            )

        balance = self._store.get_balance(account_id)
        if request.amount > balance:
            raise InsufficientBalanceError(
                f"Requested {request.amount} but balance is now {balance}",
                account_id,
                balance=balance,
                requested=request.amount,
            )

        return request

    def complete(self, account_id: str) -> int:
        """
        PENDING → EXECUTED. Debits the balance and marks the request executed.

        Call only after check_executable succeeded under the same lock.

        Returns:
            The new balance
        """
        request = self.check_executable(account_id)
        new_balance = self._store.subtract_balance(account_id, request.amount)
        self._store.mark_withdrawal_executed(account_id, self._clock.now())
        return new_balance

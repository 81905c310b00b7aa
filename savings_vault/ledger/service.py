"""
Ledger Service

The one entry point for changing the ledger. It ties together:
- AccountStore (balances, goals, requests, partners, totals)
- GoalTracker (achievement after every deposit)
- WithdrawalScheduler (the time-lock state machine)
- ValueTransferInterface (the payout primitive)
- AuditLogger (the event sink)

DESIGN DECISION: Every mutating operation runs under the account's own lock,
behind the same guard stack (see guards.py). Checks happen first; nothing is
mutated until every check has passed. A raised LedgerError therefore always
means "nothing changed".

Caller identity is always an explicit argument. Mutating operations act on
the caller's own account; reads name both the account and the caller.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from savings_vault.audit import AuditLogger, create_correlation_id
from savings_vault.config import LedgerSettings
from savings_vault.ledger.clock import Clock, SystemClock, ensure_utc
from savings_vault.ledger.errors import (
    DeadlineInPastError,
    DescriptionTooLongError,
    GoalLockedError,
    SelfPartnerError,
    TargetTooLowError,
    TransferFailedError,
    UnauthorizedError,
    ZeroAddressError,
)
from savings_vault.ledger.goals import GoalTracker
from savings_vault.ledger.guards import (
    EmergencyStop,
    account_locked,
    administrator_only,
    non_reentrant,
    rejections_audited,
    when_not_stopped,
)
from savings_vault.ledger.scheduler import WithdrawalScheduler
from savings_vault.ledger.store import AccountStore, validate_amount
from savings_vault.models.account import (
    AccountSummary,
    LedgerStatistics,
    SavingsGoal,
    WithdrawalRequest,
)
from savings_vault.services.transfer import (
    RecordingTransfer,
    TransferError,
    ValueTransferInterface,
)


GOAL_DESCRIPTION_MAX_LENGTH = 500


class LedgerService:
    """
    Orchestrates deposits, goals, partners and the withdrawal lifecycle.

    Args:
        settings: Ledger rules (delay, minimum goal, administrator)
        store: Account records. A fresh store is created if None.
        transfer: Payout primitive. Defaults to an in-process RecordingTransfer.
        audit_logger: Event sink. If None, nothing is audited.
        clock: Source of "now". Defaults to the system clock.
    """

    def __init__(
        self,
        settings: Optional[LedgerSettings] = None,
        store: Optional[AccountStore] = None,
        transfer: Optional[ValueTransferInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Clock] = None,
    ):
        self._ledger_settings = settings or LedgerSettings()
        self._store = store or AccountStore()
        self._transfer = transfer or RecordingTransfer()
        self._audit_logger = audit_logger
        self._clock = clock or SystemClock()

        self._emergency_stop = EmergencyStop(
            active=self._ledger_settings.emergency_stop_on_start
        )
        self._goal_tracker = GoalTracker(self._store, self._clock, audit_logger)
        self._scheduler = WithdrawalScheduler(
            self._store,
            self._ledger_settings.withdrawal_delay,
            self._clock,
        )

    @property
    def store(self) -> AccountStore:
        return self._store

    @property
    def scheduler(self) -> WithdrawalScheduler:
        return self._scheduler

    @property
    def emergency_stop_active(self) -> bool:
        return self._emergency_stop.active

    # =========================================================================
    # DEPOSITS
    # =========================================================================

    @rejections_audited("deposit")
    @non_reentrant
    @account_locked
    @when_not_stopped
    async def deposit(
        self,
        account_id: str,
        amount: int,
        correlation_id: Optional[UUID] = None,
    ) -> int:
        """
        Credit the caller's account, then evaluate its goal.

        Returns:
            The new balance

        Raises:
            InvalidAmountError, EmergencyStopActiveError
        """
        correlation_id = correlation_id or create_correlation_id()
        validate_amount(amount, account_id)

        balance_before = self._store.get_balance(account_id)
        new_balance = self._store.add_balance(account_id, amount)
        if balance_before == 0:
            self._store.mark_funded(account_id)

        if self._audit_logger:
            await self._audit_logger.log_deposited(
                account_id=account_id,
                amount=amount,
                new_balance=new_balance,
                correlation_id=correlation_id,
            )

        await self._goal_tracker.evaluate(account_id, correlation_id=correlation_id)
        return new_balance

    # =========================================================================
    # WITHDRAWALS
    # =========================================================================

    @rejections_audited("request_withdrawal")
    @non_reentrant
    @account_locked
    @when_not_stopped
    async def request_withdrawal(
        self,
        account_id: str,
        amount: int,
        correlation_id: Optional[UUID] = None,
    ) -> datetime:
        """
        Open a time-locked withdrawal request.

        The funds are NOT reserved; see WithdrawalScheduler.

        Returns:
            The unlock time

        Raises:
            InvalidAmountError, RequestAlreadyExistsError, InsufficientBalanceError,
            GoalLockedError, EmergencyStopActiveError
        """
        correlation_id = correlation_id or create_correlation_id()
        validate_amount(amount, account_id)
        self._ensure_goal_allows_withdrawal(account_id)

        request = self._scheduler.request(account_id, amount)

        if self._audit_logger:
            await self._audit_logger.log_withdrawal_requested(
                account_id=account_id,
                amount=request.amount,
                unlock_time=request.unlock_time,
                correlation_id=correlation_id,
            )
        return request.unlock_time

    @rejections_audited("execute_withdrawal")
    @non_reentrant
    @account_locked
    @when_not_stopped
    async def execute_withdrawal(
        self,
        account_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> int:
        """
        Pay out the caller's unlocked withdrawal request, exactly once.

        Order: validate → transfer → commit, all under the account lock.
        If the transfer fails the ledger is left exactly as it was.

        Returns:
            The amount transferred

        Raises:
            NoRequestError, AlreadyExecutedError, TimeLockNotExpiredError,
            InsufficientBalanceError, TransferFailedError, EmergencyStopActiveError
        """
        correlation_id = correlation_id or create_correlation_id()
        request = self._scheduler.check_executable(account_id)

        try:
            await self._transfer.transfer(account_id, request.amount)
        except TransferError as e:
            if self._audit_logger:
                await self._audit_logger.log_transfer_failed(
                    account_id=account_id,
                    amount=request.amount,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise TransferFailedError(
                f"Payout of {request.amount} to {account_id} failed: {e}",
                account_id,
            ) from e

        new_balance = self._scheduler.complete(account_id)

        if self._audit_logger:
            await self._audit_logger.log_withdrawn(
                account_id=account_id,
                amount=request.amount,
                new_balance=new_balance,
                correlation_id=correlation_id,
            )
        return request.amount

    def _ensure_goal_allows_withdrawal(self, account_id: str) -> None:
        """A locked goal blocks new requests until it is met or its deadline passes."""
        goal = self._store.get_goal(account_id)
        if goal is None or not goal.locked or goal.is_achieved:
            return
        # Met by a balance that predates the goal, so no deposit marked it achieved
        balance = self._store.get_balance(account_id)
        if balance >= goal.target_amount:
            return
        if self._clock.now() < goal.deadline:
            raise GoalLockedError(
                f"Savings goal for {account_id} is locked until "
                f"{goal.deadline.isoformat()} or until {goal.target_amount} is saved "
                f"(balance {balance})",
                account_id,
            )

    # =========================================================================
    # GOALS
    # =========================================================================

    @rejections_audited("set_goal")
    @non_reentrant
    @account_locked
    @when_not_stopped
    async def set_goal(
        self,
        account_id: str,
        target_amount: int,
        deadline: datetime,
        description: str = "",
        correlation_id: Optional[UUID] = None,
    ) -> SavingsGoal:
        """
        Declare (or replace) the caller's savings goal.

        Any previous goal is overwritten, including a locked one.
        Naive deadlines are read as UTC.

        Raises:
            TargetTooLowError, DeadlineInPastError, DescriptionTooLongError,
            EmergencyStopActiveError
        """
        correlation_id = correlation_id or create_correlation_id()
        minimum = self._ledger_settings.min_goal_target

        if isinstance(target_amount, bool) or not isinstance(target_amount, int):
            raise TargetTooLowError(
                f"Goal target must be an integer, got {type(target_amount).__name__}",
                account_id,
            )
        if target_amount < minimum:
            raise TargetTooLowError(
                f"Goal target {target_amount} is below the minimum of {minimum}",
                account_id,
            )

        now = self._clock.now()
        deadline = ensure_utc(deadline)
        if deadline <= now:
            raise DeadlineInPastError(
                f"Goal deadline {deadline.isoformat()} is not in the future",
                account_id,
            )

        description = (description or "").strip()
        if len(description) > GOAL_DESCRIPTION_MAX_LENGTH:
            raise DescriptionTooLongError(
                f"Goal description is {len(description)} characters; "
                f"the limit is {GOAL_DESCRIPTION_MAX_LENGTH}",
                account_id,
            )

        goal = SavingsGoal(
            target_amount=target_amount,
            deadline=deadline,
            description=description,
            created_at=now,
        )
        self._store.set_goal(account_id, goal)

        if self._audit_logger:
            await self._audit_logger.log_goal_set(
                account_id=account_id,
                target_amount=target_amount,
                deadline=deadline,
                description=description,
                correlation_id=correlation_id,
            )
        return goal

    @rejections_audited("lock_goal")
    @non_reentrant
    @account_locked
    @when_not_stopped
    async def lock_goal(
        self,
        account_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Lock the caller's goal so withdrawals wait for it.

        Raises:
            NoGoalSetError, AlreadyLockedError, EmergencyStopActiveError
        """
        correlation_id = correlation_id or create_correlation_id()
        self._store.lock_goal(account_id)

        if self._audit_logger:
            await self._audit_logger.log_goal_locked(
                account_id=account_id,
                correlation_id=correlation_id,
            )

    # =========================================================================
    # PARTNERS
    # =========================================================================

    @rejections_audited("add_partner")
    @non_reentrant
    @account_locked
    @when_not_stopped
    async def add_partner(
        self,
        account_id: str,
        partner_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Let partner_id read the caller's goal. One-directional, no removal.

        Raises:
            ZeroAddressError, SelfPartnerError, DuplicatePartnerError,
            EmergencyStopActiveError
        """
        correlation_id = correlation_id or create_correlation_id()
        if not isinstance(partner_id, str) or not partner_id.strip():
            raise ZeroAddressError("Partner id cannot be empty", account_id)
        if partner_id == account_id:
            raise SelfPartnerError(f"{account_id} cannot partner with itself", account_id)

        self._store.add_partner(account_id, partner_id)

        if self._audit_logger:
            await self._audit_logger.log_partner_added(
                account_id=account_id,
                partner_id=partner_id,
                correlation_id=correlation_id,
            )

    # =========================================================================
    # CIRCUIT BREAKER
    # =========================================================================

    @rejections_audited("toggle_emergency_stop")
    @administrator_only
    async def toggle_emergency_stop(
        self,
        caller_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Flip the ledger-wide emergency stop. Balances are never touched.

        Returns:
            The new flag state

        Raises:
            UnauthorizedError: caller is not the administrator
        """
        correlation_id = correlation_id or create_correlation_id()
        active = self._emergency_stop.toggle()

        if self._audit_logger:
            await self._audit_logger.log_emergency_stop_toggled(
                actor_id=caller_id,
                active=active,
                correlation_id=correlation_id,
            )
        return active

    # =========================================================================
    # READS
    # =========================================================================

    def get_balance(self, account_id: str) -> int:
        """Public: anyone may read any balance."""
        return self._store.get_balance(account_id)

    def get_goal(self, account_id: str, caller_id: str) -> Optional[SavingsGoal]:
        """
        Read account_id's goal.

        Raises:
            UnauthorizedError: caller is neither the owner nor a partner
        """
        if not self._can_see_goal(account_id, caller_id):
            raise UnauthorizedError(
                f"{caller_id!r} may not view the goal of {account_id!r}",
                account_id,
            )
        return self._store.get_goal(account_id)

    def get_withdrawal_request(
        self,
        account_id: str,
        caller_id: str,
    ) -> Optional[WithdrawalRequest]:
        """
        Read account_id's current (or last executed) withdrawal request.

        Raises:
            UnauthorizedError: caller is not the owner
        """
        if caller_id != account_id:
            raise UnauthorizedError(
                f"{caller_id!r} may not view withdrawals of {account_id!r}",
                account_id,
            )
        return self._store.get_pending_withdrawal(account_id)

    def get_partners(self, account_id: str) -> list[str]:
        return self._store.get_partners(account_id)

    def get_statistics(self) -> LedgerStatistics:
        return self._store.statistics()

    def funded_accounts(self) -> list[str]:
        """Registry of every account ever funded, oldest first."""
        return self._store.funded_accounts()

    def get_account_summary(self, account_id: str, caller_id: str) -> AccountSummary:
        """
        Everything caller_id is allowed to see about account_id.

        Never raises for missing permissions; hidden fields are left empty.
        """
        balance = self._store.get_balance(account_id)
        summary = AccountSummary(account_id=account_id, balance=balance)

        if self._can_see_goal(account_id, caller_id):
            goal = self._store.get_goal(account_id)
            if goal is not None:
                summary.goal = goal
                summary.goal_progress = goal.progress(balance)

        if caller_id == account_id:
            summary.withdrawal_state = self._scheduler.state(account_id)
            summary.pending_withdrawal = self._store.get_pending_withdrawal(account_id)
            summary.partners = self._store.get_partners(account_id)

        return summary

    def _can_see_goal(self, account_id: str, caller_id: str) -> bool:
        return caller_id == account_id or self._store.is_partner(account_id, caller_id)

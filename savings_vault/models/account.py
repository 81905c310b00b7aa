"""
Core Data Models for Savings Vault

These models define the schemas for everything the ledger stores
and hands back to callers. They are designed to:
1. Enforce the ledger's value invariants at construction time
2. Be serializable for logging and the UI
3. Be handed out as copies, never as live references into the store

DESIGN DECISION: Amounts are plain non-negative integers (smallest unit).
No floating point ever touches a balance.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


# =============================================================================
# ENUMS
# =============================================================================

class WithdrawalState(str, Enum):
    """
    Withdrawal time-lock states for one account.

    Transitions:
    - NO_REQUEST → PENDING: request_withdrawal
    - PENDING → EXECUTED: execute_withdrawal after the unlock time
    - EXECUTED → PENDING: a new request clears and replaces the executed one

    There is no cancel transition. A pending request stays pending
    until it is executed.
    """
    NO_REQUEST = "no_request"
    PENDING = "pending"
    EXECUTED = "executed"


# =============================================================================
# ACCOUNT RECORDS
# =============================================================================

class SavingsGoal(BaseModel):
    """
    A savings target an account has declared.

    The deadline is advisory: nothing expires when it passes.
    A goal is "achieved" the first time the balance reaches the target;
    achieved_at records that moment so the achievement is signalled once.
    """
    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True)

    target_amount: int = Field(
        ...,
        gt=0,
        description="Balance the account is saving towards"
    )
    deadline: datetime = Field(
        ...,
        description="When the account intends to reach the target"
    )
    description: str = Field(
        default="",
        max_length=500,
        description="What the account is saving for"
    )
    locked: bool = Field(
        default=False,
        description="Locked goals block withdrawal requests until achieved"
    )
    created_at: datetime = Field(
        ...,
        description="When the goal was set"
    )
    achieved_at: Optional[datetime] = Field(
        default=None,
        description="When the balance first reached the target"
    )

    @property
    def is_achieved(self) -> bool:
        return self.achieved_at is not None

    def progress(self, balance: int) -> float:
        """Fraction of the target covered by balance, capped at 1.0."""
        return min(balance / self.target_amount, 1.0)


class WithdrawalRequest(BaseModel):
    """
    A time-locked withdrawal request.

    CRITICAL: Creating a request does NOT reserve funds.
    The amount is re-checked against the balance at execution time.
    """
    model_config = ConfigDict(validate_assignment=True)

    amount: int = Field(
        ...,
        gt=0,
        description="Amount to withdraw"
    )
    requested_at: datetime
    unlock_time: datetime = Field(
        ...,
        description="Earliest moment the request may be executed"
    )
    executed: bool = False
    executed_at: Optional[datetime] = None

    @field_validator('unlock_time')
    @classmethod
    def unlock_after_request(cls, v: datetime, info: ValidationInfo) -> datetime:
        requested_at = info.data.get('requested_at')
        if requested_at is not None and v < requested_at:
            raise ValueError("Unlock time cannot be before request time")
        return v

    @property
    def state(self) -> WithdrawalState:
        return WithdrawalState.EXECUTED if self.executed else WithdrawalState.PENDING

    def is_unlocked(self, now: datetime) -> bool:
        return now >= self.unlock_time


class AccountRecord(BaseModel):
    """
    Everything the ledger knows about one account.

    Records are created implicitly on first touch and never deleted.
    """
    model_config = ConfigDict(validate_assignment=True)

    account_id: str = Field(..., min_length=1)
    balance: int = Field(default=0, ge=0)
    goal: Optional[SavingsGoal] = None
    pending_withdrawal: Optional[WithdrawalRequest] = None
    partners: set[str] = Field(default_factory=set)
    ever_funded: bool = False

    @property
    def withdrawal_state(self) -> WithdrawalState:
        if self.pending_withdrawal is None:
            return WithdrawalState.NO_REQUEST
        return self.pending_withdrawal.state


# =============================================================================
# AGGREGATES AND READ MODELS
# =============================================================================

class LedgerStatistics(BaseModel):
    """
    Process-wide ledger totals.

    INVARIANT: total_balance always equals the sum of all account balances.
    """

    total_balance: int = Field(default=0, ge=0)
    total_accounts_ever_funded: int = Field(default=0, ge=0)
    total_withdrawals_executed: int = Field(default=0, ge=0)


class AccountSummary(BaseModel):
    """
    Read model for one account, as seen by a particular caller.

    Goal and withdrawal fields are None when the caller may not see them.
    """

    account_id: str
    balance: int
    goal: Optional[SavingsGoal] = None
    goal_progress: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    withdrawal_state: Optional[WithdrawalState] = None
    pending_withdrawal: Optional[WithdrawalRequest] = None
    partners: list[str] = Field(default_factory=list)

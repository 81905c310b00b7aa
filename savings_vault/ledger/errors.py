"""
Ledger Exceptions

Every rejected ledger operation raises a specific LedgerError subclass.
Callers branch on the exception class, or on its stable `kind` string
when the error crosses a boundary (UI, audit log).

Three categories:
- ValidationError: bad caller input. Retry with corrected input.
- StateError: operation not valid right now. Wait, or do the prerequisite first.
- AuthorizationError: caller lacks permission. Needs a privilege change.

IMPORTANT: Every check that can raise one of these runs BEFORE any mutation.
A LedgerError always means nothing changed.
"""

from datetime import datetime
from typing import Optional


class LedgerError(Exception):
    """Base class for all ledger errors."""

    kind = "LedgerError"
    category = "ledger"

    def __init__(self, message: str, account_id: Optional[str] = None):
        self.account_id = account_id
        super().__init__(message)


class ValidationError(LedgerError):
    """Caller supplied invalid input."""

    category = "validation"


class StateError(LedgerError):
    """Operation is not valid in the account's current state."""

    category = "state"


class AuthorizationError(LedgerError):
    """Caller is not allowed to perform the operation."""

    category = "authorization"


# =============================================================================
# VALIDATION ERRORS
# =============================================================================

class InvalidAmountError(ValidationError):
    """Amount is zero or negative."""

    kind = "InvalidAmount"


class TargetTooLowError(ValidationError):
    """Goal target is below the configured minimum."""

    kind = "TargetTooLow"


class DeadlineInPastError(ValidationError):
    """Goal deadline is not in the future."""

    kind = "DeadlineInPast"


class SelfPartnerError(ValidationError):
    """Account tried to add itself as a partner."""

    kind = "SelfPartner"


class ZeroAddressError(ValidationError):
    """Account or partner identifier is empty."""

    kind = "ZeroAddress"


class DescriptionTooLongError(ValidationError):
    """Goal description exceeds the stored length."""

    kind = "DescriptionTooLong"


# =============================================================================
# STATE ERRORS
# =============================================================================

class InsufficientBalanceError(StateError):
    """Amount exceeds the account's current balance."""

    kind = "InsufficientBalance"

    def __init__(self, message: str, account_id: Optional[str] = None, balance: int = 0, requested: int = 0):
        self.balance = balance
        self.requested = requested
        super().__init__(message, account_id)


class RequestAlreadyExistsError(StateError):
    """An unexecuted withdrawal request is already outstanding."""

    kind = "RequestAlreadyExists"


class NoRequestError(StateError):
    """There is no withdrawal request to execute."""

    kind = "NoRequest"


class TimeLockNotExpiredError(StateError):
    """The withdrawal request's unlock time has not been reached."""

    kind = "TimeLockNotExpired"

    def __init__(self, message: str, account_id: Optional[str] = None, unlock_time: Optional[datetime] = None):
        self.unlock_time = unlock_time
        super().__init__(message, account_id)


class AlreadyExecutedError(StateError):
    """The withdrawal request has already been executed."""

    kind = "AlreadyExecuted"


class NoGoalSetError(StateError):
    """The account has no savings goal."""

    kind = "NoGoalSet"


class AlreadyLockedError(StateError):
    """The savings goal is already locked."""

    kind = "AlreadyLocked"


class GoalLockedError(StateError):
    """A locked, unachieved goal blocks withdrawal requests until its deadline."""

    kind = "GoalLocked"


class DuplicatePartnerError(StateError):
    """The partner has already been added."""

    kind = "DuplicatePartner"


class EmergencyStopActiveError(StateError):
    """The ledger-wide emergency stop is engaged."""

    kind = "EmergencyStopActive"


class ReentrantCallError(StateError):
    """A ledger operation was invoked from inside another one on the same task."""

    kind = "ReentrantCall"


class TransferFailedError(StateError):
    """The payout failed; the withdrawal was not executed."""

    kind = "TransferFailed"


# =============================================================================
# AUTHORIZATION ERRORS
# =============================================================================

class UnauthorizedError(AuthorizationError):
    """Caller may not read or change this resource."""

    kind = "Unauthorized"

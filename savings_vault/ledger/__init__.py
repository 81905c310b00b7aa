"""
Ledger Package

The savings ledger core: account records, goal tracking, the withdrawal
time-lock state machine and the service that orchestrates them.
"""

from savings_vault.ledger.clock import Clock, ManualClock, SystemClock
from savings_vault.ledger.errors import (
    AlreadyExecutedError,
    AlreadyLockedError,
    AuthorizationError,
    DeadlineInPastError,
    DescriptionTooLongError,
    DuplicatePartnerError,
    EmergencyStopActiveError,
    GoalLockedError,
    InsufficientBalanceError,
    InvalidAmountError,
    LedgerError,
    NoGoalSetError,
    NoRequestError,
    ReentrantCallError,
    RequestAlreadyExistsError,
    SelfPartnerError,
    StateError,
    TargetTooLowError,
    TimeLockNotExpiredError,
    TransferFailedError,
    UnauthorizedError,
    ValidationError,
    ZeroAddressError,
)
from savings_vault.ledger.goals import GoalTracker
from savings_vault.ledger.guards import EmergencyStop
from savings_vault.ledger.scheduler import WithdrawalScheduler
from savings_vault.ledger.service import LedgerService
from savings_vault.ledger.store import AccountStore

__all__ = [
    # Components
    "AccountStore",
    "EmergencyStop",
    "GoalTracker",
    "LedgerService",
    "WithdrawalScheduler",
    # Clocks
    "Clock",
    "ManualClock",
    "SystemClock",
    # Errors
    "AlreadyExecutedError",
    "AlreadyLockedError",
    "AuthorizationError",
    "DeadlineInPastError",
    "DescriptionTooLongError",
    "DuplicatePartnerError",
    "EmergencyStopActiveError",
    "GoalLockedError",
    "InsufficientBalanceError",
    "InvalidAmountError",
    "LedgerError",
    "NoGoalSetError",
    "NoRequestError",
    "ReentrantCallError",
    "RequestAlreadyExistsError",
    "SelfPartnerError",
    "StateError",
    "TargetTooLowError",
    "TimeLockNotExpiredError",
    "TransferFailedError",
    "UnauthorizedError",
    "ValidationError",
    "ZeroAddressError",
]

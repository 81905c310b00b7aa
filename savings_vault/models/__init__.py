"""
Data Models Package

This package contains all Pydantic models used in the Savings Vault system.
All data flowing through the system must conform to these schemas.
"""

from savings_vault.models.account import (
    AccountRecord,
    AccountSummary,
    LedgerStatistics,
    SavingsGoal,
    WithdrawalRequest,
    WithdrawalState,
)
from savings_vault.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Account models
    "AccountRecord",
    "AccountSummary",
    "LedgerStatistics",
    "SavingsGoal",
    "WithdrawalRequest",
    "WithdrawalState",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]

"""
Audit Models for Savings Vault

Every significant ledger action is logged for audit purposes.
This provides:
1. Complete traceability of every movement of value
2. The notification stream (GoalAchieved, Withdrawn) for downstream consumers
3. A record of every rejected operation and why it was rejected
4. Ability to reconstruct history

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every ledger operation has its own event type.
    """
    # Balance movements
    DEPOSITED = "deposited"
    WITHDRAWAL_REQUESTED = "withdrawal_requested"
    WITHDRAWN = "withdrawn"

    # Goals
    GOAL_SET = "goal_set"
    GOAL_LOCKED = "goal_locked"
    GOAL_ACHIEVED = "goal_achieved"

    # Access
    PARTNER_ADDED = "partner_added"

    # Circuit breaker
    EMERGENCY_STOP_TOGGLED = "emergency_stop_toggled"

    # Failures
    OPERATION_REJECTED = "operation_rejected"
    TRANSFER_FAILED = "transfer_failed"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - which account is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'account', 'ledger')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to (account id)"
    )

    # Who asked for it
    actor_id: Optional[str] = Field(
        default=None,
        description="Caller that triggered the event"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., a deposit and the goal it achieved)"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    # Additional data (event-specific)
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "actor_id": self.actor_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         actor_id, correlation_id, description, details_json, error_code,
         error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            self.actor_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_code or "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.deposited("alice", 100, 100, correlation_id)
        event = AuditEventBuilder.goal_achieved("alice", 500, 520, correlation_id)
    """

    @staticmethod
    def deposited(
        account_id: str,
        amount: int,
        new_balance: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEPOSITED,
            entity_type="account",
            entity_id=account_id,
            actor_id=account_id,
            correlation_id=correlation_id,
            description=f"Deposit of {amount} into {account_id}",
            details={
                "amount": amount,
                "new_balance": new_balance,
            },
        )

    @staticmethod
    def withdrawal_requested(
        account_id: str,
        amount: int,
        unlock_time: datetime,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WITHDRAWAL_REQUESTED,
            entity_type="account",
            entity_id=account_id,
            actor_id=account_id,
            correlation_id=correlation_id,
            description=f"Withdrawal of {amount} requested, unlocks {unlock_time.isoformat()}",
            details={
                "amount": amount,
                "unlock_time": unlock_time.isoformat(),
            },
        )

    @staticmethod
    def withdrawn(
        account_id: str,
        amount: int,
        new_balance: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WITHDRAWN,
            entity_type="account",
            entity_id=account_id,
            actor_id=account_id,
            correlation_id=correlation_id,
            description=f"Withdrawal of {amount} executed for {account_id}",
            details={
                "amount": amount,
                "new_balance": new_balance,
            },
        )

    @staticmethod
    def goal_set(
        account_id: str,
        target_amount: int,
        deadline: datetime,
        description: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_SET,
            entity_type="account",
            entity_id=account_id,
            actor_id=account_id,
            correlation_id=correlation_id,
            description=f"Savings goal of {target_amount} set",
            details={
                "target_amount": target_amount,
                "deadline": deadline.isoformat(),
                "goal_description": description,
            },
        )

    @staticmethod
    def goal_locked(
        account_id: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_LOCKED,
            entity_type="account",
            entity_id=account_id,
            actor_id=account_id,
            correlation_id=correlation_id,
            description="Savings goal locked",
        )

    @staticmethod
    def goal_achieved(
        account_id: str,
        target_amount: int,
        balance: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_ACHIEVED,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Savings goal of {target_amount} achieved",
            details={
                "target_amount": target_amount,
                "balance": balance,
            },
        )

    @staticmethod
    def partner_added(
        account_id: str,
        partner_id: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PARTNER_ADDED,
            entity_type="account",
            entity_id=account_id,
            actor_id=account_id,
            correlation_id=correlation_id,
            description=f"Partner {partner_id} granted goal access",
            details={
                "partner_id": partner_id,
            },
        )

    @staticmethod
    def emergency_stop_toggled(
        actor_id: str,
        active: bool,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EMERGENCY_STOP_TOGGLED,
            severity=AuditSeverity.WARNING if active else AuditSeverity.INFO,
            entity_type="ledger",
            actor_id=actor_id,
            correlation_id=correlation_id,
            description=f"Emergency stop {'engaged' if active else 'released'}",
            details={
                "active": active,
            },
        )

    @staticmethod
    def operation_rejected(
        operation: str,
        account_id: Optional[str],
        error_kind: str,
        error_message: str,
        actor_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="account" if account_id else "ledger",
            entity_id=account_id,
            actor_id=actor_id,
            correlation_id=correlation_id,
            description=f"{operation} rejected: {error_kind}",
            details={
                "operation": operation,
            },
            error_code=error_kind,
            error_message=error_message,
        )

    @staticmethod
    def transfer_failed(
        account_id: str,
        amount: int,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSFER_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Transfer of {amount} to {account_id} failed",
            details={
                "amount": amount,
            },
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

"""
Audit Logger

DESIGN DECISION: Every ledger action is logged.
This provides:
1. Complete traceability of every deposit and payout
2. The notification channel for GoalAchieved and Withdrawn
3. A record of rejected operations with their error kind
4. Compliance readiness

The audit logger:
- Is async so storage writes don't block the event loop's other accounts
- Gracefully handles storage failures (a committed deposit is never undone
  because the audit sheet was unreachable)
- Supports correlation IDs to trace related events
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

import structlog

from savings_vault.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from savings_vault.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through the stdlib root logger at `level`."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level))


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and account holder visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("savings_vault.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_deposited(
        self,
        account_id: str,
        amount: int,
        new_balance: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a deposit."""
        await self.log(AuditEventBuilder.deposited(
            account_id=account_id,
            amount=amount,
            new_balance=new_balance,
            correlation_id=correlation_id,
        ))

    async def log_withdrawal_requested(
        self,
        account_id: str,
        amount: int,
        unlock_time: datetime,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a new time-locked withdrawal request."""
        await self.log(AuditEventBuilder.withdrawal_requested(
            account_id=account_id,
            amount=amount,
            unlock_time=unlock_time,
            correlation_id=correlation_id,
        ))

    async def log_withdrawn(
        self,
        account_id: str,
        amount: int,
        new_balance: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an executed withdrawal (the Withdrawn notification)."""
        await self.log(AuditEventBuilder.withdrawn(
            account_id=account_id,
            amount=amount,
            new_balance=new_balance,
            correlation_id=correlation_id,
        ))

    async def log_goal_set(
        self,
        account_id: str,
        target_amount: int,
        deadline: datetime,
        description: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.goal_set(
            account_id=account_id,
            target_amount=target_amount,
            deadline=deadline,
            description=description,
            correlation_id=correlation_id,
        ))

    async def log_goal_locked(
        self,
        account_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.goal_locked(
            account_id=account_id,
            correlation_id=correlation_id,
        ))

    async def log_goal_achieved(
        self,
        account_id: str,
        target_amount: int,
        balance: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log goal achievement (the GoalAchieved notification)."""
        await self.log(AuditEventBuilder.goal_achieved(
            account_id=account_id,
            target_amount=target_amount,
            balance=balance,
            correlation_id=correlation_id,
        ))

    async def log_partner_added(
        self,
        account_id: str,
        partner_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.partner_added(
            account_id=account_id,
            partner_id=partner_id,
            correlation_id=correlation_id,
        ))

    async def log_emergency_stop_toggled(
        self,
        actor_id: str,
        active: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.emergency_stop_toggled(
            actor_id=actor_id,
            active=active,
            correlation_id=correlation_id,
        ))

    async def log_operation_rejected(
        self,
        operation: str,
        account_id: Optional[str],
        error_kind: str,
        error_message: str,
        actor_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a ledger operation that failed a precondition."""
        await self.log(AuditEventBuilder.operation_rejected(
            operation=operation,
            account_id=account_id,
            error_kind=error_kind,
            error_message=error_message,
            actor_id=actor_id,
            correlation_id=correlation_id,
        ))

    async def log_transfer_failed(
        self,
        account_id: str,
        amount: int,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transfer_failed(
            account_id=account_id,
            amount=amount,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a deposit).
    Pass it through all subsequent operations.
    """
    return uuid4()

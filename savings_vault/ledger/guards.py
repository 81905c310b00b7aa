"""
Operation Guards

Pre-call checks composed around each LedgerService operation as decorators,
instead of being buried in every method body.

Stack them outermost first:

    @rejections_audited("deposit")
    @non_reentrant
    @account_locked
    @when_not_stopped
    async def deposit(self, account_id, amount, ...): ...

The decorators expect the service to expose `_store` (AccountStore),
`_emergency_stop` (EmergencyStop), `_audit_logger` (AuditLogger or None)
and `_ledger_settings` (LedgerSettings). The first positional argument after
self is the account (or caller) the operation acts for.
"""

import functools
import threading
from contextvars import ContextVar
from typing import Optional

from savings_vault.ledger.errors import (
    EmergencyStopActiveError,
    LedgerError,
    ReentrantCallError,
    UnauthorizedError,
    ZeroAddressError,
)


# Name of the ledger operation running in the current task, if any
_active_operation: ContextVar[Optional[str]] = ContextVar(
    "savings_vault_active_operation", default=None
)


class EmergencyStop:
    """
    Ledger-wide circuit breaker.

    While engaged, every mutating operation fails with EmergencyStopActive.
    Reads of the flag happen inside the account critical section, so an
    operation either sees the flag before it touches the account or not at all.
    """

    def __init__(self, active: bool = False):
        self._active = active
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        with self._lock:
            return self._active

    def toggle(self) -> bool:
        with self._lock:
            self._active = not self._active
            return self._active


def _subject(args: tuple) -> Optional[str]:
    return args[0] if args else None


def rejections_audited(operation: str):
    """Record every LedgerError raised by the operation, then re-raise it."""
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            try:
                return await func(self, *args, **kwargs)
            except LedgerError as e:
                if self._audit_logger:
                    subject = _subject(args)
                    subject = str(subject) if subject else None
                    await self._audit_logger.log_operation_rejected(
                        operation=operation,
                        account_id=e.account_id or subject,
                        error_kind=e.kind,
                        error_message=str(e),
                        actor_id=subject,
                        correlation_id=kwargs.get("correlation_id"),
                    )
                raise
        return wrapper
    return decorator


def non_reentrant(func):
    """Reject a ledger call made from inside another ledger call on the same task."""
    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs):
        running = _active_operation.get()
        if running is not None:
            raise ReentrantCallError(
                f"{func.__name__} called while {running} is still running",
                _subject(args),
            )
        token = _active_operation.set(func.__name__)
        try:
            return await func(self, *args, **kwargs)
        finally:
            _active_operation.reset(token)
    return wrapper


def account_locked(func):
    """Hold the account's lock for the whole operation."""
    @functools.wraps(func)
    async def wrapper(self, account_id, *args, **kwargs):
        if not isinstance(account_id, str) or not account_id.strip():
            raise ZeroAddressError("Account id cannot be empty")
        async with self._store.account_lock(account_id):
            return await func(self, account_id, *args, **kwargs)
    return wrapper


def when_not_stopped(func):
    """Fail fast while the emergency stop is engaged."""
    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs):
        if self._emergency_stop.active:
            raise EmergencyStopActiveError(
                "Ledger is in emergency stop; no changes are accepted",
                _subject(args),
            )
        return await func(self, *args, **kwargs)
    return wrapper


def administrator_only(func):
    """Only the configured administrator may call the operation."""
    @functools.wraps(func)
    async def wrapper(self, caller_id, *args, **kwargs):
        if caller_id != self._ledger_settings.administrator_id:
            raise UnauthorizedError(
                f"{caller_id!r} is not the ledger administrator",
                caller_id,
            )
        return await func(self, caller_id, *args, **kwargs)
    return wrapper

"""
Shared fixtures for Savings Vault tests.

No real Google Sheets calls are made: audit events go to
InMemoryAuditStorage and payouts to RecordingTransfer.
Time is a ManualClock, so time-lock tests advance it explicitly.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from savings_vault.audit import AuditLogger
from savings_vault.config import LedgerSettings
from savings_vault.ledger import AccountStore, LedgerService, ManualClock
from savings_vault.services.storage import InMemoryAuditStorage
from savings_vault.services.transfer import RecordingTransfer


START = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
WEEK = timedelta(days=7)


@pytest.fixture
def start() -> datetime:
    return START


@pytest.fixture
def clock(start) -> ManualClock:
    return ManualClock(start)


@pytest.fixture
def ledger_settings() -> LedgerSettings:
    return LedgerSettings(
        withdrawal_delay_seconds=int(WEEK.total_seconds()),
        min_goal_target=10,
        administrator_id="admin",
        emergency_stop_on_start=False,
    )


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage) -> AuditLogger:
    return AuditLogger(audit_storage)


@pytest.fixture
def transfer() -> RecordingTransfer:
    return RecordingTransfer()


@pytest.fixture
def store() -> AccountStore:
    return AccountStore()


@pytest.fixture
def ledger(ledger_settings, store, transfer, audit_logger, clock) -> LedgerService:
    return LedgerService(
        settings=ledger_settings,
        store=store,
        transfer=transfer,
        audit_logger=audit_logger,
        clock=clock,
    )


class YieldingTransfer(RecordingTransfer):
    """Suspends before paying out, so other tasks get a turn mid-operation."""

    async def transfer(self, account_id: str, amount: int) -> None:
        await asyncio.sleep(0)
        await super().transfer(account_id, amount)


class YieldingAuditStorage(InMemoryAuditStorage):
    """Suspends on every append, like a real network-backed store."""

    async def append_event(self, event) -> bool:
        await asyncio.sleep(0)
        return await super().append_event(event)


@pytest.fixture
def yielding_storage() -> YieldingAuditStorage:
    return YieldingAuditStorage()


@pytest.fixture
def yielding_transfer() -> YieldingTransfer:
    return YieldingTransfer()


@pytest.fixture
def yielding_ledger(ledger_settings, yielding_transfer, yielding_storage, clock) -> LedgerService:
    return LedgerService(
        settings=ledger_settings,
        transfer=yielding_transfer,
        audit_logger=AuditLogger(yielding_storage),
        clock=clock,
    )

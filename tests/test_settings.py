"""
Tests for configuration, clocks and application wiring.
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from savings_vault.config import LedgerSettings, get_settings, validate_all_settings
from savings_vault.ledger import EmergencyStop, ManualClock, SystemClock
from savings_vault.ledger.clock import ensure_utc
from savings_vault.orchestrator import create_ledger_components
from savings_vault.services.storage import InMemoryAuditStorage
from savings_vault.services.transfer import RecordingTransfer


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestLedgerSettings:
    """Tests for ledger rules loaded from the environment."""

    def test_defaults(self, monkeypatch):
        for name in (
            "LEDGER_WITHDRAWAL_DELAY_SECONDS",
            "LEDGER_MIN_GOAL_TARGET",
            "LEDGER_ADMINISTRATOR_ID",
            "LEDGER_EMERGENCY_STOP_ON_START",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = LedgerSettings(_env_file=None)
        assert settings.withdrawal_delay == timedelta(days=7)
        assert settings.min_goal_target == 1
        assert settings.administrator_id == "admin"
        assert settings.emergency_stop_on_start is False

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("LEDGER_WITHDRAWAL_DELAY_SECONDS", "60")
        monkeypatch.setenv("LEDGER_ADMINISTRATOR_ID", "  treasurer  ")
        monkeypatch.setenv("LEDGER_EMERGENCY_STOP_ON_START", "true")

        settings = LedgerSettings(_env_file=None)
        assert settings.withdrawal_delay == timedelta(minutes=1)
        assert settings.administrator_id == "treasurer"
        assert settings.emergency_stop_on_start is True

    def test_negative_delay_rejected(self):
        with pytest.raises(ValidationError):
            LedgerSettings(_env_file=None, withdrawal_delay_seconds=-1)

    def test_blank_administrator_rejected(self):
        with pytest.raises(ValidationError):
            LedgerSettings(_env_file=None, administrator_id="   ")

    def test_validate_all_settings_reports_missing_sheets(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)

        status = validate_all_settings()
        assert status["ledger"] is True
        assert status["app"] is True
        assert status["google_sheets"] is False
        assert "google_sheets_error" in status


class TestClocks:
    """Tests for the clock implementations."""

    def test_ensure_utc(self):
        naive = datetime(2024, 1, 1, 12, 0)
        assert ensure_utc(naive) == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

        plus_two = timezone(timedelta(hours=2))
        aware = datetime(2024, 1, 1, 14, 0, tzinfo=plus_two)
        assert ensure_utc(aware).hour == 12

    def test_system_clock_is_aware(self):
        assert SystemClock().now().tzinfo is not None

    def test_manual_clock_moves_forward_only(self, clock, start):
        assert clock.advance(timedelta(hours=1)) == start + timedelta(hours=1)
        with pytest.raises(ValueError):
            clock.advance(timedelta(seconds=-1))
        with pytest.raises(ValueError):
            clock.set(start)

    def test_manual_clock_reads_naive_start_as_utc(self):
        clock = ManualClock(datetime(2024, 1, 1))
        assert clock.now().tzinfo == timezone.utc


class TestEmergencyStop:
    def test_toggle(self):
        stop = EmergencyStop()
        assert stop.active is False
        assert stop.toggle() is True
        assert stop.active is True
        assert stop.toggle() is False


class TestCreateLedgerComponents:
    """Tests for the application factory."""

    @pytest.mark.asyncio
    async def test_wires_explicit_backends(self, clock):
        storage = InMemoryAuditStorage()
        transfer = RecordingTransfer()

        components = create_ledger_components(
            audit_storage=storage,
            transfer=transfer,
            clock=clock,
        )

        assert components.sheets_client is None
        assert components.audit_logger.storage is storage
        await components.ledger.deposit("alice", 3)
        assert len(storage.events) == 1

    def test_local_only_without_storage(self):
        components = create_ledger_components(use_storage=False)
        assert components.audit_logger.storage is None
        assert isinstance(components.transfer, RecordingTransfer)

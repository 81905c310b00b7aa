"""
Application Wiring for Savings Vault

Builds a ready-to-use LedgerService with its collaborators:
settings → audit storage → audit logger → transfer → ledger.

DESIGN DECISION: Google Sheets is optional. When it is not configured
(or unreachable at startup) the ledger still runs, with audit events
going to the local structured log only. The ledger never depends on
the audit backend being up.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from savings_vault.audit import AuditLogger, configure_logging
from savings_vault.config import get_settings
from savings_vault.ledger import Clock, LedgerService
from savings_vault.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
)
from savings_vault.services.transfer import RecordingTransfer, ValueTransferInterface


logger = structlog.get_logger("savings_vault.orchestrator")


@dataclass
class LedgerComponents:
    ledger: LedgerService
    audit_logger: AuditLogger
    transfer: ValueTransferInterface
    sheets_client: Optional[GoogleSheetsClient] = None


def create_ledger_components(
    use_storage: bool = True,
    audit_storage: Optional[AuditStorageInterface] = None,
    transfer: Optional[ValueTransferInterface] = None,
    clock: Optional[Clock] = None,
) -> LedgerComponents:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets audit storage.
                    Ignored when audit_storage is given.
        audit_storage: Explicit audit backend (e.g. InMemoryAuditStorage)
        transfer: Payout primitive. Defaults to RecordingTransfer.
        clock: Source of "now". Defaults to the system clock.

    Returns:
        LedgerComponents
    """
    settings = get_settings()
    configure_logging(settings.app.log_level)

    sheets_client = None

    if audit_storage is None and use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            audit_storage = GoogleSheetsAuditStorage(sheets_client)
        except Exception as e:
            # Storage not configured - continue with local-only audit logging
            logger.warning("audit_storage_unavailable", error=str(e))
            sheets_client = None
            audit_storage = None

    audit_logger = AuditLogger(audit_storage)
    transfer = transfer or RecordingTransfer()

    ledger = LedgerService(
        settings=settings.ledger,
        transfer=transfer,
        audit_logger=audit_logger,
        clock=clock,
    )

    return LedgerComponents(
        ledger=ledger,
        audit_logger=audit_logger,
        transfer=transfer,
        sheets_client=sheets_client,
    )

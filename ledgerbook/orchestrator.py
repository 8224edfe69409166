"""
Application wiring for Ledgerbook

Builds the storage backends, the session manager, one RecordWorkflow per
category, the stock purchase workflow, the user directory and the
summary service, and hands them to the UI as one object.
"""

from typing import Optional

import structlog

from ledgerbook.activity import ActivityLogger, configure_logging
from ledgerbook.config import AppSettings, get_settings, validate_all_settings
from ledgerbook.models.categories import CATEGORIES
from ledgerbook.models.records import RecordCategory
from ledgerbook.models.summary import CashMode
from ledgerbook.services.storage import (
    IdentityInterface,
    InMemoryIdentityStore,
    InMemoryRecordStorage,
    RecordStorageInterface,
)
from ledgerbook.session import SessionManager
from ledgerbook.summary import SummaryService
from ledgerbook.validation import RecordValidator
from ledgerbook.workflows import (
    RecordWorkflow,
    StockPurchaseWorkflow,
    UserDirectory,
)


logger = structlog.get_logger("ledgerbook.orchestrator")


class LedgerComponents:
    """Everything the UI layer needs, wired to one storage backend."""

    def __init__(
        self,
        storage: RecordStorageInterface,
        identity: IdentityInterface,
        settings: Optional[AppSettings] = None,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self.settings = settings or get_settings().app
        self.storage = storage
        self.identity = identity
        self.activity = activity_logger or ActivityLogger()
        self.validator = RecordValidator(self.settings)

        self.sessions = SessionManager(
            identity, self.activity, admin_email=self.settings.admin_email
        )
        self.records: dict[RecordCategory, RecordWorkflow] = {
            category: RecordWorkflow(descriptor, storage, self.validator, self.activity)
            for category, descriptor in CATEGORIES.items()
        }
        self.stock_purchases = StockPurchaseWorkflow(
            stock=self.records[RecordCategory.STOCK],
            expenses=self.records[RecordCategory.EXPENSE],
            activity_logger=self.activity,
        )
        self.users = UserDirectory(identity, self.activity)
        self.summary = SummaryService(
            storage,
            cash_mode=CashMode(self.settings.cash_mode),
            activity_logger=self.activity,
        )

    def workflow(self, category: RecordCategory) -> RecordWorkflow:
        return self.records[RecordCategory(category)]


def _google_sheets_backends() -> tuple[RecordStorageInterface, IdentityInterface]:
    from ledgerbook.services.storage.google_sheets import (
        GoogleSheetsClient,
        GoogleSheetsIdentityStore,
        GoogleSheetsRecordStorage,
    )

    client = GoogleSheetsClient()
    return GoogleSheetsRecordStorage(client), GoogleSheetsIdentityStore(client)


def create_app_components(backend: Optional[str] = None) -> LedgerComponents:
    """
    Factory function to create all application components.

    Args:
        backend: 'memory' or 'google_sheets'. Defaults to the
                 STORAGE_BACKEND setting.

    If the Google Sheets backend cannot be configured, the app starts on
    in-memory storage and logs a warning.
    """
    settings = get_settings().app
    configure_logging(settings.log_level)
    backend = backend or settings.storage_backend

    if backend == "google_sheets":
        checks = validate_all_settings()
        if not checks["google_sheets"]:
            logger.warning(
                "storage_not_configured",
                backend=backend,
                error=checks.get("google_sheets_error"),
            )
            storage, identity = InMemoryRecordStorage(), InMemoryIdentityStore()
        else:
            try:
                storage, identity = _google_sheets_backends()
            except Exception as e:
                logger.warning("storage_not_configured", backend=backend, error=str(e))
                storage, identity = InMemoryRecordStorage(), InMemoryIdentityStore()
    elif backend == "memory":
        storage, identity = InMemoryRecordStorage(), InMemoryIdentityStore()
    else:
        raise ValueError(f"Unknown storage backend: {backend}")

    return LedgerComponents(storage, identity, settings=settings)

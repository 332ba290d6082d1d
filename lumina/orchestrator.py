"""
Main Orchestrator for Lumina Ledger

This module ties the components together:
1. Session (who is signed in) drives every store's lifecycle
2. Stores hold the authoritative collections
3. Engines derive analytics from them
4. The importer feeds foreign spreadsheets into the expense store

DESIGN DECISION: Store auth listeners are registered in dependency
order. The expense store loads before the category store reacts, so
category sync always sees the loaded expenses.

Without Google Sheets configuration the app still runs: expenses live
in local storage and the other stores use an in-memory table store.
"""

from pathlib import Path
from typing import Iterable, Optional

import structlog

from lumina.audit import AuditLogger, configure_logging
from lumina.config import GoogleSheetsSettings, get_settings, validate_all_settings
from lumina.engines.analytics import AnalyticsEngine
from lumina.importer import ImportReconciler
from lumina.importer.reconciler import ProgressCallback
from lumina.models.audit import AuditEventBuilder
from lumina.models.results import ImportSummary
from lumina.services.auth import AuthSession, AuthUser, GoogleServiceAccountSession
from lumina.services.storage import (
    GoogleSheetsClient,
    GoogleSheetsSource,
    GoogleSheetsTabularStore,
    InMemorySpreadsheetSource,
    InMemoryTabularStore,
    LocalJsonStore,
    SpreadsheetSourceInterface,
    TabularStoreInterface,
)
from lumina.stores import BankStore, CategoryStore, ExpenseStore, LoanStore, PreferencesStore


logger = structlog.get_logger(__name__)


class LedgerApp:
    """
    Everything the UI needs, wired together.

    Stores react to `auth` on their own; the app only owns startup,
    sign-in helpers and teardown.
    """

    def __init__(
        self,
        auth: AuthSession,
        adapter: TabularStoreInterface,
        local_store: LocalJsonStore,
        source: SpreadsheetSourceInterface,
        audit_logger: Optional[AuditLogger] = None,
        sheet_names: Optional[GoogleSheetsSettings] = None,
        local_key: str = "lumina_expenses",
        default_import_category: str = "Uncategorized",
        import_day_first: bool = True,
        default_currency: str = "USD",
        currency_key: str = "currency",
    ):
        self.auth = auth
        self.adapter = adapter
        self.local_store = local_store
        self.source = source
        self.audit_logger = audit_logger or AuditLogger()
        self.is_remote_configured = sheet_names is not None

        tables = {}
        if sheet_names is not None:
            tables = {
                "expenses": {"table": sheet_names.expenses_sheet_name},
                "categories": {"table": sheet_names.categories_sheet_name},
                "banks": {
                    "banks_table": sheet_names.banks_sheet_name,
                    "transactions_table": sheet_names.bank_transactions_sheet_name,
                },
                "loans": {"table": sheet_names.loan_transactions_sheet_name},
            }

        # Order matters: listeners run in registration order
        self.expenses = ExpenseStore(
            adapter,
            local_store,
            auth=auth,
            audit_logger=self.audit_logger,
            local_key=local_key,
            **tables.get("expenses", {}),
        )
        self.categories = CategoryStore(
            adapter,
            self.expenses,
            auth=auth,
            audit_logger=self.audit_logger,
            **tables.get("categories", {}),
        )
        self.banks = BankStore(
            adapter,
            auth=auth,
            audit_logger=self.audit_logger,
            **tables.get("banks", {}),
        )
        self.loans = LoanStore(
            adapter,
            auth=auth,
            audit_logger=self.audit_logger,
            **tables.get("loans", {}),
        )

        self.analytics = AnalyticsEngine(self.expenses, self.categories)
        self.importer = ImportReconciler(
            self.expenses,
            source,
            default_category=default_import_category,
            audit_logger=self.audit_logger,
            dayfirst=import_day_first,
        )
        self.preferences = PreferencesStore(
            local_store, default_currency=default_currency, local_key=currency_key
        )

        self.auth.add_listener(self._log_auth_change)

    async def start(self) -> None:
        """Load expenses from local storage until someone signs in."""
        await self.expenses.init()

    async def sign_in(self, user: Optional[AuthUser] = None) -> None:
        """
        Start a session.

        A Google service-account session authenticates itself; any other
        session needs the user to sign in as.
        """
        if isinstance(self.auth, GoogleServiceAccountSession) and user is None:
            await self.auth.authenticate()
            return
        if user is None:
            raise ValueError("A user is required to sign in without Google Sheets")
        await self.auth.sign_in(user)

    async def sign_out(self) -> None:
        await self.auth.sign_out()

    async def import_spreadsheets(
        self,
        spreadsheet_ids: Iterable[str],
        progress: Optional[ProgressCallback] = None,
    ) -> ImportSummary:
        return await self.importer.import_spreadsheets(spreadsheet_ids, progress)

    async def _log_auth_change(self, user: Optional[AuthUser]) -> None:
        if user is None:
            self.audit_logger.log(AuditEventBuilder.signed_out())
        else:
            self.audit_logger.log(AuditEventBuilder.signed_in(user.email))

    def dispose(self) -> None:
        """Detach everything from the session and drop all subscribers."""
        self.analytics.dispose()
        for store in (self.loans, self.banks, self.categories, self.expenses):
            store.dispose()
        self.preferences.dispose()
        self.auth.remove_listener(self._log_auth_change)


def create_app_components(
    use_storage: bool = True,
    local_path: Optional[Path] = None,
) -> LedgerApp:
    """
    Factory function to create the application.

    Args:
        use_storage: Whether to connect Google Sheets storage.
                    Set to False for testing without storage.
        local_path: Override for the local fallback JSON file.

    Returns:
        A LedgerApp; call `await app.start()` before use.
    """
    settings = get_settings()
    app_settings = settings.app
    local_settings = settings.local_storage
    configure_logging(app_settings.log_level)

    audit_logger = AuditLogger()
    local_store = LocalJsonStore(local_path or local_settings.resolved_path)

    sheet_names: Optional[GoogleSheetsSettings] = None
    adapter: TabularStoreInterface
    source: SpreadsheetSourceInterface
    auth: AuthSession

    if use_storage:
        checks = validate_all_settings()
        if checks["google_sheets"]:
            sheet_names = settings.google_sheets
            client = GoogleSheetsClient(sheet_names)
            adapter = GoogleSheetsTabularStore(client)
            source = GoogleSheetsSource(client)
            auth = GoogleServiceAccountSession(client)
        else:
            # Storage not configured - continue in local-only mode
            logger.warning("storage_not_configured", error=checks.get("google_sheets_error"))

    if sheet_names is None:
        adapter = InMemoryTabularStore()
        source = InMemorySpreadsheetSource()
        auth = AuthSession()

    return LedgerApp(
        auth=auth,
        adapter=adapter,
        local_store=local_store,
        source=source,
        audit_logger=audit_logger,
        sheet_names=sheet_names,
        local_key=local_settings.expenses_key,
        default_import_category=app_settings.default_import_category,
        import_day_first=app_settings.import_day_first,
        default_currency=app_settings.currency,
        currency_key=local_settings.currency_key,
    )

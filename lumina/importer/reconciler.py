"""
Import Reconciler

Pulls expenses out of old, hand-kept spreadsheets. Every tab is read as
Date | Purpose | Amount | Description with a header row, e.g.

    Date        Purpose   Expense   Description
    2024-02-01  Travel    $45.00    Taxi

DESIGN DECISION: Duplicates are detected by signature, not by id:
date|amount|note. Foreign sheets have no ids, and re-running an import
must be harmless. Accepted rows join the signature set immediately, so
duplicates inside the same run are caught too.

Failures are counted per tab and per spreadsheet; one bad tab never
undoes the tabs already imported.
"""

import datetime as dt
import re
from decimal import Decimal
from typing import Callable, Iterable, Optional

from dateutil import parser as date_parser

from lumina.audit import AuditLogger
from lumina.models.audit import AuditEventBuilder
from lumina.models.expense import ExpenseDraft
from lumina.models.results import ImportSummary
from lumina.models.rows import clean_amount, format_amount, safe_get
from lumina.services.storage.interface import SpreadsheetSourceInterface
from lumina.stores.expenses import ExpenseStore


ProgressCallback = Callable[[str], None]

_YEAR_FIRST = re.compile(r"^\d{4}\D")


class UnreadableDateError(ValueError):
    """A date cell that no known format can read."""


def parse_amount(text: str) -> Optional[Decimal]:
    """Amount with currency symbols and separators stripped, or None."""
    return clean_amount(text)


def parse_import_date(text: str, dayfirst: bool = True) -> Optional[dt.date]:
    """
    Parse a hand-typed date cell, or return None.

    ISO dates (optionally followed by a time) are read as year-month-day.
    Anything else goes through dateutil: "01/02/2024" is 1 Feb with
    `dayfirst`, while "2/15/2024" and "Feb 15, 2024" are unambiguous.
    """
    if not text or not text.strip():
        return None
    value = text.strip()
    try:
        return dt.date.fromisoformat(value[:10])
    except ValueError:
        pass
    # "2024/02/01" stays year-month-day whatever `dayfirst` says
    year_first = _YEAR_FIRST.match(value) is not None
    try:
        return date_parser.parse(
            value, dayfirst=dayfirst and not year_first, yearfirst=year_first
        ).date()
    except (ValueError, OverflowError):
        return None


def expense_signature(date: dt.date, amount: Decimal, note: str) -> str:
    """
    Dedup key: "2024-02-01|45|Taxi".

    Amounts are normalized, so "45.00" and "45" collide on purpose.
    """
    return f"{date.isoformat()}|{format_amount(amount)}|{(note or '').strip()}"


class ImportReconciler:
    """Merges foreign spreadsheet rows into the expense store."""

    def __init__(
        self,
        expense_store: ExpenseStore,
        source: SpreadsheetSourceInterface,
        default_category: str = "Uncategorized",
        audit_logger: Optional[AuditLogger] = None,
        dayfirst: bool = True,
    ):
        self._expenses = expense_store
        self._source = source
        self._default_category = default_category
        self._audit = audit_logger or AuditLogger()
        self._dayfirst = dayfirst

    async def import_spreadsheets(
        self,
        spreadsheet_ids: Iterable[str],
        progress: Optional[ProgressCallback] = None,
    ) -> ImportSummary:
        """
        Import every tab of every spreadsheet.

        Args:
            spreadsheet_ids: Ids to read; blank ones are ignored
            progress: Called with each progress message as it happens

        Returns:
            ImportSummary with counts and the full progress log
        """
        summary = ImportSummary()

        def emit(message: str) -> None:
            summary.log.append(message)
            if progress is not None:
                progress(message)

        ids = [sid.strip() for sid in spreadsheet_ids if sid and sid.strip()]

        if not self._expenses.is_initialized:
            await self._expenses.init()

        emit("Fetching existing data to check for duplicates...")
        signatures = {
            expense_signature(e.date, e.amount, e.note)
            for e in self._expenses.expenses.value
        }
        self._audit.log(AuditEventBuilder.import_started(len(ids)))

        for spreadsheet_id in ids:
            emit(f"Processing Spreadsheet: {spreadsheet_id}")
            try:
                tabs = await self._source.list_tabs(spreadsheet_id)
            except Exception as e:
                emit("  Error processing spreadsheet. Check ID and permissions.")
                summary.errors += 1
                self._audit.log(
                    AuditEventBuilder.import_spreadsheet_failed(spreadsheet_id, str(e))
                )
                continue

            for title in tabs:
                await self._import_tab(spreadsheet_id, title, signatures, summary, emit)

        emit(f"Import complete: {summary.imported} imported, {summary.errors} errors.")
        self._audit.log(AuditEventBuilder.import_completed(summary.imported, summary.errors))
        return summary

    async def _import_tab(
        self,
        spreadsheet_id: str,
        title: str,
        signatures: set[str],
        summary: ImportSummary,
        emit: ProgressCallback,
    ) -> None:
        emit(f"  > Reading tab: {title}")
        try:
            rows = await self._source.read_tab(spreadsheet_id, title)
        except Exception as e:
            self._tab_failed(spreadsheet_id, title, str(e), summary, emit)
            return

        if len(rows) < 2:
            emit("    Skipping empty/header-only tab.")
            return

        drafts: list[ExpenseDraft] = []
        accepted: list[str] = []
        bad_dates = 0
        for row in rows[1:]:
            try:
                draft = self._draft_from_row(row)
            except UnreadableDateError:
                bad_dates += 1
                continue
            if draft is None:
                summary.skipped_invalid += 1
                continue
            signature = expense_signature(draft.date, draft.amount, draft.note)
            if signature in signatures:
                summary.skipped_duplicates += 1
                continue
            signatures.add(signature)
            accepted.append(signature)
            drafts.append(draft)

        if bad_dates:
            summary.skipped_bad_dates += bad_dates
            emit(f"    Skipped {bad_dates} rows with unreadable dates.")

        if not drafts:
            return

        result = await self._expenses.append_expenses(drafts)
        if not result.success:
            # Nothing from this tab was saved; a later run may retry these rows
            signatures.difference_update(accepted)
            self._tab_failed(
                spreadsheet_id, title, result.error_message or "append failed", summary, emit
            )
            return

        summary.imported += len(drafts)
        emit(f"    Imported {len(drafts)} rows.")
        self._audit.log(
            AuditEventBuilder.import_tab_imported(spreadsheet_id, title, len(drafts))
        )

    def _draft_from_row(self, row: list) -> Optional[ExpenseDraft]:
        """
        Draft for one data row, or None when the row is invalid.

        Raises:
            UnreadableDateError: The date cell is filled but not a date
        """
        date_text = safe_get(row, 0)
        amount_text = safe_get(row, 2)
        if not date_text or not amount_text:
            return None

        amount = parse_amount(amount_text)
        if amount is None:
            return None
        date = parse_import_date(date_text, dayfirst=self._dayfirst)
        if date is None:
            raise UnreadableDateError(date_text)

        try:
            return ExpenseDraft(
                date=date,
                category=safe_get(row, 1) or self._default_category,
                amount=amount,
                note=safe_get(row, 3),
            )
        except ValueError:
            # e.g. negative amounts or an over-long purpose
            return None

    def _tab_failed(
        self,
        spreadsheet_id: str,
        title: str,
        error_message: str,
        summary: ImportSummary,
        emit: ProgressCallback,
    ) -> None:
        emit(f"    Error reading tab {title}.")
        summary.errors += 1
        self._audit.log(
            AuditEventBuilder.import_tab_failed(spreadsheet_id, title, error_message)
        )

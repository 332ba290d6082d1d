"""Spreadsheet import with duplicate suppression."""

from lumina.importer.reconciler import (
    ImportReconciler,
    expense_signature,
    parse_amount,
    parse_import_date,
)

__all__ = [
    "ImportReconciler",
    "expense_signature",
    "parse_amount",
    "parse_import_date",
]

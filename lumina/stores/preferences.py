"""
Preferences Store

User display choices that live on this device only. The chosen currency
is saved to local storage and survives restarts and sign-outs; the
configured currency is just the starting value.
"""

from typing import Optional

import structlog

from lumina.config import CURRENCY_SYMBOLS
from lumina.errors import LedgerValidationError
from lumina.reactive import Signal
from lumina.services.storage.local import LocalJsonStore


logger = structlog.get_logger(__name__)

DEFAULT_CURRENCY_KEY = "currency"


def currency_symbol(code: str) -> str:
    """Display symbol for a currency code ("USD" -> "$")."""
    try:
        return CURRENCY_SYMBOLS[code.strip().upper()]
    except KeyError:
        raise LedgerValidationError(f"Unsupported currency: {code}", field="currency")


class PreferencesStore:
    """Display currency, published as a signal."""

    def __init__(
        self,
        local_store: LocalJsonStore,
        default_currency: str = "USD",
        local_key: str = DEFAULT_CURRENCY_KEY,
    ):
        self._local = local_store
        self._local_key = local_key
        self.currency: Signal[str] = Signal(self._saved_currency() or default_currency)

    def _saved_currency(self) -> Optional[str]:
        saved = self._local.get(self._local_key)
        if isinstance(saved, str) and saved in CURRENCY_SYMBOLS:
            return saved
        if saved is not None:
            logger.warning("saved_currency_ignored", value=saved)
        return None

    @property
    def currency_symbol(self) -> str:
        return currency_symbol(self.currency.value)

    def set_currency(self, code: str) -> None:
        """
        Switch the display currency and remember it.

        Raises:
            LedgerValidationError: Unknown currency code
            StorageError: Local storage could not be written
        """
        code = code.strip().upper()
        currency_symbol(code)
        self._local.set(self._local_key, code)
        self.currency.set(code)

    def dispose(self) -> None:
        self.currency.clear()

"""
Ledger Store Base

DESIGN DECISION: Every store follows the same optimistic protocol:
1. Validate (raise LedgerValidationError before touching state)
2. Apply the change in memory and publish it right away
3. Persist through the tabular store
4. On failure, restore the snapshot, publish it and notify the user

Persistence failures never propagate as exceptions. Mutations return a
MutationResult so callers can branch on `success`.

There is no locking: two mutations in flight can finish in either
order, and a rollback restores the snapshot taken by its own mutation.
"""

from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Sequence, Type, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from lumina.audit import AuditLogger
from lumina.errors import LedgerValidationError, StoreNotReadyError
from lumina.models.audit import AuditEventBuilder
from lumina.models.results import MutationResult
from lumina.reactive import Signal
from lumina.services.auth import AuthSession, AuthUser
from lumina.services.storage.interface import NotFoundError, TabularStoreInterface


M = TypeVar("M", bound=BaseModel)

logger = structlog.get_logger(__name__)


class StoreState(str, Enum):
    """Lifecycle of a ledger store."""
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


def build_entity(model: Type[M], **fields: Any) -> M:
    """
    Construct a model, turning pydantic errors into LedgerValidationError.

    The first failing field is reported; that is what a form shows.
    """
    try:
        return model(**fields)
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error.get("loc", ())) or None
        message = f"{field}: {error['msg']}" if field else error["msg"]
        raise LedgerValidationError(message, field=field) from e


def to_amount(value: Any, field: str = "amount") -> Decimal:
    """Coerce a number or numeric string to Decimal, or raise LedgerValidationError."""
    if value is None or isinstance(value, bool):
        raise LedgerValidationError(f"{field} must be a number", field=field)
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise LedgerValidationError(f"{field} must be a number", field=field)
    if not amount.is_finite():
        raise LedgerValidationError(f"{field} must be a number", field=field)
    return amount


def parse_rows(rows: Sequence[list], parser: Callable[[list], M], table: str) -> list[M]:
    """
    Parse data rows (row 1 is the header) with `parser`.

    Blank and unreadable rows are skipped and counted in the log; a
    hand-edited sheet should never stop the app from loading.
    """
    items: list[M] = []
    skipped = 0
    for row in rows[1:]:
        if not any(str(cell).strip() for cell in row):
            continue
        try:
            items.append(parser(row))
        except (ValueError, ArithmeticError):
            skipped += 1
    if skipped:
        logger.warning("rows_skipped", table=table, skipped=skipped)
    return items


class LedgerStore(ABC):
    """
    An in-memory collection backed by one or more spreadsheet tabs.

    Subclasses implement `_load_data` and `_reset`, and call `_commit`
    from their mutations.
    """

    entity_type: str = "entity"

    def __init__(
        self,
        adapter: TabularStoreInterface,
        auth: Optional[AuthSession] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._adapter = adapter
        self._auth = auth
        self._audit = audit_logger or AuditLogger()
        self.state = StoreState.UNINITIALIZED
        self.loading: Signal[bool] = Signal(False)
        self.load_error: Optional[str] = None

        if self._auth is not None:
            self._auth.add_listener(self._on_auth_change)

    # ---- lifecycle -------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self.state == StoreState.READY

    async def init(self) -> None:
        """Load once. Calls while loading or after loading do nothing."""
        if self.state != StoreState.UNINITIALIZED:
            return
        await self._load()

    async def reload(self) -> None:
        """Discard the in-memory collection and load it again."""
        if self.state == StoreState.LOADING:
            return
        await self._load()

    async def _load(self) -> None:
        self.state = StoreState.LOADING
        self.loading.set(True)
        self.load_error = None
        try:
            await self._load_data()
        except Exception as e:
            self.load_error = str(e)
            self._reset()
            self._audit.log(AuditEventBuilder.store_load_failed(self.entity_type, str(e)))
        finally:
            self.state = StoreState.READY
            self.loading.set(False)

    @abstractmethod
    async def _load_data(self) -> None:
        """Fetch and publish the collection(s)."""
        pass

    @abstractmethod
    def _reset(self) -> None:
        """Publish empty collection(s)."""
        pass

    @abstractmethod
    def _signals(self) -> list[Signal]:
        pass

    async def _on_auth_change(self, user: Optional[AuthUser]) -> None:
        if user is None:
            await self._on_signed_out()
        elif self.is_initialized:
            await self.reload()
        else:
            await self.init()

    async def _on_signed_out(self) -> None:
        """Remote-only stores keep their data until the next sign-in."""
        pass

    def dispose(self) -> None:
        """Detach from the session and drop every subscriber."""
        if self._auth is not None:
            self._auth.remove_listener(self._on_auth_change)
        for signal in [*self._signals(), self.loading]:
            signal.clear()

    # ---- mutation protocol -----------------------------------------------

    def _require_ready(self) -> None:
        if not self.is_initialized:
            raise StoreNotReadyError(f"{self.entity_type} store is not loaded yet")

    async def _commit(
        self,
        signal: Signal,
        updated: list,
        persist: Callable[[], Awaitable[None]],
        operation: str,
        entity_id: Optional[str],
        entity: Optional[Any] = None,
        entity_type: Optional[str] = None,
    ) -> MutationResult:
        """
        Apply `updated` optimistically, then persist.

        On failure the collection goes back to what it was before this
        call and the failure is reported as a user notice.
        """
        entity_type = entity_type or self.entity_type
        snapshot = list(signal.value)
        signal.set(updated)

        try:
            await persist()
        except Exception as e:
            signal.set(snapshot)
            self._audit.log(
                AuditEventBuilder.persistence_failed(operation, entity_type, entity_id, str(e))
            )
            self._audit.log(
                AuditEventBuilder.mutation_rolled_back(
                    operation, entity_type, entity_id, len(snapshot)
                )
            )
            return MutationResult.failed(
                operation=operation,
                entity_type=entity_type,
                error_message=str(e),
                snapshot=snapshot,
                entity_id=entity_id,
            )

        self._audit.log(AuditEventBuilder.mutation_applied(operation, entity_type, entity_id))
        return MutationResult.ok(operation, entity_type, entity_id=entity_id, entity=entity)

    # ---- row addressing ---------------------------------------------------

    async def _find_row_number(self, table: str, entity_id: str) -> int:
        """
        Sheet row (1-indexed, header inclusive) whose column A is `entity_id`.

        Read fresh on every call: rows shift when others are deleted.
        """
        rows = await self._adapter.list_rows(table)
        for index, row in enumerate(rows[1:], start=2):
            if row and self._row_matches(str(row[0]).strip(), entity_id):
                return index
        raise NotFoundError(f"{self.entity_type} {entity_id} not found in {table}")

    def _row_matches(self, cell: str, entity_id: str) -> bool:
        return cell == entity_id

    async def _update_row(self, table: str, entity_id: str, values: list) -> None:
        row_number = await self._find_row_number(table, entity_id)
        await self._adapter.update_row(table, row_number, values)

    async def _delete_row(self, table: str, entity_id: str) -> None:
        row_number = await self._find_row_number(table, entity_id)
        await self._adapter.delete_row(table, row_number)

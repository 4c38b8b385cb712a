"""
Stock mutator service.

The only component that changes material quantities. Every movement reads
the material, computes the new quantity and commits the quantity change and
its ledger entry in one atomic store call guarded by the material version.
A version mismatch re-runs the whole read-compute-write cycle a bounded
number of times.
"""

import asyncio
import math
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random,
)

from stockledger.config import get_logger
from stockledger.core.entities.material import Material
from stockledger.core.entities.transaction import (
    Actor,
    LedgerEntry,
    ProjectInfo,
    SupplierInfo,
    TransactionStatus,
    TransactionType,
)
from stockledger.core.exceptions import (
    ConcurrencyConflictError,
    ConflictError,
    InsufficientStockError,
    NegativeStockResultError,
    StoreTimeoutError,
    ValidationError,
)
from stockledger.core.interfaces.stock_store import IStockStore
from stockledger.core.services.ledger import Ledger
from stockledger.core.services.material_registry import MaterialRegistry

logger = get_logger(__name__)

INITIAL_STOCK_REFERENCE = "INITIAL_STOCK"

PENDING_TYPES = (TransactionType.IN, TransactionType.OUT, TransactionType.RETURN)

T = TypeVar("T")


@dataclass(frozen=True)
class StockPolicy:
    """Stock rules injected by the application layer."""

    allow_negative_stock: bool = False
    max_retries: int = 3
    retry_jitter: float = 0.02  # upper bound of the random pause between retries, seconds
    operation_timeout: float | None = 15.0


@dataclass
class StockMovementResult:
    """Outcome of a committed stock movement or cancellation."""

    material: Material
    entry: LedgerEntry
    previous_quantity: float
    low_stock_warning: bool = False

    @property
    def new_quantity(self) -> float:
        return self.material.quantity


@dataclass
class MaterialCreationResult:
    """A newly registered material and its opening receipt, if any."""

    material: Material
    initial_receipt: StockMovementResult | None = None


@dataclass
class BalanceCheck:
    """Material quantity compared with the sum of its completed entries."""

    material_id: str
    material_quantity: float
    ledger_balance: float
    consistent: bool

    @property
    def difference(self) -> float:
        return self.material_quantity - self.ledger_balance


def _require_positive(field: str, value: float) -> None:
    if not math.isfinite(value) or value <= 0:
        raise ValidationError(field, "Must be greater than zero", value)


def _require_text(field: str, value: str | None) -> str:
    if value is None or not value.strip():
        raise ValidationError(field, f"{field.capitalize()} is required", value)
    return value.strip()


def _low_stock_signal(material: Material, delta: float) -> bool:
    """True when a stock-reducing change leaves the material at or below min_stock."""
    if delta >= 0 or material.quantity > material.min_stock:
        return False
    logger.warning(
        "low_stock_warning",
        material_id=material.id,
        code=material.code,
        quantity=material.quantity,
        min_stock=material.min_stock,
    )
    return True


class StockMutator:
    """
    Service for every stock-changing operation.

    Keeps `Material.quantity` equal to the sum of its completed ledger
    deltas. Different materials never contend with each other.
    """

    def __init__(
        self,
        registry: MaterialRegistry,
        ledger: Ledger,
        stock_store: IStockStore,
        policy: StockPolicy | None = None,
    ):
        self._registry = registry
        self._ledger = ledger
        self._stock_store = stock_store
        self._policy = policy or StockPolicy()

    @property
    def policy(self) -> StockPolicy:
        return self._policy

    async def receive(
        self,
        material_id: str,
        quantity: float,
        actor: Actor,
        *,
        reference: str | None,
        unit_price: float | None = None,
        description: str | None = None,
        notes: str | None = None,
        project: ProjectInfo | None = None,
        supplier: SupplierInfo | None = None,
    ) -> StockMovementResult:
        """
        Receive stock into a material.

        The receipt price (or the current price when omitted) becomes the
        material's unit price.

        Raises:
            ValidationError: Non-positive quantity, negative price or blank
                reference.
            MaterialNotFoundError: Unknown material.
        """
        _require_positive("quantity", quantity)
        reference = _require_text("reference", reference)
        if unit_price is not None and (not math.isfinite(unit_price) or unit_price < 0):
            raise ValidationError("unit_price", "Must not be negative", unit_price)

        def plan(material: Material) -> tuple[float, float, LedgerEntry]:
            price = material.unit_price if unit_price is None else unit_price
            entry = LedgerEntry(
                type=TransactionType.IN,
                material_id=material_id,
                quantity=quantity,
                unit_price=price,
                reference=reference,
                description=description,
                notes=notes,
                project=project,
                supplier=supplier,
                user=actor,
            )
            return material.quantity + quantity, price, entry

        result = await self._move("receive", material_id, plan)
        logger.info(
            "stock_received",
            material_id=material_id,
            quantity=quantity,
            new_quantity=result.new_quantity,
            reference=result.entry.reference,
            user_id=actor.id,
        )
        return result

    async def issue(
        self,
        material_id: str,
        quantity: float,
        actor: Actor,
        *,
        reference: str | None,
        description: str | None = None,
        notes: str | None = None,
        project: ProjectInfo | None = None,
    ) -> StockMovementResult:
        """
        Issue stock out of a material at its current price.

        Raises:
            ValidationError: Non-positive quantity or blank reference.
            MaterialNotFoundError: Unknown material.
            InsufficientStockError: Not enough on hand and negative stock
                is not allowed.
        """
        _require_positive("quantity", quantity)
        reference = _require_text("reference", reference)

        def plan(material: Material) -> tuple[float, float, LedgerEntry]:
            if material.quantity < quantity and not self._policy.allow_negative_stock:
                raise InsufficientStockError(material_id, quantity, material.quantity)
            entry = LedgerEntry(
                type=TransactionType.OUT,
                material_id=material_id,
                quantity=-quantity,
                unit_price=material.unit_price,
                reference=reference,
                description=description,
                notes=notes,
                project=project,
                user=actor,
            )
            return material.quantity - quantity, material.unit_price, entry

        result = await self._move("issue", material_id, plan)
        logger.info(
            "stock_issued",
            material_id=material_id,
            quantity=quantity,
            new_quantity=result.new_quantity,
            reference=result.entry.reference,
            user_id=actor.id,
        )
        return result

    async def adjust(
        self,
        material_id: str,
        delta: float,
        actor: Actor,
        *,
        reason: str | None,
        reference: str | None = None,
        notes: str | None = None,
    ) -> StockMovementResult:
        """
        Correct the quantity by a signed delta (count corrections, damage).

        Raises:
            ValidationError: Zero delta or blank reason.
            MaterialNotFoundError: Unknown material.
            NegativeStockResultError: The result would be below zero.
        """
        if not math.isfinite(delta) or delta == 0:
            raise ValidationError("quantity", "Adjustment must be a non-zero number", delta)
        reason = _require_text("reason", reason)

        def plan(material: Material) -> tuple[float, float, LedgerEntry]:
            new_quantity = material.quantity + delta
            if new_quantity < 0:
                raise NegativeStockResultError(material_id, material.quantity, delta)
            entry = LedgerEntry(
                type=TransactionType.ADJUSTMENT,
                material_id=material_id,
                quantity=delta,
                unit_price=material.unit_price,
                reference=reference or "",
                description=reason,
                reason=reason,
                notes=notes,
                user=actor,
            )
            return new_quantity, material.unit_price, entry

        result = await self._move("adjust", material_id, plan)
        logger.info(
            "stock_adjusted",
            material_id=material_id,
            delta=delta,
            new_quantity=result.new_quantity,
            reason=reason,
            user_id=actor.id,
        )
        return result

    async def return_stock(
        self,
        material_id: str,
        quantity: float,
        actor: Actor,
        *,
        reference: str | None,
        description: str | None = None,
        notes: str | None = None,
        project: ProjectInfo | None = None,
    ) -> StockMovementResult:
        """Take previously issued stock back in at the current price."""
        _require_positive("quantity", quantity)
        reference = _require_text("reference", reference)

        def plan(material: Material) -> tuple[float, float, LedgerEntry]:
            entry = LedgerEntry(
                type=TransactionType.RETURN,
                material_id=material_id,
                quantity=quantity,
                unit_price=material.unit_price,
                reference=reference,
                description=description,
                notes=notes,
                project=project,
                user=actor,
            )
            return material.quantity + quantity, material.unit_price, entry

        result = await self._move("return", material_id, plan)
        logger.info(
            "stock_returned",
            material_id=material_id,
            quantity=quantity,
            new_quantity=result.new_quantity,
            reference=result.entry.reference,
            user_id=actor.id,
        )
        return result

    async def cancel(
        self, entry_id: int, actor: Actor, reason: str | None = None
    ) -> StockMovementResult:
        """
        Cancel a completed entry and reverse its stock effect.

        Raises:
            TransactionNotFoundError: Unknown entry.
            ConflictError: Entry is pending or already cancelled.
            NegativeStockResultError: Reversal would leave negative stock;
                the entry stays completed.
        """

        async def attempt() -> StockMovementResult:
            entry = await self._timed("cancel", self._ledger.get(entry_id))
            if entry.status != TransactionStatus.COMPLETED:
                raise ConflictError(
                    f"Only completed transactions can be cancelled (status: {entry.status.value})",
                    details={"transaction_id": entry_id, "status": entry.status.value},
                )
            material = await self._timed("cancel", self._registry.get(entry.material_id))
            new_quantity = material.quantity - entry.quantity
            if new_quantity < 0:
                raise NegativeStockResultError(material.id, material.quantity, -entry.quantity)

            updated, cancelled = await self._stock_store.apply_cancellation(
                entry_id,
                material.id,
                material.version,
                new_quantity,
                cancelled_by=actor,
                cancelled_at=datetime.now(UTC),
                reason=reason,
            )
            return StockMovementResult(
                material=updated,
                entry=cancelled,
                previous_quantity=material.quantity,
                low_stock_warning=_low_stock_signal(updated, -entry.quantity),
            )

        result = await self._with_retries("cancel", str(entry_id), attempt)
        logger.info(
            "transaction_cancelled",
            transaction_id=entry_id,
            material_id=result.material.id,
            reversed_quantity=-result.entry.quantity,
            new_quantity=result.new_quantity,
            user_id=actor.id,
        )
        return result

    async def submit_pending(
        self,
        type: TransactionType,
        material_id: str,
        quantity: float,
        actor: Actor,
        *,
        reference: str | None,
        unit_price: float | None = None,
        description: str | None = None,
        notes: str | None = None,
        project: ProjectInfo | None = None,
        supplier: SupplierInfo | None = None,
    ) -> LedgerEntry:
        """
        Record a receipt, issue or return that waits for approval.

        The entry is stored as pending and has no stock effect until
        `approve`. Its price is fixed now: the given receipt price, otherwise
        the material's current price.

        Raises:
            ValidationError: Unsupported type, non-positive quantity, negative
                price or blank reference.
            MaterialNotFoundError: Unknown material.
        """
        if type not in PENDING_TYPES:
            allowed = ", ".join(t.value for t in PENDING_TYPES)
            raise ValidationError("type", f"Pending transactions must be one of: {allowed}", type)
        _require_positive("quantity", quantity)
        reference = _require_text("reference", reference)
        if unit_price is not None and (not math.isfinite(unit_price) or unit_price < 0):
            raise ValidationError("unit_price", "Must not be negative", unit_price)

        material = await self._timed("submit_pending", self._registry.get(material_id))
        price = unit_price if type == TransactionType.IN and unit_price is not None else None
        entry = await self._ledger.append(
            LedgerEntry(
                type=type,
                material_id=material_id,
                quantity=-quantity if type == TransactionType.OUT else quantity,
                unit_price=material.unit_price if price is None else price,
                reference=reference,
                description=description,
                notes=notes,
                project=project,
                supplier=supplier if type == TransactionType.IN else None,
                user=actor,
                status=TransactionStatus.PENDING,
            )
        )
        logger.info(
            "pending_transaction_submitted",
            transaction_id=entry.id,
            type=type.value,
            material_id=material_id,
            quantity=entry.quantity,
            user_id=actor.id,
        )
        return entry

    async def approve(self, entry_id: int, actor: Actor) -> StockMovementResult:
        """
        Apply a pending entry's stock effect and mark it completed.

        The status change and the quantity write commit together under the
        material version guard. An approved receipt sets the material's
        unit price like `receive` does.

        Raises:
            TransactionNotFoundError: Unknown entry.
            ConflictError: Entry is not pending.
            InsufficientStockError: A pending issue exceeds the stock on hand
                and negative stock is not allowed.
        """

        async def attempt() -> StockMovementResult:
            entry = await self._timed("approve", self._ledger.get(entry_id))
            if not entry.is_pending:
                raise ConflictError(
                    f"Only pending transactions can be approved (status: {entry.status.value})",
                    details={"transaction_id": entry_id, "status": entry.status.value},
                )
            material = await self._timed("approve", self._registry.get(entry.material_id))
            new_quantity = material.quantity + entry.quantity
            if new_quantity < 0 and entry.quantity < 0 and not self._policy.allow_negative_stock:
                raise InsufficientStockError(material.id, -entry.quantity, material.quantity)

            updated, approved = await self._stock_store.apply_approval(
                entry_id,
                material.id,
                material.version,
                new_quantity,
                entry.unit_price if entry.type == TransactionType.IN else None,
                approved_by=actor,
                approved_at=datetime.now(UTC),
            )
            return StockMovementResult(
                material=updated,
                entry=approved,
                previous_quantity=material.quantity,
                low_stock_warning=_low_stock_signal(updated, entry.quantity),
            )

        result = await self._with_retries("approve", str(entry_id), attempt)
        logger.info(
            "transaction_approved",
            transaction_id=entry_id,
            material_id=result.material.id,
            quantity=result.entry.quantity,
            new_quantity=result.new_quantity,
            user_id=actor.id,
        )
        return result

    async def reject(self, entry_id: int, actor: Actor, reason: str | None = None) -> LedgerEntry:
        """
        Discard a pending entry. It is kept as cancelled; stock is untouched.

        Raises:
            TransactionNotFoundError: Unknown entry.
            ConflictError: Entry is not pending.
        """
        entry = await self._timed("reject", self._ledger.get(entry_id))
        if not entry.is_pending:
            raise ConflictError(
                f"Only pending transactions can be rejected (status: {entry.status.value})",
                details={"transaction_id": entry_id, "status": entry.status.value},
            )
        rejected = await self._stock_store.reject_pending(
            entry_id, rejected_by=actor, rejected_at=datetime.now(UTC), reason=reason
        )
        logger.info(
            "transaction_rejected",
            transaction_id=entry_id,
            material_id=rejected.material_id,
            user_id=actor.id,
        )
        return rejected

    async def create_material(
        self,
        draft: Mapping[str, Any],
        actor: Actor,
        initial_quantity: float = 0.0,
    ) -> MaterialCreationResult:
        """
        Register a material and book its opening stock as a receipt.

        Raises:
            ValidationError: Invalid draft or negative initial quantity.
            DuplicateCodeError: Code already in use.
        """
        if not math.isfinite(initial_quantity) or initial_quantity < 0:
            raise ValidationError("quantity", "Initial quantity must not be negative", initial_quantity)

        material = await self._registry.create(draft, actor)
        if initial_quantity == 0:
            return MaterialCreationResult(material=material)

        receipt = await self.receive(
            material.id,
            initial_quantity,
            actor,
            reference=INITIAL_STOCK_REFERENCE,
            unit_price=material.unit_price,
            description="Initial stock",
        )
        return MaterialCreationResult(material=receipt.material, initial_receipt=receipt)

    async def verify_balance(self, material_id: str) -> BalanceCheck:
        """Reconcile a material's quantity against its ledger."""
        material = await self._registry.get(material_id)
        balance = await self._ledger.balance_of(material_id)
        check = BalanceCheck(
            material_id=material_id,
            material_quantity=material.quantity,
            ledger_balance=balance,
            consistent=math.isclose(material.quantity, balance, abs_tol=1e-9),
        )
        if not check.consistent:
            logger.error(
                "ledger_balance_mismatch",
                material_id=material_id,
                material_quantity=material.quantity,
                ledger_balance=balance,
            )
        return check

    async def _move(
        self,
        operation: str,
        material_id: str,
        plan: Callable[[Material], tuple[float, float, LedgerEntry]],
    ) -> StockMovementResult:
        """Read, plan and commit one movement, retrying on version conflicts."""

        async def attempt() -> StockMovementResult:
            material = await self._timed(operation, self._registry.get(material_id))
            new_quantity, unit_price, entry = plan(material)
            entry = self._ledger.prepare(entry.model_copy(update={"balance_after": new_quantity}))

            updated, saved = await self._stock_store.apply_movement(
                material_id,
                material.version,
                new_quantity,
                unit_price,
                entry,
            )
            return StockMovementResult(
                material=updated,
                entry=saved,
                previous_quantity=material.quantity,
                low_stock_warning=_low_stock_signal(updated, saved.quantity),
            )

        return await self._with_retries(operation, material_id, attempt)

    async def _with_retries(
        self,
        operation: str,
        key: str,
        attempt: Callable[[], Awaitable[T]],
    ) -> T:
        """Run `attempt`, re-running it on version conflicts up to max_retries times."""

        def log_retry(state: RetryCallState) -> None:
            logger.info(
                "concurrency_conflict_retry",
                operation=operation,
                key=key,
                attempt=state.attempt_number,
            )

        attempts = self._policy.max_retries + 1
        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_random(0, self._policy.retry_jitter),
            retry=retry_if_exception_type(ConcurrencyConflictError),
            before_sleep=log_retry,
            reraise=True,
        )
        try:
            return await retrying(attempt)
        except ConcurrencyConflictError:
            logger.warning(
                "concurrency_conflict_exhausted",
                operation=operation,
                key=key,
                attempts=attempts,
            )
            raise

    async def _timed(self, operation: str, read: Awaitable[T]) -> T:
        """Bound a read-phase store call by the operation timeout."""
        timeout = self._policy.operation_timeout
        try:
            async with asyncio.timeout(timeout):
                return await read
        except TimeoutError as e:
            raise StoreTimeoutError(operation, timeout or 0.0) from e

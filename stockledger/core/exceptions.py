"""
Domain exceptions for the stock ledger.

Every error raised by the core derives from StockLedgerError and carries a
machine-readable code plus structured details for the caller.
"""

from typing import Any


class StockLedgerError(Exception):
    """Base exception for all stock ledger errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Validation Exceptions
class ValidationError(StockLedgerError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


# Lookup Exceptions
class NotFoundError(StockLedgerError):
    """Referenced record does not exist."""

    pass


class MaterialNotFoundError(NotFoundError):
    """Material not found in the registry."""

    def __init__(self, material_id: str):
        super().__init__(
            f"Material not found: {material_id}",
            code="MATERIAL_NOT_FOUND",
            details={"material_id": material_id},
        )


class TransactionNotFoundError(NotFoundError):
    """Ledger entry not found."""

    def __init__(self, transaction_id: int):
        super().__init__(
            f"Transaction not found: {transaction_id}",
            code="TRANSACTION_NOT_FOUND",
            details={"transaction_id": transaction_id},
        )


class DuplicateCodeError(StockLedgerError):
    """Material code already in use."""

    def __init__(self, code: str, existing_id: str | None = None):
        super().__init__(
            f"Material code already exists: {code}",
            code="DUPLICATE_CODE",
            details={"material_code": code, "existing_id": existing_id},
        )


# Stock Exceptions
class StockError(StockLedgerError):
    """Base exception for stock mutation failures."""

    pass


class InsufficientStockError(StockError):
    """Issue exceeds the quantity on hand."""

    def __init__(self, material_id: str, requested: float, current_quantity: float):
        super().__init__(
            f"Insufficient stock for {material_id}: "
            f"requested {requested}, available {current_quantity}",
            code="INSUFFICIENT_STOCK",
            details={
                "material_id": material_id,
                "requested": requested,
                "current_quantity": current_quantity,
            },
        )
        self.current_quantity = current_quantity
        self.requested = requested


class NegativeStockResultError(StockError):
    """Adjustment or cancellation would drive quantity below zero."""

    def __init__(self, material_id: str, current_quantity: float, delta: float):
        super().__init__(
            f"Stock for {material_id} cannot go negative: "
            f"{current_quantity} {delta:+g} = {current_quantity + delta}",
            code="NEGATIVE_STOCK_RESULT",
            details={
                "material_id": material_id,
                "current_quantity": current_quantity,
                "delta": delta,
                "resulting_quantity": current_quantity + delta,
            },
        )
        self.current_quantity = current_quantity


class ConflictError(StockLedgerError):
    """Operation is not valid in the current state."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, code="CONFLICT", details=details)


class ConcurrencyConflictError(StockLedgerError):
    """Optimistic version check failed; the whole operation may be retried."""

    def __init__(self, material_id: str, expected_version: int):
        super().__init__(
            f"Material {material_id} was modified concurrently "
            f"(expected version {expected_version})",
            code="CONCURRENCY_CONFLICT",
            details={"material_id": material_id, "expected_version": expected_version},
        )


# Storage Exceptions
class StorageError(StockLedgerError):
    """Base exception for storage operations."""

    pass


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


class StoreTimeoutError(StorageError):
    """A store call did not finish in time. Nothing was written."""

    def __init__(self, operation: str, timeout: float):
        super().__init__(
            f"Store operation '{operation}' timed out after {timeout}s",
            code="STORE_TIMEOUT",
            details={"operation": operation, "timeout": timeout},
        )


class ConfigurationError(StockLedgerError):
    """Configuration error."""

    pass

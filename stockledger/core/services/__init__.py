"""
Core business logic services.

Layer-pure services that depend only on:
- stockledger/core/entities/*
- stockledger/core/interfaces/*
- stockledger/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from stockledger.core.services.analytics_engine import AnalyticsEngine
from stockledger.core.services.ledger import Ledger, generate_transaction_no
from stockledger.core.services.material_registry import (
    DeleteMode,
    MaterialRegistry,
    validate_material,
)
from stockledger.core.services.stock_mutator import (
    INITIAL_STOCK_REFERENCE,
    BalanceCheck,
    MaterialCreationResult,
    StockMovementResult,
    StockMutator,
    StockPolicy,
)

__all__ = [
    # Material Registry
    "MaterialRegistry",
    "DeleteMode",
    "validate_material",
    # Ledger
    "Ledger",
    "generate_transaction_no",
    # Stock Mutator
    "StockMutator",
    "StockPolicy",
    "StockMovementResult",
    "MaterialCreationResult",
    "BalanceCheck",
    "INITIAL_STOCK_REFERENCE",
    # Analytics
    "AnalyticsEngine",
]

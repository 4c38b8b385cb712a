"""
Service factory functions for dependency injection.

This module provides factory functions that wire infrastructure
implementations to core services. Use cases should import from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from typing import TYPE_CHECKING

from stockledger.config import Settings, get_settings
from stockledger.core.services import (
    AnalyticsEngine,
    Ledger,
    MaterialRegistry,
    StockMutator,
    StockPolicy,
)

if TYPE_CHECKING:
    from stockledger.core.interfaces import ILedgerStore, IMaterialStore, IStockStore


# Singleton service instances
_material_registry: MaterialRegistry | None = None
_ledger: Ledger | None = None
_stock_mutator: StockMutator | None = None
_analytics_engine: AnalyticsEngine | None = None


def build_stock_policy(settings: Settings | None = None) -> StockPolicy:
    """Translate stock settings into the policy the mutator is built with."""
    stock = (settings or get_settings()).stock
    return StockPolicy(
        allow_negative_stock=stock.allow_negative_stock,
        max_retries=stock.max_retries,
        retry_jitter=stock.retry_jitter,
        operation_timeout=stock.operation_timeout,
    )


async def get_material_registry(
    material_store: "IMaterialStore | None" = None,
    ledger_store: "ILedgerStore | None" = None,
) -> MaterialRegistry:
    """
    Get or create the MaterialRegistry.

    Store overrides bypass the singleton.
    """
    global _material_registry

    if material_store is None and ledger_store is None and _material_registry is not None:
        return _material_registry

    # Lazy import infrastructure to avoid circular imports
    from stockledger.infrastructure.storage.sqlite import get_ledger_store, get_material_store

    registry = MaterialRegistry(
        material_store=material_store or await get_material_store(),
        ledger_store=ledger_store or await get_ledger_store(),
    )
    if material_store is None and ledger_store is None:
        _material_registry = registry
    return registry


async def get_ledger(ledger_store: "ILedgerStore | None" = None) -> Ledger:
    """Get or create the Ledger service."""
    global _ledger

    if ledger_store is None and _ledger is not None:
        return _ledger

    from stockledger.infrastructure.storage.sqlite import get_ledger_store

    ledger = Ledger(ledger_store or await get_ledger_store())
    if ledger_store is None:
        _ledger = ledger
    return ledger


async def get_stock_mutator(
    stock_store: "IStockStore | None" = None,
    policy: StockPolicy | None = None,
) -> StockMutator:
    """
    Get or create the StockMutator.

    The policy defaults to the one built from settings.
    """
    global _stock_mutator

    if stock_store is None and policy is None and _stock_mutator is not None:
        return _stock_mutator

    from stockledger.infrastructure.storage.sqlite import get_stock_store

    mutator = StockMutator(
        registry=await get_material_registry(),
        ledger=await get_ledger(),
        stock_store=stock_store or await get_stock_store(),
        policy=policy or build_stock_policy(),
    )
    if stock_store is None and policy is None:
        _stock_mutator = mutator
    return mutator


async def get_analytics_engine(
    material_store: "IMaterialStore | None" = None,
) -> AnalyticsEngine:
    """Get or create the AnalyticsEngine."""
    global _analytics_engine

    if material_store is None and _analytics_engine is not None:
        return _analytics_engine

    from stockledger.infrastructure.storage.sqlite import get_material_store

    settings = get_settings()
    engine = AnalyticsEngine(
        material_store=material_store or await get_material_store(),
        ledger=await get_ledger(),
        default_window_days=settings.stock.default_window_days,
        alert_limit=settings.stock.alert_limit,
    )
    if material_store is None:
        _analytics_engine = engine
    return engine


def reset_services() -> None:
    """Reset all singleton services (for testing)."""
    global _material_registry, _ledger, _stock_mutator, _analytics_engine
    _material_registry = None
    _ledger = None
    _stock_mutator = None
    _analytics_engine = None

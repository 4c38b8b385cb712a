"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from stockledger.application.services import reset_services
from stockledger.core.entities.material import Material, MaterialCategory, MaterialUnit
from stockledger.core.entities.transaction import Actor, LedgerEntry, TransactionType
from stockledger.core.services import Ledger, MaterialRegistry, StockMutator, StockPolicy
from stockledger.core.services.stock_mutator import StockMovementResult
from stockledger.infrastructure.storage.sqlite import (
    ConnectionPool,
    SQLiteLedgerStore,
    SQLiteMaterialStore,
    SQLiteStockStore,
    close_pool,
    connection,
    reset_stores,
)
from stockledger.infrastructure.storage.sqlite.migrations.migrator import initialize_database


@pytest.fixture
def actor() -> Actor:
    """The user performing operations in tests."""
    return Actor(id="u-1", name="Depo Sorumlusu")


@pytest.fixture
def material_draft() -> dict[str, Any]:
    """Draft for the reference material used across scenarios."""
    return {
        "code": "OTO001",
        "name": "PLC CPU 1214C",
        "category": "otomasyon",
        "unit": "adet",
        "min_stock": 5,
        "max_stock": 50,
        "unit_price": 100,
    }


@pytest.fixture
def sample_material() -> Material:
    """A stored material with 15 units on hand."""
    return Material(
        id="mat-1",
        code="OTO001",
        name="PLC CPU 1214C",
        category=MaterialCategory.OTOMASYON,
        unit=MaterialUnit.ADET,
        quantity=15,
        min_stock=5,
        max_stock=50,
        unit_price=100,
        version=2,
    )


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test_stock.db"


@pytest.fixture
async def initialized_db(temp_db_path: Path) -> AsyncGenerator[Path, None]:
    """
    Migrated temporary database installed as the global connection pool.

    Store and service singletons are reset around each test.
    """
    await initialize_database(temp_db_path, create_backup_before=False)

    pool = ConnectionPool(temp_db_path, pool_size=3, busy_timeout=5000, acquire_timeout=5.0)
    await pool.initialize()
    connection._pool = pool
    reset_stores()
    reset_services()

    yield temp_db_path

    await close_pool()
    reset_stores()
    reset_services()


@pytest.fixture
def material_store(initialized_db: Path) -> SQLiteMaterialStore:
    return SQLiteMaterialStore()


@pytest.fixture
def ledger_store(initialized_db: Path) -> SQLiteLedgerStore:
    return SQLiteLedgerStore(batch_size=2)


@pytest.fixture
def stock_store(initialized_db: Path) -> SQLiteStockStore:
    return SQLiteStockStore()


@pytest.fixture
def registry(
    material_store: SQLiteMaterialStore, ledger_store: SQLiteLedgerStore
) -> MaterialRegistry:
    return MaterialRegistry(material_store, ledger_store)


@pytest.fixture
def ledger(ledger_store: SQLiteLedgerStore) -> Ledger:
    return Ledger(ledger_store)


@pytest.fixture
def mutator(
    registry: MaterialRegistry, ledger: Ledger, stock_store: SQLiteStockStore
) -> StockMutator:
    """Stock mutator wired to the temporary database."""
    return StockMutator(registry, ledger, stock_store, StockPolicy(operation_timeout=10.0))


@pytest.fixture
def stock_entry(actor: Actor) -> LedgerEntry:
    """A committed receipt of 10 units on the sample material."""
    return LedgerEntry(
        id=1,
        reference="IRS-2024-001",
        type=TransactionType.IN,
        material_id="mat-1",
        quantity=10,
        unit_price=100,
        total_value=1000,
        balance_after=25,
        user=actor,
        timestamp=datetime(2024, 3, 1, 9, 0, tzinfo=UTC),
    )


@pytest.fixture
def movement_result(sample_material: Material, stock_entry: LedgerEntry) -> StockMovementResult:
    """Result of receiving 10 units on top of the sample material's 15."""
    return StockMovementResult(
        material=sample_material.model_copy(update={"quantity": 25, "version": 3}),
        entry=stock_entry,
        previous_quantity=15,
    )

"""Unit tests for the database migrator."""

from pathlib import Path

import aiosqlite
import pytest

from stockledger.infrastructure.storage.sqlite.migrations.migrator import (
    MigrationInfo,
    discover_migrations,
    get_migration_status,
    initialize_database,
    verify_schema_integrity,
)


class TestMigrationInfo:
    def test_from_file(self, tmp_path: Path):
        path = tmp_path / "v002_add_barcode_index.sql"
        path.write_text("SELECT 1;")
        info = MigrationInfo.from_file(path)
        assert info.version == "002"
        assert info.name == "add_barcode_index"
        assert len(info.checksum) == 16

    def test_invalid_filename(self, tmp_path: Path):
        path = tmp_path / "initial.sql"
        path.write_text("SELECT 1;")
        with pytest.raises(ValueError):
            MigrationInfo.from_file(path)

    def test_bundled_migrations_discovered(self):
        versions = [m.version for m in discover_migrations()]
        assert versions[0] == "001"
        assert versions == sorted(versions)


class TestInitializeDatabase:
    async def test_creates_schema(self, temp_db_path: Path):
        results = await initialize_database(temp_db_path, create_backup_before=False)
        assert results
        assert all(r.success for r in results)

        async with aiosqlite.connect(temp_db_path) as conn:
            cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            tables = {row[0] for row in await cursor.fetchall()}
        assert {"materials", "ledger_entries", "schema_migrations"} <= tables

    async def test_second_run_applies_nothing(self, temp_db_path: Path):
        await initialize_database(temp_db_path, create_backup_before=False)
        assert await initialize_database(temp_db_path, create_backup_before=False) == []

    async def test_backup_removed_after_success(self, temp_db_path: Path):
        await initialize_database(temp_db_path, create_backup_before=False)
        await initialize_database(temp_db_path, create_backup_before=True)
        assert list(temp_db_path.parent.glob("*.backup_*")) == []

    async def test_status_and_integrity(self, temp_db_path: Path):
        status = await get_migration_status(temp_db_path)
        assert status["exists"] is False

        await initialize_database(temp_db_path, create_backup_before=False)
        status = await get_migration_status(temp_db_path)
        assert status["current_version"] == "002"
        assert status["pending_migrations"] == []

        checks = await verify_schema_integrity(temp_db_path)
        assert {c["check"]: c["status"] for c in checks} == {
            "foreign_keys": "PASS",
            "integrity": "PASS",
            "required_tables": "PASS",
            "ledger_balance": "PASS",
        }

    async def test_ledger_rejects_zero_quantity(self, temp_db_path: Path):
        """The schema itself refuses a zero-quantity entry."""
        await initialize_database(temp_db_path, create_backup_before=False)
        async with aiosqlite.connect(temp_db_path) as conn:
            await conn.execute("PRAGMA foreign_keys=ON")
            await conn.execute(
                "INSERT INTO materials (id, code, name, category, unit, created_at, updated_at) "
                "VALUES ('m', 'C', 'N', 'pano', 'adet', 'x', 'x')"
            )
            with pytest.raises(aiosqlite.IntegrityError):
                await conn.execute(
                    "INSERT INTO ledger_entries "
                    "(reference, type, material_id, quantity, user_id, user_name, timestamp) "
                    "VALUES ('R', 'in', 'm', 0, 'u', 'U', 'x')"
                )

    async def test_ledger_drift_is_reported(self, temp_db_path: Path):
        await initialize_database(temp_db_path, create_backup_before=False)
        async with aiosqlite.connect(temp_db_path) as conn:
            await conn.execute(
                "INSERT INTO materials (id, code, name, category, unit, quantity, created_at, updated_at) "
                "VALUES ('m', 'C', 'N', 'pano', 'adet', 7, 'x', 'x')"
            )
            await conn.execute(
                "INSERT INTO ledger_entries "
                "(reference, type, material_id, quantity, user_id, user_name, timestamp) "
                "VALUES ('R', 'in', 'm', 5, 'u', 'U', 'x')"
            )
            await conn.commit()

        checks = {c["check"]: c for c in await verify_schema_integrity(temp_db_path)}
        assert checks["ledger_balance"]["status"] == "FAIL"
        assert checks["ledger_balance"]["materials"] == ["m"]

    async def test_transaction_no_is_unique(self, temp_db_path: Path):
        await initialize_database(temp_db_path, create_backup_before=False)
        insert = (
            "INSERT INTO ledger_entries "
            "(transaction_no, reference, type, material_id, quantity, user_id, user_name, timestamp) "
            "VALUES ('IN-1', 'R', 'in', 'm', 1, 'u', 'U', 'x')"
        )
        async with aiosqlite.connect(temp_db_path) as conn:
            await conn.execute(
                "INSERT INTO materials (id, code, name, category, unit, created_at, updated_at) "
                "VALUES ('m', 'C', 'N', 'pano', 'adet', 'x', 'x')"
            )
            await conn.execute(insert)
            with pytest.raises(aiosqlite.IntegrityError, match="transaction_no"):
                await conn.execute(insert)

"""Tests for SQLiteLedgerStore against a migrated database."""

from datetime import UTC, datetime, timedelta

import pytest

from stockledger.core.entities.material import Material, MaterialCategory, MaterialUnit
from stockledger.core.entities.query import SortOrder, TransactionFilter, TransactionSortField
from stockledger.core.entities.transaction import (
    Actor,
    LedgerEntry,
    ProjectInfo,
    SupplierInfo,
    TransactionStatus,
    TransactionType,
)
from stockledger.core.exceptions import ConflictError
from stockledger.infrastructure.storage.sqlite.connection import get_transaction

T0 = datetime(2024, 1, 10, 8, 0, tzinfo=UTC)
ALI = Actor(id="u-ali", name="Ali")
AYSE = Actor(id="u-ayse", name="Ayşe")


@pytest.fixture
async def material_ids(material_store) -> list[str]:
    ids = []
    for code in ("OTO001", "PNO001"):
        m = await material_store.create_material(
            Material(
                code=code,
                name=code,
                category=MaterialCategory.OTOMASYON,
                unit=MaterialUnit.ADET,
            )
        )
        ids.append(m.id)
    return ids


@pytest.fixture
async def entries(ledger_store, material_ids) -> list[LedgerEntry]:
    first, second = material_ids
    specs = [
        (first, TransactionType.IN, 10, 0, ALI, TransactionStatus.COMPLETED),
        (first, TransactionType.OUT, -4, 1, AYSE, TransactionStatus.COMPLETED),
        (second, TransactionType.IN, 7, 2, ALI, TransactionStatus.COMPLETED),
        (first, TransactionType.IN, 3, 3, ALI, TransactionStatus.CANCELLED),
        (first, TransactionType.ADJUSTMENT, -1, 4, AYSE, TransactionStatus.COMPLETED),
    ]
    saved = []
    for material_id, type, quantity, day, user, status in specs:
        saved.append(
            await ledger_store.append(
                LedgerEntry(
                    reference=f"REF-{day}",
                    type=type,
                    material_id=material_id,
                    quantity=quantity,
                    unit_price=10,
                    total_value=abs(quantity) * 10,
                    user=user,
                    timestamp=T0 + timedelta(days=day),
                    status=status,
                )
            )
        )
    return saved


def receipt(material_id: str, transaction_no: str, day: int = 0) -> LedgerEntry:
    return LedgerEntry(
        transaction_no=transaction_no,
        reference="IRS-1",
        type=TransactionType.IN,
        material_id=material_id,
        quantity=1,
        unit_price=10,
        total_value=10,
        user=ALI,
        timestamp=T0 + timedelta(days=day),
    )


async def set_status(entry_id: int, status: TransactionStatus) -> None:
    async with get_transaction() as conn:
        await conn.execute(
            "UPDATE ledger_entries SET status = ? WHERE id = ?", (status.value, entry_id)
        )


class TestAppendAndGet:
    async def test_round_trip_of_optional_blocks(self, ledger_store, material_ids):
        saved = await ledger_store.append(
            LedgerEntry(
                reference="IRS-1",
                type=TransactionType.IN,
                material_id=material_ids[0],
                quantity=5,
                unit_price=100,
                total_value=500,
                project=ProjectInfo(name="Hat 3", code="PRJ-3"),
                supplier=SupplierInfo(name="Schneider", invoice="FT-9"),
                user=ALI,
                timestamp=T0,
            )
        )
        assert saved.id is not None

        loaded = await ledger_store.get_entry(saved.id)
        assert loaded.project.code == "PRJ-3"
        assert loaded.supplier.invoice == "FT-9"
        assert loaded.user == ALI
        assert loaded.timestamp == T0
        assert loaded.cancelled_by is None

    async def test_get_missing(self, ledger_store, initialized_db):
        assert await ledger_store.get_entry(999) is None

    async def test_transaction_no_round_trip(self, ledger_store, material_ids):
        saved = await ledger_store.append(receipt(material_ids[0], "IN-20240110-0000000A"))
        loaded = await ledger_store.get_entry(saved.id)
        assert loaded.transaction_no == "IN-20240110-0000000A"
        assert loaded.reference == "IRS-1"

    async def test_duplicate_transaction_no_conflicts(self, ledger_store, material_ids):
        await ledger_store.append(receipt(material_ids[0], "IN-20240110-0000000A"))
        with pytest.raises(ConflictError) as exc_info:
            await ledger_store.append(receipt(material_ids[1], "IN-20240110-0000000A"))
        assert exc_info.value.details["transaction_no"] == "IN-20240110-0000000A"

        page = await ledger_store.query_entries(TransactionFilter())
        assert page.total == 1

    async def test_reference_may_repeat(self, ledger_store, material_ids):
        await ledger_store.append(receipt(material_ids[0], "IN-20240110-0000000A"))
        await ledger_store.append(receipt(material_ids[0], "IN-20240110-0000000B"))
        page = await ledger_store.query_entries(TransactionFilter())
        assert [e.reference for e in page.items] == ["IRS-1", "IRS-1"]


class TestQuery:
    async def test_default_newest_first(self, ledger_store, entries):
        page = await ledger_store.query_entries(TransactionFilter())
        assert page.total == 5
        assert [e.reference for e in page.items] == ["REF-4", "REF-3", "REF-2", "REF-1", "REF-0"]

    async def test_filters(self, ledger_store, entries, material_ids):
        f = TransactionFilter(
            material_id=material_ids[0],
            status=TransactionStatus.COMPLETED,
            user_id=AYSE.id,
        )
        page = await ledger_store.query_entries(f)
        assert [e.reference for e in page.items] == ["REF-4", "REF-1"]

    async def test_type_and_types(self, ledger_store, entries):
        page = await ledger_store.query_entries(TransactionFilter(type=TransactionType.IN))
        assert page.total == 3
        page = await ledger_store.query_entries(
            TransactionFilter(types=[TransactionType.OUT, TransactionType.ADJUSTMENT])
        )
        assert page.total == 2

    async def test_inclusive_date_bounds(self, ledger_store, entries):
        f = TransactionFilter(start=T0 + timedelta(days=1), end=T0 + timedelta(days=3))
        page = await ledger_store.query_entries(f)
        assert {e.reference for e in page.items} == {"REF-1", "REF-2", "REF-3"}

    async def test_sort_and_page(self, ledger_store, entries):
        f = TransactionFilter(
            sort_by=TransactionSortField.QUANTITY,
            sort_order=SortOrder.ASC,
            page=2,
            page_size=2,
        )
        page = await ledger_store.query_entries(f)
        assert [e.quantity for e in page.items] == [3, 7]
        assert page.total_pages == 3


class TestStreaming:
    async def test_iterates_all_batches(self, ledger_store, entries):
        """batch_size=2 forces three round trips for five entries."""
        f = TransactionFilter(sort_order=SortOrder.ASC)
        streamed = [e async for e in ledger_store.iter_entries(f)]
        assert [e.id for e in streamed] == [e.id for e in entries]

    async def test_ignores_entries_appended_mid_stream(self, ledger_store, entries, material_ids):
        f = TransactionFilter(sort_order=SortOrder.ASC)
        seen = []
        async for entry in ledger_store.iter_entries(f):
            seen.append(entry.id)
            if len(seen) == 1:
                await ledger_store.append(
                    entries[0].model_copy(update={"id": None, "reference": "LATE"})
                )
        assert len(seen) == 5

    @pytest.mark.parametrize("order", [SortOrder.ASC, SortOrder.DESC])
    async def test_status_change_mid_stream_skips_nothing(
        self, ledger_store, material_ids, order
    ):
        """Cancelling an entry that was already read must not hide a later one."""
        saved = [
            await ledger_store.append(receipt(material_ids[0], f"IN-20240110-{day:08d}", day))
            for day in range(6)
        ]
        f = TransactionFilter(status=TransactionStatus.COMPLETED, sort_order=order)

        seen = []
        async for entry in ledger_store.iter_entries(f):
            seen.append(entry.id)
            if len(seen) == 2:
                await set_status(seen[0], TransactionStatus.CANCELLED)

        expected = [e.id for e in saved]
        if order == SortOrder.DESC:
            expected.reverse()
        assert seen == expected

    async def test_keyset_over_equal_sort_values(self, ledger_store, material_ids):
        """Entries with the same timestamp are split across batches by ID."""
        saved = [
            await ledger_store.append(receipt(material_ids[0], f"IN-20240110-{n:08d}"))
            for n in range(5)
        ]
        f = TransactionFilter(sort_order=SortOrder.ASC)
        assert [e.id async for e in ledger_store.iter_entries(f)] == [e.id for e in saved]

    async def test_empty(self, ledger_store, initialized_db):
        assert [e async for e in ledger_store.iter_entries(TransactionFilter())] == []


class TestAggregates:
    async def test_balance_counts_completed_only(self, ledger_store, entries, material_ids):
        assert await ledger_store.balance_of(material_ids[0]) == 5.0
        assert await ledger_store.balance_of(material_ids[1]) == 7.0

    async def test_balance_of_unknown_is_zero(self, ledger_store, initialized_db):
        assert await ledger_store.balance_of("nope") == 0.0

    async def test_count_includes_cancelled(self, ledger_store, entries, material_ids):
        assert await ledger_store.count_for_material(material_ids[0]) == 4

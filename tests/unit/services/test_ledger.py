"""Tests for the Ledger service."""

import math
import re
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from stockledger.core.entities.query import TransactionFilter
from stockledger.core.entities.transaction import LedgerEntry, TransactionType
from stockledger.core.exceptions import TransactionNotFoundError, ValidationError
from stockledger.core.services.ledger import Ledger, generate_transaction_no


@pytest.fixture
def mock_ledger_store():
    store = AsyncMock()

    async def append(entry):
        return entry.model_copy(update={"id": 7})

    store.append.side_effect = append
    return store


@pytest.fixture
def service(mock_ledger_store):
    return Ledger(mock_ledger_store)


def entry(actor, **overrides) -> LedgerEntry:
    values = {
        "type": TransactionType.IN,
        "material_id": "mat-1",
        "quantity": 15,
        "unit_price": 100,
        "user": actor,
    }
    values.update(overrides)
    return LedgerEntry(**values)


class TestPrepare:
    def test_fills_derived_fields(self, service, actor):
        prepared = service.prepare(entry(actor))
        assert prepared.total_value == 1500
        assert prepared.timestamp is not None
        assert prepared.transaction_no.startswith("IN-")
        assert prepared.reference == prepared.transaction_no

    def test_total_value_uses_absolute_quantity(self, service, actor):
        prepared = service.prepare(entry(actor, type=TransactionType.OUT, quantity=-12))
        assert prepared.total_value == 1200

    def test_keeps_given_reference(self, service, actor):
        prepared = service.prepare(entry(actor, reference="  IRS-2024-01 "))
        assert prepared.reference == "IRS-2024-01"
        assert prepared.transaction_no.startswith("IN-")

    def test_repeated_reference_gets_distinct_numbers(self, service, actor):
        first = service.prepare(entry(actor, reference="INITIAL_STOCK"))
        second = service.prepare(entry(actor, reference="INITIAL_STOCK"))
        assert first.reference == second.reference
        assert first.transaction_no != second.transaction_no

    def test_keeps_assigned_transaction_no(self, service, actor):
        prepared = service.prepare(entry(actor, transaction_no="IN-20240101-0000ABCD"))
        assert prepared.transaction_no == "IN-20240101-0000ABCD"

    def test_keeps_given_timestamp(self, service, actor):
        ts = datetime(2024, 1, 15, 9, 30, tzinfo=UTC)
        assert service.prepare(entry(actor, timestamp=ts)).timestamp == ts

    @pytest.mark.parametrize("quantity", [0, math.inf, math.nan])
    def test_rejects_bad_quantity(self, service, actor, quantity):
        with pytest.raises(ValidationError):
            service.prepare(entry(actor, quantity=quantity))

    def test_rejects_negative_price(self, service, actor):
        with pytest.raises(ValidationError):
            service.prepare(entry(actor, unit_price=-1))

    @pytest.mark.parametrize(
        ("type", "quantity"),
        [
            (TransactionType.IN, -5),
            (TransactionType.RETURN, -5),
            (TransactionType.OUT, 5),
        ],
    )
    def test_rejects_sign_mismatch(self, service, actor, type, quantity):
        with pytest.raises(ValidationError):
            service.prepare(entry(actor, type=type, quantity=quantity))

    @pytest.mark.parametrize("quantity", [-3, 3])
    def test_adjustment_either_sign(self, service, actor, quantity):
        prepared = service.prepare(entry(actor, type=TransactionType.ADJUSTMENT, quantity=quantity))
        assert prepared.reference.startswith("ADJ-")


class TestGenerateTransactionNo:
    def test_format(self):
        number = generate_transaction_no(TransactionType.OUT, datetime(2024, 1, 15, tzinfo=UTC))
        assert re.fullmatch(r"OUT-20240115-[0-9A-F]{8}", number)

    def test_unique(self):
        numbers = {generate_transaction_no(TransactionType.RETURN) for _ in range(50)}
        assert len(numbers) == 50


class TestQueries:
    async def test_append_prepares(self, service, mock_ledger_store, actor):
        saved = await service.append(entry(actor))
        assert saved.id == 7
        stored = mock_ledger_store.append.call_args[0][0]
        assert stored.total_value == 1500

    async def test_get_missing(self, service, mock_ledger_store):
        mock_ledger_store.get_entry.return_value = None
        with pytest.raises(TransactionNotFoundError):
            await service.get(99)

    async def test_query_rejects_reversed_range(self, service):
        f = TransactionFilter(start=datetime(2024, 2, 1), end=datetime(2024, 1, 1))
        with pytest.raises(ValidationError):
            await service.query(f)

    @pytest.mark.parametrize(("page", "page_size"), [(0, 20), (1, 0), (1, 500)])
    async def test_query_rejects_bad_paging(self, service, page, page_size):
        with pytest.raises(ValidationError):
            await service.query(TransactionFilter(page=page, page_size=page_size))

    async def test_stream_yields_store_entries(self, service, mock_ledger_store, actor):
        entries = [entry(actor, id=1), entry(actor, id=2)]

        async def iter_entries(filter):
            for e in entries:
                yield e

        mock_ledger_store.iter_entries = iter_entries
        streamed = [e async for e in service.stream(TransactionFilter())]
        assert [e.id for e in streamed] == [1, 2]

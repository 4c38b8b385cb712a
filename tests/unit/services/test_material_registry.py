"""Tests for MaterialRegistry with mocked stores."""

from unittest.mock import AsyncMock

import pytest

from stockledger.core.entities.material import Material, MaterialStatus
from stockledger.core.entities.query import MaterialFilter, MaterialPage
from stockledger.core.exceptions import (
    ConcurrencyConflictError,
    ConflictError,
    DuplicateCodeError,
    MaterialNotFoundError,
    ValidationError,
)
from stockledger.core.services.material_registry import (
    DeleteMode,
    MaterialRegistry,
    check_fields,
    validate_material,
)


@pytest.fixture
def mock_material_store():
    store = AsyncMock()
    store.get_by_code.return_value = None

    async def create(material):
        return material.model_copy(update={"id": "mat-new"})

    async def update(material, expected_version):
        return material.model_copy(update={"version": expected_version + 1})

    store.create_material.side_effect = create
    store.update_material.side_effect = update
    store.delete_if_unused.return_value = True
    return store


@pytest.fixture
def mock_ledger_store():
    store = AsyncMock()
    store.count_for_material.return_value = 0
    return store


@pytest.fixture
def service(mock_material_store, mock_ledger_store):
    return MaterialRegistry(mock_material_store, mock_ledger_store)


class TestCreate:
    async def test_creates_with_zero_stock_and_audit(self, service, material_draft, actor):
        material = await service.create(material_draft, actor)
        assert material.id == "mat-new"
        assert material.quantity == 0
        assert material.created_by == actor.id
        assert material.updated_by == actor.id

    async def test_quantity_rejected(self, service, material_draft, actor):
        with pytest.raises(ValidationError) as exc_info:
            await service.create({**material_draft, "quantity": 10}, actor)
        assert "stock transactions" in exc_info.value.message

    async def test_duplicate_code(self, service, mock_material_store, material_draft, actor, sample_material):
        mock_material_store.get_by_code.return_value = sample_material
        with pytest.raises(DuplicateCodeError):
            await service.create({**material_draft, "code": "oto001"}, actor)
        mock_material_store.get_by_code.assert_awaited_once_with("OTO001")
        mock_material_store.create_material.assert_not_called()

    async def test_max_below_min(self, service, material_draft, actor):
        with pytest.raises(ValidationError) as exc_info:
            await service.create({**material_draft, "min_stock": 20, "max_stock": 10}, actor)
        assert exc_info.value.details["field"] == "max_stock"

    async def test_unknown_category_is_validation_error(self, service, material_draft, actor):
        with pytest.raises(ValidationError) as exc_info:
            await service.create({**material_draft, "category": "gida"}, actor)
        assert exc_info.value.details["field"] == "category"

    async def test_missing_name(self, service, material_draft, actor):
        draft = dict(material_draft)
        draft.pop("name")
        with pytest.raises(ValidationError):
            await service.create(draft, actor)


class TestLookup:
    async def test_get_missing(self, service, mock_material_store):
        mock_material_store.get_material.return_value = None
        with pytest.raises(MaterialNotFoundError):
            await service.get("nope")

    async def test_get_by_code_normalizes(self, service, mock_material_store, sample_material):
        mock_material_store.get_by_code.return_value = sample_material
        assert await service.get_by_code(" oto001 ") is sample_material
        mock_material_store.get_by_code.assert_awaited_once_with("OTO001")

    async def test_list_passes_filter(self, service, mock_material_store):
        mock_material_store.list_materials.return_value = MaterialPage(total=0)
        result = await service.list(MaterialFilter(page=1, page_size=10))
        assert result.total == 0

    @pytest.mark.parametrize(("page", "page_size"), [(0, 10), (1, 0), (1, 101)])
    async def test_list_rejects_bad_paging(self, service, page, page_size):
        with pytest.raises(ValidationError):
            await service.list(MaterialFilter(page=page, page_size=page_size))


class TestUpdate:
    async def test_updates_descriptive_fields(self, service, mock_material_store, sample_material, actor):
        mock_material_store.get_material.return_value = sample_material
        updated = await service.update("mat-1", {"name": "PLC CPU 1215C"}, actor)
        assert updated.name == "PLC CPU 1215C"
        assert updated.quantity == sample_material.quantity
        assert updated.version == sample_material.version + 1
        mock_material_store.update_material.assert_awaited_once()
        assert mock_material_store.update_material.call_args[0][1] == sample_material.version

    async def test_quantity_is_read_only(self, service, actor):
        with pytest.raises(ValidationError):
            await service.update("mat-1", {"quantity": 99}, actor)

    async def test_version_is_read_only(self, service, actor):
        with pytest.raises(ValidationError):
            await service.update("mat-1", {"version": 7}, actor)

    async def test_stale_expected_version(self, service, mock_material_store, sample_material, actor):
        mock_material_store.get_material.return_value = sample_material
        with pytest.raises(ConcurrencyConflictError):
            await service.update("mat-1", {"name": "x"}, actor, expected_version=1)

    async def test_code_change_to_taken_code(self, service, mock_material_store, sample_material, actor):
        other = sample_material.model_copy(update={"id": "mat-2", "code": "PNO001"})
        mock_material_store.get_material.return_value = sample_material
        mock_material_store.get_by_code.return_value = other
        with pytest.raises(DuplicateCodeError):
            await service.update("mat-1", {"code": "pno001"}, actor)


class TestDelete:
    async def test_soft_delete(self, service, mock_material_store, sample_material, actor):
        mock_material_store.get_material.return_value = sample_material.model_copy()
        updated = await service.soft_delete("mat-1", actor)
        assert updated.status == MaterialStatus.INACTIVE

    async def test_soft_delete_already_inactive_is_noop(self, service, mock_material_store, sample_material, actor):
        inactive = sample_material.model_copy(update={"status": MaterialStatus.INACTIVE})
        mock_material_store.get_material.return_value = inactive
        await service.soft_delete("mat-1", actor)
        mock_material_store.update_material.assert_not_called()

    async def test_hard_delete_with_history(self, service, mock_material_store, mock_ledger_store, sample_material):
        mock_material_store.get_material.return_value = sample_material
        mock_material_store.delete_if_unused.return_value = False
        mock_ledger_store.count_for_material.return_value = 3
        with pytest.raises(ConflictError) as exc_info:
            await service.hard_delete("mat-1")
        assert exc_info.value.details["transaction_count"] == 3

    async def test_auto_without_history_hard_deletes(self, service, mock_material_store, sample_material, actor):
        mock_material_store.get_material.return_value = sample_material
        assert await service.delete("mat-1", actor) == DeleteMode.HARD
        mock_material_store.delete_if_unused.assert_awaited_once_with("mat-1")

    async def test_auto_with_history_deactivates(self, service, mock_material_store, mock_ledger_store, sample_material, actor):
        mock_material_store.get_material.return_value = sample_material.model_copy()
        mock_ledger_store.count_for_material.return_value = 2
        assert await service.delete("mat-1", actor) == DeleteMode.SOFT
        mock_material_store.delete_if_unused.assert_not_called()

    async def test_auto_falls_back_when_entry_races_in(self, service, mock_material_store, sample_material, actor):
        mock_material_store.get_material.return_value = sample_material.model_copy()
        mock_material_store.delete_if_unused.return_value = False
        assert await service.delete("mat-1", actor) == DeleteMode.SOFT

    async def test_delete_missing(self, service, mock_material_store, actor):
        mock_material_store.get_material.return_value = None
        with pytest.raises(MaterialNotFoundError):
            await service.delete("nope", actor, DeleteMode.HARD)


class TestValidationHelpers:
    def test_check_fields_rejects_unknown(self):
        with pytest.raises(ValidationError):
            check_fields({"colour": "red"})

    def test_check_fields_accepts_editable(self):
        check_fields({"name": "x", "min_stock": 1, "notes": None})

    def test_negative_price(self, sample_material):
        with pytest.raises(ValidationError):
            validate_material(sample_material.model_copy(update={"unit_price": -1}))

    def test_negative_min_stock(self, sample_material):
        with pytest.raises(ValidationError):
            validate_material(sample_material.model_copy(update={"min_stock": -1}))

    def test_valid_material_passes(self, sample_material):
        assert isinstance(validate_material(sample_material), Material)

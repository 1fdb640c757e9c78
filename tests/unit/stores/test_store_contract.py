"""Behaviour every in-process record store shares."""

from decimal import Decimal

import pytest

from src.pharmacat.core.errors import NotFoundError, ValidationError
from src.pharmacat.stores import RecordStore
from src.pharmacat.stores import codes as codes_module


class TestCreateAndList:
    def test_create_then_list_returns_the_record(self, local_store: RecordStore, draft_data):
        """A created product is listed with defaulted brand and a two-decimal price."""
        created = local_store.create(draft_data(brand=None, price="45.7"))

        products = local_store.list()

        assert len(products) == 1
        assert products[0] == created
        assert created.brand == ""
        assert created.price == Decimal("45.70")
        assert created.price_display == "45.70"
        assert created.code.startswith("PRD")

    def test_list_is_newest_first(self, local_store: RecordStore, draft_data):
        codes = [local_store.create(draft_data(brand=f"B{i}")).code for i in range(3)]

        assert [p.code for p in local_store.list()] == list(reversed(codes))

    def test_codes_are_unique(self, local_store: RecordStore, draft_data):
        codes = {local_store.create(draft_data()).code for _ in range(20)}

        assert len(codes) == 20

    def test_get(self, local_store: RecordStore, draft_data):
        created = local_store.create(draft_data())

        assert local_store.get(created.code) == created

    def test_get_unknown_code(self, local_store: RecordStore):
        with pytest.raises(NotFoundError):
            local_store.get("PRD0")


class TestValidation:
    def test_missing_fields_are_rejected(self, local_store: RecordStore):
        with pytest.raises(ValidationError) as exc_info:
            local_store.create({"brand": "Only brand"})

        assert set(exc_info.value.fields) == {"generic_name", "dosage_form", "price"}
        assert local_store.list() == []

    def test_unknown_generic_name(self, local_store: RecordStore, draft_data):
        with pytest.raises(ValidationError) as exc_info:
            local_store.create(draft_data(generic_name="UNOBTAINIUM"))

        assert "generic_name" in exc_info.value.fields

    def test_dosage_form_must_belong_to_generic_name(self, local_store: RecordStore, draft_data):
        with pytest.raises(ValidationError) as exc_info:
            local_store.create(draft_data(generic_name="ACICLOVIR", dosage_form="10 mL AMPULE"))

        assert "dosage_form" in exc_info.value.fields

    @pytest.mark.parametrize("price", ["-5", "0", "abc", ""])
    def test_invalid_price(self, local_store: RecordStore, draft_data, price):
        with pytest.raises(ValidationError) as exc_info:
            local_store.create(draft_data(price=price))

        assert "price" in exc_info.value.fields


class TestUpdate:
    def test_update_preserves_code_and_created_at(self, local_store: RecordStore, draft_data):
        created = local_store.create(draft_data())

        updated = local_store.update(
            created.code, draft_data(brand="Acyclo-V", dosage_form="800 mg TABLET", price="99.999")
        )

        assert updated.code == created.code
        assert updated.created_at == created.created_at
        assert updated.brand == "Acyclo-V"
        assert updated.dosage_form == "800 mg TABLET"
        assert updated.price_display == "100.00"
        assert local_store.get(created.code) == updated

    def test_update_unknown_code(self, local_store: RecordStore, draft_data):
        with pytest.raises(NotFoundError):
            local_store.update("PRD0", draft_data())

    def test_invalid_update_leaves_record(self, local_store: RecordStore, draft_data):
        created = local_store.create(draft_data())

        with pytest.raises(ValidationError):
            local_store.update(created.code, draft_data(price="-1"))

        assert local_store.get(created.code) == created


class TestDeleteAndClear:
    def test_deleted_codes_are_not_reissued(self, local_store: RecordStore, draft_data, monkeypatch):
        """A code drawn again after its product was deleted is redrawn."""
        candidates = iter(["PRD1", "PRD1", "PRD2"])
        monkeypatch.setattr(codes_module, "new_code", lambda: next(candidates))

        first = local_store.create(draft_data())
        local_store.delete(first.code)
        second = local_store.create(draft_data())

        assert first.code == "PRD1"
        assert second.code == "PRD2"

    def test_cleared_codes_are_not_reissued(self, local_store: RecordStore, draft_data, monkeypatch):
        candidates = iter(["PRD1", "PRD1", "PRD2"])
        monkeypatch.setattr(codes_module, "new_code", lambda: next(candidates))

        local_store.create(draft_data())
        local_store.clear()

        assert local_store.create(draft_data()).code == "PRD2"

    def test_delete(self, local_store: RecordStore, draft_data):
        keep = local_store.create(draft_data(brand="keep"))
        drop = local_store.create(draft_data(brand="drop"))

        local_store.delete(drop.code)

        assert local_store.list() == [keep]

    def test_delete_unknown_code_leaves_store_unchanged(self, local_store: RecordStore, draft_data):
        local_store.create(draft_data())
        before = local_store.list()

        with pytest.raises(NotFoundError):
            local_store.delete("PRD0")

        assert local_store.list() == before

    def test_clear_returns_removed_count(self, local_store: RecordStore, draft_data):
        for index in range(5):
            local_store.create(draft_data(brand=f"B{index}"))

        assert local_store.clear() == 5
        assert local_store.list() == []
        assert local_store.clear() == 0


class TestSnapshots:
    def test_export_then_import_restores_records(self, local_store: RecordStore, draft_data):
        """A snapshot brings back exactly the exported products."""
        originals = [local_store.create(draft_data(brand=f"B{i}", price=str(i + 1))) for i in range(3)]
        snapshot = local_store.export_snapshot()

        local_store.clear()
        local_store.create(draft_data(brand="after export"))
        local_store.import_snapshot(snapshot)

        restored = local_store.list()
        assert [p.code for p in restored] == [p.code for p in reversed(originals)]
        assert {p.brand for p in restored} == {"B0", "B1", "B2"}

    def test_import_garbage_is_validation_error(self, local_store: RecordStore, draft_data):
        local_store.create(draft_data())
        before = local_store.list()

        with pytest.raises(ValidationError):
            local_store.import_snapshot(b"\x00\x01 definitely not a snapshot \xff")

        assert local_store.list() == before


class TestCsvExchange:
    def test_export_csv_header_and_rows(self, local_store: RecordStore, draft_data):
        local_store.create(draft_data())

        lines = local_store.export_csv().decode("utf-8").splitlines()

        assert lines[0] == "code,Brand,Generic Name,Dosage Form,Price"
        assert lines[1].endswith(",Zovirax,ACICLOVIR,400 mg TABLET,45.70")

    def test_import_csv_creates_valid_rows_and_reports_bad_ones(self, local_store: RecordStore):
        blob = (
            "code,Brand,Generic Name,Dosage Form,Price\n"
            "OLD1,Biogesic,PARACETAMOL,500 mg TABLET,4.5\n"
            "OLD2,,PARACETAMOL,500 mg TABLET,-1\n"
            "OLD3,Advil,IBUPROFEN,200 mg TABLET,8\n"
        ).encode("utf-8")

        report = local_store.import_csv(blob)

        assert report.created_count == 2
        assert list(report.skipped) == [3]
        assert "price" in report.skipped[3]
        assert {p.brand for p in local_store.list()} == {"Biogesic", "Advil"}
        assert all(p.code.startswith("PRD") for p in local_store.list())

    def test_import_csv_skips_oversized_price(self, local_store: RecordStore):
        blob = (
            "Brand,Generic Name,Dosage Form,Price\n"
            "Biogesic,PARACETAMOL,500 mg TABLET,4.5\n"
            "Huge,PARACETAMOL,500 mg TABLET,1e30\n"
            "Advil,IBUPROFEN,200 mg TABLET,8\n"
        ).encode("utf-8")

        report = local_store.import_csv(blob)

        assert report.created_count == 2
        assert report.skipped == {3: {"price": "Price must not exceed 999999999.99"}}

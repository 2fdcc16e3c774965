"""Tests for starter pack templates and their import."""

from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from kitchen_costing.services import ingredient_service, material_service, starter_pack_service, user_service
from kitchen_costing.services.exceptions import (
    DatabaseError,
    DuplicateNameError,
    StarterItemNotFound,
    UserNotFound,
    ValidationError,
)


@pytest.fixture
def templates(test_db):
    flour = starter_pack_service.create_starter_ingredient(
        {"name": "Bread Flour", "category": "Dry", "quantity": "1000", "purchase_amount": "2.00"}
    )
    sugar = starter_pack_service.create_starter_ingredient(
        {"name": "Sugar", "quantity": "1000", "purchase_amount": "1.50"}
    )
    butter = starter_pack_service.create_starter_ingredient(
        {"name": "Butter", "quantity": "500", "purchase_amount": "5.00"}
    )
    box = starter_pack_service.create_starter_material(
        {"name": "Cake Box", "unit": "pcs", "price_per_unit": "0.40"}
    )
    return {"flour": flour, "sugar": sugar, "butter": butter, "box": box}


class TestImportSelections:
    def test_skips_existing_names(self, owner, flour, templates):
        result = starter_pack_service.import_selections(
            owner.id, [t.id for t in (templates["flour"], templates["sugar"], templates["butter"])]
        )
        assert result.imported_ingredients == 2
        assert result.skipped_duplicates == 1

        names = sorted(i.name for i in ingredient_service.get_ingredients(owner.id))
        assert names == ["Bread Flour", "Butter", "Sugar"]
        # the user's own flour is untouched
        assert ingredient_service.get_ingredient(flour.id, owner.id).price_per_gram == Decimal("0.0025")

    def test_sets_import_timestamp(self, owner, templates):
        assert owner.starter_pack_imported_at is None
        starter_pack_service.import_selections(owner.id, [templates["sugar"].id])
        assert user_service.get_user(owner.id).starter_pack_imported_at is not None

    def test_copies_cost_fields(self, owner, templates):
        starter_pack_service.import_selections(
            owner.id, [templates["butter"].id], [templates["box"].id]
        )
        butter = ingredient_service.find_ingredient_by_name(owner.id, "butter")
        assert butter.price_per_gram == Decimal("0.0100")
        assert butter.user_id == owner.id
        box = material_service.find_material_by_name(owner.id, "cake box")
        assert box.price_per_unit == Decimal("0.40")

    def test_same_template_twice_in_one_call(self, owner, templates):
        result = starter_pack_service.import_selections(
            owner.id, [templates["sugar"].id, templates["sugar"].id]
        )
        assert result.imported_ingredients == 1
        assert result.skipped_duplicates == 1

    def test_unknown_ids_ignored(self, owner, templates):
        result = starter_pack_service.import_selections(owner.id, [9999], [8888])
        assert result.to_dict() == {
            "imported_ingredients": 0,
            "imported_materials": 0,
            "skipped_duplicates": 0,
        }

    def test_unknown_user(self, templates):
        with pytest.raises(UserNotFound):
            starter_pack_service.import_selections(4242, [templates["sugar"].id])

    def test_failed_import_leaves_no_rows(self, owner, templates, monkeypatch):
        import_templates = starter_pack_service._import_templates
        calls = []

        def fail_on_second(*args, **kwargs):
            calls.append(1)
            if len(calls) == 2:
                raise OperationalError("INSERT", {}, Exception("disk I/O error"))
            return import_templates(*args, **kwargs)

        monkeypatch.setattr(starter_pack_service, "_import_templates", fail_on_second)

        with pytest.raises(DatabaseError):
            starter_pack_service.import_selections(
                owner.id, [templates["sugar"].id], [templates["box"].id]
            )

        assert ingredient_service.get_ingredients(owner.id) == []
        assert material_service.get_materials(owner.id) == []
        assert user_service.get_user(owner.id).starter_pack_imported_at is None


class TestTemplateAdministration:
    def test_price_derived(self, templates):
        assert templates["flour"].price_per_gram == Decimal("0.0020")

    def test_listed_by_name(self, templates):
        names = [t.name for t in starter_pack_service.get_starter_ingredients()]
        assert names == ["Bread Flour", "Butter", "Sugar"]
        assert [t.name for t in starter_pack_service.get_starter_materials()] == ["Cake Box"]

    def test_duplicate_template_blocked(self, templates):
        with pytest.raises(DuplicateNameError):
            starter_pack_service.create_starter_ingredient(
                {"name": "SUGAR", "quantity": "1", "purchase_amount": "1"}
            )

    def test_supplier_dropped(self, test_db):
        template = starter_pack_service.create_starter_material(
            {"name": "Ribbon", "price_per_unit": "0.1", "supplier_id": "3"}
        )
        assert not hasattr(template, "supplier_id")

    def test_update_recomputes_price(self, templates):
        updated = starter_pack_service.update_starter_item(
            "ingredient", templates["sugar"].id, {"purchase_amount": "3.00"}
        )
        assert updated.price_per_gram == Decimal("0.0030")

    def test_update_material_price(self, templates):
        updated = starter_pack_service.update_starter_item(
            "material", templates["box"].id, {"price_per_unit": "0.55"}
        )
        assert updated.price_per_unit == Decimal("0.55")

    def test_delete(self, templates):
        assert starter_pack_service.delete_starter_item("material", templates["box"].id)
        with pytest.raises(StarterItemNotFound):
            starter_pack_service.delete_starter_item("material", templates["box"].id)


class TestLoadStarterPack:
    def test_bulk_load(self, templates):
        counts = starter_pack_service.load_starter_pack(
            {
                "ingredients": [
                    {"name": "Cocoa", "quantity": "250", "purchase_amount": "4"},
                    {"name": "sugar", "quantity": "1000", "purchase_amount": "1"},
                ],
                "materials": [{"name": "Liner", "quantity": "100", "purchase_amount": "3"}],
            }
        )
        assert counts == {"ingredients": 1, "materials": 1, "skipped": 1}

    def test_invalid_entry_rejected(self, test_db):
        with pytest.raises(ValidationError):
            starter_pack_service.load_starter_pack({"ingredients": [{"name": "Cocoa"}]})
        assert starter_pack_service.get_starter_ingredients() == []

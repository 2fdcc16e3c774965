"""Tests for session management and the shared model behavior."""

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError

import kitchen_costing.services.database as db_module
from kitchen_costing.models import Ingredient, IngredientCategory, Supplier
from kitchen_costing.services import supplier_service


class TestSessionScope:
    def test_commits_on_success(self, owner):
        with db_module.session_scope() as session:
            session.add(Supplier(user_id=owner.id, name="Mill Co"))
        assert [s.name for s in supplier_service.get_suppliers(owner.id)] == ["Mill Co"]

    def test_rolls_back_on_error(self, owner):
        with pytest.raises(RuntimeError):
            with db_module.session_scope() as session:
                session.add(Supplier(user_id=owner.id, name="Mill Co"))
                session.flush()
                raise RuntimeError("boom")
        assert supplier_service.get_suppliers(owner.id) == []


class TestIngredientConstraints:
    @pytest.mark.parametrize(
        "pieces, weight",
        [(None, Decimal("50")), (Decimal("30"), None), (Decimal("0"), Decimal("50"))],
    )
    def test_count_based_ingredient_needs_pieces_and_weight(self, owner, pieces, weight):
        with pytest.raises(IntegrityError):
            with db_module.session_scope() as session:
                session.add(
                    Ingredient(
                        user_id=owner.id,
                        name="Eggs",
                        is_count_based=True,
                        pieces_per_purchase_unit=pieces,
                        weight_per_piece=weight,
                    )
                )


class TestVerifyDatabase:
    def test_initialized_database(self, test_db, monkeypatch):
        engine = db_module.create_database_engine("sqlite:///:memory:")
        db_module.init_database(engine)
        monkeypatch.setattr(db_module, "get_engine", lambda force_recreate=False: engine)
        assert db_module.verify_database() is True
        engine.dispose()

    def test_empty_database(self, monkeypatch):
        engine = create_engine("sqlite:///:memory:")
        monkeypatch.setattr(db_module, "get_engine", lambda force_recreate=False: engine)
        assert db_module.verify_database() is False
        engine.dispose()

    def test_reset_requires_confirmation(self):
        with pytest.raises(ValueError):
            db_module.reset_database()


class TestBaseModel:
    def test_identity_columns_populated(self, flour):
        assert flour.id is not None
        assert len(flour.uuid) == 36
        assert flour.created_at is not None

    def test_to_dict_is_json_friendly(self, flour):
        data = flour.to_dict()
        assert data["name"] == "Bread Flour"
        assert Decimal(data["price_per_gram"]) == Decimal("0.0025")
        assert isinstance(data["created_at"], str)

    def test_update_from_dict_skips_protected_columns(self, owner):
        ingredient = Ingredient(id=5, user_id=owner.id, name="Salt")
        ingredient.update_from_dict({"id": 9, "user_id": 99, "name": "Sea Salt", "unknown": 1})
        assert ingredient.id == 5
        assert ingredient.user_id == owner.id
        assert ingredient.name == "Sea Salt"

    def test_repr(self):
        assert repr(IngredientCategory(id=3, name="Dairy")) == "IngredientCategory(id=3, name='Dairy')"

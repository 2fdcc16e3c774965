"""Tests for recipe CRUD, line replacement and recipe detail."""

from decimal import Decimal

import pytest

from kitchen_costing.models import Order, RecipeIngredient
from kitchen_costing.services import order_service, recipe_service
from kitchen_costing.services.database import session_scope
from kitchen_costing.services.exceptions import (
    IngredientNotFound,
    MaterialNotFound,
    RecipeNotFound,
    ValidationError,
)


class TestCreateRecipe:
    def test_lines_created_in_order(self, bread_recipe, flour, butter):
        assert [row.ingredient_id for row in bread_recipe.recipe_ingredients] == [flour.id, butter.id]
        assert [row.display_order for row in bread_recipe.recipe_ingredients] == [0, 1]
        assert bread_recipe.recipe_ingredients[0].component_name == "Main"
        assert len(bread_recipe.recipe_materials) == 1

    def test_returned_lines_follow_display_order(self, owner, flour, butter):
        recipe = recipe_service.create_recipe(
            owner.id,
            {"name": "Shortbread"},
            ingredients=[
                {"ingredient_id": flour.id, "quantity": "300", "order": 2},
                {"ingredient_id": butter.id, "quantity": "200", "order": 1},
            ],
        )
        returned = [row.ingredient_id for row in recipe.recipe_ingredients]
        assert returned == [butter.id, flour.id]
        reloaded = recipe_service.get_recipe(recipe.id, owner.id)
        assert [row.ingredient_id for row in reloaded.recipe_ingredients] == returned

    def test_defaults(self, owner):
        recipe = recipe_service.create_recipe(owner.id, {"name": "Plain"})
        assert recipe.servings == 1
        assert recipe.is_free_recipe is False
        assert recipe.access_type == "all"

    def test_foreign_ingredient_rejected(self, other_user, flour):
        with pytest.raises(IngredientNotFound):
            recipe_service.create_recipe(
                other_user.id,
                {"name": "Stolen"},
                ingredients=[{"ingredient_id": flour.id, "quantity": "100"}],
            )
        assert recipe_service.get_recipes(other_user.id) == []

    def test_foreign_material_rejected(self, other_user, box):
        with pytest.raises(MaterialNotFound):
            recipe_service.create_recipe(
                other_user.id,
                {"name": "Stolen"},
                materials=[{"material_id": box.id, "quantity": "1"}],
            )

    def test_name_required(self, owner):
        with pytest.raises(ValidationError):
            recipe_service.create_recipe(owner.id, {"name": " "})


class TestUpdateRecipe:
    def test_replaces_lines_wholesale(self, owner, bread_recipe, butter, eggs):
        updated = recipe_service.update_recipe(
            bread_recipe.id,
            owner.id,
            {"name": "Egg Bread"},
            ingredients=[
                {"ingredient_id": eggs.id, "quantity": "2", "unit": "pcs", "component_name": "Wash"},
                {"ingredient_id": butter.id, "quantity": "50", "order": 5},
            ],
        )
        assert updated.name == "Egg Bread"
        assert [row.ingredient_id for row in updated.recipe_ingredients] == [eggs.id, butter.id]
        assert updated.recipe_ingredients[0].unit == "pcs"
        assert updated.recipe_ingredients[0].component_name == "Wash"
        assert updated.recipe_ingredients[1].display_order == 5
        # materials untouched
        assert len(updated.recipe_materials) == 1

        with session_scope() as session:
            count = (
                session.query(RecipeIngredient)
                .filter(RecipeIngredient.recipe_id == bread_recipe.id)
                .count()
            )
        assert count == 2

    def test_empty_list_clears(self, owner, bread_recipe):
        updated = recipe_service.update_recipe(bread_recipe.id, owner.id, {}, materials=[])
        assert updated.recipe_materials == []
        assert len(updated.recipe_ingredients) == 2

    def test_failed_replace_keeps_old_lines(self, owner, bread_recipe):
        with pytest.raises(IngredientNotFound):
            recipe_service.update_recipe(
                bread_recipe.id,
                owner.id,
                {},
                ingredients=[{"ingredient_id": 9999, "quantity": "1"}],
            )
        assert len(recipe_service.get_recipe(bread_recipe.id, owner.id).recipe_ingredients) == 2

    def test_other_tenant(self, other_user, bread_recipe):
        with pytest.raises(RecipeNotFound):
            recipe_service.update_recipe(bread_recipe.id, other_user.id, {"name": "Mine"})


class TestDeleteRecipe:
    def test_deletes_lines_and_orders(self, owner, bread_recipe):
        order_service.create_order(owner.id, bread_recipe.id, 2, "5.00")

        assert recipe_service.delete_recipe(bread_recipe.id, owner.id) is True

        with session_scope() as session:
            assert session.query(RecipeIngredient).count() == 0
            assert session.query(Order).count() == 0
        with pytest.raises(RecipeNotFound):
            recipe_service.get_recipe(bread_recipe.id, owner.id)

    def test_other_tenant(self, other_user, bread_recipe):
        with pytest.raises(RecipeNotFound):
            recipe_service.delete_recipe(bread_recipe.id, other_user.id)


class TestRecipeDetail:
    def test_cost_and_pricing(self, owner, bread_recipe):
        detail = recipe_service.get_recipe_detail(bread_recipe.id, owner.id)
        assert detail.cost.total_cost == Decimal("6.45")
        assert detail.pricing.cost_per_unit == Decimal("0.645")
        assert detail.pricing.price_by_margin == Decimal("1.29")
        # ingredients 2.45 over 10 units at 30% food cost
        assert detail.pricing.price_by_food_cost.quantize(Decimal("0.0001")) == Decimal("0.8167")

    def test_to_dict(self, owner, bread_recipe):
        data = recipe_service.get_recipe_detail(bread_recipe.id, owner.id).to_dict()
        assert data["name"] == "Butter Bread"
        assert [line["name"] for line in data["ingredients"]] == ["Bread Flour", "Butter"]
        assert data["materials"][0]["name"] == "Cake Box"
        assert data["cost"]["skipped_lines"] == 0
        assert "price_by_margin" in data["pricing"]

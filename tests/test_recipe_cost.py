"""Tests for recipe cost aggregation (pure roll-up and stored recipes)."""

from decimal import Decimal

import pytest

from kitchen_costing.services.exceptions import RecipeNotFound
from kitchen_costing.services.recipe_cost_service import (
    IngredientLine,
    MaterialLine,
    aggregate,
    calculate_recipe_cost,
)


class TestAggregate:
    """aggregate() never raises on a half-entered recipe."""

    def test_basic_rollup(self):
        breakdown = aggregate(
            [IngredientLine(Decimal("0.0025"), Decimal("500"))],
            [MaterialLine(Decimal("0.50"), Decimal("2"))],
            labor_cost=Decimal("3"),
            batch_yield=10,
        )
        assert breakdown.ingredients_cost == Decimal("1.25")
        assert breakdown.materials_cost == Decimal("1.00")
        assert breakdown.total_cost == Decimal("5.25")
        assert breakdown.cost_per_unit == Decimal("0.525")
        assert breakdown.skipped_lines == 0

    def test_accepts_dict_lines(self):
        breakdown = aggregate(
            [{"price_per_gram": "0.01", "quantity": "100"}],
            [{"price_per_unit": "2", "quantity": "1"}],
        )
        assert breakdown.total_cost == Decimal("3")

    def test_unresolved_ingredient_contributes_nothing(self):
        breakdown = aggregate(
            [
                IngredientLine(Decimal("0.0025"), Decimal("400")),
                IngredientLine(None, Decimal("200")),
            ],
            [],
        )
        assert breakdown.ingredients_cost == Decimal("1.0")
        assert breakdown.skipped_lines == 1

    @pytest.mark.parametrize("quantity", ["", "abc", float("nan"), None])
    def test_invalid_quantity_skipped(self, quantity):
        breakdown = aggregate([IngredientLine(Decimal("0.01"), quantity)], [])
        assert breakdown.total_cost == Decimal("0")
        assert breakdown.skipped_lines == 1

    @pytest.mark.parametrize("batch_yield", [None, 0, -3, "abc"])
    def test_batch_yield_below_one_counts_as_one(self, batch_yield):
        breakdown = aggregate([], [MaterialLine(Decimal("4"), Decimal("1"))], batch_yield=batch_yield)
        assert breakdown.cost_per_unit == breakdown.total_cost == Decimal("4")

    def test_invalid_labor_counts_as_zero(self):
        breakdown = aggregate([], [], labor_cost="n/a")
        assert breakdown.labor_cost == Decimal("0")
        assert breakdown.total_cost == Decimal("0")

    def test_to_dict_uses_strings(self):
        data = aggregate([], [], labor_cost=Decimal("2")).to_dict()
        assert data["labor_cost"] == "2"
        assert data["skipped_lines"] == 0


class TestCalculateRecipeCost:
    def test_stored_recipe(self, bread_recipe, owner):
        breakdown = calculate_recipe_cost(bread_recipe.id, owner.id)
        # 500 g x 0.0025 + 100 g x 0.012
        assert breakdown.ingredients_cost == Decimal("2.45")
        assert breakdown.materials_cost == Decimal("1.00")
        assert breakdown.total_cost == Decimal("6.45")
        assert breakdown.cost_per_unit == Decimal("0.645")

    def test_pieces_line_costed_by_weight(self, owner, eggs):
        from kitchen_costing.services import recipe_service

        recipe = recipe_service.create_recipe(
            owner.id,
            {"name": "Omelette"},
            ingredients=[{"ingredient_id": eggs.id, "quantity": "3", "unit": "pcs"}],
        )
        # 3 eggs x 50 g x 0.0060
        assert calculate_recipe_cost(recipe.id).ingredients_cost == Decimal("0.90")

    def test_other_tenant_cannot_cost(self, bread_recipe, other_user):
        with pytest.raises(RecipeNotFound):
            calculate_recipe_cost(bread_recipe.id, other_user.id)

    def test_missing_recipe(self, test_db):
        with pytest.raises(RecipeNotFound):
            calculate_recipe_cost(9999)

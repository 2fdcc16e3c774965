"""Tests for orders and analytics."""

from decimal import Decimal

import pytest

from kitchen_costing.services import ingredient_service, order_service, recipe_service
from kitchen_costing.services.exceptions import RecipeNotFound, ValidationError


class TestCreateOrder:
    def test_cost_captured_from_recipe(self, owner, bread_recipe):
        order = order_service.create_order(owner.id, bread_recipe.id, 4, "12.00")
        # 6.45 per batch of 10 -> 0.645 per unit x 4
        assert order.total_cost == Decimal("2.58")
        assert order.total_revenue == Decimal("12.00")
        assert order.quantity == 4

    def test_cost_not_rewritten_by_price_change(self, owner, bread_recipe, flour):
        order = order_service.create_order(owner.id, bread_recipe.id, 10, "20")
        ingredient_service.update_ingredient(flour.id, owner.id, {"purchase_amount": "10"})
        stored = order_service.get_orders(owner.id)[0]
        assert stored.id == order.id
        assert stored.total_cost == Decimal("6.45")

    @pytest.mark.parametrize("quantity, revenue", [(0, "1"), ("two", "1"), (1, "-1"), (1, "abc")])
    def test_invalid_input(self, owner, bread_recipe, quantity, revenue):
        with pytest.raises(ValidationError):
            order_service.create_order(owner.id, bread_recipe.id, quantity, revenue)

    def test_other_tenant_recipe(self, other_user, bread_recipe):
        with pytest.raises(RecipeNotFound):
            order_service.create_order(other_user.id, bread_recipe.id, 1, "1")


class TestOrders:
    def test_filter_by_recipe_and_delete(self, owner, bread_recipe):
        plain = recipe_service.create_recipe(owner.id, {"name": "Plain"})
        first = order_service.create_order(owner.id, bread_recipe.id, 1, "2")
        order_service.create_order(owner.id, plain.id, 1, "1")

        assert [o.id for o in order_service.get_orders(owner.id, recipe_id=bread_recipe.id)] == [first.id]
        assert order_service.delete_order(first.id, owner.id) is True
        assert order_service.delete_order(first.id, owner.id) is False
        assert len(order_service.get_orders(owner.id)) == 1

    def test_other_tenant_cannot_delete(self, owner, other_user, bread_recipe):
        order = order_service.create_order(owner.id, bread_recipe.id, 1, "2")
        assert order_service.delete_order(order.id, other_user.id) is False


class TestAnalytics:
    def test_overview(self, owner, bread_recipe):
        order_service.create_order(owner.id, bread_recipe.id, 10, "20.00")
        order_service.create_order(owner.id, bread_recipe.id, 10, "12.90")

        overview = order_service.get_analytics_overview(owner.id)
        assert overview.total_recipes == 1
        assert overview.total_orders == 2
        assert overview.total_ingredients == 2
        assert overview.total_revenue == Decimal("32.90")
        assert overview.total_cost == Decimal("12.90")
        assert overview.total_profit == Decimal("20.00")
        assert overview.profit_margin == Decimal("60.8")

    def test_overview_without_orders(self, owner):
        overview = order_service.get_analytics_overview(owner.id)
        assert overview.total_orders == 0
        assert overview.profit_margin == Decimal("0")
        assert overview.to_dict()["total_revenue"] == "0"

    def test_recipe_performance_sorted_by_revenue(self, owner, bread_recipe):
        plain = recipe_service.create_recipe(owner.id, {"name": "Plain"})
        order_service.create_order(owner.id, bread_recipe.id, 2, "5")
        order_service.create_order(owner.id, plain.id, 3, "9")
        order_service.create_order(owner.id, plain.id, 1, "3")

        performance = order_service.get_recipe_performance(owner.id)
        assert [p.recipe_name for p in performance] == ["Plain", "Butter Bread"]
        assert performance[0].order_count == 2
        assert performance[0].units_sold == 4
        assert performance[0].revenue == Decimal("12")
        assert performance[0].profit == Decimal("12")
        assert performance[1].cost == Decimal("1.29")

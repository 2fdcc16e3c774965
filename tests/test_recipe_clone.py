"""Tests for cloning recipes into another tenant."""

from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from kitchen_costing.services import (
    ingredient_service,
    material_service,
    recipe_clone_service,
    recipe_service,
    supplier_service,
)
from kitchen_costing.services.exceptions import DatabaseError, RecipeNotFound, UserNotFound


@pytest.fixture
def shared_bread(owner, bread_recipe):
    return recipe_service.update_recipe(
        bread_recipe.id,
        owner.id,
        {"is_free_recipe": True, "access_type": "by-plan", "allowed_plans": "Pro"},
    )


def test_reuses_matching_ingredient_and_creates_missing(shared_bread, other_user):
    own_flour = ingredient_service.create_ingredient(
        other_user.id, {"name": "bread flour", "quantity": "1000", "purchase_amount": "4.00"}
    )

    clone = recipe_clone_service.clone_recipe(shared_bread.id, other_user.id)

    ingredients = ingredient_service.get_ingredients(other_user.id)
    assert sorted(i.name for i in ingredients) == ["Butter", "bread flour"]
    lines = {row.ingredient.name: row for row in clone.recipe_ingredients}
    # the target's own flour keeps its own price
    assert lines["bread flour"].ingredient_id == own_flour.id
    assert lines["bread flour"].ingredient.price_per_gram == Decimal("0.0040")
    assert lines["Butter"].ingredient.user_id == other_user.id
    assert lines["Butter"].quantity == Decimal("100")


def test_copy_is_private_and_owned(shared_bread, other_user):
    clone = recipe_clone_service.clone_recipe(shared_bread.id, other_user.id)

    assert clone.id != shared_bread.id
    assert clone.user_id == other_user.id
    assert clone.name == shared_bread.name
    assert clone.batch_yield == 10
    assert clone.is_free_recipe is False
    assert clone.access_type == "all"
    assert clone.allowed_plans is None


def test_lines_keep_unit_component_and_order(owner, other_user, flour, eggs):
    source = recipe_service.create_recipe(
        owner.id,
        {"name": "Brioche"},
        ingredients=[
            {"ingredient_id": flour.id, "quantity": "500", "component_name": "Dough", "order": 1},
            {"ingredient_id": eggs.id, "quantity": "4", "unit": "pcs", "component_name": "Dough", "order": 2},
        ],
    )
    clone = recipe_clone_service.clone_recipe(source.id, other_user.id)

    rows = clone.recipe_ingredients
    assert [(r.unit, r.component_name, r.display_order) for r in rows] == [
        ("g", "Dough", 1),
        ("pcs", "Dough", 2),
    ]
    assert rows[1].ingredient.is_count_based is True
    assert rows[1].ingredient.weight_per_piece == Decimal("50")


def test_materials_reused_or_created(shared_bread, other_user):
    own_box = material_service.create_material(
        other_user.id, {"name": "CAKE BOX", "price_per_unit": "0.75"}
    )
    clone = recipe_clone_service.clone_recipe(shared_bread.id, other_user.id)

    assert [row.material_id for row in clone.recipe_materials] == [own_box.id]
    assert len(material_service.get_materials(other_user.id)) == 1


def test_supplier_not_carried_over(owner, other_user):
    supplier = supplier_service.create_supplier(owner.id, {"name": "Mill Co"})
    rye = ingredient_service.create_ingredient(
        owner.id,
        {"name": "Rye", "quantity": "1000", "purchase_amount": "2", "supplier_id": supplier.id},
    )
    source = recipe_service.create_recipe(
        owner.id, {"name": "Rye Loaf"}, ingredients=[{"ingredient_id": rye.id, "quantity": "300"}]
    )
    clone = recipe_clone_service.clone_recipe(source.id, other_user.id)

    assert clone.recipe_ingredients[0].ingredient.supplier_id is None


def test_clone_costs_with_target_prices(shared_bread, other_user, owner):
    ingredient_service.create_ingredient(
        other_user.id, {"name": "Bread Flour", "quantity": "1000", "purchase_amount": "5.00"}
    )
    clone = recipe_clone_service.clone_recipe(shared_bread.id, other_user.id)

    source_cost = recipe_service.get_recipe_detail(shared_bread.id, owner.id).cost
    clone_cost = recipe_service.get_recipe_detail(clone.id, other_user.id).cost
    # flour 500 g at 0.0050 instead of 0.0025
    assert clone_cost.ingredients_cost - source_cost.ingredients_cost == Decimal("1.25")


def test_missing_source(other_user):
    with pytest.raises(RecipeNotFound):
        recipe_clone_service.clone_recipe(4242, other_user.id)


def test_missing_target(bread_recipe):
    with pytest.raises(UserNotFound):
        recipe_clone_service.clone_recipe(bread_recipe.id, 4242)


def test_failed_clone_leaves_no_rows(shared_bread, other_user, monkeypatch):
    resolve = recipe_clone_service._resolve_ingredient
    calls = []

    def fail_on_second(*args, **kwargs):
        calls.append(1)
        if len(calls) == 2:
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))
        return resolve(*args, **kwargs)

    monkeypatch.setattr(recipe_clone_service, "_resolve_ingredient", fail_on_second)

    with pytest.raises(DatabaseError):
        recipe_clone_service.clone_recipe(shared_bread.id, other_user.id)

    assert recipe_service.get_recipes(other_user.id) == []
    assert ingredient_service.get_ingredients(other_user.id) == []
    assert material_service.get_materials(other_user.id) == []

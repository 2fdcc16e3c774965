"""
Recipe cost aggregation.

This module provides:
- aggregate(): pure batch-cost roll-up over ingredient and material lines
- calculate_recipe_cost(): loads a recipe and aggregates its stored lines

aggregate() is called for every edit of a recipe form, so it never raises
on a half-entered line: a line whose price is unresolved (the referenced
ingredient is gone) or whose quantity/price is not a finite number simply
contributes nothing.
"""

import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kitchen_costing.models import Recipe
from kitchen_costing.services.database import session_scope
from kitchen_costing.services.exceptions import DatabaseError, RecipeNotFound
from kitchen_costing.services.unit_converter import quantity_in_grams

_ZERO = Decimal("0")


@dataclass(frozen=True)
class IngredientLine:
    """Costing view of one recipe ingredient line.

    Attributes:
        price_per_gram: Canonical price, or None if the ingredient is unresolved
        quantity: Grams used (already converted from pieces)
    """

    price_per_gram: Any
    quantity: Any


@dataclass(frozen=True)
class MaterialLine:
    """Costing view of one recipe material line."""

    price_per_unit: Any
    quantity: Any


@dataclass(frozen=True)
class RecipeCostBreakdown:
    """Result of aggregate().

    Attributes:
        ingredients_cost: Sum of price_per_gram x grams over valid lines
        materials_cost: Sum of price_per_unit x quantity over valid lines
        labor_cost: Labor cost per batch
        total_cost: ingredients + materials + labor
        cost_per_unit: total_cost / max(batch_yield, 1)
        skipped_lines: Number of lines left out as unresolvable
    """

    ingredients_cost: Decimal
    materials_cost: Decimal
    labor_cost: Decimal
    total_cost: Decimal
    cost_per_unit: Decimal
    skipped_lines: int = 0

    def to_dict(self) -> dict:
        return {
            "ingredients_cost": str(self.ingredients_cost),
            "materials_cost": str(self.materials_cost),
            "labor_cost": str(self.labor_cost),
            "total_cost": str(self.total_cost),
            "cost_per_unit": str(self.cost_per_unit),
            "skipped_lines": self.skipped_lines,
        }


def _finite_decimal(value: Any) -> Optional[Decimal]:
    """Return value as a finite Decimal, or None if it is not one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return Decimal(str(value))
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def _line_field(line: Any, name: str) -> Any:
    if isinstance(line, dict):
        return line.get(name)
    return getattr(line, name, None)


def _sum_lines(lines: Iterable[Any], price_field: str) -> Tuple[Decimal, int]:
    total = _ZERO
    skipped = 0
    for line in lines:
        price = _finite_decimal(_line_field(line, price_field))
        quantity = _finite_decimal(_line_field(line, "quantity"))
        if price is None or quantity is None:
            skipped += 1
            continue
        total += price * quantity
    return total, skipped


def aggregate(
    ingredient_lines: Iterable[Any],
    material_lines: Iterable[Any],
    labor_cost: Any = None,
    batch_yield: Any = None,
) -> RecipeCostBreakdown:
    """Roll ingredient, material and labor costs up into a batch cost.

    Transaction boundary: Pure computation (no database access).

    Lines may be IngredientLine/MaterialLine instances or dicts with the
    same keys. A missing or invalid labor cost counts as zero; a batch yield
    that is missing, zero or negative counts as one.

    Args:
        ingredient_lines: Lines with price_per_gram and quantity (grams)
        material_lines: Lines with price_per_unit and quantity
        labor_cost: Labor cost per batch
        batch_yield: Units produced per batch

    Returns:
        RecipeCostBreakdown

    Examples:
        >>> breakdown = aggregate(
        ...     [IngredientLine(Decimal("0.0025"), Decimal("500"))],
        ...     [MaterialLine(Decimal("0.50"), Decimal("2"))],
        ...     labor_cost=Decimal("3"),
        ...     batch_yield=10,
        ... )
        >>> breakdown.total_cost, breakdown.cost_per_unit
        (Decimal('5.2500'), Decimal('0.5250'))
    """
    ingredients_cost, skipped_ingredients = _sum_lines(ingredient_lines, "price_per_gram")
    materials_cost, skipped_materials = _sum_lines(material_lines, "price_per_unit")

    labor = _finite_decimal(labor_cost)
    if labor is None:
        labor = _ZERO

    total_cost = ingredients_cost + materials_cost + labor

    yield_value = _finite_decimal(batch_yield)
    divisor = yield_value if yield_value is not None and yield_value >= 1 else Decimal("1")

    return RecipeCostBreakdown(
        ingredients_cost=ingredients_cost,
        materials_cost=materials_cost,
        labor_cost=labor,
        total_cost=total_cost,
        cost_per_unit=total_cost / divisor,
        skipped_lines=skipped_ingredients + skipped_materials,
    )


def recipe_ingredient_lines(recipe: Recipe) -> List[IngredientLine]:
    """Build costing lines from a loaded recipe's ingredient rows."""
    lines = []
    for row in recipe.recipe_ingredients:
        ingredient = row.ingredient
        if ingredient is None:
            lines.append(IngredientLine(price_per_gram=None, quantity=row.quantity))
            continue
        grams = quantity_in_grams(
            row.quantity,
            row.unit,
            is_count_based=bool(ingredient.is_count_based),
            weight_per_piece=ingredient.weight_per_piece,
        )
        lines.append(IngredientLine(price_per_gram=ingredient.price_per_gram, quantity=grams))
    return lines


def recipe_material_lines(recipe: Recipe) -> List[MaterialLine]:
    """Build costing lines from a loaded recipe's material rows."""
    return [
        MaterialLine(
            price_per_unit=row.material.price_per_unit if row.material is not None else None,
            quantity=row.quantity,
        )
        for row in recipe.recipe_materials
    ]


def cost_recipe(recipe: Recipe) -> RecipeCostBreakdown:
    """Aggregate a loaded recipe (its lines must be loadable)."""
    return aggregate(
        recipe_ingredient_lines(recipe),
        recipe_material_lines(recipe),
        labor_cost=recipe.labor_cost,
        batch_yield=recipe.batch_yield,
    )


def calculate_recipe_cost(
    recipe_id: int,
    user_id: Optional[int] = None,
    session: Optional[Session] = None,
) -> RecipeCostBreakdown:
    """
    Load a recipe and compute its cost breakdown.

    Args:
        recipe_id: Recipe ID
        user_id: If given, the recipe must belong to this tenant
        session: Optional database session

    Returns:
        RecipeCostBreakdown

    Raises:
        RecipeNotFound: If the recipe doesn't exist (or isn't the user's)
        DatabaseError: If the database operation fails
    """
    if session is not None:
        return _calculate_recipe_cost_impl(recipe_id, user_id, session)
    try:
        with session_scope() as session:
            return _calculate_recipe_cost_impl(recipe_id, user_id, session)
    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to calculate cost for recipe {recipe_id}", original_error=e)


def _calculate_recipe_cost_impl(
    recipe_id: int, user_id: Optional[int], session: Session
) -> RecipeCostBreakdown:
    query = session.query(Recipe).filter(Recipe.id == recipe_id)
    if user_id is not None:
        query = query.filter(Recipe.user_id == user_id)
    recipe = query.first()
    if recipe is None:
        raise RecipeNotFound(recipe_id)
    return cost_recipe(recipe)

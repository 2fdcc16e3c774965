"""
Recipe Service - tenant-scoped recipe CRUD with costing.

This module provides:
- Recipe create/read/update/delete for one user
- Wholesale replacement of ingredient and material lines on update
- Recipe detail: the recipe plus its cost breakdown and pricing summary

Every ingredient or material a recipe line references must belong to the
recipe's owner; a line naming someone else's row fails as not found.
Returned recipes have their lines (and the lines' ingredients/materials)
loaded, so they can be read after the session closes.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kitchen_costing.models import Recipe, RecipeIngredient, RecipeMaterial
from kitchen_costing.services.database import session_scope
from kitchen_costing.services.exceptions import (
    DatabaseError,
    IngredientNotFound,
    MaterialNotFound,
    RecipeNotFound,
    ValidationError,
)
from kitchen_costing.services.ingredient_service import get_ingredient_for_user
from kitchen_costing.services.logging_utils import get_service_logger, log_operation
from kitchen_costing.services.material_service import get_material_for_user
from kitchen_costing.services.pricing_service import PricingSummary, build_pricing_summary
from kitchen_costing.services.recipe_cost_service import RecipeCostBreakdown, cost_recipe
from kitchen_costing.utils.validators import parse_recipe_data, parse_recipe_lines

logger = get_service_logger(__name__)

_PASSTHROUGH_ERRORS = (RecipeNotFound, IngredientNotFound, MaterialNotFound, ValidationError)


@dataclass
class RecipeDetail:
    """A recipe with its costing.

    Attributes:
        recipe: Recipe with lines loaded
        cost: Batch cost breakdown
        pricing: Pricing panel per unit of yield
    """

    recipe: Recipe
    cost: RecipeCostBreakdown
    pricing: PricingSummary

    def to_dict(self) -> Dict[str, Any]:
        result = self.recipe.to_dict()
        result["ingredients"] = [
            {
                "ingredient_id": row.ingredient_id,
                "name": row.ingredient.name if row.ingredient is not None else None,
                "quantity": str(row.quantity),
                "unit": row.unit,
                "component_name": row.component_name,
                "order": row.display_order,
            }
            for row in self.recipe.recipe_ingredients
        ]
        result["materials"] = [
            {
                "material_id": row.material_id,
                "name": row.material.name if row.material is not None else None,
                "quantity": str(row.quantity),
            }
            for row in self.recipe.recipe_materials
        ]
        result["cost"] = self.cost.to_dict()
        result["pricing"] = self.pricing.to_dict()
        return result


def load_recipe_lines(recipe: Recipe) -> Recipe:
    """Load a recipe's lines and their referenced rows while attached."""
    for row in recipe.recipe_ingredients:
        _ = row.ingredient
    for row in recipe.recipe_materials:
        _ = row.material
    return recipe


def get_recipe_for_user(session: Session, recipe_id: int, user_id: int) -> Recipe:
    """Load a recipe owned by user_id or raise RecipeNotFound."""
    recipe = (
        session.query(Recipe).filter(Recipe.id == recipe_id, Recipe.user_id == user_id).first()
    )
    if recipe is None:
        raise RecipeNotFound(recipe_id)
    return recipe


def _replace_lines(
    session: Session,
    recipe: Recipe,
    ingredient_lines: Optional[List[Dict[str, Any]]],
    material_lines: Optional[List[Dict[str, Any]]],
) -> None:
    """Replace the recipe's lines wholesale; None leaves that set untouched."""
    if ingredient_lines is not None:
        recipe.recipe_ingredients.clear()
        session.flush()
        for line in sorted(ingredient_lines, key=lambda line: line["order"]):
            ingredient = get_ingredient_for_user(session, line["ingredient_id"], recipe.user_id)
            recipe.recipe_ingredients.append(
                RecipeIngredient(
                    ingredient=ingredient,
                    quantity=line["quantity"],
                    unit=line["unit"],
                    component_name=line["component_name"],
                    display_order=line["order"],
                )
            )

    if material_lines is not None:
        recipe.recipe_materials.clear()
        session.flush()
        for line in material_lines:
            material = get_material_for_user(session, line["material_id"], recipe.user_id)
            recipe.recipe_materials.append(
                RecipeMaterial(material=material, quantity=line["quantity"])
            )

    session.flush()


def create_recipe(
    user_id: int,
    data: Dict[str, Any],
    ingredients: Optional[List[Dict[str, Any]]] = None,
    materials: Optional[List[Dict[str, Any]]] = None,
    session: Optional[Session] = None,
) -> Recipe:
    """
    Create a recipe with its ingredient and material lines.

    Args:
        user_id: Owning tenant
        data: Raw recipe fields (name required)
        ingredients: Lines with ingredient_id, quantity and optional unit
            ('g' default, 'pcs' for count-based), component_name ('Main'
            default) and order (list position default)
        materials: Lines with material_id and quantity
        session: Optional database session

    Returns:
        Created Recipe with lines loaded

    Raises:
        ValidationError: If data or lines are invalid
        IngredientNotFound / MaterialNotFound: If a line references a row
            the user doesn't own
    """
    cleaned = parse_recipe_data(data)
    ingredient_lines, material_lines = parse_recipe_lines(ingredients, materials)
    try:
        if session is not None:
            return _create_recipe_impl(user_id, cleaned, ingredient_lines, material_lines, session)
        with session_scope() as session:
            return _create_recipe_impl(user_id, cleaned, ingredient_lines, material_lines, session)
    except _PASSTHROUGH_ERRORS:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create recipe", original_error=e)


def _create_recipe_impl(
    user_id: int,
    cleaned: Dict[str, Any],
    ingredient_lines: List[Dict[str, Any]],
    material_lines: List[Dict[str, Any]],
    session: Session,
) -> Recipe:
    recipe = Recipe(user_id=user_id, **cleaned)
    session.add(recipe)
    session.flush()

    _replace_lines(session, recipe, ingredient_lines, material_lines)
    log_operation(
        logger,
        operation="create_recipe",
        outcome="success",
        recipe_id=recipe.id,
        user_id=user_id,
        ingredient_count=len(ingredient_lines),
        material_count=len(material_lines),
    )
    return load_recipe_lines(recipe)


def get_recipes(user_id: int, session: Optional[Session] = None) -> List[Recipe]:
    """List a user's recipes ordered by name, lines loaded."""
    try:
        if session is not None:
            return _get_recipes_impl(user_id, session)
        with session_scope() as session:
            return _get_recipes_impl(user_id, session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve recipes", original_error=e)


def _get_recipes_impl(user_id: int, session: Session) -> List[Recipe]:
    recipes = (
        session.query(Recipe)
        .filter(Recipe.user_id == user_id)
        .order_by(Recipe.name, Recipe.id)
        .all()
    )
    return [load_recipe_lines(recipe) for recipe in recipes]


def get_recipe(recipe_id: int, user_id: int, session: Optional[Session] = None) -> Recipe:
    """
    Get one of the user's recipes with lines loaded.

    Raises:
        RecipeNotFound: If it doesn't exist for this user
    """
    try:
        if session is not None:
            return load_recipe_lines(get_recipe_for_user(session, recipe_id, user_id))
        with session_scope() as session:
            return load_recipe_lines(get_recipe_for_user(session, recipe_id, user_id))
    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve recipe {recipe_id}", original_error=e)


def update_recipe(
    recipe_id: int,
    user_id: int,
    patch: Dict[str, Any],
    ingredients: Optional[List[Dict[str, Any]]] = None,
    materials: Optional[List[Dict[str, Any]]] = None,
    session: Optional[Session] = None,
) -> Recipe:
    """
    Update a recipe's fields and replace its lines.

    Fields present in patch are updated. When ingredients (or materials) is
    given, the existing set is deleted and the new set inserted in the same
    transaction; None leaves that set as it is, an empty list clears it.

    Raises:
        RecipeNotFound, ValidationError, IngredientNotFound, MaterialNotFound
    """
    cleaned = parse_recipe_data(patch, partial=True)
    ingredient_lines, material_lines = parse_recipe_lines(ingredients, materials)
    try:
        if session is not None:
            return _update_recipe_impl(
                recipe_id,
                user_id,
                cleaned,
                ingredient_lines if ingredients is not None else None,
                material_lines if materials is not None else None,
                session,
            )
        with session_scope() as session:
            return _update_recipe_impl(
                recipe_id,
                user_id,
                cleaned,
                ingredient_lines if ingredients is not None else None,
                material_lines if materials is not None else None,
                session,
            )
    except _PASSTHROUGH_ERRORS:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update recipe {recipe_id}", original_error=e)


def _update_recipe_impl(
    recipe_id: int,
    user_id: int,
    cleaned: Dict[str, Any],
    ingredient_lines: Optional[List[Dict[str, Any]]],
    material_lines: Optional[List[Dict[str, Any]]],
    session: Session,
) -> Recipe:
    recipe = get_recipe_for_user(session, recipe_id, user_id)
    recipe.update_from_dict(cleaned)
    _replace_lines(session, recipe, ingredient_lines, material_lines)
    return load_recipe_lines(recipe)


def delete_recipe(recipe_id: int, user_id: int, session: Optional[Session] = None) -> bool:
    """
    Delete a recipe with its lines and orders.

    Raises:
        RecipeNotFound: If it doesn't exist for this user
    """
    try:
        if session is not None:
            return _delete_recipe_impl(recipe_id, user_id, session)
        with session_scope() as session:
            return _delete_recipe_impl(recipe_id, user_id, session)
    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete recipe {recipe_id}", original_error=e)


def _delete_recipe_impl(recipe_id: int, user_id: int, session: Session) -> bool:
    recipe = get_recipe_for_user(session, recipe_id, user_id)
    session.delete(recipe)
    session.flush()
    return True


def get_recipe_detail(
    recipe_id: int, user_id: int, session: Optional[Session] = None
) -> RecipeDetail:
    """
    Get a recipe with its cost breakdown and pricing summary.

    Raises:
        RecipeNotFound: If it doesn't exist for this user
    """
    try:
        if session is not None:
            return _get_recipe_detail_impl(recipe_id, user_id, session)
        with session_scope() as session:
            return _get_recipe_detail_impl(recipe_id, user_id, session)
    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to get recipe detail for {recipe_id}", original_error=e)


def _get_recipe_detail_impl(recipe_id: int, user_id: int, session: Session) -> RecipeDetail:
    recipe = load_recipe_lines(get_recipe_for_user(session, recipe_id, user_id))
    cost = cost_recipe(recipe)
    pricing = build_pricing_summary(
        cost,
        batch_yield=recipe.batch_yield,
        target_margin=recipe.target_margin,
        target_food_cost=recipe.target_food_cost,
    )
    return RecipeDetail(recipe=recipe, cost=cost, pricing=pricing)

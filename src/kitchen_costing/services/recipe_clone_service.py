"""
Recipe cloning into another user's tenant.

clone_recipe() deep-copies a recipe and its ingredient/material lines into
the target user's data space:

- The new recipe copies every scalar field except identity and ownership;
  sharing flags are reset (private copy, visible, access 'all', no lists).
- Each source ingredient is matched by name (duplicate_service rule)
  against the target user's ingredients. A match is reused as it is, with
  the target user's own price; otherwise a copy is created without
  identity, ownership or supplier. Materials are handled the same way.
- Lines keep quantity, unit, component name and display order.

The whole clone runs in one transaction. Access is NOT checked here;
callers check recipe_access_service.can_view_recipe (or ownership) first.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kitchen_costing.models import (
    Ingredient,
    Material,
    Recipe,
    RecipeIngredient,
    RecipeMaterial,
    User,
)
from kitchen_costing.services.database import session_scope
from kitchen_costing.services.duplicate_service import find_duplicate
from kitchen_costing.services.exceptions import DatabaseError, RecipeNotFound, UserNotFound
from kitchen_costing.services.logging_utils import get_service_logger, log_operation
from kitchen_costing.services.recipe_service import load_recipe_lines
from kitchen_costing.utils.constants import ACCESS_ALL

logger = get_service_logger(__name__)

# Columns never copied from one tenant's row to another's
_IDENTITY_COLUMNS = ("id", "uuid", "user_id", "created_at", "updated_at")

_RESET_SHARING = {
    "is_free_recipe": False,
    "is_visible": True,
    "access_type": ACCESS_ALL,
    "allowed_plans": None,
    "allowed_user_emails": None,
}


def copy_columns(source, exclude=()) -> Dict[str, object]:
    """Column values of an ORM row minus identity/ownership and exclude."""
    skipped = set(_IDENTITY_COLUMNS) | set(exclude)
    return {
        column.name: getattr(source, column.name)
        for column in source.__table__.columns
        if column.name not in skipped
    }


def _resolve_ingredient(
    session: Session,
    source: Ingredient,
    target_user_id: int,
    target_ingredients: List[Ingredient],
) -> Ingredient:
    existing = find_duplicate(source.name, target_ingredients)
    if existing is not None:
        return existing

    copy = Ingredient(user_id=target_user_id, **copy_columns(source, exclude=("supplier_id",)))
    session.add(copy)
    session.flush()
    target_ingredients.append(copy)
    log_operation(
        logger,
        operation="clone_recipe",
        outcome="created_ingredient",
        source_ingredient_id=source.id,
        ingredient_id=copy.id,
        target_user_id=target_user_id,
    )
    return copy


def _resolve_material(
    session: Session,
    source: Material,
    target_user_id: int,
    target_materials: List[Material],
) -> Material:
    existing = find_duplicate(source.name, target_materials)
    if existing is not None:
        return existing

    copy = Material(user_id=target_user_id, **copy_columns(source, exclude=("supplier_id",)))
    session.add(copy)
    session.flush()
    target_materials.append(copy)
    log_operation(
        logger,
        operation="clone_recipe",
        outcome="created_material",
        source_material_id=source.id,
        material_id=copy.id,
        target_user_id=target_user_id,
    )
    return copy


def clone_recipe(
    source_recipe_id: int, target_user_id: int, session: Optional[Session] = None
) -> Recipe:
    """
    Copy a recipe, with its lines, into target_user_id's tenant.

    Args:
        source_recipe_id: Recipe to copy (any owner)
        target_user_id: User who will own the copy
        session: Optional database session

    Returns:
        The new Recipe with lines loaded

    Raises:
        RecipeNotFound: If the source recipe doesn't exist
        UserNotFound: If the target user doesn't exist
        DatabaseError: If the database operation fails (nothing is kept)
    """
    try:
        if session is not None:
            return _clone_recipe_impl(source_recipe_id, target_user_id, session)
        with session_scope() as session:
            return _clone_recipe_impl(source_recipe_id, target_user_id, session)
    except (RecipeNotFound, UserNotFound):
        raise
    except SQLAlchemyError as e:
        log_operation(
            logger,
            operation="clone_recipe",
            outcome="failed",
            level=logging.ERROR,
            source_recipe_id=source_recipe_id,
            target_user_id=target_user_id,
        )
        raise DatabaseError(f"Failed to clone recipe {source_recipe_id}", original_error=e)


def _clone_recipe_impl(source_recipe_id: int, target_user_id: int, session: Session) -> Recipe:
    source = session.query(Recipe).filter(Recipe.id == source_recipe_id).first()
    if source is None:
        raise RecipeNotFound(source_recipe_id)
    if session.get(User, target_user_id) is None:
        raise UserNotFound(target_user_id)

    clone = Recipe(user_id=target_user_id, **copy_columns(source))
    for field, value in _RESET_SHARING.items():
        setattr(clone, field, value)
    session.add(clone)
    session.flush()

    target_ingredients = (
        session.query(Ingredient)
        .filter(Ingredient.user_id == target_user_id)
        .order_by(Ingredient.name, Ingredient.id)
        .all()
    )
    created_ingredients = 0
    reused_ingredients = 0
    for row in source.recipe_ingredients:
        before = len(target_ingredients)
        ingredient = _resolve_ingredient(session, row.ingredient, target_user_id, target_ingredients)
        if len(target_ingredients) > before:
            created_ingredients += 1
        else:
            reused_ingredients += 1
        clone.recipe_ingredients.append(
            RecipeIngredient(
                ingredient=ingredient,
                quantity=row.quantity,
                unit=row.unit,
                component_name=row.component_name,
                display_order=row.display_order,
            )
        )

    target_materials = (
        session.query(Material)
        .filter(Material.user_id == target_user_id)
        .order_by(Material.name, Material.id)
        .all()
    )
    for row in source.recipe_materials:
        material = _resolve_material(session, row.material, target_user_id, target_materials)
        clone.recipe_materials.append(RecipeMaterial(material=material, quantity=row.quantity))

    session.flush()

    log_operation(
        logger,
        operation="clone_recipe",
        outcome="success",
        source_recipe_id=source_recipe_id,
        recipe_id=clone.id,
        target_user_id=target_user_id,
        created_ingredients=created_ingredients,
        reused_ingredients=reused_ingredients,
    )
    return load_recipe_lines(clone)

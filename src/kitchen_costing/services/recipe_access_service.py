"""
Visibility rules for shared (free/template) recipes.

can_view_recipe() is the single decision procedure; both the one-recipe
fetch and the "free recipes visible to me" listing call it per row, so the
two can never disagree.

Decision order:
1. The owner always sees their own recipe.
2. A recipe that is not free, or not visible, is hidden from everyone else.
3. access_type decides:
   - 'admin': admins only
   - 'all': everyone
   - 'by-plan': viewer's plan is in allowed_plans
   - 'selected-users': viewer's email is in allowed_user_emails
   - anything else: hidden
"""

from typing import Any, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from kitchen_costing.models import Recipe, RecipeIngredient, RecipeMaterial
from kitchen_costing.services.database import session_scope
from kitchen_costing.services.dto import Viewer
from kitchen_costing.services.exceptions import DatabaseError, RecipeAccessDenied, RecipeNotFound
from kitchen_costing.services.logging_utils import get_service_logger, log_operation
from kitchen_costing.utils.config import get_config
from kitchen_costing.utils.constants import (
    ACCESS_ADMIN,
    ACCESS_ALL,
    ACCESS_BY_PLAN,
    ACCESS_SELECTED_USERS,
    ROLE_ADMIN,
)
from kitchen_costing.utils.validators import split_list

logger = get_service_logger(__name__)


def can_view_recipe(recipe: Any, viewer: Viewer) -> bool:
    """
    Decide whether viewer may see recipe.

    Transaction boundary: Pure computation (no database access).

    Args:
        recipe: Recipe row (or any object with the recipe's sharing fields)
        viewer: Caller identity

    Returns:
        True if access is granted

    Examples:
        >>> recipe = Recipe(user_id=1, is_free_recipe=True, is_visible=True,
        ...                 access_type="by-plan", allowed_plans="Pro, Premium")
        >>> can_view_recipe(recipe, Viewer(user_id=2, plan_type="Pro"))
        True
        >>> can_view_recipe(recipe, Viewer(user_id=2, plan_type="Hobby"))
        False
    """
    if viewer.user_id is not None and viewer.user_id == recipe.user_id:
        return True

    if not recipe.is_free_recipe or not recipe.is_visible:
        return False

    access_type = recipe.access_type
    if access_type == ACCESS_ADMIN:
        return viewer.role == ROLE_ADMIN
    if access_type == ACCESS_ALL:
        return True
    if access_type == ACCESS_BY_PLAN:
        if not viewer.plan_type:
            return False
        return viewer.plan_type in split_list(recipe.allowed_plans)
    if access_type == ACCESS_SELECTED_USERS:
        if not viewer.email:
            return False
        allowed = [email.lower() for email in split_list(recipe.allowed_user_emails)]
        return viewer.email.strip().lower() in allowed
    return False


def _with_lines(query):
    return query.options(
        selectinload(Recipe.recipe_ingredients).joinedload(RecipeIngredient.ingredient),
        selectinload(Recipe.recipe_materials).joinedload(RecipeMaterial.material),
    )


def get_recipe_for_viewer(
    recipe_id: int,
    viewer: Viewer,
    conceal_denied: Optional[bool] = None,
    session: Optional[Session] = None,
) -> Recipe:
    """
    Fetch one recipe if viewer may see it.

    The returned recipe has its ingredient and material lines loaded.

    Args:
        recipe_id: Recipe ID
        viewer: Caller identity
        conceal_denied: Report a denial as RecipeNotFound; defaults to
            Config.conceal_access_denied
        session: Optional database session

    Raises:
        RecipeNotFound: Recipe doesn't exist (or is denied and concealed)
        RecipeAccessDenied: Recipe exists but viewer may not see it
        DatabaseError: If the database operation fails
    """
    if conceal_denied is None:
        conceal_denied = get_config().conceal_access_denied

    try:
        if session is not None:
            return _get_recipe_for_viewer_impl(recipe_id, viewer, session)
        with session_scope() as session:
            return _get_recipe_for_viewer_impl(recipe_id, viewer, session)
    except RecipeAccessDenied:
        log_operation(
            logger,
            operation="get_recipe_for_viewer",
            outcome="denied",
            recipe_id=recipe_id,
            viewer_id=viewer.user_id,
        )
        if conceal_denied:
            raise RecipeNotFound(recipe_id)
        raise
    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to get recipe {recipe_id}", original_error=e)


def _get_recipe_for_viewer_impl(recipe_id: int, viewer: Viewer, session: Session) -> Recipe:
    recipe = _with_lines(session.query(Recipe)).filter(Recipe.id == recipe_id).first()
    if recipe is None:
        raise RecipeNotFound(recipe_id)
    if not can_view_recipe(recipe, viewer):
        raise RecipeAccessDenied(recipe_id, viewer.user_id)
    return recipe


def get_visible_free_recipes(viewer: Viewer, session: Optional[Session] = None) -> List[Recipe]:
    """
    List the free recipes viewer may see, ordered by name.

    Candidates are every free recipe (including the viewer's own); each one
    is kept only if can_view_recipe() grants it.

    Raises:
        DatabaseError: If the database operation fails
    """
    try:
        if session is not None:
            return _get_visible_free_recipes_impl(viewer, session)
        with session_scope() as session:
            return _get_visible_free_recipes_impl(viewer, session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to list free recipes", original_error=e)


def _get_visible_free_recipes_impl(viewer: Viewer, session: Session) -> List[Recipe]:
    candidates = (
        _with_lines(session.query(Recipe))
        .filter(Recipe.is_free_recipe.is_(True))
        .order_by(Recipe.name, Recipe.id)
        .all()
    )
    return [recipe for recipe in candidates if can_view_recipe(recipe, viewer)]

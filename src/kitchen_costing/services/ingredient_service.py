"""Ingredient Service - tenant-scoped ingredient masterlist.

This module provides business logic for a user's ingredients:
- CRUD with the canonical price per gram derived on create/update
- Duplicate name blocking (case-insensitive, see duplicate_service)
- Name lookup used by recipe cloning and the starter pack import

Raw form dicts go through utils.validators.parse_ingredient_data before any
cost calculation runs; a supplier_id must name one of the user's own
suppliers.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kitchen_costing.models import Ingredient
from kitchen_costing.services.database import session_scope
from kitchen_costing.services.duplicate_service import find_duplicate
from kitchen_costing.services.exceptions import (
    DatabaseError,
    DuplicateNameError,
    IngredientNotFound,
    SupplierNotFound,
    ValidationError,
)
from kitchen_costing.services.logging_utils import get_service_logger, log_operation
from kitchen_costing.services.supplier_service import get_supplier_for_user
from kitchen_costing.services.unit_converter import apply_ingredient_costing
from kitchen_costing.utils.validators import parse_ingredient_data

logger = get_service_logger(__name__)

# Fields that feed the derived price_per_gram
COSTING_FIELDS = (
    "quantity",
    "purchase_amount",
    "price_per_gram",
    "is_count_based",
    "pieces_per_purchase_unit",
    "weight_per_piece",
)

_PASSTHROUGH_ERRORS = (
    IngredientNotFound,
    SupplierNotFound,
    ValidationError,
    DuplicateNameError,
)


def get_ingredient_for_user(session: Session, ingredient_id: int, user_id: int) -> Ingredient:
    """Load an ingredient owned by user_id or raise IngredientNotFound."""
    ingredient = (
        session.query(Ingredient)
        .filter(Ingredient.id == ingredient_id, Ingredient.user_id == user_id)
        .first()
    )
    if ingredient is None:
        raise IngredientNotFound(ingredient_id)
    return ingredient


def _user_ingredients(session: Session, user_id: int) -> List[Ingredient]:
    return (
        session.query(Ingredient)
        .filter(Ingredient.user_id == user_id)
        .order_by(Ingredient.name, Ingredient.id)
        .all()
    )


def get_ingredients(user_id: int, session: Optional[Session] = None) -> List[Ingredient]:
    """List a user's ingredients ordered by name."""
    try:
        if session is not None:
            return _user_ingredients(session, user_id)
        with session_scope() as session:
            return _user_ingredients(session, user_id)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve ingredients", original_error=e)


def get_ingredient(
    ingredient_id: int, user_id: int, session: Optional[Session] = None
) -> Ingredient:
    """
    Get one of the user's ingredients.

    Raises:
        IngredientNotFound: If it doesn't exist for this user
    """
    try:
        if session is not None:
            return get_ingredient_for_user(session, ingredient_id, user_id)
        with session_scope() as session:
            return get_ingredient_for_user(session, ingredient_id, user_id)
    except IngredientNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve ingredient {ingredient_id}", original_error=e)


def find_ingredient_by_name(
    user_id: int, name: str, session: Optional[Session] = None
) -> Optional[Ingredient]:
    """
    Find the user's ingredient whose name matches, ignoring case and
    surrounding whitespace.

    Returns:
        The first matching Ingredient (lowest name/id order), or None
    """
    try:
        if session is not None:
            return find_duplicate(name, _user_ingredients(session, user_id))
        with session_scope() as session:
            return find_duplicate(name, _user_ingredients(session, user_id))
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to look up ingredient by name", original_error=e)


def create_ingredient(
    user_id: int, data: Dict[str, Any], session: Optional[Session] = None
) -> Ingredient:
    """
    Create an ingredient for a user.

    Args:
        user_id: Owning tenant
        data: Raw form values. Either quantity + purchase_amount (price per
            gram derived), the count-based trio pieces_per_purchase_unit +
            weight_per_piece + purchase_amount, or an explicit price_per_gram.
        session: Optional database session

    Returns:
        Created Ingredient

    Raises:
        ValidationError: If the data is invalid (including InvalidQuantity
            and InvalidCountBasedInput)
        DuplicateNameError: If the user already has an ingredient with that name
        SupplierNotFound: If supplier_id isn't one of the user's suppliers
    """
    cleaned = apply_ingredient_costing(parse_ingredient_data(data))
    try:
        if session is not None:
            return _create_ingredient_impl(user_id, cleaned, session)
        with session_scope() as session:
            return _create_ingredient_impl(user_id, cleaned, session)
    except _PASSTHROUGH_ERRORS:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create ingredient", original_error=e)


def _create_ingredient_impl(
    user_id: int, cleaned: Dict[str, Any], session: Session
) -> Ingredient:
    existing = find_duplicate(cleaned["name"], _user_ingredients(session, user_id))
    if existing is not None:
        raise DuplicateNameError("ingredient", cleaned["name"], existing.id)

    if cleaned.get("supplier_id") is not None:
        get_supplier_for_user(session, cleaned["supplier_id"], user_id)

    ingredient = Ingredient(user_id=user_id, **cleaned)
    session.add(ingredient)
    session.flush()

    log_operation(
        logger,
        operation="create_ingredient",
        outcome="success",
        level=logging.DEBUG,
        ingredient_id=ingredient.id,
        user_id=user_id,
    )
    return ingredient


def update_ingredient(
    ingredient_id: int,
    user_id: int,
    patch: Dict[str, Any],
    session: Optional[Session] = None,
) -> Ingredient:
    """
    Update an ingredient with the fields present in patch.

    When any costing field changes, price_per_gram is derived again from
    the merged (stored + patched) purchase data. A typed price_per_gram
    only sticks on ingredients without quantity and purchase_amount.

    Raises:
        IngredientNotFound: If it doesn't exist for this user
        ValidationError: If the patch is invalid
        DuplicateNameError: If the new name collides with another ingredient
        SupplierNotFound: If supplier_id isn't one of the user's suppliers
    """
    cleaned = parse_ingredient_data(patch, partial=True)
    try:
        if session is not None:
            return _update_ingredient_impl(ingredient_id, user_id, cleaned, session)
        with session_scope() as session:
            return _update_ingredient_impl(ingredient_id, user_id, cleaned, session)
    except _PASSTHROUGH_ERRORS:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update ingredient {ingredient_id}", original_error=e)


def _update_ingredient_impl(
    ingredient_id: int, user_id: int, cleaned: Dict[str, Any], session: Session
) -> Ingredient:
    ingredient = get_ingredient_for_user(session, ingredient_id, user_id)

    if "name" in cleaned:
        existing = find_duplicate(
            cleaned["name"], _user_ingredients(session, user_id), exclude_id=ingredient.id
        )
        if existing is not None:
            raise DuplicateNameError("ingredient", cleaned["name"], existing.id)

    if cleaned.get("supplier_id") is not None:
        get_supplier_for_user(session, cleaned["supplier_id"], user_id)

    if any(field in cleaned for field in COSTING_FIELDS):
        merged = {field: getattr(ingredient, field) for field in COSTING_FIELDS}
        merged.update({k: v for k, v in cleaned.items() if k in COSTING_FIELDS})
        # Stored purchase data outranks a typed price_per_gram
        costed = apply_ingredient_costing(merged)
        cleaned["quantity"] = costed["quantity"]
        cleaned["price_per_gram"] = costed["price_per_gram"]

    ingredient.update_from_dict(cleaned)
    session.flush()
    return ingredient


def delete_ingredient(ingredient_id: int, user_id: int, session: Optional[Session] = None) -> bool:
    """
    Delete an ingredient; recipe lines using it are deleted with it.

    Returns:
        True on success

    Raises:
        IngredientNotFound: If it doesn't exist for this user
    """
    try:
        if session is not None:
            return _delete_ingredient_impl(ingredient_id, user_id, session)
        with session_scope() as session:
            return _delete_ingredient_impl(ingredient_id, user_id, session)
    except IngredientNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete ingredient {ingredient_id}", original_error=e)


def _delete_ingredient_impl(ingredient_id: int, user_id: int, session: Session) -> bool:
    ingredient = get_ingredient_for_user(session, ingredient_id, user_id)
    session.delete(ingredient)
    session.flush()
    return True

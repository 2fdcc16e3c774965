"""Category Service - per-tenant ingredient and material category lists.

Both lists behave identically; the kind argument ('ingredient' or
'material') selects the table. Names are unique per user, ignoring case.
"""

from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kitchen_costing.models import IngredientCategory, MaterialCategory
from kitchen_costing.services.database import session_scope
from kitchen_costing.services.duplicate_service import find_duplicate
from kitchen_costing.services.exceptions import (
    CategoryNotFound,
    DatabaseError,
    DuplicateNameError,
    ValidationError,
)
from kitchen_costing.utils.constants import ERROR_REQUIRED_FIELD, MAX_CATEGORY_LENGTH
from kitchen_costing.utils.validators import validate_string_length

CATEGORY_MODELS = {
    "ingredient": IngredientCategory,
    "material": MaterialCategory,
}


def _model_for(kind: str):
    try:
        return CATEGORY_MODELS[kind]
    except KeyError:
        raise ValidationError([f"Category kind must be one of {', '.join(CATEGORY_MODELS)}"])


def _clean_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError([f"Name: {ERROR_REQUIRED_FIELD}"])
    is_valid, error = validate_string_length(cleaned, MAX_CATEGORY_LENGTH, "Name")
    if not is_valid:
        raise ValidationError([error])
    return cleaned


def _user_categories(session: Session, model, user_id: int) -> list:
    return (
        session.query(model)
        .filter(model.user_id == user_id)
        .order_by(model.name, model.id)
        .all()
    )


def get_categories(kind: str, user_id: int, session: Optional[Session] = None) -> List:
    """List a user's categories of the given kind, ordered by name."""
    model = _model_for(kind)
    try:
        if session is not None:
            return _user_categories(session, model, user_id)
        with session_scope() as session:
            return _user_categories(session, model, user_id)
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve {kind} categories", original_error=e)


def create_category(kind: str, user_id: int, name: str, session: Optional[Session] = None):
    """
    Add a category for a user.

    Raises:
        ValidationError: Empty/too long name or unknown kind
        DuplicateNameError: If the user already has the category
    """
    model = _model_for(kind)
    cleaned = _clean_name(name)
    try:
        if session is not None:
            return _create_category_impl(model, kind, user_id, cleaned, session)
        with session_scope() as session:
            return _create_category_impl(model, kind, user_id, cleaned, session)
    except DuplicateNameError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to create {kind} category", original_error=e)


def _create_category_impl(model, kind: str, user_id: int, name: str, session: Session):
    existing = find_duplicate(name, _user_categories(session, model, user_id))
    if existing is not None:
        raise DuplicateNameError(f"{kind} category", name, existing.id)
    category = model(user_id=user_id, name=name)
    session.add(category)
    session.flush()
    return category


def rename_category(
    kind: str, category_id: int, user_id: int, name: str, session: Optional[Session] = None
):
    """
    Rename a category. Rows already using the old name keep it.

    Raises:
        CategoryNotFound, ValidationError, DuplicateNameError
    """
    model = _model_for(kind)
    cleaned = _clean_name(name)
    try:
        if session is not None:
            return _rename_category_impl(model, kind, category_id, user_id, cleaned, session)
        with session_scope() as session:
            return _rename_category_impl(model, kind, category_id, user_id, cleaned, session)
    except (CategoryNotFound, DuplicateNameError):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to rename {kind} category", original_error=e)


def _get_category(session: Session, model, category_id: int, user_id: int):
    category = (
        session.query(model).filter(model.id == category_id, model.user_id == user_id).first()
    )
    if category is None:
        raise CategoryNotFound(category_id)
    return category


def _rename_category_impl(
    model, kind: str, category_id: int, user_id: int, name: str, session: Session
):
    category = _get_category(session, model, category_id, user_id)
    existing = find_duplicate(
        name, _user_categories(session, model, user_id), exclude_id=category.id
    )
    if existing is not None:
        raise DuplicateNameError(f"{kind} category", name, existing.id)
    category.update_from_dict({"name": name})
    session.flush()
    return category


def delete_category(
    kind: str, category_id: int, user_id: int, session: Optional[Session] = None
) -> bool:
    """Delete a category (CategoryNotFound if it isn't the user's)."""
    model = _model_for(kind)
    try:
        if session is not None:
            session.delete(_get_category(session, model, category_id, user_id))
            session.flush()
            return True
        with session_scope() as session:
            session.delete(_get_category(session, model, category_id, user_id))
            return True
    except CategoryNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete {kind} category", original_error=e)

"""
Starter pack: admin-managed template ingredients/materials and their import.

import_selections() copies chosen templates into a user's masterlists. It
is lenient by intent: a template whose name (case-insensitive) the user
already has, including one imported earlier in the same call, is skipped
and counted, never an error. Partial success is reported through the
returned counts. Template ids that don't exist are logged and ignored.

Template CRUD reuses the ingredient/material costing rules, so a template
ingredient's price_per_gram is derived exactly like a user ingredient's.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kitchen_costing.models import Ingredient, Material, StarterIngredient, StarterMaterial, User
from kitchen_costing.services.database import session_scope
from kitchen_costing.services.duplicate_service import find_duplicate
from kitchen_costing.services.exceptions import (
    DatabaseError,
    DuplicateNameError,
    StarterItemNotFound,
    UserNotFound,
    ValidationError,
)
from kitchen_costing.services.logging_utils import get_service_logger, log_operation
from kitchen_costing.services.recipe_clone_service import copy_columns
from kitchen_costing.services.unit_converter import (
    apply_ingredient_costing,
    apply_material_costing,
)
from kitchen_costing.utils.datetime_utils import utc_now
from kitchen_costing.utils.validators import parse_ingredient_data, parse_material_data

logger = get_service_logger(__name__)

_TEMPLATE_MODELS = {"ingredient": StarterIngredient, "material": StarterMaterial}


@dataclass
class StarterPackImportResult:
    """Counts reported by import_selections().

    Attributes:
        imported_ingredients: Templates copied into the user's ingredients
        imported_materials: Templates copied into the user's materials
        skipped_duplicates: Templates skipped because the name already existed
    """

    imported_ingredients: int = 0
    imported_materials: int = 0
    skipped_duplicates: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "imported_ingredients": self.imported_ingredients,
            "imported_materials": self.imported_materials,
            "skipped_duplicates": self.skipped_duplicates,
        }


# ============================================================================
# Import
# ============================================================================


def import_selections(
    target_user_id: int,
    ingredient_ids: Optional[Iterable[int]] = None,
    material_ids: Optional[Iterable[int]] = None,
    session: Optional[Session] = None,
) -> StarterPackImportResult:
    """
    Copy the selected starter templates into a user's masterlists.

    Sets the user's starter_pack_imported_at when done.

    Args:
        target_user_id: User receiving the copies
        ingredient_ids: StarterIngredient IDs to import
        material_ids: StarterMaterial IDs to import
        session: Optional database session

    Returns:
        StarterPackImportResult with imported and skipped counts

    Raises:
        UserNotFound: If the user doesn't exist
        DatabaseError: If the database operation fails (nothing is kept)
    """
    try:
        if session is not None:
            return _import_selections_impl(
                target_user_id, list(ingredient_ids or []), list(material_ids or []), session
            )
        with session_scope() as session:
            return _import_selections_impl(
                target_user_id, list(ingredient_ids or []), list(material_ids or []), session
            )
    except UserNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to import starter pack", original_error=e)


def _import_templates(
    session: Session,
    template_model,
    target_model,
    template_ids: List[int],
    target_user_id: int,
    item_type: str,
    result: StarterPackImportResult,
) -> int:
    existing = (
        session.query(target_model)
        .filter(target_model.user_id == target_user_id)
        .order_by(target_model.name, target_model.id)
        .all()
    )
    imported = 0
    for template_id in template_ids:
        template = session.get(template_model, template_id)
        if template is None:
            log_operation(
                logger,
                operation="import_selections",
                outcome=f"unknown_{item_type}_template",
                level=logging.WARNING,
                template_id=template_id,
                user_id=target_user_id,
            )
            continue

        if find_duplicate(template.name, existing) is not None:
            result.skipped_duplicates += 1
            log_operation(
                logger,
                operation="import_selections",
                outcome="skipped_duplicate",
                level=logging.DEBUG,
                template_id=template_id,
                item_type=item_type,
                user_id=target_user_id,
            )
            continue

        copy = target_model(user_id=target_user_id, **copy_columns(template))
        session.add(copy)
        existing.append(copy)
        imported += 1

    session.flush()
    return imported


def _import_selections_impl(
    target_user_id: int,
    ingredient_ids: List[int],
    material_ids: List[int],
    session: Session,
) -> StarterPackImportResult:
    user = session.get(User, target_user_id)
    if user is None:
        raise UserNotFound(target_user_id)

    result = StarterPackImportResult()
    result.imported_ingredients = _import_templates(
        session, StarterIngredient, Ingredient, ingredient_ids, target_user_id, "ingredient", result
    )
    result.imported_materials = _import_templates(
        session, StarterMaterial, Material, material_ids, target_user_id, "material", result
    )

    user.starter_pack_imported_at = utc_now()
    session.flush()

    log_operation(
        logger,
        operation="import_selections",
        outcome="success",
        user_id=target_user_id,
        **result.to_dict(),
    )
    return result


# ============================================================================
# Template administration
# ============================================================================


def _get_template(session: Session, item_type: str, item_id: int):
    template = session.get(_TEMPLATE_MODELS[item_type], item_id)
    if template is None:
        raise StarterItemNotFound(item_type, item_id)
    return template


def _all_templates(session: Session, item_type: str) -> list:
    model = _TEMPLATE_MODELS[item_type]
    return session.query(model).order_by(model.name, model.id).all()


def get_starter_ingredients(session: Optional[Session] = None) -> List[StarterIngredient]:
    """List template ingredients ordered by name."""
    try:
        if session is not None:
            return _all_templates(session, "ingredient")
        with session_scope() as session:
            return _all_templates(session, "ingredient")
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve starter ingredients", original_error=e)


def get_starter_materials(session: Optional[Session] = None) -> List[StarterMaterial]:
    """List template materials ordered by name."""
    try:
        if session is not None:
            return _all_templates(session, "material")
        with session_scope() as session:
            return _all_templates(session, "material")
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve starter materials", original_error=e)


def _clean_template(item_type: str, data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    if item_type == "ingredient":
        cleaned = parse_ingredient_data(data, partial=partial)
    else:
        cleaned = parse_material_data(data, partial=partial)
    # Templates carry no supplier
    cleaned.pop("supplier_id", None)
    return cleaned


def _save_template(
    session: Session, item_type: str, cleaned: Dict[str, Any], item_id: Optional[int] = None
):
    if "name" in cleaned:
        existing = find_duplicate(cleaned["name"], _all_templates(session, item_type), item_id)
        if existing is not None:
            raise DuplicateNameError(f"starter {item_type}", cleaned["name"], existing.id)

    if item_id is None:
        template = _TEMPLATE_MODELS[item_type](**cleaned)
        session.add(template)
    else:
        template = _get_template(session, item_type, item_id)
        template.update_from_dict(cleaned)
    session.flush()
    return template


def _create_template(item_type: str, cleaned: Dict[str, Any], session: Optional[Session]):
    try:
        if session is not None:
            return _save_template(session, item_type, cleaned)
        with session_scope() as session:
            return _save_template(session, item_type, cleaned)
    except (ValidationError, DuplicateNameError):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to create starter {item_type}", original_error=e)


def create_starter_ingredient(
    data: Dict[str, Any], session: Optional[Session] = None
) -> StarterIngredient:
    """
    Create a template ingredient (price_per_gram derived as for user ingredients).

    Raises:
        ValidationError: If the data is invalid
        DuplicateNameError: If a template ingredient already has that name
    """
    cleaned = apply_ingredient_costing(_clean_template("ingredient", data))
    return _create_template("ingredient", cleaned, session)


def create_starter_material(
    data: Dict[str, Any], session: Optional[Session] = None
) -> StarterMaterial:
    """Create a template material (price_per_unit entered or derived)."""
    cleaned = apply_material_costing(_clean_template("material", data))
    return _create_template("material", cleaned, session)


def update_starter_item(
    item_type: str, item_id: int, patch: Dict[str, Any], session: Optional[Session] = None
):
    """
    Update a template ingredient or material.

    Args:
        item_type: 'ingredient' or 'material'
        item_id: Template ID
        patch: Fields to change; purchase changes derive the price again

    Raises:
        StarterItemNotFound, ValidationError, DuplicateNameError
    """
    cleaned = _clean_template(item_type, patch, partial=True)
    try:
        if session is not None:
            return _update_starter_item_impl(item_type, item_id, cleaned, session)
        with session_scope() as session:
            return _update_starter_item_impl(item_type, item_id, cleaned, session)
    except (StarterItemNotFound, ValidationError, DuplicateNameError):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update starter {item_type} {item_id}", original_error=e)


def _update_starter_item_impl(
    item_type: str, item_id: int, cleaned: Dict[str, Any], session: Session
):
    template = _get_template(session, item_type, item_id)
    if item_type == "ingredient":
        fields = (
            "quantity",
            "purchase_amount",
            "is_count_based",
            "pieces_per_purchase_unit",
            "weight_per_piece",
        )
        if any(field in cleaned for field in fields):
            merged = {field: getattr(template, field) for field in fields}
            merged.update({k: v for k, v in cleaned.items() if k in fields})
            costed = apply_ingredient_costing(merged)
            cleaned["quantity"] = costed["quantity"]
            cleaned["price_per_gram"] = costed["price_per_gram"]
    elif "price_per_unit" in cleaned or {"quantity", "purchase_amount"} & set(cleaned):
        merged = {
            "quantity": cleaned.get("quantity", template.quantity),
            "purchase_amount": cleaned.get("purchase_amount", template.purchase_amount),
            "price_per_unit": cleaned.get("price_per_unit"),
        }
        cleaned["price_per_unit"] = apply_material_costing(merged)["price_per_unit"]
    return _save_template(session, item_type, cleaned, item_id)


def delete_starter_item(item_type: str, item_id: int, session: Optional[Session] = None) -> bool:
    """
    Delete a template. Copies already imported by users are unaffected.

    Raises:
        StarterItemNotFound: If the template doesn't exist
    """
    try:
        if session is not None:
            return _delete_starter_item_impl(item_type, item_id, session)
        with session_scope() as session:
            return _delete_starter_item_impl(item_type, item_id, session)
    except StarterItemNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete starter {item_type} {item_id}", original_error=e)


def _delete_starter_item_impl(item_type: str, item_id: int, session: Session) -> bool:
    session.delete(_get_template(session, item_type, item_id))
    session.flush()
    return True


def load_starter_pack(data: Dict[str, Any], session: Optional[Session] = None) -> Dict[str, int]:
    """
    Create templates in bulk from {"ingredients": [...], "materials": [...]}.

    Entries whose name already exists as a template are skipped.

    Returns:
        Dict with 'ingredients', 'materials' and 'skipped' counts

    Raises:
        ValidationError: If an entry is invalid (nothing is kept)
    """
    try:
        if session is not None:
            return _load_starter_pack_impl(data, session)
        with session_scope() as session:
            return _load_starter_pack_impl(data, session)
    except ValidationError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to load starter pack", original_error=e)


def _load_starter_pack_impl(data: Dict[str, Any], session: Session) -> Dict[str, int]:
    counts = {"ingredients": 0, "materials": 0, "skipped": 0}
    for item_type, key, apply_costing in (
        ("ingredient", "ingredients", apply_ingredient_costing),
        ("material", "materials", apply_material_costing),
    ):
        for entry in data.get(key) or []:
            cleaned = apply_costing(_clean_template(item_type, entry))
            try:
                _save_template(session, item_type, cleaned)
            except DuplicateNameError:
                counts["skipped"] += 1
                continue
            counts[key] += 1

    log_operation(logger, operation="load_starter_pack", outcome="success", **counts)
    return counts

"""Material Service - tenant-scoped packaging/material masterlist.

Materials keep their native purchase unit: price_per_unit is either
entered directly or derived from purchase_amount / quantity, with no unit
conversion. Name handling matches ingredient_service (duplicates blocked,
case-insensitive lookup for cloning and imports).
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kitchen_costing.models import Material
from kitchen_costing.services.database import session_scope
from kitchen_costing.services.duplicate_service import find_duplicate
from kitchen_costing.services.exceptions import (
    DatabaseError,
    DuplicateNameError,
    MaterialNotFound,
    SupplierNotFound,
    ValidationError,
)
from kitchen_costing.services.supplier_service import get_supplier_for_user
from kitchen_costing.services.unit_converter import apply_material_costing
from kitchen_costing.utils.validators import parse_material_data

_PASSTHROUGH_ERRORS = (MaterialNotFound, SupplierNotFound, ValidationError, DuplicateNameError)


def get_material_for_user(session: Session, material_id: int, user_id: int) -> Material:
    """Load a material owned by user_id or raise MaterialNotFound."""
    material = (
        session.query(Material)
        .filter(Material.id == material_id, Material.user_id == user_id)
        .first()
    )
    if material is None:
        raise MaterialNotFound(material_id)
    return material


def _user_materials(session: Session, user_id: int) -> List[Material]:
    return (
        session.query(Material)
        .filter(Material.user_id == user_id)
        .order_by(Material.name, Material.id)
        .all()
    )


def get_materials(user_id: int, session: Optional[Session] = None) -> List[Material]:
    """List a user's materials ordered by name."""
    try:
        if session is not None:
            return _user_materials(session, user_id)
        with session_scope() as session:
            return _user_materials(session, user_id)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve materials", original_error=e)


def get_material(material_id: int, user_id: int, session: Optional[Session] = None) -> Material:
    """Get one of the user's materials (MaterialNotFound otherwise)."""
    try:
        if session is not None:
            return get_material_for_user(session, material_id, user_id)
        with session_scope() as session:
            return get_material_for_user(session, material_id, user_id)
    except MaterialNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve material {material_id}", original_error=e)


def find_material_by_name(
    user_id: int, name: str, session: Optional[Session] = None
) -> Optional[Material]:
    """Find the user's material with a matching name (case-insensitive), or None."""
    try:
        if session is not None:
            return find_duplicate(name, _user_materials(session, user_id))
        with session_scope() as session:
            return find_duplicate(name, _user_materials(session, user_id))
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to look up material by name", original_error=e)


def create_material(
    user_id: int, data: Dict[str, Any], session: Optional[Session] = None
) -> Material:
    """
    Create a material for a user.

    Args:
        user_id: Owning tenant
        data: Raw form values; price_per_unit, or quantity + purchase_amount
        session: Optional database session

    Raises:
        ValidationError: If the data is invalid (including InvalidQuantity)
        DuplicateNameError: If the user already has a material with that name
        SupplierNotFound: If supplier_id isn't one of the user's suppliers
    """
    cleaned = apply_material_costing(parse_material_data(data))
    try:
        if session is not None:
            return _create_material_impl(user_id, cleaned, session)
        with session_scope() as session:
            return _create_material_impl(user_id, cleaned, session)
    except _PASSTHROUGH_ERRORS:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create material", original_error=e)


def _create_material_impl(user_id: int, cleaned: Dict[str, Any], session: Session) -> Material:
    existing = find_duplicate(cleaned["name"], _user_materials(session, user_id))
    if existing is not None:
        raise DuplicateNameError("material", cleaned["name"], existing.id)

    if cleaned.get("supplier_id") is not None:
        get_supplier_for_user(session, cleaned["supplier_id"], user_id)

    material = Material(user_id=user_id, **cleaned)
    session.add(material)
    session.flush()
    return material


def update_material(
    material_id: int,
    user_id: int,
    patch: Dict[str, Any],
    session: Optional[Session] = None,
) -> Material:
    """
    Update a material with the fields present in patch.

    A patch that changes quantity or purchase_amount without an explicit
    price_per_unit derives the price again.

    Raises:
        MaterialNotFound, ValidationError, DuplicateNameError, SupplierNotFound
    """
    cleaned = parse_material_data(patch, partial=True)
    try:
        if session is not None:
            return _update_material_impl(material_id, user_id, cleaned, session)
        with session_scope() as session:
            return _update_material_impl(material_id, user_id, cleaned, session)
    except _PASSTHROUGH_ERRORS:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update material {material_id}", original_error=e)


def _update_material_impl(
    material_id: int, user_id: int, cleaned: Dict[str, Any], session: Session
) -> Material:
    material = get_material_for_user(session, material_id, user_id)

    if "name" in cleaned:
        existing = find_duplicate(
            cleaned["name"], _user_materials(session, user_id), exclude_id=material.id
        )
        if existing is not None:
            raise DuplicateNameError("material", cleaned["name"], existing.id)

    if cleaned.get("supplier_id") is not None:
        get_supplier_for_user(session, cleaned["supplier_id"], user_id)

    if "price_per_unit" in cleaned or {"quantity", "purchase_amount"} & set(cleaned):
        merged = {
            "quantity": cleaned.get("quantity", material.quantity),
            "purchase_amount": cleaned.get("purchase_amount", material.purchase_amount),
            "price_per_unit": cleaned.get("price_per_unit"),
        }
        cleaned["price_per_unit"] = apply_material_costing(merged)["price_per_unit"]

    material.update_from_dict(cleaned)
    session.flush()
    return material


def delete_material(material_id: int, user_id: int, session: Optional[Session] = None) -> bool:
    """Delete a material; recipe lines using it are deleted with it."""
    try:
        if session is not None:
            return _delete_material_impl(material_id, user_id, session)
        with session_scope() as session:
            return _delete_material_impl(material_id, user_id, session)
    except MaterialNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete material {material_id}", original_error=e)


def _delete_material_impl(material_id: int, user_id: int, session: Session) -> bool:
    material = get_material_for_user(session, material_id, user_id)
    session.delete(material)
    session.flush()
    return True

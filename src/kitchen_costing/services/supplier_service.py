"""Supplier Service - tenant-scoped CRUD for suppliers.

Suppliers are referenced weakly by ingredients and materials: deleting a
supplier clears supplier_id on every row that pointed at it and never
deletes those rows.

All functions accept an optional session so callers can compose several
operations in one transaction.

Example Usage:
    >>> from kitchen_costing.services.supplier_service import create_supplier
    >>> supplier = create_supplier(user_id=1, data={"name": "Mill Co"})
    >>> supplier.name
    'Mill Co'
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kitchen_costing.models import Ingredient, Material, Supplier
from kitchen_costing.services.database import session_scope
from kitchen_costing.services.duplicate_service import find_duplicate
from kitchen_costing.services.exceptions import (
    DatabaseError,
    DuplicateNameError,
    SupplierNotFound,
    ValidationError,
)
from kitchen_costing.services.logging_utils import get_service_logger, log_operation
from kitchen_costing.utils.validators import parse_supplier_data

logger = get_service_logger(__name__)


def get_supplier_for_user(session: Session, supplier_id: int, user_id: int) -> Supplier:
    """Load a supplier owned by user_id or raise SupplierNotFound."""
    supplier = (
        session.query(Supplier)
        .filter(Supplier.id == supplier_id, Supplier.user_id == user_id)
        .first()
    )
    if supplier is None:
        raise SupplierNotFound(supplier_id)
    return supplier


def get_suppliers(user_id: int, session: Optional[Session] = None) -> List[Supplier]:
    """List a user's suppliers ordered by name."""
    try:
        if session is not None:
            return _get_suppliers_impl(user_id, session)
        with session_scope() as session:
            return _get_suppliers_impl(user_id, session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve suppliers", original_error=e)


def _get_suppliers_impl(user_id: int, session: Session) -> List[Supplier]:
    return (
        session.query(Supplier)
        .filter(Supplier.user_id == user_id)
        .order_by(Supplier.name, Supplier.id)
        .all()
    )


def get_supplier(supplier_id: int, user_id: int, session: Optional[Session] = None) -> Supplier:
    """Get one of the user's suppliers.

    Raises:
        SupplierNotFound: If the supplier doesn't exist for this user
    """
    try:
        if session is not None:
            return get_supplier_for_user(session, supplier_id, user_id)
        with session_scope() as session:
            return get_supplier_for_user(session, supplier_id, user_id)
    except SupplierNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve supplier {supplier_id}", original_error=e)


def create_supplier(
    user_id: int, data: Dict[str, Any], session: Optional[Session] = None
) -> Supplier:
    """Create a supplier for a user.

    Args:
        user_id: Owning tenant
        data: Raw form values (name required; contact_person, phone, email,
            address, notes optional)
        session: Optional database session

    Raises:
        ValidationError: If the data is invalid
        DuplicateNameError: If the user already has a supplier with that name
    """
    cleaned = parse_supplier_data(data)
    try:
        if session is not None:
            return _create_supplier_impl(user_id, cleaned, session)
        with session_scope() as session:
            return _create_supplier_impl(user_id, cleaned, session)
    except (ValidationError, DuplicateNameError):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create supplier", original_error=e)


def _create_supplier_impl(user_id: int, cleaned: Dict[str, Any], session: Session) -> Supplier:
    existing = find_duplicate(cleaned["name"], _get_suppliers_impl(user_id, session))
    if existing is not None:
        raise DuplicateNameError("supplier", cleaned["name"], existing.id)

    supplier = Supplier(user_id=user_id, **cleaned)
    session.add(supplier)
    session.flush()
    return supplier


def update_supplier(
    supplier_id: int,
    user_id: int,
    patch: Dict[str, Any],
    session: Optional[Session] = None,
) -> Supplier:
    """Update a supplier with the fields present in patch.

    Raises:
        SupplierNotFound: If the supplier doesn't exist for this user
        ValidationError: If the patch is invalid
        DuplicateNameError: If the new name collides with another supplier
    """
    cleaned = parse_supplier_data(patch, partial=True)
    try:
        if session is not None:
            return _update_supplier_impl(supplier_id, user_id, cleaned, session)
        with session_scope() as session:
            return _update_supplier_impl(supplier_id, user_id, cleaned, session)
    except (SupplierNotFound, ValidationError, DuplicateNameError):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update supplier {supplier_id}", original_error=e)


def _update_supplier_impl(
    supplier_id: int, user_id: int, cleaned: Dict[str, Any], session: Session
) -> Supplier:
    supplier = get_supplier_for_user(session, supplier_id, user_id)
    if "name" in cleaned:
        existing = find_duplicate(
            cleaned["name"], _get_suppliers_impl(user_id, session), exclude_id=supplier.id
        )
        if existing is not None:
            raise DuplicateNameError("supplier", cleaned["name"], existing.id)

    supplier.update_from_dict(cleaned)
    session.flush()
    return supplier


def delete_supplier(supplier_id: int, user_id: int, session: Optional[Session] = None) -> bool:
    """Delete a supplier, clearing it from the user's ingredients and materials.

    Returns:
        True on success

    Raises:
        SupplierNotFound: If the supplier doesn't exist for this user
    """
    try:
        if session is not None:
            return _delete_supplier_impl(supplier_id, user_id, session)
        with session_scope() as session:
            return _delete_supplier_impl(supplier_id, user_id, session)
    except SupplierNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete supplier {supplier_id}", original_error=e)


def _delete_supplier_impl(supplier_id: int, user_id: int, session: Session) -> bool:
    supplier = get_supplier_for_user(session, supplier_id, user_id)

    # Weak references: clear them, never delete the rows
    cleared_ingredients = (
        session.query(Ingredient)
        .filter(Ingredient.supplier_id == supplier.id)
        .update({Ingredient.supplier_id: None}, synchronize_session="fetch")
    )
    cleared_materials = (
        session.query(Material)
        .filter(Material.supplier_id == supplier.id)
        .update({Material.supplier_id: None}, synchronize_session="fetch")
    )
    session.expire(supplier)
    session.delete(supplier)
    session.flush()

    log_operation(
        logger,
        operation="delete_supplier",
        outcome="success",
        supplier_id=supplier_id,
        cleared_ingredients=cleared_ingredients,
        cleared_materials=cleared_materials,
    )
    return True

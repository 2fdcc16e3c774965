"""User Service - tenant accounts and onboarding state.

Authentication is handled outside this package; this service only stores
the account fields the costing core needs (role, plan, email) and builds
the Viewer passed to access-controlled operations.
"""

from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kitchen_costing.models import User
from kitchen_costing.services.database import session_scope
from kitchen_costing.services.dto import Viewer
from kitchen_costing.services.exceptions import (
    DatabaseError,
    DuplicateNameError,
    UserNotFound,
    ValidationError,
)
from kitchen_costing.utils.constants import USER_PLANS, USER_ROLES
from kitchen_costing.utils.datetime_utils import utc_now
from kitchen_costing.utils.validators import validate_email, validate_required_string


def _clean_user_data(data: Dict[str, Any]) -> Dict[str, Any]:
    errors = []
    cleaned = {}

    username = (data.get("username") or "").strip()
    is_valid, error = validate_required_string(username, "Username")
    if not is_valid:
        errors.append(error)
    cleaned["username"] = username

    email = (data.get("email") or "").strip()
    is_valid, error = validate_email(email)
    if not is_valid:
        errors.append(error)
    cleaned["email"] = email.lower()

    for key, allowed in (("role", USER_ROLES), ("plan", USER_PLANS)):
        if data.get(key) is not None:
            if data[key] not in allowed:
                errors.append(f"{key.capitalize()}: Must be one of {', '.join(allowed)}")
            cleaned[key] = data[key]

    for key in ("first_name", "business_name", "currency", "timezone"):
        if data.get(key):
            cleaned[key] = str(data[key]).strip()

    if errors:
        raise ValidationError(errors)
    return cleaned


def create_user(data: Dict[str, Any], session: Optional[Session] = None) -> User:
    """Create a user.

    Args:
        data: username and email required; role, plan, first_name,
            business_name, currency, timezone optional

    Raises:
        ValidationError: If the data is invalid
        DuplicateNameError: If the username or email is taken
    """
    cleaned = _clean_user_data(data)
    try:
        if session is not None:
            return _create_user_impl(cleaned, session)
        with session_scope() as session:
            return _create_user_impl(cleaned, session)
    except (ValidationError, DuplicateNameError):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create user", original_error=e)


def _create_user_impl(cleaned: Dict[str, Any], session: Session) -> User:
    taken = (
        session.query(User)
        .filter((User.username == cleaned["username"]) | (User.email == cleaned["email"]))
        .first()
    )
    if taken is not None:
        field = "username" if taken.username == cleaned["username"] else "email"
        raise DuplicateNameError(f"user {field}", cleaned[field], taken.id)

    user = User(**cleaned)
    session.add(user)
    session.flush()
    return user


def get_user(user_id: int, session: Optional[Session] = None) -> User:
    """Get a user by ID (UserNotFound otherwise)."""
    try:
        if session is not None:
            return _get_user_impl(user_id, session)
        with session_scope() as session:
            return _get_user_impl(user_id, session)
    except UserNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve user {user_id}", original_error=e)


def _get_user_impl(user_id: int, session: Session) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise UserNotFound(user_id)
    return user


def get_viewer(user_id: int, session: Optional[Session] = None) -> Viewer:
    """Build the Viewer identity for a stored user."""
    return Viewer.from_user(get_user(user_id, session=session))


def complete_onboarding(user_id: int, session: Optional[Session] = None) -> User:
    """Mark the onboarding wizard as finished for a user."""
    try:
        if session is not None:
            return _set_user_fields(user_id, {"has_completed_onboarding": True}, session)
        with session_scope() as session:
            return _set_user_fields(user_id, {"has_completed_onboarding": True}, session)
    except UserNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update user {user_id}", original_error=e)


def mark_starter_pack_imported(user_id: int, session: Optional[Session] = None) -> User:
    """Record that the starter pack import ran for a user."""
    try:
        if session is not None:
            return _set_user_fields(user_id, {"starter_pack_imported_at": utc_now()}, session)
        with session_scope() as session:
            return _set_user_fields(user_id, {"starter_pack_imported_at": utc_now()}, session)
    except UserNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update user {user_id}", original_error=e)


def _set_user_fields(user_id: int, values: Dict[str, Any], session: Session) -> User:
    user = _get_user_impl(user_id, session)
    user.update_from_dict(values)
    session.flush()
    return user

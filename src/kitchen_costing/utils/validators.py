"""
Input validation functions for the Kitchen Costing application.

Form data arrives loosely typed (numbers as strings, blanks for "not set").
This module is the parse-and-validate boundary: the ``parse_*_data``
functions turn a raw dict into a cleaned dict of typed values (``Decimal``
for every amount) or raise ``ValidationError`` listing every problem found.
Nothing downstream of these functions re-parses text.

It also keeps the tuple-returning field checks used to build those lists:
- String validation (required, length)
- Numeric validation (positive, non-negative, percent)
- Email and access-type validation
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from kitchen_costing.services.exceptions import ValidationError

from .constants import (
    ACCESS_TYPES,
    DEFAULT_COMPONENT_NAME,
    DEFAULT_RECIPE_UNIT,
    ERROR_INVALID_ACCESS_TYPE,
    ERROR_INVALID_NON_NEGATIVE,
    ERROR_INVALID_NUMBER,
    ERROR_INVALID_PERCENT,
    ERROR_INVALID_POSITIVE,
    ERROR_REQUIRED_FIELD,
    MAX_CATEGORY_LENGTH,
    MAX_COST,
    MAX_EMAIL_LENGTH,
    MAX_NAME_LENGTH,
    MAX_NOTES_LENGTH,
    MAX_QUANTITY,
    MAX_UNIT_LENGTH,
)


# ============================================================================
# Field checks
# ============================================================================


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Convert a form value to Decimal.

    Args:
        value: str, int, float, Decimal, or None

    Returns:
        Decimal value, or None for None/blank strings

    Raises:
        ValueError: If the value is not a finite number
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    if isinstance(value, str):
        value = value.strip()
        if value == "":
            return None
    try:
        # str() keeps floats at their shortest repr (0.1 -> "0.1")
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValueError(f"not a number: {value!r}")
    if not number.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return number


def validate_required_string(value: Optional[str], field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a string field is not empty.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    return True, ""


def validate_string_length(
    value: Optional[str], max_length: int, field_name: str = "Field"
) -> Tuple[bool, str]:
    """
    Validate that a string doesn't exceed maximum length.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value and len(value) > max_length:
        return False, f"{field_name}: Must be {max_length} characters or less"
    return True, ""


def validate_positive_number(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a positive number (> 0).

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        number = to_decimal(value)
    except ValueError:
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if number is None:
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    if number <= 0:
        return False, f"{field_name}: {ERROR_INVALID_POSITIVE}"
    return True, ""


def validate_non_negative_number(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a non-negative number (>= 0).

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        number = to_decimal(value)
    except ValueError:
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if number is None:
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    if number < 0:
        return False, f"{field_name}: {ERROR_INVALID_NON_NEGATIVE}"
    return True, ""


def validate_percent(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a percentage in [0, 100].

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        number = to_decimal(value)
    except ValueError:
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if number is None:
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    if number < 0 or number > 100:
        return False, f"{field_name}: {ERROR_INVALID_PERCENT}"
    return True, ""


def validate_email(value: Optional[str], field_name: str = "Email") -> Tuple[bool, str]:
    """
    Validate a plain email address (one '@', a dot in the domain).

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not value or not value.strip():
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    value = value.strip()
    if len(value) > MAX_EMAIL_LENGTH:
        return False, f"{field_name}: Must be {MAX_EMAIL_LENGTH} characters or less"
    local, sep, domain = value.partition("@")
    if not sep or not local or "@" in domain or "." not in domain:
        return False, f"{field_name}: Invalid email address"
    return True, ""


def validate_access_type(value: Optional[str], field_name: str = "Access type") -> Tuple[bool, str]:
    """
    Validate a recipe access type.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value not in ACCESS_TYPES:
        return False, f"{field_name}: {ERROR_INVALID_ACCESS_TYPE}"
    return True, ""


# ============================================================================
# Parsing helpers
# ============================================================================


def _clean_string(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_number(
    data: Dict[str, Any],
    key: str,
    label: str,
    errors: List[str],
    *,
    required: bool = False,
    allow_negative: bool = False,
    maximum: Decimal = MAX_QUANTITY,
) -> Optional[Decimal]:
    if key not in data:
        if required:
            errors.append(f"{label}: {ERROR_REQUIRED_FIELD}")
        return None
    try:
        number = to_decimal(data[key])
    except ValueError:
        errors.append(f"{label}: {ERROR_INVALID_NUMBER}")
        return None
    if number is None:
        if required:
            errors.append(f"{label}: {ERROR_REQUIRED_FIELD}")
        return None
    if not allow_negative and number < 0:
        errors.append(f"{label}: {ERROR_INVALID_NON_NEGATIVE}")
        return None
    if number > maximum:
        errors.append(f"{label}: Must be {maximum} or less")
        return None
    return number


def _parse_int(
    data: Dict[str, Any], key: str, label: str, errors: List[str]
) -> Optional[int]:
    number = _parse_number(data, key, label, errors)
    if number is None:
        return None
    if number != number.to_integral_value():
        errors.append(f"{label}: Must be a whole number")
        return None
    return int(number)


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _parse_name(data: Dict[str, Any], errors: List[str], *, required: bool) -> Optional[str]:
    name = _clean_string(data.get("name"))
    if name is None:
        if required:
            errors.append(f"Name: {ERROR_REQUIRED_FIELD}")
        return None
    is_valid, error = validate_string_length(name, MAX_NAME_LENGTH, "Name")
    if not is_valid:
        errors.append(error)
    return name


def _parse_optional_text(
    data: Dict[str, Any], key: str, label: str, max_length: int, errors: List[str]
) -> Optional[str]:
    text = _clean_string(data.get(key))
    is_valid, error = validate_string_length(text, max_length, label)
    if not is_valid:
        errors.append(error)
    return text


def _raise_if_errors(errors: List[str]) -> None:
    if errors:
        raise ValidationError(errors)


# ============================================================================
# Entity parsers
# ============================================================================


def parse_ingredient_data(data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Parse and validate ingredient form data.

    Args:
        data: Raw field values (name, category, quantity, unit, purchase_amount,
            price_per_gram, supplier_id, is_count_based, purchase_unit,
            pieces_per_purchase_unit, weight_per_piece)
        partial: If True, only keys present in data are parsed (update patch)

    Returns:
        Dict with the same keys, typed: Decimal amounts, bool flags, stripped text

    Raises:
        ValidationError: Listing every invalid field
    """
    errors: List[str] = []
    cleaned: Dict[str, Any] = {}

    if not partial or "name" in data:
        cleaned["name"] = _parse_name(data, errors, required=True)
    if "category" in data:
        cleaned["category"] = _parse_optional_text(
            data, "category", "Category", MAX_CATEGORY_LENGTH, errors
        )
    if not partial or "unit" in data:
        unit = _clean_string(data.get("unit")) or DEFAULT_RECIPE_UNIT
        is_valid, error = validate_string_length(unit, MAX_UNIT_LENGTH, "Unit")
        if not is_valid:
            errors.append(error)
        cleaned["unit"] = unit
    if "purchase_unit" in data:
        cleaned["purchase_unit"] = _parse_optional_text(
            data, "purchase_unit", "Purchase unit", MAX_UNIT_LENGTH, errors
        )

    for key, label in (
        ("quantity", "Quantity"),
        ("purchase_amount", "Purchase amount"),
        ("price_per_gram", "Price per gram"),
        ("pieces_per_purchase_unit", "Pieces per purchase unit"),
        ("weight_per_piece", "Weight per piece"),
    ):
        if key in data:
            cleaned[key] = _parse_number(data, key, label, errors, maximum=MAX_COST)

    if not partial or "is_count_based" in data:
        cleaned["is_count_based"] = _parse_bool(data.get("is_count_based", False))
    if "supplier_id" in data:
        cleaned["supplier_id"] = _parse_int(data, "supplier_id", "Supplier", errors)

    _raise_if_errors(errors)
    return cleaned


def parse_material_data(data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Parse and validate material form data.

    Materials keep their native purchase unit; price_per_unit is taken as
    entered, or derived from purchase_amount / quantity when not given.

    Raises:
        ValidationError: Listing every invalid field
    """
    errors: List[str] = []
    cleaned: Dict[str, Any] = {}

    if not partial or "name" in data:
        cleaned["name"] = _parse_name(data, errors, required=True)
    if "category" in data:
        cleaned["category"] = _parse_optional_text(
            data, "category", "Category", MAX_CATEGORY_LENGTH, errors
        )
    if "unit" in data:
        cleaned["unit"] = _parse_optional_text(data, "unit", "Unit", MAX_UNIT_LENGTH, errors)
    if "notes" in data:
        cleaned["notes"] = _parse_optional_text(data, "notes", "Notes", MAX_NOTES_LENGTH, errors)

    for key, label in (
        ("quantity", "Quantity"),
        ("price_per_unit", "Price per unit"),
        ("purchase_amount", "Purchase amount"),
    ):
        if key in data:
            cleaned[key] = _parse_number(data, key, label, errors, maximum=MAX_COST)

    if "supplier_id" in data:
        cleaned["supplier_id"] = _parse_int(data, "supplier_id", "Supplier", errors)

    _raise_if_errors(errors)
    return cleaned


def parse_supplier_data(data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Parse and validate supplier form data.

    Raises:
        ValidationError: Listing every invalid field
    """
    errors: List[str] = []
    cleaned: Dict[str, Any] = {}

    if not partial or "name" in data:
        cleaned["name"] = _parse_name(data, errors, required=True)
    for key, label, max_length in (
        ("contact_person", "Contact person", MAX_NAME_LENGTH),
        ("phone", "Phone", MAX_UNIT_LENGTH),
        ("address", "Address", MAX_NOTES_LENGTH),
        ("notes", "Notes", MAX_NOTES_LENGTH),
    ):
        if key in data:
            cleaned[key] = _parse_optional_text(data, key, label, max_length, errors)
    if "email" in data:
        email = _clean_string(data.get("email"))
        if email is not None:
            is_valid, error = validate_email(email)
            if not is_valid:
                errors.append(error)
        cleaned["email"] = email

    _raise_if_errors(errors)
    return cleaned


def parse_recipe_data(data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Parse and validate recipe form data (scalar fields only).

    Access-control lists are normalized to comma-joined, trimmed values.

    Raises:
        ValidationError: Listing every invalid field
    """
    errors: List[str] = []
    cleaned: Dict[str, Any] = {}

    if not partial or "name" in data:
        cleaned["name"] = _parse_name(data, errors, required=True)
    for key, label, max_length in (
        ("description", "Description", MAX_NOTES_LENGTH),
        ("category", "Category", MAX_CATEGORY_LENGTH),
        ("procedures", "Procedures", MAX_NOTES_LENGTH * 10),
        ("cover_image", "Cover image", MAX_NOTES_LENGTH),
        ("standard_pan_size", "Standard pan size", MAX_NAME_LENGTH),
    ):
        if key in data:
            cleaned[key] = _parse_optional_text(data, key, label, max_length, errors)

    for key, label in (
        ("servings", "Servings"),
        ("batch_yield", "Batch yield"),
        ("standard_yield_pieces", "Standard yield pieces"),
        ("standard_num_trays", "Standard number of trays"),
    ):
        if key in data:
            cleaned[key] = _parse_int(data, key, label, errors)
    # servings is NOT NULL; a blank value keeps the stored/default one
    if cleaned.get("servings", 0) is None:
        del cleaned["servings"]

    for key, label in (
        ("target_margin", "Target margin"),
        ("target_food_cost", "Target food cost"),
    ):
        if key in data:
            value = _parse_number(data, key, label, errors)
            if value is not None:
                is_valid, error = validate_percent(value, label)
                if not is_valid:
                    errors.append(error)
            cleaned[key] = value

    for key, label in (
        ("labor_cost", "Labor cost"),
        ("standard_yield_weight_per_piece", "Standard yield weight per piece"),
    ):
        if key in data:
            cleaned[key] = _parse_number(data, key, label, errors, maximum=MAX_COST)

    for key in ("is_free_recipe", "is_visible"):
        if key in data:
            cleaned[key] = _parse_bool(data[key])

    if "access_type" in data:
        access_type = _clean_string(data.get("access_type"))
        is_valid, error = validate_access_type(access_type)
        if not is_valid:
            errors.append(error)
        cleaned["access_type"] = access_type

    if "allowed_plans" in data:
        cleaned["allowed_plans"] = join_list(split_list(data.get("allowed_plans")))
    if "allowed_user_emails" in data:
        emails = split_list(data.get("allowed_user_emails"))
        for email in emails:
            is_valid, error = validate_email(email, "Allowed user email")
            if not is_valid:
                errors.append(error)
        cleaned["allowed_user_emails"] = join_list(emails)

    _raise_if_errors(errors)
    return cleaned


def parse_recipe_lines(
    ingredients_data: Optional[List[Dict[str, Any]]],
    materials_data: Optional[List[Dict[str, Any]]],
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """
    Parse the ingredient and material lines of a recipe form.

    Ingredient lines without an explicit ``order`` take their list position.

    Returns:
        Tuple of (ingredient_lines, material_lines), each a list of cleaned dicts

    Raises:
        ValidationError: Listing every invalid line
    """
    errors: List[str] = []
    ingredient_lines: List[Dict[str, Any]] = []
    material_lines: List[Dict[str, Any]] = []

    for position, line in enumerate(ingredients_data or []):
        label = f"Ingredient line {position + 1}"
        ingredient_id = _parse_int(line, "ingredient_id", f"{label} ingredient", errors)
        if ingredient_id is None and "ingredient_id" not in line:
            errors.append(f"{label} ingredient: {ERROR_REQUIRED_FIELD}")
        quantity = _parse_number(line, "quantity", f"{label} quantity", errors, required=True)
        order = _parse_int(line, "order", f"{label} order", errors)
        ingredient_lines.append(
            {
                "ingredient_id": ingredient_id,
                "quantity": quantity,
                "unit": _clean_string(line.get("unit")) or DEFAULT_RECIPE_UNIT,
                "component_name": _clean_string(line.get("component_name"))
                or DEFAULT_COMPONENT_NAME,
                "order": position if order is None else order,
            }
        )

    for position, line in enumerate(materials_data or []):
        label = f"Material line {position + 1}"
        material_id = _parse_int(line, "material_id", f"{label} material", errors)
        if material_id is None and "material_id" not in line:
            errors.append(f"{label} material: {ERROR_REQUIRED_FIELD}")
        quantity = _parse_number(line, "quantity", f"{label} quantity", errors, required=True)
        material_lines.append({"material_id": material_id, "quantity": quantity})

    _raise_if_errors(errors)
    return ingredient_lines, material_lines


# ============================================================================
# Comma-joined list helpers
# ============================================================================


def split_list(value: Any) -> List[str]:
    """
    Split a comma-joined string (or list) into trimmed, non-empty entries.

    Example:
        >>> split_list(" Pro, Premium ,,")
        ['Pro', 'Premium']
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        parts = [str(item) for item in value]
    else:
        parts = str(value).split(",")
    return [part.strip() for part in parts if part and part.strip()]


def join_list(values: List[str]) -> Optional[str]:
    """Join entries with commas; an empty list is stored as None."""
    if not values:
        return None
    return ",".join(values)

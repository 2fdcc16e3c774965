"""Service layer exception classes for Kitchen Costing.

This module defines all custom exceptions used by the service layer to provide
consistent error handling across the application. Every exception carries an
``http_status_code`` so a request layer can map it to a response without
knowing the individual classes.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   ├── InvalidQuantity
    │   └── InvalidCountBasedInput
    ├── DuplicateNameError
    ├── RecipeNotFound
    ├── IngredientNotFound
    ├── MaterialNotFound
    ├── SupplierNotFound
    ├── CategoryNotFound
    ├── StarterItemNotFound
    ├── UserNotFound
    ├── RecipeAccessDenied
    └── DatabaseError
"""

from typing import List, Optional


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions should inherit from this class.
    """

    http_status_code = 500


class ValidationError(ServiceError):
    """Raised when input data fails validation.

    Args:
        errors: List of human-readable error messages

    Example:
        >>> raise ValidationError(["Name: This field is required"])
        ValidationError: Validation failed: Name: This field is required
    """

    http_status_code = 400

    def __init__(self, errors: List[str]):
        self.errors = errors
        error_msg = "; ".join(errors)
        super().__init__(f"Validation failed: {error_msg}")


class InvalidQuantity(ValidationError):
    """Raised when a weight/volume purchase has a non-positive quantity or amount.

    Example:
        >>> raise InvalidQuantity("quantity", 0)
        InvalidQuantity: Validation failed: quantity must be greater than zero (got 0)
    """

    def __init__(self, field: str, value):
        self.field = field
        self.value = value
        super().__init__([f"{field} must be greater than zero (got {value})"])


class InvalidCountBasedInput(ValidationError):
    """Raised when a count-based purchase is missing pieces, piece weight or amount.

    Args:
        fields: Names of the fields that were missing or non-positive
    """

    def __init__(self, fields: List[str]):
        self.fields = fields
        super().__init__(
            [f"{field} must be greater than zero for count-based ingredients" for field in fields]
        )


class DuplicateNameError(ServiceError):
    """Raised when a masterlist entry would collide with an existing name.

    Args:
        entity_type: Kind of item ("ingredient", "material", "supplier", ...)
        name: The submitted name
        existing_id: ID of the item already using the name

    Example:
        >>> raise DuplicateNameError("ingredient", "Flour", 12)
        DuplicateNameError: An ingredient named 'Flour' already exists (ID 12)
    """

    http_status_code = 409

    def __init__(self, entity_type: str, name: str, existing_id: Optional[int] = None):
        self.entity_type = entity_type
        self.name = name
        self.existing_id = existing_id
        article = "An" if entity_type[:1].lower() in "aeiou" else "A"
        suffix = f" (ID {existing_id})" if existing_id is not None else ""
        super().__init__(f"{article} {entity_type} named '{name}' already exists{suffix}")


class RecipeNotFound(ServiceError):
    """Raised when a recipe cannot be found by ID (or is not visible to the caller)."""

    http_status_code = 404

    def __init__(self, recipe_id: int):
        self.recipe_id = recipe_id
        super().__init__(f"Recipe with ID {recipe_id} not found")


class IngredientNotFound(ServiceError):
    """Raised when an ingredient cannot be found by ID within a tenant."""

    http_status_code = 404

    def __init__(self, ingredient_id: int):
        self.ingredient_id = ingredient_id
        super().__init__(f"Ingredient with ID {ingredient_id} not found")


class MaterialNotFound(ServiceError):
    """Raised when a material cannot be found by ID within a tenant."""

    http_status_code = 404

    def __init__(self, material_id: int):
        self.material_id = material_id
        super().__init__(f"Material with ID {material_id} not found")


class SupplierNotFound(ServiceError):
    """Raised when a supplier cannot be found by ID within a tenant.

    Example:
        >>> raise SupplierNotFound(123)
        SupplierNotFound: Supplier with ID 123 not found
    """

    http_status_code = 404

    def __init__(self, supplier_id: int):
        self.supplier_id = supplier_id
        super().__init__(f"Supplier with ID {supplier_id} not found")


class CategoryNotFound(ServiceError):
    """Raised when an ingredient or material category cannot be found."""

    http_status_code = 404

    def __init__(self, category_id: int):
        self.category_id = category_id
        super().__init__(f"Category with ID {category_id} not found")


class StarterItemNotFound(ServiceError):
    """Raised when a starter pack template cannot be found by ID."""

    http_status_code = 404

    def __init__(self, item_type: str, item_id: int):
        self.item_type = item_type
        self.item_id = item_id
        super().__init__(f"Starter {item_type} with ID {item_id} not found")


class UserNotFound(ServiceError):
    """Raised when a user cannot be found by ID."""

    http_status_code = 404

    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"User with ID {user_id} not found")


class RecipeAccessDenied(ServiceError):
    """Raised when a viewer may not see a shared recipe.

    The recipe exists; callers that must not reveal that fact report
    RecipeNotFound instead (see recipe_access_service.get_recipe_for_viewer).
    """

    http_status_code = 403

    def __init__(self, recipe_id: int, user_id: Optional[int] = None):
        self.recipe_id = recipe_id
        self.user_id = user_id
        super().__init__(f"Access to recipe {recipe_id} denied")


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    http_status_code = 500

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")

"""Tests for service exception classes."""

import pytest

from kitchen_costing.services.exceptions import (
    DatabaseError,
    DuplicateNameError,
    IngredientNotFound,
    InvalidCountBasedInput,
    InvalidQuantity,
    RecipeAccessDenied,
    RecipeNotFound,
    ServiceError,
    ValidationError,
)


@pytest.mark.parametrize(
    "error, status",
    [
        (ValidationError(["Name: This field is required"]), 400),
        (InvalidQuantity("quantity", 0), 400),
        (InvalidCountBasedInput(["weight_per_piece"]), 400),
        (RecipeAccessDenied(1, 2), 403),
        (RecipeNotFound(1), 404),
        (IngredientNotFound(1), 404),
        (DuplicateNameError("ingredient", "Flour", 3), 409),
        (DatabaseError("boom"), 500),
    ],
)
def test_http_status_codes(error, status):
    assert isinstance(error, ServiceError)
    assert error.http_status_code == status


def test_validation_error_message_joins_errors():
    error = ValidationError(["a", "b"])
    assert error.errors == ["a", "b"]
    assert str(error) == "Validation failed: a; b"


def test_database_error_keeps_original():
    original = RuntimeError("disk full")
    error = DatabaseError("Failed", original_error=original)
    assert error.original_error is original

"""Tests for form parsing and field validation."""

from decimal import Decimal

import pytest

from kitchen_costing.services.exceptions import ValidationError
from kitchen_costing.utils.validators import (
    join_list,
    parse_ingredient_data,
    parse_material_data,
    parse_recipe_data,
    parse_recipe_lines,
    parse_supplier_data,
    split_list,
    to_decimal,
    validate_email,
    validate_percent,
    validate_positive_number,
)


class TestToDecimal:
    def test_strings_and_numbers(self):
        assert to_decimal(" 2.50 ") == Decimal("2.50")
        assert to_decimal(3) == Decimal("3")
        assert to_decimal(0.1) == Decimal("0.1")

    def test_blank_is_none(self):
        assert to_decimal("") is None
        assert to_decimal(None) is None

    @pytest.mark.parametrize("value", ["abc", "NaN", "Infinity", True])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(ValueError):
            to_decimal(value)


class TestFieldChecks:
    def test_positive_number(self):
        assert validate_positive_number("1") == (True, "")
        assert not validate_positive_number("0")[0]
        assert not validate_positive_number("x")[0]

    def test_percent(self):
        assert validate_percent("100")[0]
        assert not validate_percent("101")[0]

    def test_email(self):
        assert validate_email("sam@example.com")[0]
        assert not validate_email("sam@example")[0]
        assert not validate_email("")[0]


class TestParseIngredientData:
    def test_typed_values(self):
        cleaned = parse_ingredient_data(
            {"name": "  Flour ", "quantity": "1000", "purchase_amount": "2.5", "supplier_id": "4"}
        )
        assert cleaned["name"] == "Flour"
        assert cleaned["quantity"] == Decimal("1000")
        assert cleaned["purchase_amount"] == Decimal("2.5")
        assert cleaned["supplier_id"] == 4
        assert cleaned["unit"] == "g"
        assert cleaned["is_count_based"] is False

    def test_collects_every_error(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_ingredient_data({"name": "", "quantity": "abc", "purchase_amount": "-1"})
        assert len(exc_info.value.errors) == 3

    def test_partial_only_parses_present_keys(self):
        assert parse_ingredient_data({"category": "Dry"}, partial=True) == {"category": "Dry"}

    def test_count_based_flag_from_string(self):
        assert parse_ingredient_data({"name": "Eggs", "is_count_based": "true"})["is_count_based"]


def test_parse_material_data():
    cleaned = parse_material_data({"name": "Box", "price_per_unit": "0.5", "unit": "pcs"})
    assert cleaned == {"name": "Box", "price_per_unit": Decimal("0.5"), "unit": "pcs"}


def test_parse_supplier_email_checked():
    with pytest.raises(ValidationError):
        parse_supplier_data({"name": "Mill", "email": "not-an-email"})


class TestParseRecipeData:
    def test_access_lists_normalized(self):
        cleaned = parse_recipe_data(
            {
                "name": "Loaf",
                "access_type": "selected-users",
                "allowed_user_emails": " a@example.com , b@example.com ",
                "allowed_plans": ["Pro", " Premium "],
            }
        )
        assert cleaned["allowed_user_emails"] == "a@example.com,b@example.com"
        assert cleaned["allowed_plans"] == "Pro,Premium"

    def test_invalid_access_type(self):
        with pytest.raises(ValidationError):
            parse_recipe_data({"name": "Loaf", "access_type": "everyone"})

    def test_margin_must_be_percent(self):
        with pytest.raises(ValidationError):
            parse_recipe_data({"name": "Loaf", "target_margin": "150"})

    def test_blank_servings_dropped(self):
        assert "servings" not in parse_recipe_data({"name": "Loaf", "servings": ""})


class TestParseRecipeLines:
    def test_defaults(self):
        ingredients, materials = parse_recipe_lines(
            [{"ingredient_id": "3", "quantity": "200"}, {"ingredient_id": 4, "quantity": 2, "unit": "pcs"}],
            [{"material_id": 9, "quantity": "1"}],
        )
        assert ingredients[0] == {
            "ingredient_id": 3,
            "quantity": Decimal("200"),
            "unit": "g",
            "component_name": "Main",
            "order": 0,
        }
        assert ingredients[1]["order"] == 1
        assert ingredients[1]["unit"] == "pcs"
        assert materials == [{"material_id": 9, "quantity": Decimal("1")}]

    def test_missing_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_recipe_lines([{"quantity": "1"}], [{"material_id": 1}])
        assert len(exc_info.value.errors) == 2

    def test_none_is_empty(self):
        assert parse_recipe_lines(None, None) == ([], [])


def test_split_and_join():
    assert split_list(" Pro, Premium ,,") == ["Pro", "Premium"]
    assert join_list([]) is None

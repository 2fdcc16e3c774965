"""
Constants and enumerations for the Kitchen Costing application.

This module defines all system-wide constants including:
- Application metadata
- Unit lists (weight, volume, count, packaging)
- Recipe access types and user roles
- Pricing defaults
- Validation limits and error messages
"""

from decimal import Decimal
from typing import List

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "Kitchen Costing"

# ============================================================================
# Units
# ============================================================================

# Unit a recipe line uses to mean "pieces of a count-based ingredient"
PIECE_UNIT = "pcs"

# Default unit for recipe ingredient lines
DEFAULT_RECIPE_UNIT = "g"

# Default component group for recipe ingredient lines
DEFAULT_COMPONENT_NAME = "Main"

# ============================================================================
# Users and Plans
# ============================================================================

ROLE_REGULAR = "regular"
ROLE_ADMIN = "admin"

USER_ROLES: List[str] = [ROLE_REGULAR, ROLE_ADMIN]

PLAN_HOBBY = "Hobby"
PLAN_PRO = "Pro"
PLAN_PREMIUM = "Premium"

USER_PLANS: List[str] = [PLAN_HOBBY, PLAN_PRO, PLAN_PREMIUM]

DEFAULT_CURRENCY = "USD"
DEFAULT_TIMEZONE = "UTC"

# ============================================================================
# Recipe Access Types
# ============================================================================

ACCESS_ADMIN = "admin"
ACCESS_ALL = "all"
ACCESS_BY_PLAN = "by-plan"
ACCESS_SELECTED_USERS = "selected-users"

ACCESS_TYPES: List[str] = [
    ACCESS_ADMIN,
    ACCESS_ALL,
    ACCESS_BY_PLAN,
    ACCESS_SELECTED_USERS,
]

# ============================================================================
# Pricing Defaults
# ============================================================================

DEFAULT_TARGET_MARGIN = Decimal("50")
DEFAULT_TARGET_FOOD_COST = Decimal("30")
DEFAULT_LABOR_COST = Decimal("0")

# Names that identify the flour line when computing baker's percentages
FLOUR_KEYWORDS: List[str] = ["flour", "harina", "tepung", "atta"]

# ============================================================================
# Validation Constants
# ============================================================================

# String length limits
MAX_NAME_LENGTH = 200
MAX_CATEGORY_LENGTH = 100
MAX_UNIT_LENGTH = 50
MAX_NOTES_LENGTH = 2000
MAX_EMAIL_LENGTH = 254

# Numeric limits
MAX_QUANTITY = Decimal("99999999.99")
MAX_COST = Decimal("99999999.99")

# Decimal precision
PRICE_PER_GRAM_PLACES = 4
CURRENCY_DECIMAL_PLACES = 2

# ============================================================================
# Database Constants
# ============================================================================

DATABASE_FILENAME = "kitchen_costing.db"

# ============================================================================
# Error Messages
# ============================================================================

ERROR_REQUIRED_FIELD = "This field is required"
ERROR_INVALID_NUMBER = "Please enter a valid number"
ERROR_INVALID_POSITIVE = "Value must be greater than zero"
ERROR_INVALID_NON_NEGATIVE = "Value must be zero or greater"
ERROR_INVALID_ACCESS_TYPE = "Invalid access type"
ERROR_INVALID_PERCENT = "Value must be between 0 and 100"

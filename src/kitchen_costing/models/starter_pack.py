"""
Starter pack template models.

Admin-managed ingredients and materials that new users can copy into their
own masterlists during onboarding. Templates belong to no tenant and carry
no supplier reference.
"""

from decimal import Decimal

from sqlalchemy import Column, String, Text, Numeric, Boolean

from .base import BaseModel
from kitchen_costing.utils.constants import DEFAULT_RECIPE_UNIT


class StarterIngredient(BaseModel):
    """
    Template ingredient.

    Same purchase and count-based fields as Ingredient, without user_id and
    supplier_id.
    """

    __tablename__ = "starter_ingredients"

    name = Column(String(200), nullable=False, index=True)
    category = Column(String(100), nullable=True)
    price_per_gram = Column(Numeric(10, 4), nullable=False, default=Decimal("0"))
    quantity = Column(Numeric(12, 2), nullable=True)
    unit = Column(String(50), nullable=False, default=DEFAULT_RECIPE_UNIT)
    purchase_amount = Column(Numeric(12, 2), nullable=True)

    is_count_based = Column(Boolean, nullable=False, default=False)
    purchase_unit = Column(String(50), nullable=True)
    pieces_per_purchase_unit = Column(Numeric(12, 2), nullable=True)
    weight_per_piece = Column(Numeric(12, 2), nullable=True)


class StarterMaterial(BaseModel):
    """Template material."""

    __tablename__ = "starter_materials"

    name = Column(String(200), nullable=False, index=True)
    category = Column(String(100), nullable=True)
    quantity = Column(Numeric(12, 2), nullable=True)
    unit = Column(String(50), nullable=True)
    price_per_unit = Column(Numeric(12, 4), nullable=False, default=Decimal("0"))
    purchase_amount = Column(Numeric(12, 2), nullable=True)
    notes = Column(Text, nullable=True)

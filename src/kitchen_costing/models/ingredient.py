"""
Ingredient model for a tenant's ingredient masterlist.

An ingredient records how it was purchased (quantity, unit, purchase
amount, optionally by piece count) and the canonical cost per gram derived
from that purchase.

Example: "Eggs" bought as a tray of 30 pieces at 55 g each for 9.00
         -> quantity 1650 g, price_per_gram 0.0055
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    Boolean,
    ForeignKey,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from kitchen_costing.utils.constants import DEFAULT_RECIPE_UNIT


class Ingredient(BaseModel):
    """
    Ingredient model.

    Attributes:
        user_id: Owning tenant
        name: Ingredient name (e.g., "Bread Flour")
        category: Optional category (e.g., "Flour", "Dairy")
        price_per_gram: Derived canonical cost, 4 decimal places, >= 0
        quantity: Amount purchased in grams (or gram-equivalent unit)
        unit: Unit of quantity (e.g., "g", "ml")
        purchase_amount: Price paid for the purchase
        supplier_id: Optional weak reference to a Supplier

        # Count-based purchases (eggs by the tray):
        is_count_based: Purchased by piece count, consumed by weight
        purchase_unit: Label of the purchase unit (e.g., "tray")
        pieces_per_purchase_unit: Pieces in one purchase unit
        weight_per_piece: Grams per piece
    """

    __tablename__ = "ingredients"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    name = Column(String(200), nullable=False)
    category = Column(String(100), nullable=True)

    price_per_gram = Column(Numeric(10, 4), nullable=False, default=Decimal("0"))
    quantity = Column(Numeric(12, 2), nullable=True)
    unit = Column(String(50), nullable=False, default=DEFAULT_RECIPE_UNIT)
    purchase_amount = Column(Numeric(12, 2), nullable=True)

    supplier_id = Column(
        Integer, ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True
    )

    is_count_based = Column(Boolean, nullable=False, default=False)
    purchase_unit = Column(String(50), nullable=True)
    pieces_per_purchase_unit = Column(Numeric(12, 2), nullable=True)
    weight_per_piece = Column(Numeric(12, 2), nullable=True)

    user = relationship("User", back_populates="ingredients")
    supplier = relationship("Supplier", back_populates="ingredients")
    recipe_ingredients = relationship(
        "RecipeIngredient",
        back_populates="ingredient",
        cascade="all",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("price_per_gram >= 0", name="ck_ingredient_price_non_negative"),
        CheckConstraint(
            "NOT is_count_based OR (COALESCE(pieces_per_purchase_unit, 0) > 0"
            " AND COALESCE(weight_per_piece, 0) > 0)",
            name="ck_ingredient_count_based_complete",
        ),
        Index("idx_ingredient_user_name", "user_id", "name"),
        Index("idx_ingredient_supplier", "supplier_id"),
    )

    @property
    def cost_per_piece(self) -> Optional[Decimal]:
        """Display-only price of one piece for count-based ingredients."""
        if not self.is_count_based:
            return None
        if not self.pieces_per_purchase_unit or not self.purchase_amount:
            return None
        return Decimal(self.purchase_amount) / Decimal(self.pieces_per_purchase_unit)

    def __repr__(self) -> str:
        """String representation of ingredient."""
        return (
            f"Ingredient(id={self.id}, name='{self.name}', "
            f"price_per_gram={self.price_per_gram})"
        )

    def to_dict(self) -> dict:
        result = super().to_dict()
        cost_per_piece = self.cost_per_piece
        result["cost_per_piece"] = str(cost_per_piece) if cost_per_piece is not None else None
        return result

"""
Material model for packaging and other non-food items.

Materials are tracked in their native purchase unit (boxes, labels,
ribbons); no unit conversion is applied when costing them.
"""

from decimal import Decimal

from sqlalchemy import Column, Integer, String, Text, Numeric, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel


class Material(BaseModel):
    """
    Material model.

    Attributes:
        user_id: Owning tenant
        name: Material name (e.g., "Cake Box 10in")
        category: Optional category (e.g., "Boxes")
        quantity: Units purchased
        unit: Native unit (e.g., "pcs", "roll")
        price_per_unit: Cost of one unit, >= 0
        purchase_amount: Price paid for the purchase
        supplier_id: Optional weak reference to a Supplier
        notes: Free-form notes
    """

    __tablename__ = "materials"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    name = Column(String(200), nullable=False)
    category = Column(String(100), nullable=True)
    quantity = Column(Numeric(12, 2), nullable=True)
    unit = Column(String(50), nullable=True)
    price_per_unit = Column(Numeric(12, 4), nullable=False, default=Decimal("0"))
    purchase_amount = Column(Numeric(12, 2), nullable=True)

    supplier_id = Column(
        Integer, ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True
    )
    notes = Column(Text, nullable=True)

    user = relationship("User", back_populates="materials")
    supplier = relationship("Supplier", back_populates="materials")
    recipe_materials = relationship(
        "RecipeMaterial",
        back_populates="material",
        cascade="all",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("price_per_unit >= 0", name="ck_material_price_non_negative"),
        Index("idx_material_user_name", "user_id", "name"),
    )

    def __repr__(self) -> str:
        """String representation of material."""
        return (
            f"Material(id={self.id}, name='{self.name}', "
            f"price_per_unit={self.price_per_unit})"
        )

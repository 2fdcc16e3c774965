"""
Order model - realized sales of a recipe, used for analytics.

total_cost is captured when the order is recorded, from the recipe's cost
per unit at that moment; later price changes do not rewrite history.
"""

from sqlalchemy import Column, Integer, Numeric, ForeignKey, Index
from sqlalchemy.orm import relationship

from .base import BaseModel


class Order(BaseModel):
    """
    Order model.

    Attributes:
        user_id: Owning tenant
        recipe_id: Recipe sold
        quantity: Units sold
        total_revenue: Revenue received
        total_cost: Cost of the units sold at recording time
    """

    __tablename__ = "orders"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)

    quantity = Column(Integer, nullable=False)
    total_revenue = Column(Numeric(12, 2), nullable=False)
    total_cost = Column(Numeric(12, 2), nullable=False)

    user = relationship("User", back_populates="orders")
    recipe = relationship("Recipe", back_populates="orders")

    __table_args__ = (
        Index("idx_order_user", "user_id"),
        Index("idx_order_recipe", "recipe_id"),
    )

    def __repr__(self) -> str:
        """String representation of order."""
        return (
            f"Order(id={self.id}, recipe_id={self.recipe_id}, "
            f"quantity={self.quantity}, total_revenue={self.total_revenue})"
        )

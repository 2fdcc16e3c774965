"""
Supplier model for tracking where ingredients and materials are bought.

Suppliers belong to one tenant and are referenced weakly: deleting a
supplier clears the reference on ingredients/materials, it never deletes
them.
"""

from sqlalchemy import Column, Integer, String, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from .base import BaseModel


class Supplier(BaseModel):
    """
    Supplier model representing a vendor.

    Attributes:
        user_id: Owning tenant
        name: Supplier name (e.g., "Restaurant Depot")
        contact_person: Optional contact name
        phone: Optional phone number
        email: Optional email address
        address: Optional address
        notes: Optional notes (e.g., delivery days)

    Relationships:
        ingredients: Ingredients bought from this supplier
        materials: Materials bought from this supplier
    """

    __tablename__ = "suppliers"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    name = Column(String(200), nullable=False)
    contact_person = Column(String(200), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(254), nullable=True)
    address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    user = relationship("User", back_populates="suppliers")
    ingredients = relationship("Ingredient", back_populates="supplier", passive_deletes=True)
    materials = relationship("Material", back_populates="supplier", passive_deletes=True)

    __table_args__ = (Index("idx_supplier_user_name", "user_id", "name"),)

    def __repr__(self) -> str:
        """String representation of supplier."""
        return f"Supplier(id={self.id}, user_id={self.user_id}, name='{self.name}')"

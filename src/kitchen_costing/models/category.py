"""
Per-tenant category lists for ingredients and materials.

Categories are a pick list only; ingredients and materials store the
category name as text, so deleting a category leaves existing rows alone.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, Index

from .base import BaseModel


class IngredientCategory(BaseModel):
    """Ingredient category name owned by a tenant."""

    __tablename__ = "ingredient_categories"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)

    __table_args__ = (Index("idx_ingredient_category_user", "user_id"),)


class MaterialCategory(BaseModel):
    """Material category name owned by a tenant."""

    __tablename__ = "material_categories"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)

    __table_args__ = (Index("idx_material_category_user", "user_id"),)

"""
Database models for Kitchen Costing.

Importing this package registers every model with Base.metadata.
"""

from .base import Base, BaseModel
from .user import User
from .supplier import Supplier
from .ingredient import Ingredient
from .material import Material
from .recipe import Recipe, RecipeIngredient, RecipeMaterial
from .order import Order
from .category import IngredientCategory, MaterialCategory
from .starter_pack import StarterIngredient, StarterMaterial

__all__ = [
    "Base",
    "BaseModel",
    "User",
    "Supplier",
    "Ingredient",
    "Material",
    "Recipe",
    "RecipeIngredient",
    "RecipeMaterial",
    "Order",
    "IngredientCategory",
    "MaterialCategory",
    "StarterIngredient",
    "StarterMaterial",
]

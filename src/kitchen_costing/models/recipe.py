"""
Recipe models.

This module contains:
- Recipe: Recipe header with yield, pricing targets and sharing flags
- RecipeIngredient: Junction rows linking a recipe to ingredients
- RecipeMaterial: Junction rows linking a recipe to materials

Junction rows are owned by their recipe and are replaced wholesale when the
recipe is updated. Deleting the referenced ingredient or material also
deletes the junction row.
"""

from decimal import Decimal

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Numeric,
    Boolean,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from kitchen_costing.utils.constants import (
    ACCESS_ALL,
    DEFAULT_COMPONENT_NAME,
    DEFAULT_LABOR_COST,
    DEFAULT_RECIPE_UNIT,
    DEFAULT_TARGET_FOOD_COST,
    DEFAULT_TARGET_MARGIN,
)


class Recipe(BaseModel):
    """
    Recipe model.

    Attributes:
        user_id: Owning tenant
        name: Recipe name (required)
        description: Optional description
        category: Optional category (e.g., "Bread", "Cakes")
        cover_image: Optional image reference
        servings: Servings per batch
        batch_yield: Units produced per batch (cost per unit divides by this)
        target_margin: Target profit margin percent (default 50)
        target_food_cost: Target food cost percent (default 30)
        labor_cost: Labor cost per batch
        procedures: Method text

        # Standard yield (used by scaling):
        standard_yield_pieces: Pieces per standard batch
        standard_yield_weight_per_piece: Grams per piece
        standard_pan_size: Pan description
        standard_num_trays: Trays per batch

        # Sharing (only meaningful when is_free_recipe is True):
        is_free_recipe: Shared as a template recipe
        is_visible: Listed to other users
        access_type: 'admin', 'all', 'by-plan' or 'selected-users'
        allowed_plans: Comma-joined plan names
        allowed_user_emails: Comma-joined email addresses
    """

    __tablename__ = "recipes"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)
    cover_image = Column(Text, nullable=True)

    servings = Column(Integer, nullable=False, default=1)
    batch_yield = Column(Integer, nullable=True, default=1)
    target_margin = Column(Numeric(5, 2), nullable=True, default=DEFAULT_TARGET_MARGIN)
    target_food_cost = Column(Numeric(5, 2), nullable=True, default=DEFAULT_TARGET_FOOD_COST)
    labor_cost = Column(Numeric(12, 2), nullable=True, default=DEFAULT_LABOR_COST)
    procedures = Column(Text, nullable=True)

    standard_yield_pieces = Column(Integer, nullable=True)
    standard_yield_weight_per_piece = Column(Numeric(12, 2), nullable=True)
    standard_pan_size = Column(String(200), nullable=True)
    standard_num_trays = Column(Integer, nullable=True)

    is_free_recipe = Column(Boolean, nullable=False, default=False, index=True)
    is_visible = Column(Boolean, nullable=False, default=True)
    access_type = Column(String(20), nullable=True, default=ACCESS_ALL)
    allowed_plans = Column(Text, nullable=True)
    allowed_user_emails = Column(Text, nullable=True)

    user = relationship("User", back_populates="recipes")
    recipe_ingredients = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RecipeIngredient.display_order",
    )
    recipe_materials = relationship(
        "RecipeMaterial",
        back_populates="recipe",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RecipeMaterial.id",
    )
    orders = relationship("Order", back_populates="recipe", cascade="all", passive_deletes=True)

    __table_args__ = (Index("idx_recipe_user", "user_id"),)

    def __repr__(self) -> str:
        """String representation of recipe."""
        return f"Recipe(id={self.id}, user_id={self.user_id}, name='{self.name}')"


class RecipeIngredient(BaseModel):
    """
    Ingredient line of a recipe.

    Attributes:
        recipe_id: Parent recipe
        ingredient_id: Referenced ingredient (same tenant as the recipe)
        quantity: Amount used, in grams unless unit is 'pcs'
        component_name: Sub-group label (e.g., "Main", "Frosting")
        unit: 'g' by default, or 'pcs' for count-based ingredients
        display_order: Rendering position within the recipe
    """

    __tablename__ = "recipe_ingredients"

    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    ingredient_id = Column(
        Integer, ForeignKey("ingredients.id", ondelete="CASCADE"), nullable=False
    )

    quantity = Column(Numeric(12, 2), nullable=False)
    component_name = Column(String(100), nullable=True, default=DEFAULT_COMPONENT_NAME)
    unit = Column(String(50), nullable=True, default=DEFAULT_RECIPE_UNIT)
    display_order = Column(Integer, nullable=False, default=0)

    recipe = relationship("Recipe", back_populates="recipe_ingredients")
    ingredient = relationship("Ingredient", back_populates="recipe_ingredients", lazy="joined")

    __table_args__ = (
        Index("idx_recipe_ingredient_recipe", "recipe_id"),
        Index("idx_recipe_ingredient_ingredient", "ingredient_id"),
    )

    def __repr__(self) -> str:
        """String representation of recipe ingredient."""
        return (
            f"RecipeIngredient(recipe_id={self.recipe_id}, "
            f"ingredient_id={self.ingredient_id}, "
            f"quantity={self.quantity}, unit='{self.unit}')"
        )


class RecipeMaterial(BaseModel):
    """
    Material line of a recipe.

    Attributes:
        recipe_id: Parent recipe
        material_id: Referenced material (same tenant as the recipe)
        quantity: Units used per batch
    """

    __tablename__ = "recipe_materials"

    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    material_id = Column(Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False)

    quantity = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    recipe = relationship("Recipe", back_populates="recipe_materials")
    material = relationship("Material", back_populates="recipe_materials", lazy="joined")

    __table_args__ = (
        Index("idx_recipe_material_recipe", "recipe_id"),
        Index("idx_recipe_material_material", "material_id"),
    )

    def __repr__(self) -> str:
        """String representation of recipe material."""
        return (
            f"RecipeMaterial(recipe_id={self.recipe_id}, "
            f"material_id={self.material_id}, quantity={self.quantity})"
        )

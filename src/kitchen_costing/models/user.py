"""
User model - the tenant key.

Every masterlist, recipe and order row belongs to exactly one user; only the
admin-managed starter pack templates live outside a tenant.
"""

from sqlalchemy import Column, String, Boolean, DateTime, Index, CheckConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel
from kitchen_costing.utils.constants import (
    DEFAULT_CURRENCY,
    DEFAULT_TIMEZONE,
    PLAN_HOBBY,
    ROLE_ADMIN,
    ROLE_REGULAR,
)


class User(BaseModel):
    """
    Application user.

    Attributes:
        username: Unique login name
        email: Unique email address
        first_name: Optional display name
        business_name: Optional bakery/shop name
        role: 'regular' or 'admin'
        plan: Subscription plan name (e.g., "Hobby", "Pro")
        currency: Display currency code
        timezone: Display timezone
        status: Account status ('active', 'suspended')
        has_completed_onboarding: Onboarding wizard finished
        starter_pack_imported_at: When the starter pack import last ran

    Relationships:
        ingredients, materials, suppliers, recipes, orders: Tenant-owned rows
    """

    __tablename__ = "users"

    username = Column(String(100), nullable=False, unique=True)
    email = Column(String(254), nullable=False, unique=True, index=True)
    first_name = Column(String(100), nullable=True)
    business_name = Column(String(200), nullable=True)

    role = Column(String(20), nullable=False, default=ROLE_REGULAR)
    plan = Column(String(50), nullable=False, default=PLAN_HOBBY)
    currency = Column(String(10), nullable=False, default=DEFAULT_CURRENCY)
    timezone = Column(String(50), nullable=False, default=DEFAULT_TIMEZONE)
    status = Column(String(20), nullable=False, default="active")

    has_completed_onboarding = Column(Boolean, nullable=False, default=False)
    starter_pack_imported_at = Column(DateTime, nullable=True)

    suppliers = relationship("Supplier", back_populates="user", cascade="all, delete-orphan")
    ingredients = relationship("Ingredient", back_populates="user", cascade="all, delete-orphan")
    materials = relationship("Material", back_populates="user", cascade="all, delete-orphan")
    recipes = relationship("Recipe", back_populates="user", cascade="all, delete-orphan")
    orders = relationship("Order", back_populates="user", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint(f"role IN ('{ROLE_REGULAR}', '{ROLE_ADMIN}')", name="ck_user_role"),
        Index("idx_user_plan", "plan"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def __repr__(self) -> str:
        """String representation of user."""
        return f"User(id={self.id}, username='{self.username}', role='{self.role}')"

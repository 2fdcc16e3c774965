"""Data Transfer Objects for the service layer.

Caller identity is passed explicitly to every access-controlled operation;
services never read a "current user" from ambient request state.
"""

from dataclasses import dataclass
from typing import Any, Optional

from kitchen_costing.utils.constants import ROLE_ADMIN, ROLE_REGULAR


@dataclass(frozen=True)
class Viewer:
    """Already-authenticated identity of the caller.

    Attributes:
        user_id: Tenant ID of the caller
        email: Caller's email (matched case-insensitively)
        plan_type: Caller's plan name (e.g., "Pro")
        role: 'regular' or 'admin'

    Examples:
        >>> Viewer(user_id=4, email="sam@example.com", plan_type="Pro").is_admin
        False
    """

    user_id: Optional[int]
    email: Optional[str] = None
    plan_type: Optional[str] = None
    role: str = ROLE_REGULAR

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def from_user(cls, user: Any) -> "Viewer":
        """Build a Viewer from a User row."""
        return cls(user_id=user.id, email=user.email, plan_type=user.plan, role=user.role)

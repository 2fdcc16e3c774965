"""
Order Service - recorded sales and the analytics built on them.

An order captures the cost of what was sold at the moment it is recorded:
total_cost = recipe total cost / batch yield x quantity sold, using the
recipe's current lines and prices. Revenue is entered by the caller.

Analytics:
- get_analytics_overview(): tenant-wide totals, profit and margin
- get_recipe_performance(): per-recipe totals ordered by revenue
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kitchen_costing.models import Ingredient, Order, Recipe
from kitchen_costing.services.database import session_scope
from kitchen_costing.services.exceptions import (
    DatabaseError,
    RecipeNotFound,
    ValidationError,
)
from kitchen_costing.services.logging_utils import get_service_logger, log_operation
from kitchen_costing.services.recipe_cost_service import cost_recipe
from kitchen_costing.services.recipe_service import get_recipe_for_user, load_recipe_lines
from kitchen_costing.utils.constants import CURRENCY_DECIMAL_PLACES
from kitchen_costing.utils.validators import to_decimal, validate_non_negative_number

logger = get_service_logger(__name__)

_MONEY_QUANTUM = Decimal(1).scaleb(-CURRENCY_DECIMAL_PLACES)
_PERCENT_QUANTUM = Decimal("0.1")


def _money(value: Decimal) -> Decimal:
    return value.quantize(_MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def _margin_percent(revenue: Decimal, profit: Decimal) -> Decimal:
    if revenue <= 0:
        return Decimal("0")
    return (profit / revenue * 100).quantize(_PERCENT_QUANTUM, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class AnalyticsOverview:
    """Tenant-wide totals across all recorded orders."""

    total_recipes: int
    total_orders: int
    total_revenue: Decimal
    total_cost: Decimal
    total_profit: Decimal
    profit_margin: Decimal
    total_ingredients: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_recipes": self.total_recipes,
            "total_orders": self.total_orders,
            "total_revenue": str(self.total_revenue),
            "total_cost": str(self.total_cost),
            "total_profit": str(self.total_profit),
            "profit_margin": str(self.profit_margin),
            "total_ingredients": self.total_ingredients,
        }


@dataclass
class RecipePerformance:
    """Order totals for one recipe."""

    recipe_id: int
    recipe_name: str
    order_count: int = 0
    units_sold: int = 0
    revenue: Decimal = field(default_factory=lambda: Decimal("0"))
    cost: Decimal = field(default_factory=lambda: Decimal("0"))

    @property
    def profit(self) -> Decimal:
        return self.revenue - self.cost

    @property
    def profit_margin(self) -> Decimal:
        return _margin_percent(self.revenue, self.profit)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recipe_id": self.recipe_id,
            "recipe_name": self.recipe_name,
            "order_count": self.order_count,
            "units_sold": self.units_sold,
            "revenue": str(self.revenue),
            "cost": str(self.cost),
            "profit": str(self.profit),
            "profit_margin": str(self.profit_margin),
        }


def unit_cost(recipe: Recipe) -> Decimal:
    """Cost of one unit of a recipe's yield from its current lines."""
    return cost_recipe(recipe).cost_per_unit


def _parse_order(quantity: Any, total_revenue: Any) -> tuple:
    errors = []
    try:
        units = int(quantity)
    except (TypeError, ValueError):
        units = None
    if units is None or units <= 0:
        errors.append("Quantity: Value must be a whole number greater than zero")

    is_valid, error = validate_non_negative_number(total_revenue, "Total revenue")
    if not is_valid:
        errors.append(error)

    if errors:
        raise ValidationError(errors)
    return units, to_decimal(total_revenue)


def create_order(
    user_id: int,
    recipe_id: int,
    quantity: Any,
    total_revenue: Any,
    session: Optional[Session] = None,
) -> Order:
    """
    Record an order of one of the user's recipes.

    Args:
        user_id: Owning tenant
        recipe_id: Recipe sold (must belong to user_id)
        quantity: Whole units sold
        total_revenue: Revenue received for the order
        session: Optional database session

    Returns:
        Created Order with total_cost captured

    Raises:
        ValidationError: Bad quantity or revenue
        RecipeNotFound: If the recipe isn't the user's
    """
    units, revenue = _parse_order(quantity, total_revenue)
    try:
        if session is not None:
            return _create_order_impl(user_id, recipe_id, units, revenue, session)
        with session_scope() as session:
            return _create_order_impl(user_id, recipe_id, units, revenue, session)
    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create order", original_error=e)


def _create_order_impl(
    user_id: int, recipe_id: int, units: int, revenue: Decimal, session: Session
) -> Order:
    recipe = load_recipe_lines(get_recipe_for_user(session, recipe_id, user_id))
    order = Order(
        user_id=user_id,
        recipe_id=recipe.id,
        quantity=units,
        total_revenue=_money(revenue),
        total_cost=_money(unit_cost(recipe) * units),
    )
    session.add(order)
    session.flush()
    log_operation(
        logger,
        operation="create_order",
        outcome="success",
        order_id=order.id,
        recipe_id=recipe.id,
        user_id=user_id,
    )
    return order


def get_orders(
    user_id: int, recipe_id: Optional[int] = None, session: Optional[Session] = None
) -> List[Order]:
    """List a user's orders, newest first, optionally for one recipe."""
    try:
        if session is not None:
            return _get_orders_impl(user_id, recipe_id, session)
        with session_scope() as session:
            return _get_orders_impl(user_id, recipe_id, session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve orders", original_error=e)


def _get_orders_impl(user_id: int, recipe_id: Optional[int], session: Session) -> List[Order]:
    query = session.query(Order).filter(Order.user_id == user_id)
    if recipe_id is not None:
        query = query.filter(Order.recipe_id == recipe_id)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def delete_order(order_id: int, user_id: int, session: Optional[Session] = None) -> bool:
    """Delete one of the user's orders; False when there is no such order."""
    try:
        if session is not None:
            return _delete_order_impl(order_id, user_id, session)
        with session_scope() as session:
            return _delete_order_impl(order_id, user_id, session)
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete order {order_id}", original_error=e)


def _delete_order_impl(order_id: int, user_id: int, session: Session) -> bool:
    order = session.query(Order).filter(Order.id == order_id, Order.user_id == user_id).first()
    if order is None:
        return False
    session.delete(order)
    session.flush()
    return True


def get_analytics_overview(user_id: int, session: Optional[Session] = None) -> AnalyticsOverview:
    """
    Totals across the user's recipes, ingredients and orders.

    profit_margin is profit / revenue x 100 to one decimal place, 0 with
    no revenue.
    """
    try:
        if session is not None:
            return _get_analytics_overview_impl(user_id, session)
        with session_scope() as session:
            return _get_analytics_overview_impl(user_id, session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to compute analytics overview", original_error=e)


def _get_analytics_overview_impl(user_id: int, session: Session) -> AnalyticsOverview:
    orders = _get_orders_impl(user_id, None, session)
    revenue = sum((Decimal(order.total_revenue) for order in orders), Decimal("0"))
    cost = sum((Decimal(order.total_cost) for order in orders), Decimal("0"))
    profit = revenue - cost
    return AnalyticsOverview(
        total_recipes=session.query(Recipe).filter(Recipe.user_id == user_id).count(),
        total_orders=len(orders),
        total_revenue=revenue,
        total_cost=cost,
        total_profit=profit,
        profit_margin=_margin_percent(revenue, profit),
        total_ingredients=session.query(Ingredient).filter(Ingredient.user_id == user_id).count(),
    )


def get_recipe_performance(
    user_id: int, session: Optional[Session] = None
) -> List[RecipePerformance]:
    """Per-recipe order totals for recipes with orders, highest revenue first."""
    try:
        if session is not None:
            return _get_recipe_performance_impl(user_id, session)
        with session_scope() as session:
            return _get_recipe_performance_impl(user_id, session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to compute recipe performance", original_error=e)


def _get_recipe_performance_impl(user_id: int, session: Session) -> List[RecipePerformance]:
    rows = (
        session.query(Order, Recipe.name)
        .join(Recipe, Order.recipe_id == Recipe.id)
        .filter(Order.user_id == user_id)
        .all()
    )
    by_recipe: Dict[int, RecipePerformance] = {}
    for order, recipe_name in rows:
        entry = by_recipe.setdefault(
            order.recipe_id, RecipePerformance(recipe_id=order.recipe_id, recipe_name=recipe_name)
        )
        entry.order_count += 1
        entry.units_sold += order.quantity
        entry.revenue += Decimal(order.total_revenue)
        entry.cost += Decimal(order.total_cost)

    return sorted(by_recipe.values(), key=lambda entry: (-entry.revenue, entry.recipe_name))

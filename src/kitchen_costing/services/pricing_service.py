"""
Pricing guidance from recipe costs.

Two forward calculations (price from a target margin, price from a target
food-cost percentage) and their inverses (realized food cost and margin
for a given price). All four are pure and agree with each other: the price
suggested for a margin m has a food cost of 100 - m percent of the same
cost basis.

Out-of-range percentages return a zero sentinel instead of raising; a live
pricing panel fed with a half-typed value must not crash.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from kitchen_costing.services.recipe_cost_service import RecipeCostBreakdown
from kitchen_costing.utils.constants import DEFAULT_TARGET_FOOD_COST, DEFAULT_TARGET_MARGIN

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def _as_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def suggested_price_by_margin(total_cost: Any, margin_percent: Any) -> Decimal:
    """
    Price that yields the given profit margin on total_cost.

    Transaction boundary: Pure computation (no database access).

    Returns:
        total_cost / (1 - margin/100), or Decimal("0") when margin is not
        in [0, 100) or either input is not a number

    Examples:
        >>> suggested_price_by_margin(Decimal("4"), Decimal("50"))
        Decimal('8')
        >>> suggested_price_by_margin(Decimal("4"), Decimal("100"))
        Decimal('0')
    """
    cost = _as_decimal(total_cost)
    margin = _as_decimal(margin_percent)
    if cost is None or margin is None or margin < 0 or margin >= _HUNDRED:
        return _ZERO
    return cost / (1 - margin / _HUNDRED)


def suggested_price_by_food_cost(total_cost: Any, food_cost_percent: Any) -> Decimal:
    """
    Price at which total_cost is the given percentage of the price.

    Transaction boundary: Pure computation (no database access).

    Returns:
        total_cost / (food_cost/100), or Decimal("0") when food_cost is not
        in (0, 100) or either input is not a number
    """
    cost = _as_decimal(total_cost)
    food_cost = _as_decimal(food_cost_percent)
    if cost is None or food_cost is None or food_cost <= 0 or food_cost >= _HUNDRED:
        return _ZERO
    return cost / (food_cost / _HUNDRED)


def actual_food_cost_percent(total_cost: Any, price: Any) -> Decimal:
    """Cost as a percentage of price; 0 when price is not positive."""
    cost = _as_decimal(total_cost)
    amount = _as_decimal(price)
    if cost is None or amount is None or amount <= 0:
        return _ZERO
    return cost / amount * _HUNDRED


def actual_margin_percent(total_cost: Any, price: Any) -> Decimal:
    """Profit as a percentage of price; 0 when price is not positive."""
    cost = _as_decimal(total_cost)
    amount = _as_decimal(price)
    if cost is None or amount is None or amount <= 0:
        return _ZERO
    return (amount - cost) / amount * _HUNDRED


@dataclass(frozen=True)
class PricingSummary:
    """Pricing panel for one recipe, per unit of yield.

    Attributes:
        cost_per_unit: Total cost per unit (ingredients, materials, labor)
        ingredient_cost_per_unit: Ingredient cost per unit (food cost basis)
        target_margin / target_food_cost: Percentages the prices derive from
        price_by_margin: Suggested price from target_margin on cost_per_unit
        price_by_food_cost: Suggested price from target_food_cost on
            ingredient_cost_per_unit
        profit_per_unit: price_by_margin - cost_per_unit
        food_cost_percent_at_margin_price: Realized food cost at price_by_margin
        margin_percent_at_food_cost_price: Realized margin at price_by_food_cost
    """

    cost_per_unit: Decimal
    ingredient_cost_per_unit: Decimal
    target_margin: Decimal
    target_food_cost: Decimal
    price_by_margin: Decimal
    price_by_food_cost: Decimal
    profit_per_unit: Decimal
    food_cost_percent_at_margin_price: Decimal
    margin_percent_at_food_cost_price: Decimal

    def to_dict(self) -> dict:
        return {key: str(value) for key, value in self.__dict__.items()}


def build_pricing_summary(
    breakdown: RecipeCostBreakdown,
    batch_yield: Any = None,
    target_margin: Any = None,
    target_food_cost: Any = None,
) -> PricingSummary:
    """
    Assemble the pricing panel for a costed recipe.

    Transaction boundary: Pure computation (no database access).

    The margin price is based on the full cost per unit; the food-cost price
    is based on the ingredient cost per unit only, as kitchens quote food
    cost on ingredients.

    Args:
        breakdown: Result of recipe_cost_service.aggregate()
        batch_yield: Units per batch (values below 1 count as 1)
        target_margin: Margin percent (default 50)
        target_food_cost: Food cost percent (default 30)
    """
    margin = _as_decimal(target_margin)
    if margin is None:
        margin = DEFAULT_TARGET_MARGIN
    food_cost = _as_decimal(target_food_cost)
    if food_cost is None:
        food_cost = DEFAULT_TARGET_FOOD_COST

    yield_value = _as_decimal(batch_yield)
    divisor = yield_value if yield_value is not None and yield_value >= 1 else Decimal("1")
    ingredient_cost_per_unit = breakdown.ingredients_cost / divisor

    price_by_margin = suggested_price_by_margin(breakdown.cost_per_unit, margin)
    price_by_food_cost = suggested_price_by_food_cost(ingredient_cost_per_unit, food_cost)

    return PricingSummary(
        cost_per_unit=breakdown.cost_per_unit,
        ingredient_cost_per_unit=ingredient_cost_per_unit,
        target_margin=margin,
        target_food_cost=food_cost,
        price_by_margin=price_by_margin,
        price_by_food_cost=price_by_food_cost,
        profit_per_unit=price_by_margin - breakdown.cost_per_unit,
        food_cost_percent_at_margin_price=actual_food_cost_percent(
            ingredient_cost_per_unit, price_by_margin
        ),
        margin_percent_at_food_cost_price=actual_margin_percent(
            breakdown.cost_per_unit, price_by_food_cost
        ),
    )

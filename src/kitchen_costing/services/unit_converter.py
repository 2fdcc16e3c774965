"""
Purchase-to-canonical cost conversion for ingredients and materials.

This module provides:
- Canonical price-per-gram derivation for weight/volume purchases
- Count-based conversion (pieces x weight per piece -> grams)
- Material cost pass-through (materials stay in their native unit)
- Recipe-line quantity conversion to grams

Conversion Strategy:
- Ingredient quantities are treated as gram-equivalent whatever the
  declared unit ("ml" divides into the purchase amount just like "g")
- Count-based purchases convert through pieces_per_purchase_unit x
  weight_per_piece
- price_per_gram is rounded to 4 places, half-up

All functions are pure computation (no database access). Inputs must
already be parsed to Decimal (see utils.validators); anything else is
rejected as an invalid quantity.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

from kitchen_costing.services.exceptions import InvalidCountBasedInput, InvalidQuantity
from kitchen_costing.utils.constants import PIECE_UNIT, PRICE_PER_GRAM_PLACES

_PRICE_QUANTUM = Decimal(1).scaleb(-PRICE_PER_GRAM_PLACES)


@dataclass(frozen=True)
class IngredientCostInput:
    """Typed purchase data for one ingredient.

    Attributes:
        quantity: Amount purchased (grams or gram-equivalent), weight/volume mode
        purchase_amount: Price paid for the purchase
        is_count_based: True when bought by piece count
        pieces_per_purchase_unit: Pieces in the purchase (count-based mode)
        weight_per_piece: Grams per piece (count-based mode)
    """

    quantity: Optional[Decimal] = None
    purchase_amount: Optional[Decimal] = None
    is_count_based: bool = False
    pieces_per_purchase_unit: Optional[Decimal] = None
    weight_per_piece: Optional[Decimal] = None

    @classmethod
    def from_mapping(cls, data: dict) -> "IngredientCostInput":
        """Build from a cleaned dict (output of parse_ingredient_data)."""
        return cls(
            quantity=data.get("quantity"),
            purchase_amount=data.get("purchase_amount"),
            is_count_based=bool(data.get("is_count_based", False)),
            pieces_per_purchase_unit=data.get("pieces_per_purchase_unit"),
            weight_per_piece=data.get("weight_per_piece"),
        )


@dataclass(frozen=True)
class IngredientCost:
    """Result of compute_ingredient_cost.

    Attributes:
        price_per_gram: Canonical cost, 4 decimal places
        canonical_quantity_grams: Grams purchased
        cost_per_piece: purchase_amount / pieces for count-based purchases
            (display only, never a cost basis); None otherwise
    """

    price_per_gram: Decimal
    canonical_quantity_grams: Decimal
    cost_per_piece: Optional[Decimal] = None


def _is_positive(value: Any) -> bool:
    return isinstance(value, Decimal) and value.is_finite() and value > 0


def round_price_per_gram(value: Decimal) -> Decimal:
    """
    Round a price per gram to 4 decimal places, half-up.

    Example:
        >>> round_price_per_gram(Decimal("0.00125"))
        Decimal('0.0013')
    """
    return value.quantize(_PRICE_QUANTUM, rounding=ROUND_HALF_UP)


def compute_ingredient_cost(data: IngredientCostInput) -> IngredientCost:
    """
    Derive the canonical cost of an ingredient purchase.

    Transaction boundary: Pure computation (no database access).

    Args:
        data: Typed purchase data

    Returns:
        IngredientCost with price_per_gram and canonical grams

    Raises:
        InvalidQuantity: Weight/volume purchase with quantity or
            purchase_amount missing or not > 0
        InvalidCountBasedInput: Count-based purchase with pieces, piece
            weight or purchase_amount missing or not > 0

    Examples:
        >>> compute_ingredient_cost(IngredientCostInput(Decimal("1000"), Decimal("2.50")))
        IngredientCost(price_per_gram=Decimal('0.0025'), canonical_quantity_grams=Decimal('1000'), cost_per_piece=None)
    """
    if data.is_count_based:
        missing = [
            field
            for field in ("pieces_per_purchase_unit", "weight_per_piece", "purchase_amount")
            if not _is_positive(getattr(data, field))
        ]
        if missing:
            raise InvalidCountBasedInput(missing)

        total_grams = data.pieces_per_purchase_unit * data.weight_per_piece
        return IngredientCost(
            price_per_gram=round_price_per_gram(data.purchase_amount / total_grams),
            canonical_quantity_grams=total_grams,
            cost_per_piece=data.purchase_amount / data.pieces_per_purchase_unit,
        )

    if not _is_positive(data.quantity):
        raise InvalidQuantity("quantity", data.quantity)
    if not _is_positive(data.purchase_amount):
        raise InvalidQuantity("purchase_amount", data.purchase_amount)

    return IngredientCost(
        price_per_gram=round_price_per_gram(data.purchase_amount / data.quantity),
        canonical_quantity_grams=data.quantity,
    )


def compute_material_cost(price_per_unit: Decimal) -> Decimal:
    """
    Validate a material's cost per unit and pass it through.

    Transaction boundary: Pure computation (no database access).

    Raises:
        InvalidQuantity: If price_per_unit is missing, non-finite or negative
    """
    if not isinstance(price_per_unit, Decimal) or not price_per_unit.is_finite():
        raise InvalidQuantity("price_per_unit", price_per_unit)
    if price_per_unit < 0:
        raise InvalidQuantity("price_per_unit", price_per_unit)
    return price_per_unit


def derive_material_price(
    quantity: Optional[Decimal], purchase_amount: Optional[Decimal]
) -> Decimal:
    """
    Cost of one native unit of a material from its purchase.

    Raises:
        InvalidQuantity: If quantity is not > 0 or purchase_amount is negative
    """
    if not _is_positive(quantity):
        raise InvalidQuantity("quantity", quantity)
    if not isinstance(purchase_amount, Decimal) or purchase_amount < 0:
        raise InvalidQuantity("purchase_amount", purchase_amount)
    return compute_material_cost(round_price_per_gram(purchase_amount / quantity))


def quantity_in_grams(
    quantity: Any,
    unit: Optional[str],
    is_count_based: bool = False,
    weight_per_piece: Any = None,
) -> Decimal:
    """
    Convert a recipe line quantity to grams.

    A 'pcs' line on a count-based ingredient with a positive piece weight
    is quantity x weight_per_piece; every other line is already grams.

    Returns:
        Decimal grams (Decimal("0") for a non-numeric quantity)
    """
    try:
        amount = quantity if isinstance(quantity, Decimal) else Decimal(str(quantity))
    except ArithmeticError:
        return Decimal("0")
    if not amount.is_finite():
        return Decimal("0")

    if is_count_based and unit == PIECE_UNIT and weight_per_piece is not None:
        piece_weight = Decimal(str(weight_per_piece))
        if piece_weight > 0:
            return amount * piece_weight
    return amount


def apply_ingredient_costing(values: dict) -> dict:
    """
    Fill in the derived cost fields of cleaned ingredient values.

    - Count-based: quantity becomes pieces x weight_per_piece and
      price_per_gram is derived (InvalidCountBasedInput if incomplete)
    - quantity and purchase_amount both present: price_per_gram is derived
    - otherwise an explicitly entered price_per_gram is kept
    - with none of the above, InvalidQuantity is raised

    Transaction boundary: Pure computation (no database access).

    Args:
        values: Cleaned field values (see utils.validators.parse_ingredient_data)

    Returns:
        A new dict with quantity and price_per_gram set
    """
    result = dict(values)
    cost_input = IngredientCostInput.from_mapping(result)

    if cost_input.is_count_based:
        cost = compute_ingredient_cost(cost_input)
        result["quantity"] = cost.canonical_quantity_grams
        result["price_per_gram"] = cost.price_per_gram
        return result

    if cost_input.quantity is not None and cost_input.purchase_amount is not None:
        result["price_per_gram"] = compute_ingredient_cost(cost_input).price_per_gram
        return result

    price_per_gram = result.get("price_per_gram")
    if isinstance(price_per_gram, Decimal) and price_per_gram.is_finite() and price_per_gram >= 0:
        result["price_per_gram"] = round_price_per_gram(price_per_gram)
        return result

    if cost_input.quantity is None:
        raise InvalidQuantity("quantity", None)
    raise InvalidQuantity("purchase_amount", None)


def apply_material_costing(values: dict) -> dict:
    """
    Fill in price_per_unit of cleaned material values.

    An entered price_per_unit is validated and kept; otherwise it is derived
    from purchase_amount / quantity.

    Raises:
        InvalidQuantity: If neither a valid price nor purchase data is given
    """
    result = dict(values)
    price_per_unit = result.get("price_per_unit")
    if price_per_unit is not None:
        result["price_per_unit"] = compute_material_cost(price_per_unit)
        return result
    result["price_per_unit"] = derive_material_price(
        result.get("quantity"), result.get("purchase_amount")
    )
    return result

"""
Recipe scaling by baker's percentages and pan size.

Baker's percentages express every ingredient as a share of the dominant
ingredient: the first line whose name contains a flour keyword, otherwise
the heaviest line. Scaling to a number of pieces keeps those shares:

    flour factor   = 100 / sum(baker's %)
    required flour = round(flour factor x pieces x weight per piece)
    new weight     = required flour / 100 x baker's %

Pan scaling returns a multiplier for the whole recipe from pan area
(round or rectangular, times the number of pans) or pan volume.

Everything except scale_recipe() is pure computation.
"""

import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kitchen_costing.services.database import session_scope
from kitchen_costing.services.exceptions import DatabaseError, RecipeNotFound, ValidationError
from kitchen_costing.services.recipe_service import get_recipe_for_user, load_recipe_lines
from kitchen_costing.services.unit_converter import quantity_in_grams
from kitchen_costing.utils.constants import FLOUR_KEYWORDS

PAN_ROUND = "round"
PAN_RECTANGULAR = "rectangular"
PAN_SQUARE = "square"

DEFAULT_PAN_HEIGHT = 2.0

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class WeightedLine:
    """An ingredient line measured in grams."""

    ingredient_id: Optional[int]
    name: str
    grams: Decimal
    price_per_gram: Decimal = _ZERO


@dataclass(frozen=True)
class DominantIngredient:
    ingredient_id: Optional[int]
    name: str
    grams: Decimal
    is_flour: bool


@dataclass(frozen=True)
class BakerLine:
    ingredient_id: Optional[int]
    name: str
    grams: Decimal
    baker_percent: Decimal
    price_per_gram: Decimal


@dataclass(frozen=True)
class ScaledLine:
    """One ingredient before and after scaling."""

    ingredient_id: Optional[int]
    name: str
    baker_percent: Decimal
    original_grams: Decimal
    new_grams: Decimal
    original_cost: Decimal
    new_cost: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ingredient_id": self.ingredient_id,
            "name": self.name,
            "baker_percent": str(self.baker_percent),
            "original_grams": str(self.original_grams),
            "new_grams": str(self.new_grams),
            "original_cost": str(self.original_cost),
            "new_cost": str(self.new_cost),
        }


@dataclass(frozen=True)
class ScaledRecipe:
    """Result of scale_to_pieces; lines list the dominant ingredient first."""

    dominant: DominantIngredient
    flour_factor: Decimal
    required_flour: Decimal
    lines: List[ScaledLine]

    @property
    def total_grams(self) -> Decimal:
        return sum((line.new_grams for line in self.lines), _ZERO)

    @property
    def total_cost(self) -> Decimal:
        return sum((line.new_cost for line in self.lines), _ZERO)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dominant_ingredient": self.dominant.name,
            "dominant_is_flour": self.dominant.is_flour,
            "flour_factor": str(self.flour_factor),
            "required_flour": str(self.required_flour),
            "total_grams": str(self.total_grams),
            "total_cost": str(self.total_cost),
            "lines": [line.to_dict() for line in self.lines],
        }


def is_flour(name: Optional[str]) -> bool:
    lowered = (name or "").casefold()
    return any(keyword in lowered for keyword in FLOUR_KEYWORDS)


def find_dominant_ingredient(lines: Sequence[WeightedLine]) -> Optional[DominantIngredient]:
    """
    Pick the line baker's percentages are measured against.

    The first flour line wins even when lighter than another line; without
    one, the heaviest line (first on ties). None when no line has weight.
    """
    for line in lines:
        if is_flour(line.name):
            return DominantIngredient(line.ingredient_id, line.name, line.grams, True)

    heaviest = None
    for line in lines:
        if line.grams > 0 and (heaviest is None or line.grams > heaviest.grams):
            heaviest = line
    if heaviest is None:
        return None
    return DominantIngredient(heaviest.ingredient_id, heaviest.name, heaviest.grams, False)


def bakers_percentages(
    lines: Sequence[WeightedLine], dominant: Optional[DominantIngredient] = None
) -> List[BakerLine]:
    """
    Each line's weight as a percentage of the dominant ingredient's weight.

    Returns an empty list when there is no dominant ingredient or it weighs
    nothing.

    Example:
        >>> lines = [WeightedLine(1, "Bread flour", Decimal("500")),
        ...          WeightedLine(2, "Water", Decimal("350"))]
        >>> [line.baker_percent for line in bakers_percentages(lines)]
        [Decimal('100'), Decimal('70.0')]
    """
    if dominant is None:
        dominant = find_dominant_ingredient(lines)
    if dominant is None or dominant.grams <= 0:
        return []
    return [
        BakerLine(
            ingredient_id=line.ingredient_id,
            name=line.name,
            grams=line.grams,
            baker_percent=line.grams / dominant.grams * _HUNDRED,
            price_per_gram=line.price_per_gram,
        )
        for line in lines
    ]


def scale_to_pieces(
    lines: Sequence[WeightedLine], desired_pieces: Any, weight_per_piece: Any
) -> ScaledRecipe:
    """
    Rescale a recipe to produce desired_pieces pieces of weight_per_piece grams.

    Raises:
        ValidationError: If pieces or weight are not > 0, or the recipe has
            no ingredient weight to scale from
    """
    pieces = _positive_decimal(desired_pieces, "Desired pieces")
    piece_weight = _positive_decimal(weight_per_piece, "Weight per piece")

    dominant = find_dominant_ingredient(lines)
    percentages = bakers_percentages(lines, dominant)
    total_percent = sum((line.baker_percent for line in percentages), _ZERO)
    if total_percent <= 0:
        raise ValidationError(["Recipe has no ingredient weight to scale from"])

    flour_factor = _HUNDRED / total_percent
    required_flour = (flour_factor * pieces * piece_weight).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )

    scaled = []
    for line in percentages:
        new_grams = required_flour / _HUNDRED * line.baker_percent
        scaled.append(
            ScaledLine(
                ingredient_id=line.ingredient_id,
                name=line.name,
                baker_percent=line.baker_percent,
                original_grams=line.grams,
                new_grams=new_grams,
                original_cost=line.grams * line.price_per_gram,
                new_cost=new_grams * line.price_per_gram,
            )
        )
    scaled.sort(key=lambda line: line.ingredient_id != dominant.ingredient_id)

    return ScaledRecipe(
        dominant=dominant,
        flour_factor=flour_factor,
        required_flour=required_flour,
        lines=scaled,
    )


def _positive_decimal(value: Any, label: str) -> Decimal:
    try:
        number = Decimal(str(value))
    except ArithmeticError:
        number = None
    if number is None or not number.is_finite() or number <= 0:
        raise ValidationError([f"{label}: Value must be greater than zero"])
    return number


def recipe_weighted_lines(recipe) -> List[WeightedLine]:
    """Gram-weighted lines from a loaded recipe, pieces converted to grams."""
    lines = []
    for row in recipe.recipe_ingredients:
        ingredient = row.ingredient
        if ingredient is None:
            continue
        lines.append(
            WeightedLine(
                ingredient_id=ingredient.id,
                name=ingredient.name,
                grams=quantity_in_grams(
                    row.quantity, row.unit, ingredient.is_count_based, ingredient.weight_per_piece
                ),
                price_per_gram=Decimal(ingredient.price_per_gram or 0),
            )
        )
    return lines


def scale_recipe(
    recipe_id: int,
    user_id: int,
    desired_pieces: Any,
    weight_per_piece: Any,
    session: Optional[Session] = None,
) -> ScaledRecipe:
    """
    Scale one of the user's stored recipes to a number of pieces.

    Nothing is written; the result is a preview.

    Raises:
        RecipeNotFound: If the recipe isn't the user's
        ValidationError: See scale_to_pieces()
    """
    try:
        if session is not None:
            recipe = load_recipe_lines(get_recipe_for_user(session, recipe_id, user_id))
            lines = recipe_weighted_lines(recipe)
        else:
            with session_scope() as session:
                recipe = load_recipe_lines(get_recipe_for_user(session, recipe_id, user_id))
                lines = recipe_weighted_lines(recipe)
    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to load recipe {recipe_id}", original_error=e)
    return scale_to_pieces(lines, desired_pieces, weight_per_piece)


# ============================================================================
# Pan scaling
# ============================================================================


def _dimension(value: Any) -> float:
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) and number > 0 else 0.0


def pan_area(
    shape: str,
    diameter: Any = None,
    length: Any = None,
    width: Any = None,
    count: Any = 1,
) -> float:
    """Baking area of count pans; 0 for an unknown shape or missing size."""
    pans = _dimension(count)
    if shape == PAN_ROUND:
        radius = _dimension(diameter) / 2
        return math.pi * radius * radius * pans
    if shape in (PAN_RECTANGULAR, PAN_SQUARE):
        return _dimension(length) * _dimension(width) * pans
    return 0.0


def pan_volume(
    shape: str,
    diameter: Any = None,
    length: Any = None,
    width: Any = None,
    height: Any = None,
) -> float:
    """Volume of one pan; height defaults to 2."""
    pan_height = _dimension(height) or DEFAULT_PAN_HEIGHT
    if shape == PAN_ROUND:
        radius = _dimension(diameter) / 2
        return math.pi * radius * radius * pan_height
    if shape in (PAN_RECTANGULAR, PAN_SQUARE):
        return _dimension(length) * _dimension(width) * pan_height
    return 0.0


_AREA_KEYS = ("shape", "diameter", "length", "width", "count")
_VOLUME_KEYS = ("shape", "diameter", "length", "width", "height")


def _pan_args(pan: Dict[str, Any], keys: Sequence[str]) -> Dict[str, Any]:
    return {key: pan[key] for key in keys if key in pan}


def pan_area_factor(original: Dict[str, Any], new: Dict[str, Any]) -> Optional[float]:
    """
    Recipe multiplier to move from the original pans to the new pans by area.

    Each pan dict holds shape plus diameter or length/width, and count.
    Returns None when either area is zero.

    Example:
        >>> pan_area_factor({"shape": "rectangular", "length": 9, "width": 13, "count": 1},
        ...                 {"shape": "rectangular", "length": 9, "width": 13, "count": 2})
        2.0
    """
    original_area = pan_area(**_pan_args(original, _AREA_KEYS))
    new_area = pan_area(**_pan_args(new, _AREA_KEYS))
    if original_area <= 0 or new_area <= 0:
        return None
    return new_area / original_area


def pan_volume_factor(original: Dict[str, Any], new: Dict[str, Any]) -> float:
    """Recipe multiplier by pan volume; 0 when the original volume is 0."""
    original_volume = pan_volume(**_pan_args(original, _VOLUME_KEYS))
    if original_volume <= 0:
        return 0.0
    return pan_volume(**_pan_args(new, _VOLUME_KEYS)) / original_volume

"""
Case-insensitive name collision detection for masterlist items.

The same matching rule serves interactive forms (which block on a match),
recipe cloning (which reuses the match) and the starter pack import (which
skips on a match). Nothing here enforces uniqueness in the database.
"""

from typing import Any, Iterable, Optional


def normalize_name(name: Optional[str]) -> str:
    """
    Normalize a name for comparison: trim, then case-fold.

    Examples:
        >>> normalize_name("  Bread Flour ")
        'bread flour'
    """
    if name is None:
        return ""
    return str(name).strip().casefold()


def names_match(first: Optional[str], second: Optional[str]) -> bool:
    """True when two names are equal after normalize_name()."""
    return normalize_name(first) == normalize_name(second)


def _item_field(item: Any, field: str) -> Any:
    if isinstance(item, dict):
        return item.get(field)
    return getattr(item, field, None)


def find_duplicate(
    candidate_name: Optional[str],
    existing_items: Iterable[Any],
    exclude_id: Any = None,
) -> Optional[Any]:
    """
    Find the first existing item whose name matches candidate_name.

    Transaction boundary: Pure computation (no database access).

    Args:
        candidate_name: Name being entered or imported
        existing_items: ORM rows or dicts with 'id' and 'name'
        exclude_id: ID of the item being edited, so it doesn't match itself

    Returns:
        The matching item, or None

    Examples:
        >>> find_duplicate("  Flour ", [{"id": 1, "name": "flour"}])
        {'id': 1, 'name': 'flour'}
        >>> find_duplicate("Flour", [{"id": "x", "name": "Flour"}], exclude_id="x") is None
        True
    """
    target = normalize_name(candidate_name)
    if not target:
        return None

    for item in existing_items:
        if exclude_id is not None and _item_field(item, "id") == exclude_id:
            continue
        if normalize_name(_item_field(item, "name")) == target:
            return item
    return None

"""
Category Resolver

Maps free-form text typed by a user onto an existing category.
Priority: exact match -> prefix match -> substring match (all case-insensitive).
Never creates a category.
"""
from typing import Iterable, List, Optional

from .models import Category


def sorted_categories(categories: Iterable[Category]) -> List[Category]:
    """Stable alphabetical order so ties always resolve the same way"""
    return sorted(categories, key=lambda c: (c.name.lower(), c.name))


def resolve_category(text: str, categories: Iterable[Category]) -> Optional[Category]:
    """
    Find the best existing category for the given text

    Args:
        text: Free-form category name (e.g. "groc")
        categories: Existing categories

    Returns:
        The matching Category, or None if nothing matches
    """
    needle = (text or '').strip().lower()
    if not needle:
        return None

    ordered = sorted_categories(categories)

    for cat in ordered:
        if cat.name.lower() == needle:
            return cat

    for cat in ordered:
        if cat.name.lower().startswith(needle):
            return cat

    for cat in ordered:
        if needle in cat.name.lower():
            return cat

    return None


def suggest_categories(text: str, categories: Iterable[Category], limit: int = 5) -> List[str]:
    """Category names containing the text, for live suggestions while typing"""
    needle = (text or '').strip().lower()
    names = [c.name for c in sorted_categories(categories)]
    if needle:
        names = [name for name in names if needle in name.lower()]
    return names[:limit]

"""
Grouping & Subtotal Engine — filters takeoff items, buckets them by
(group name, unit, category) and orders the buckets for the Dim Sheet.

Ordering:
  1. canonical construction-trade order (config.CATEGORY_ORDER),
     unknown categories last
  2. group name, compared case- and accent-insensitively

The engine is pure: the same items and filters always produce the same
ordered groups and the same totals.
"""
import logging
import math
import unicodedata
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Tuple

from takeoff.config import ALL_CATEGORIES, CATEGORY_ORDER, UNKNOWN_CATEGORY_RANK
from takeoff.models.takeoff_schema import TakeoffItem
from takeoff.services.item_classifier import classify_description

logger = logging.getLogger("takeoff-grouping")

GroupKey = Tuple[str, str, str]   # (group name, unit, category)

_CATEGORY_RANK: Dict[str, int] = {name: i for i, name in enumerate(CATEGORY_ORDER)}

# Scope keywords for MEP work filed under other categories
_SCOPE_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "Electrical": ("Electrical",),
    "Mechanical": ("Mechanical", "HVAC"),
    "Sanitary": ("Sanitary", "Plumbing"),
}


@dataclass(frozen=True)
class LocatedItem:
    item: TakeoffItem
    location: str


@dataclass
class GroupedItem:
    name: str
    unit: str
    category: str
    items: List[LocatedItem] = field(default_factory=list)

    @property
    def key(self) -> GroupKey:
        return (self.name, self.unit, self.category)

    @property
    def total_quantity(self) -> float:
        # fsum keeps the total independent of member order
        return math.fsum(li.item.quantity for li in self.items)


def collation_key(text: str) -> Tuple[str, str]:
    """Locale-style sort key: accents and case ignored first, raw text breaks ties."""
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (base.casefold(), text)


def category_rank(category: str) -> int:
    return _CATEGORY_RANK.get(category, UNKNOWN_CATEGORY_RANK)


def item_matches(item: TakeoffItem, search_term: str = "", category_filter: str = ALL_CATEGORIES) -> bool:
    """Search term is a case-insensitive substring of the description; category must match exactly."""
    if search_term and search_term.lower() not in item.description.lower():
        return False
    return category_filter == ALL_CATEGORIES or item.category == category_filter


def group_items(
    items: Iterable[TakeoffItem],
    search_term: str = "",
    category_filter: str = ALL_CATEGORIES,
) -> List[GroupedItem]:
    """
    Filter, bucket, and sort items into Dim Sheet groups.

    Returns an empty list when nothing matches; that is a valid result.
    """
    groups: Dict[GroupKey, GroupedItem] = {}

    for item in items:
        if not item_matches(item, search_term, category_filter):
            continue
        parsed = classify_description(item.description)
        key = (parsed.group_name, item.unit, item.category)
        group = groups.get(key)
        if group is None:
            group = GroupedItem(name=parsed.group_name, unit=item.unit, category=item.category)
            groups[key] = group
        group.items.append(LocatedItem(item=item, location=parsed.location))

    if not groups:
        logger.info(f"EMPTY_RESULT_SET: no items match search={search_term!r} category={category_filter!r}")
        return []

    # sorted() is stable: full ties keep encounter order
    return sorted(
        groups.values(),
        key=lambda g: (category_rank(g.category), collation_key(g.name)),
    )


def category_breakdown(items: Iterable[TakeoffItem]) -> List[Dict]:
    """Item count and summed quantity per category, in encounter order."""
    buckets: Dict[str, List[float]] = {}
    for item in items:
        buckets.setdefault(item.category, []).append(item.quantity)
    return [
        {"name": category, "count": len(quantities), "value": math.fsum(quantities)}
        for category, quantities in buckets.items()
    ]


def scope_allows(category: str, scopes: Sequence[str]) -> bool:
    """
    True if a category falls inside the selected scopes.

    An empty scope list allows everything. MEP work may be filed under a
    broader category, so Electrical / Mechanical (HVAC) / Sanitary (Plumbing)
    keywords in the category text also count.
    """
    if not scopes:
        return True
    if category in scopes:
        return True
    for scope, keywords in _SCOPE_KEYWORDS.items():
        if scope in scopes and any(kw in category for kw in keywords):
            return True
    return False


def filter_by_scopes(items: Iterable[TakeoffItem], scopes: Sequence[str]) -> List[TakeoffItem]:
    return [item for item in items if scope_allows(item.category, scopes)]

"""Grouping of catalog items into product variants."""

from __future__ import annotations

from decimal import Decimal
from typing import Callable

from app.models import MAIN_SOURCE, Category, CatalogItem, Variant, VariantGroup

HIDDEN_MARKER = "."

VariantPicker = Callable[[VariantGroup], Variant | None]


def normalize_name(name: str) -> str:
    """Strip a single leading hidden/alias marker from an item name."""
    if name.startswith(HIDDEN_MARKER):
        return name[len(HIDDEN_MARKER) :]
    return name


def _sources(category: Category) -> list[tuple[str, tuple[CatalogItem, ...]]]:
    sources = [(MAIN_SOURCE, category.items)]
    sources.extend((subcat.name, subcat.items) for subcat in category.subcategories)
    return sources


def resolve(category: Category) -> list[VariantGroup]:
    """
    Group a category's direct and nested items by normalized name.

    Direct items come first, then each subcategory in order. Groups keep the
    first-seen order of names and variants keep insertion order. The lookup
    is rebuilt on every call.
    """
    groups: dict[str, VariantGroup] = {}
    for source, items in _sources(category):
        for item in items:
            name = normalize_name(item.name)
            group = groups.get(name)
            if group is None:
                group = VariantGroup(name=name)
                groups[name] = group
            group.variants.append(Variant(item=item, source=source, display_price=item.price))
    return list(groups.values())


def product_cards(category: Category) -> list[VariantGroup]:
    """Groups shown as product cards: one per distinct direct item name."""
    by_name = {group.name: group for group in resolve(category)}
    cards: list[VariantGroup] = []
    seen: set[str] = set()
    for item in category.items:
        name = normalize_name(item.name)
        if name in seen:
            continue
        seen.add(name)
        cards.append(by_name[name])
    return cards


def screen_price_range(group: VariantGroup) -> tuple[Decimal, Decimal] | None:
    """Min/max over the raw price list, or None when there is one price."""
    prices = group.prices
    if len(prices) < 2:
        return None
    low, high = min(prices), max(prices)
    if low == high:
        return None
    return (low, high)


def screen_price_label(group: VariantGroup) -> str:
    price_range = screen_price_range(group)
    if price_range is None:
        return f"{group.prices[0]:.2f}€"
    low, high = price_range
    return f"{low:.2f}€ - {high:.2f}€"


def export_prices(group: VariantGroup) -> list[Decimal]:
    """Unique prices, highest first."""
    return sorted(set(group.prices), reverse=True)


def choose_variant(group: VariantGroup, picker: VariantPicker) -> Variant | None:
    """Return the variant to charge, asking `picker` only when the group is ambiguous."""
    if not group.is_ambiguous:
        return group.variants[0]
    chosen = picker(group)
    if chosen is None or chosen not in group.variants:
        return None
    return chosen

from __future__ import annotations

from decimal import Decimal

import pytest

from app.export import format_product_line
from app.models import MAIN_SOURCE, Category, Variant, VariantGroup
from app.variants import (
    choose_variant,
    export_prices,
    normalize_name,
    product_cards,
    resolve,
    screen_price_label,
    screen_price_range,
)
from tests.conftest import item


def test_normalize_strips_single_leading_marker():
    assert normalize_name(".Caña") == "Caña"
    assert normalize_name("Caña") == "Caña"
    assert normalize_name("..Caña") == ".Caña"
    assert normalize_name("Caña.") == "Caña."


# Holds only for names with at most one leading marker; see the test below.
@pytest.mark.parametrize("name", [".Caña", "Caña", "Café con leche", "Caña.", ""])
def test_normalize_is_idempotent_on_normalized_names(name):
    once = normalize_name(name)
    assert normalize_name(once) == once


def test_normalize_strips_one_marker_per_call():
    once = normalize_name("..Caña")

    assert once == ".Caña"
    assert normalize_name(once) == "Caña"
    assert normalize_name(once) != once


def test_resolve_groups_direct_items_then_subcategories(drinks):
    groups = resolve(drinks)

    assert [group.name for group in groups] == ["Café", "Caña", "Agua", "Vermut"]
    cana = groups[1]
    assert [(v.source, v.display_price) for v in cana.variants] == [
        (MAIN_SOURCE, Decimal("2.00")),
        ("Terraza", Decimal("2.50")),
        ("Happy hour", Decimal("2.00")),
    ]
    assert cana.variants[1].item.name == ".Caña"
    assert [v.source for v in groups[3].variants] == ["Terraza"]


def test_every_item_lands_in_exactly_one_group(drinks):
    groups = resolve(drinks)
    all_items = list(drinks.items) + [i for sub in drinks.subcategories for i in sub.items]

    grouped = [variant.item for group in groups for variant in group.variants]
    assert len(grouped) == len(all_items)
    assert sorted(i.name for i in grouped) == sorted(i.name for i in all_items)


def test_resolve_is_deterministic(drinks):
    assert resolve(drinks) == resolve(drinks)


def test_grouping_key_is_exact():
    category = Category(name="Bebidas", items=(item("Cafe", "1.00"), item("cafe", "1.00"), item("Cafe ", "1.00")))

    assert [group.name for group in resolve(category)] == ["Cafe", "cafe", "Cafe "]


def test_empty_category_yields_no_groups():
    assert resolve(Category(name="Vacía")) == []
    assert product_cards(Category(name="Vacía")) == []


def _group(*prices: str) -> VariantGroup:
    group = VariantGroup(name="Bravas")
    for idx, price in enumerate(prices):
        source = MAIN_SOURCE if idx == 0 else f"Sub {idx}"
        group.variants.append(Variant(item=item("Bravas", price), source=source, display_price=Decimal(price)))
    return group


def test_price_range_for_screen_uses_raw_prices():
    group = _group("3.50", "4.00", "3.50")

    assert screen_price_range(group) == (Decimal("3.50"), Decimal("4.00"))
    assert screen_price_label(group) == "3.50€ - 4.00€"


def test_export_prices_are_unique_and_descending():
    group = _group("3.50", "4.00", "3.50")

    assert export_prices(group) == [Decimal("4.00"), Decimal("3.50")]
    assert format_product_line(group.name, export_prices(group)).endswith(" 4.00€ / 3.50€")


def test_single_or_equal_prices_show_one_price():
    assert screen_price_range(_group("2.00")) is None
    assert screen_price_label(_group("2.00")) == "2.00€"
    assert screen_price_label(_group("2.00", "2.00")) == "2.00€"
    assert export_prices(_group("2.00", "2.00")) == [Decimal("2.00")]


def test_product_cards_follow_direct_items(drinks):
    cards = product_cards(drinks)

    assert [card.name for card in cards] == ["Café", "Caña", "Agua"]
    assert cards[1].is_ambiguous
    assert not cards[0].is_ambiguous


def test_single_variant_skips_the_picker(drinks):
    def picker(group):
        raise AssertionError("picker must not be called")

    cafe = product_cards(drinks)[0]
    assert choose_variant(cafe, picker) is cafe.variants[0]


def test_ambiguous_group_uses_the_picker(drinks):
    cana = product_cards(drinks)[1]
    seen = []

    def picker(group):
        seen.append(group)
        return group.variants[1]

    assert choose_variant(cana, picker).source == "Terraza"
    assert seen == [cana]


def test_cancelled_or_foreign_pick_returns_none(drinks):
    cana = product_cards(drinks)[1]
    stranger = Variant(item=item("Caña", "9.99"), source="Otro", display_price=Decimal("9.99"))

    assert choose_variant(cana, lambda group: None) is None
    assert choose_variant(cana, lambda group: stranger) is None

"""Domain models for the table POS."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

BAR_TABLE_ID = "barra"
MAIN_SOURCE = "main"

TableId = str | int

_CENTS = Decimal("0.01")


def to_money(value: object) -> Decimal:
    """Convert a JSON number, string or Decimal to a two-decimal amount."""
    if isinstance(value, bool):
        raise ValueError(f"invalid price: {value!r}")
    return Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CatalogItem:
    """A sellable menu entry."""

    name: str
    price: Decimal
    image: str | None = None


@dataclass(frozen=True)
class Subcategory:
    name: str
    items: tuple[CatalogItem, ...] = ()


@dataclass(frozen=True)
class Category:
    """A menu category with direct items and nested subcategories."""

    name: str
    items: tuple[CatalogItem, ...] = ()
    subcategories: tuple[Subcategory, ...] = ()


@dataclass(frozen=True)
class Catalog:
    categories: tuple[Category, ...] = ()


@dataclass(frozen=True)
class Variant:
    """One way to sell a product: the item plus where it was listed."""

    item: CatalogItem
    source: str
    display_price: Decimal

    @property
    def label(self) -> str:
        if self.source == MAIN_SOURCE:
            return "Normal"
        return self.source


@dataclass
class VariantGroup:
    """All variants sharing one normalized product name."""

    name: str
    variants: list[Variant] = field(default_factory=list)

    @property
    def prices(self) -> list[Decimal]:
        return [variant.display_price for variant in self.variants]

    @property
    def is_ambiguous(self) -> bool:
        return len(self.variants) > 1


@dataclass(frozen=True)
class LineItem:
    """One purchased unit at a fixed price."""

    name: str
    price: Decimal
    source: str | None = None


def table_label(table_id: TableId) -> str:
    if table_id == BAR_TABLE_ID:
        return "Bar"
    return f"Table {table_id}"

"""Menu catalog loading from menu.json."""

from __future__ import annotations

import json
from decimal import InvalidOperation
from pathlib import Path

from app.debug_log import log_debug
from app.models import Catalog, CatalogItem, Category, Subcategory, to_money


class CatalogError(ValueError):
    """Raised when menu data does not have the expected shape."""


def _require_name(data: object, what: str) -> str:
    if not isinstance(data, dict) or not isinstance(data.get("name"), str):
        raise CatalogError(f"{what} without a name: {data!r}")
    return data["name"]


def _list_field(data: dict, key: str) -> list:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise CatalogError(f"{key!r} must be a list, got {type(value).__name__}")
    return value


def _parse_item(data: object) -> CatalogItem:
    name = _require_name(data, "item")
    try:
        price = to_money(data["price"])  # type: ignore[index]
    except (KeyError, TypeError, ValueError, InvalidOperation) as exc:
        raise CatalogError(f"item {name!r} has an invalid price") from exc
    if price < 0:
        raise CatalogError(f"item {name!r} has a negative price")
    image = data.get("image")  # type: ignore[union-attr]
    return CatalogItem(name=name, price=price, image=str(image) if image else None)


def parse_catalog(data: object) -> Catalog:
    """Build a Catalog from decoded menu.json data."""
    if not isinstance(data, dict):
        raise CatalogError("menu data must be an object")

    categories: list[Category] = []
    for raw_category in _list_field(data, "categories"):
        name = _require_name(raw_category, "category")
        subcategories = tuple(
            Subcategory(
                name=_require_name(raw_subcat, "subcategory"),
                items=tuple(_parse_item(item) for item in _list_field(raw_subcat, "items")),
            )
            for raw_subcat in _list_field(raw_category, "subcategories")
        )
        categories.append(
            Category(
                name=name,
                items=tuple(_parse_item(item) for item in _list_field(raw_category, "items")),
                subcategories=subcategories,
            )
        )
    return Catalog(categories=tuple(categories))


def load_catalog(*paths: str | Path | None) -> Catalog | None:
    """
    Load the first readable, well-formed catalog among `paths`.

    Returns None when none can be loaded; callers show an empty product
    list until a catalog is supplied.
    """
    for path in paths:
        if not path:
            continue
        try:
            with Path(path).open(encoding="utf-8") as fh:
                catalog = parse_catalog(json.load(fh))
        except (OSError, ValueError) as exc:
            log_debug(f"catalog_load_failed path={str(path)!r} error={exc!r}")
            continue
        log_debug(f"catalog_loaded path={str(path)!r} categories={len(catalog.categories)}")
        return catalog
    return None

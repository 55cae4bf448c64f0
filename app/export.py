"""Plain-text menu export, one file per category."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from app.config import EXPORT_NAME_WIDTH
from app.debug_log import log_debug
from app.models import Catalog, Category
from app.variants import export_prices, resolve


class ExportError(RuntimeError):
    """Raised when the menu cannot be exported."""


def format_price(price: Decimal) -> str:
    return f"{price:.2f}€"


def format_product_line(name: str, prices: list[Decimal]) -> str:
    """Name, dot leader and price(s), padded toward a fixed column width."""
    price_str = " / ".join(format_price(price) for price in prices)
    dots = "." * max(2, EXPORT_NAME_WIDTH - len(name) - len(price_str))
    return f"{name} {dots} {price_str}"


def format_category_report(category: Category) -> str:
    lines = [category.name, "=" * len(category.name), ""]
    lines.extend(format_product_line(group.name, export_prices(group)) for group in resolve(category))
    return "\n".join(lines) + "\n"


def export_catalog(catalog: Catalog | None, directory: str | Path) -> int:
    """Write `<category>.txt` for every category and return how many were written."""
    if catalog is None:
        raise ExportError("No menu data to export")

    target = Path(directory)
    count = 0
    try:
        target.mkdir(parents=True, exist_ok=True)
        for category in catalog.categories:
            (target / f"{category.name}.txt").write_text(format_category_report(category), encoding="utf-8")
            count += 1
    except OSError as exc:
        log_debug(f"export_failed directory={str(target)!r} written={count} error={exc!r}")
        raise ExportError(f"Export failed: {exc}") from exc

    log_debug(f"export_done directory={str(target)!r} files={count}")
    return count

"""Rich text helpers for the order, product and table views."""

from __future__ import annotations

from rich.text import Text

from app.export import format_price
from app.models import BAR_TABLE_ID, LineItem, TableId, VariantGroup, table_label
from app.variants import screen_price_label


def badge_style(table_id: TableId) -> str:
    """Return a consistent badge style for table tags."""
    if table_id == BAR_TABLE_ID:
        return "bold #ffffff on #2f6db5"
    return "bold #0b1f0f on #5fbf72"


def format_table_badge(table_id: TableId | None) -> Text:
    text = Text()
    if table_id is None:
        text.append("No table selected", style="dim")
        return text
    text.append(f" {table_label(table_id)} ", style=badge_style(table_id))
    return text


def format_line_item(item: LineItem) -> Text:
    """Render an order line with an optional source tag."""
    text = Text()
    text.append(item.name)
    if item.source:
        text.append(" ")
        text.append(f"[{item.source}]", style="bold #ffffff on #b23a48")
    text.append(f"  {format_price(item.price)}", style="bold")
    return text


def format_product_card(group: VariantGroup) -> Text:
    text = Text()
    text.append(group.name)
    text.append(f"  {screen_price_label(group)}", style="bold")
    if group.is_ambiguous:
        text.append(f"  ({len(group.variants)} options)", style="dim")
    return text


def format_table_cell(table_id: TableId, occupied: bool, active: bool) -> Text:
    text = Text()
    style = "bold #ffb3b3" if occupied else "white"
    if active:
        style = f"{style} underline"
    text.append(table_label(table_id), style=style)
    if occupied:
        text.append(" ●", style="#ffb3b3")
    return text

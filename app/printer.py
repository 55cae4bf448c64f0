"""Charge ticket printing on a USB thermal printer."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path

from app.config import (
    PRINTER_FONT_PATH,
    PRINTER_FONT_SIZE,
    PRINTER_LEFT_INDENT_PX,
    PRINTER_TAIL_SPACER_PX,
    PRINTER_USB_PRODUCT_ID,
    PRINTER_USB_VENDOR_ID,
    PRINTER_WIDTH_PX,
)
from app.export import format_price
from app.models import LineItem

# Extra vertical headroom so descenders are not clipped on thermal output.
_LINE_EXTRA_PX = 12
_RULE_HEIGHT_PX = 12
_RULE_THICKNESS_PX = 3
_FONT_OVERRIDE_ENV = "POS_PRINTER_FONT_PATH"
_LINUX_FONT_FALLBACKS = (
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/noto/NotoSans-Regular.ttf",
    "/usr/share/fonts/liberation/LiberationSans-Regular.ttf",
)


@dataclass
class TicketLine:
    name: str
    source: str | None
    unit_price: Decimal
    count: int

    @property
    def amount(self) -> Decimal:
        return self.unit_price * self.count


def group_ticket_lines(items: list[LineItem]) -> list[TicketLine]:
    """Merge identical order lines, keeping first-seen order."""
    groups: dict[tuple[str, str | None, Decimal], TicketLine] = {}
    for item in items:
        key = (item.name, item.source, item.price)
        line = groups.get(key)
        if line is not None:
            line.count += 1
            continue
        groups[key] = TicketLine(name=item.name, source=item.source, unit_price=item.price, count=1)
    return list(groups.values())


def ticket_line_name(line: TicketLine) -> str:
    name = line.name if line.source is None else f"{line.name} ({line.source})"
    if line.count > 1:
        return f"{line.count}x {name}"
    return name


def resolve_printer_font_path() -> str:
    """
    Resolve a printer font path.

    Resolution order:
    1. POS_PRINTER_FONT_PATH (if set)
    2. PRINTER_FONT_PATH
    3. Known Linux fallbacks
    """
    env_override = os.environ.get(_FONT_OVERRIDE_ENV, "").strip()
    candidates: list[str] = []
    if env_override:
        candidates.append(env_override)
    candidates.append(PRINTER_FONT_PATH)
    candidates.extend(_LINUX_FONT_FALLBACKS)

    seen: set[str] = set()
    for candidate in candidates:
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        if Path(candidate).is_file():
            return candidate

    raise RuntimeError(
        f"No usable printer font found. Set {_FONT_OVERRIDE_ENV} to a valid .ttf/.otf file. "
        f"Tried: {', '.join(seen)}"
    )


def check_printer_dependencies() -> tuple[bool, str]:
    """Check whether printer dependencies are importable."""
    try:
        from escpos.printer import Usb  # noqa: F401
        from PIL import ImageFont

        font_path = resolve_printer_font_path()
        ImageFont.truetype(font_path, PRINTER_FONT_SIZE)
    except Exception as exc:
        return (False, f"Printer unavailable: {exc}")
    return (True, "Printer ready")


def _fit_text_to_px(text: str, font: object, max_width_px: int) -> str:
    from PIL import Image, ImageDraw

    probe = Image.new("1", (1, 1), color=1)
    draw = ImageDraw.Draw(probe)
    if draw.textbbox((0, 0), text, font=font)[2] <= max_width_px:
        return text
    ellipsis = "..."
    trimmed = text
    while trimmed:
        candidate = f"{trimmed}{ellipsis}"
        if draw.textbbox((0, 0), candidate, font=font)[2] <= max_width_px:
            return candidate
        trimmed = trimmed[:-1]
    return ellipsis


def _render_row(left: str, right: str, font: object) -> object:
    """Render one ticket row with `left` text and right-aligned `right` text."""
    from PIL import Image, ImageDraw

    canvas_height = PRINTER_FONT_SIZE + _LINE_EXTRA_PX
    img = Image.new("1", (PRINTER_WIDTH_PX, canvas_height), color=1)
    draw = ImageDraw.Draw(img)

    right_bbox = draw.textbbox((0, 0), right, font=font) if right else (0, 0, 0, 0)
    right_width = right_bbox[2] - right_bbox[0]
    left_room = PRINTER_WIDTH_PX - (PRINTER_LEFT_INDENT_PX * 2) - right_width - 8
    left = _fit_text_to_px(left, font, max(0, left_room))

    bbox = draw.textbbox((0, 0), left or right or " ", font=font)
    text_height = bbox[3] - bbox[1]
    # Offset by bbox top so descenders are not clipped.
    y = (canvas_height - text_height) // 2 - bbox[1]
    draw.text((PRINTER_LEFT_INDENT_PX, y), left, font=font, fill=0)
    if right:
        right_x = PRINTER_WIDTH_PX - PRINTER_LEFT_INDENT_PX - right_width - right_bbox[0]
        draw.text((right_x, y), right, font=font, fill=0)
    return img


def _render_rule() -> object:
    from PIL import Image, ImageDraw

    img = Image.new("1", (PRINTER_WIDTH_PX, _RULE_HEIGHT_PX), color=1)
    draw = ImageDraw.Draw(img)
    top = (_RULE_HEIGHT_PX - _RULE_THICKNESS_PX) // 2
    draw.rectangle((0, top, PRINTER_WIDTH_PX - 1, top + _RULE_THICKNESS_PX - 1), fill=0)
    return img


def _render_spacer(height_px: int) -> object:
    from PIL import Image

    return Image.new("1", (PRINTER_WIDTH_PX, max(1, height_px)), color=1)


def print_charge_ticket(table_label: str, items: list[LineItem], total: Decimal) -> None:
    """Print the charged lines and the total, then cut the ticket."""
    if not items:
        return

    try:
        from escpos.printer import Usb
        from PIL import ImageFont
    except Exception as exc:
        raise RuntimeError(f"Printer dependencies unavailable: {exc}") from exc

    printer = Usb(PRINTER_USB_VENDOR_ID, PRINTER_USB_PRODUCT_ID)
    font = ImageFont.truetype(resolve_printer_font_path(), PRINTER_FONT_SIZE)

    printer.image(_render_row(table_label, "", font))
    printer.image(_render_rule())
    for line in group_ticket_lines(items):
        printer.image(_render_row(ticket_line_name(line), format_price(line.amount), font))
    printer.image(_render_rule())
    printer.image(_render_row("TOTAL", format_price(total), font))
    printer.image(_render_spacer(PRINTER_TAIL_SPACER_PX))
    printer.cut()

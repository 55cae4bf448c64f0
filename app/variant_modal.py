"""Variant selection modal screen."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Static

from app.export import format_price
from app.models import Variant, VariantGroup


class VariantModal(ModalScreen[Variant | None]):
    """Pick exactly one variant of a product, or cancel with None."""

    BINDINGS = [
        ("escape", "cancel", "Cancel"),
        ("q", "cancel", "Cancel"),
        ("ctrl+c", "cancel", "Cancel"),
        ("j", "move_cursor(1)", "Next"),
        ("k", "move_cursor(-1)", "Previous"),
        ("up", "move_cursor(-1)", "Previous"),
        ("down", "move_cursor(1)", "Next"),
        ("enter", "pick", "Pick"),
    ]

    CSS = """
    VariantModal {
        align: center middle;
        background: $background 60%;
    }

    #variant-dialog {
        width: 56;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #variant-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #variant-help {
        margin-top: 1;
        color: #dddddd;
    }
    """

    cursor_index = reactive(0)

    def __init__(self, group: VariantGroup) -> None:
        super().__init__()
        self.group = group

    def compose(self) -> ComposeResult:
        with Container(id="variant-dialog"):
            yield Static(Text(self.group.name), id="variant-title")
            yield Static(id="variant-body")
            yield Static("J/K/↑/↓ move, Enter pick, Esc cancel", id="variant-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def action_cancel(self) -> None:
        self.dismiss(None)

    def action_move_cursor(self, delta: int) -> None:
        self.cursor_index = (self.cursor_index + delta) % len(self.group.variants)
        self._refresh_content()

    def action_pick(self) -> None:
        self.dismiss(self.group.variants[self.cursor_index])

    def _refresh_content(self) -> None:
        body = self.query_one("#variant-body", Static)
        content = Text(style="white")
        for idx, variant in enumerate(self.group.variants):
            if idx > 0:
                content.append("\n")
            pointer = "➤ " if idx == self.cursor_index else "  "
            style = "bold white" if idx == self.cursor_index else "white"
            content.append(f"{pointer}{variant.label:<24} {format_price(variant.display_price)}", style=style)
        body.update(content)

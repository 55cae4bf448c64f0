"""Main Textual app class."""

from __future__ import annotations

from decimal import Decimal
from functools import partial
from pathlib import Path

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Header, Static

from app import config
from app.catalog import load_catalog
from app.confirm_modal import ConfirmModal
from app.debug_log import log_debug
from app.export import ExportError, export_catalog, format_price
from app.ledger import Ledger
from app.models import Catalog, Category, LineItem, TableId, Variant, VariantGroup, table_label
from app.printer import check_printer_dependencies, print_charge_ticket
from app.rendering import format_line_item, format_product_card, format_table_badge
from app.table_modal import TableModal
from app.variant_modal import VariantModal
from app.variants import choose_variant, product_cards


class PosApp(App):
    """A Textual app for taking table orders and charging them out."""

    TITLE = "Table POS"
    SUB_TITLE = "Orders / Charge"

    CSS = """
    Screen {
        layout: vertical;
    }

    #main-layout {
        height: 1fr;
    }

    #orders-pane {
        width: 2fr;
        border: round $primary;
        padding: 1;
    }

    #menu-pane {
        width: 3fr;
        border: round $secondary;
        padding: 1;
    }

    #category-bar {
        border: heavy $secondary;
        padding: 0 1;
        margin-bottom: 1;
        height: 3;
    }

    #products {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #orders-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #order-total {
        text-style: bold;
        margin-top: 1;
    }

    #status-bar {
        margin-top: 1;
        color: $text-muted;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    category_index = reactive(0)
    product_index = reactive(0)
    order_selected_index = reactive(None)

    BINDINGS = [
        ("left", "cycle_category(-1)", "Previous category"),
        ("right", "cycle_category(1)", "Next category"),
        ("up", "cycle_product(-1)", "Previous product"),
        ("down", "cycle_product(1)", "Next product"),
        ("enter", "add_product", "Add product"),
        ("j", "move_order_selection(1)", "Next line"),
        ("k", "move_order_selection(-1)", "Previous line"),
        ("d", "delete_selected_line", "Delete line"),
        ("c", "charge", "Charge"),
        ("t", "show_tables", "Tables"),
        ("m", "reload_menu", "Reload menu"),
        ("e", "export_menu", "Export menu"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        ledger: Ledger,
        catalog: Catalog | None,
        export_dir: str | Path | None = None,
        printer_enabled: bool | None = None,
    ) -> None:
        super().__init__()
        self.ledger = ledger
        self.catalog = catalog
        self.export_dir = Path(export_dir if export_dir is not None else config.EXPORT_DIR)
        self.printer_enabled = config.PRINTER_ENABLED if printer_enabled is None else printer_enabled
        self.system_status = ""
        log_debug("app_init")

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-layout"):
            with Vertical(id="orders-pane"):
                yield Static(id="order-title", classes="pane-title")
                yield Static("(no items yet)", id="orders-list")
                yield Static(id="order-total")
            with Vertical(id="menu-pane"):
                yield Static(id="category-bar")
                yield Static(id="products")
                yield Static(id="status-bar")

    def on_mount(self) -> None:
        if self.printer_enabled:
            _, msg = check_printer_dependencies()
            self.system_status = msg
            log_debug(f"on_mount printer_status={msg!r}")
        if self.catalog is None:
            self.system_status = "No menu loaded. Press M to retry."
        self._refresh_all()
        self._show_tables()

    # --- guards -----------------------------------------------------------

    def _modal_active(self) -> bool:
        return isinstance(self.screen, ModalScreen)

    def _main_widget(self, selector: str) -> Static:
        # Modals sit on top of the base screen; always render into the base one.
        return self.screen_stack[0].query_one(selector, Static)

    def _categories(self) -> tuple[Category, ...]:
        if self.catalog is None:
            return ()
        return self.catalog.categories

    def _selected_category(self) -> Category | None:
        categories = self._categories()
        if not categories:
            return None
        if self.category_index >= len(categories):
            self.category_index = 0
        return categories[self.category_index]

    def _cards(self) -> list[VariantGroup]:
        category = self._selected_category()
        if category is None:
            return []
        return product_cards(category)

    # --- menu browsing ----------------------------------------------------

    def action_cycle_category(self, delta: int) -> None:
        if self._modal_active():
            return
        categories = self._categories()
        if not categories:
            return
        self.category_index = (self.category_index + delta) % len(categories)
        self.product_index = 0
        self._refresh_menu()

    def action_cycle_product(self, delta: int) -> None:
        if self._modal_active():
            return
        cards = self._cards()
        if not cards:
            self.product_index = 0
            return
        self.product_index = (self.product_index + delta) % len(cards)
        self._refresh_products(cards)

    def action_add_product(self) -> None:
        if self._modal_active():
            return
        if self.ledger.current_table is None:
            self._set_status("Select a table first (T).")
            return
        cards = self._cards()
        if not cards:
            return

        group = cards[self.product_index]
        if group.is_ambiguous:
            self.push_screen(VariantModal(group), partial(self._on_variant_picked, group))
            return
        self._on_variant_picked(group, None)

    def _on_variant_picked(self, group: VariantGroup, picked: Variant | None) -> None:
        variant = choose_variant(group, lambda _group: picked)
        if variant is None:
            log_debug(f"variant_cancelled product={group.name!r}")
            return
        table_id = self.ledger.current_table
        if table_id is None or not self.ledger.append(table_id, variant):
            return
        self.order_selected_index = len(self.ledger.current_order) - 1
        self.system_status = ""
        self._refresh_all()

    # --- order editing ----------------------------------------------------

    def action_move_order_selection(self, delta: int) -> None:
        if self._modal_active():
            return
        order = self.ledger.current_order
        if not order:
            return

        if self.order_selected_index is None:
            self.order_selected_index = 0 if delta > 0 else len(order) - 1
        else:
            self.order_selected_index = (self.order_selected_index + delta) % len(order)
        self._refresh_orders()

    def action_delete_selected_line(self) -> None:
        if self._modal_active():
            return
        table_id = self.ledger.current_table
        if table_id is None or self.order_selected_index is None:
            return

        idx = self.order_selected_index
        self.ledger.remove_at(table_id, idx)
        remaining = len(self.ledger.current_order)
        self.order_selected_index = min(idx, remaining - 1) if remaining else None
        self._refresh_orders()

    def action_charge(self) -> None:
        if self._modal_active():
            return
        table_id = self.ledger.current_table
        if table_id is None or not self.ledger.has_pending(table_id):
            self._set_status("Nothing to charge")
            return

        amount = self.ledger.total(table_id)
        self.push_screen(
            ConfirmModal(f"Charge {format_price(amount)} to {table_label(table_id)}?", title="Charge"),
            partial(self._on_charge_confirmed, table_id),
        )

    def _on_charge_confirmed(self, table_id: TableId, confirmed: bool | None) -> None:
        if not confirmed:
            return
        items = self.ledger.order_for(table_id)
        amount = self.ledger.charge(table_id)
        if amount is None:
            return

        self.order_selected_index = None
        self.system_status = f"Charged {format_price(amount)} to {table_label(table_id)}"
        self._print_ticket(table_id, items, amount)
        self._refresh_all()
        self._show_tables()

    def _print_ticket(self, table_id: TableId, items: list[LineItem], amount: Decimal) -> None:
        if not self.printer_enabled:
            return
        try:
            print_charge_ticket(table_label(table_id), items, amount)
        except Exception as exc:
            self.system_status = f"{self.system_status} but print failed: {exc}"
            log_debug(f"ticket_print_failed table={table_id!r} error={exc!r}")

    # --- tables -----------------------------------------------------------

    def action_show_tables(self) -> None:
        if self._modal_active():
            return
        self._show_tables()

    def _show_tables(self) -> None:
        self.push_screen(TableModal(self.ledger), self._on_table_chosen)

    def _on_table_chosen(self, table_id: TableId | None) -> None:
        if table_id is not None:
            self.ledger.select_table(table_id)
            self.order_selected_index = None
            log_debug(f"table_selected table={table_id!r}")
        self._refresh_all()

    # --- menu file ops ----------------------------------------------------

    def action_reload_menu(self) -> None:
        if self._modal_active():
            return
        catalog = load_catalog(config.MENU_PATH, config.MENU_FALLBACK_PATH)
        if catalog is None:
            self._set_status("Could not load the menu; see the debug log.")
            return
        self.catalog = catalog
        self.category_index = 0
        self.product_index = 0
        self.system_status = f"Menu loaded: {len(catalog.categories)} categories"
        self._refresh_all()

    def action_export_menu(self) -> None:
        if self._modal_active():
            return
        try:
            count = export_catalog(self.catalog, self.export_dir)
        except ExportError as exc:
            self._set_status(str(exc))
            return
        self._set_status(f"Exported {count} category files to {self.export_dir}")

    # --- rendering --------------------------------------------------------

    def _set_status(self, message: str) -> None:
        self.system_status = message
        self._refresh_status()

    def _refresh_all(self) -> None:
        self._refresh_orders()
        self._refresh_menu()

    def _visible_rows(self, widget: Static) -> int:
        height = widget.size.height
        if height <= 0:
            return 8
        return max(1, height)

    def _window_bounds(self, total: int, rows: int, selected: int | None) -> tuple[int, int]:
        if total <= 0:
            return (0, 0)

        rows = max(1, rows)
        if total <= rows:
            return (0, total)

        if selected is None:
            start = 0
        else:
            start = max(0, selected - rows // 2)
            start = min(start, total - rows)

        return (start, start + rows)

    def _refresh_orders(self) -> None:
        try:
            title_widget = self._main_widget("#order-title")
            orders_widget = self._main_widget("#orders-list")
            total_widget = self._main_widget("#order-total")
        except NoMatches:
            return

        table_id = self.ledger.current_table
        title_widget.update(format_table_badge(table_id))
        total_amount = self.ledger.total(table_id) if table_id is not None else Decimal("0.00")
        total_widget.update(f"Total: {format_price(total_amount)}")

        order = self.ledger.current_order
        if not order:
            self.order_selected_index = None
            orders_widget.update("(no items yet)")
            return

        if self.order_selected_index is not None and self.order_selected_index >= len(order):
            self.order_selected_index = len(order) - 1

        start, end = self._window_bounds(len(order), self._visible_rows(orders_widget), self.order_selected_index)

        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")

        for idx in range(start, end):
            if idx > start:
                lines.append("\n")
            pointer = "➤ " if idx == self.order_selected_index else "  "
            lines.append(pointer)
            lines.append(f"{idx + 1}. ")
            lines.append_text(format_line_item(order[idx]))

        if end < len(order):
            lines.append("\n⋮", style="dim")

        orders_widget.update(lines)

    def _refresh_menu(self) -> None:
        try:
            bar = self._main_widget("#category-bar")
        except NoMatches:
            return

        categories = self._categories()
        if not categories:
            bar.update("No menu loaded")
        else:
            selected = self._selected_category()
            text = Text()
            for idx, category in enumerate(categories):
                if idx > 0:
                    text.append("  ")
                if category is selected:
                    text.append(f" {category.name} ", style="bold #0b1f0f on #5fbf72")
                else:
                    text.append(category.name)
            bar.update(text)

        self._refresh_products(self._cards())
        self._refresh_status()

    def _refresh_products(self, cards: list[VariantGroup]) -> None:
        products_widget = self._main_widget("#products")
        if self.catalog is None:
            products_widget.update("Nothing to show")
            return
        if not cards:
            products_widget.update("No products")
            return

        if self.product_index >= len(cards):
            self.product_index = 0

        start, end = self._window_bounds(len(cards), self._visible_rows(products_widget), self.product_index)

        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")

        for idx in range(start, end):
            if idx > start:
                lines.append("\n")
            pointer = "➤ " if idx == self.product_index else "  "
            lines.append(pointer)
            lines.append_text(format_product_card(cards[idx]))

        if end < len(cards):
            lines.append("\n⋮", style="dim")

        products_widget.update(lines)

    def _refresh_status(self) -> None:
        try:
            status = self._main_widget("#status-bar")
        except NoMatches:
            return
        help_line = "←/→ category  ↑/↓ product  Enter add  J/K line  D delete  C charge  T tables  E export"
        content = Text(help_line)
        content.append("\n")
        content.append(self.system_status or "Ready")
        status.update(content)

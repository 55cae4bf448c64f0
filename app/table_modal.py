"""Table picker modal screen with floor-plan size controls."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Static

from app.confirm_modal import ConfirmModal
from app.debug_log import log_debug
from app.ledger import TABLE_AT_MINIMUM, TABLE_HAS_PENDING, TABLE_REMOVED, Ledger
from app.models import TableId, table_label
from app.rendering import format_table_cell

_COLUMNS = 4


class TableModal(ModalScreen[TableId | None]):
    """Choose the table to work on; + / - grow or shrink the floor plan."""

    BINDINGS = [
        ("escape", "close", "Close"),
        ("left", "move_cursor(-1)", "Previous"),
        ("right", "move_cursor(1)", "Next"),
        ("h", "move_cursor(-1)", "Previous"),
        ("l", "move_cursor(1)", "Next"),
        ("up", "move_cursor(-4)", "Up"),
        ("down", "move_cursor(4)", "Down"),
        ("k", "move_cursor(-4)", "Up"),
        ("j", "move_cursor(4)", "Down"),
        ("enter", "select", "Select"),
        ("plus", "add_table", "Add table"),
        ("minus", "remove_table", "Remove table"),
    ]

    CSS = """
    TableModal {
        align: center middle;
        background: $background 60%;
    }

    #table-dialog {
        width: 72;
        height: auto;
        border: round $primary;
        background: $panel;
        padding: 1 2;
    }

    #table-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #table-notice {
        color: #ffb3b3;
        margin-top: 1;
    }

    #table-help {
        margin-top: 1;
        color: #dddddd;
    }
    """

    cursor_index = reactive(0)

    def __init__(self, ledger: Ledger) -> None:
        super().__init__()
        self.ledger = ledger
        self.notice = ""
        if ledger.current_table in ledger.table_ids():
            self.cursor_index = ledger.table_ids().index(ledger.current_table)

    def compose(self) -> ComposeResult:
        with Container(id="table-dialog"):
            yield Static("Select table", id="table-title")
            yield Static(id="table-grid")
            yield Static(id="table-notice")
            yield Static("Arrows/HJKL move, Enter select, + add table, - remove last table", id="table-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def action_close(self) -> None:
        if self.ledger.current_table is None:
            self.notice = "Pick a table to continue."
            self._refresh_content()
            return
        self.dismiss(None)

    def action_move_cursor(self, delta: int) -> None:
        table_ids = self.ledger.table_ids()
        target = self.cursor_index + delta
        if 0 <= target < len(table_ids):
            self.cursor_index = target
        elif abs(delta) == 1:
            self.cursor_index = target % len(table_ids)
        self._refresh_content()

    def action_select(self) -> None:
        self.dismiss(self.ledger.table_ids()[self.cursor_index])

    def action_add_table(self) -> None:
        count = self.ledger.add_table()
        self.notice = ""
        log_debug(f"table_added table_count={count}")
        self._refresh_content()

    def action_remove_table(self) -> None:
        last_table = self.ledger.table_count
        if last_table <= 1:
            self.notice = "There must be at least one table."
            self._refresh_content()
            return
        self.app.push_screen(ConfirmModal(f"Remove {table_label(last_table)}?"), self._on_remove_confirmed)

    def _on_remove_confirmed(self, confirmed: bool | None) -> None:
        if not confirmed:
            return
        result = self.ledger.remove_table()
        if result == TABLE_HAS_PENDING:
            last_table = self.ledger.table_count
            self.app.push_screen(
                ConfirmModal(f"{table_label(last_table)} has pending items. Remove anyway?", title="Pending order"),
                self._on_pending_confirmed,
            )
            return
        self._after_remove(result)

    def _on_pending_confirmed(self, confirmed: bool | None) -> None:
        if not confirmed:
            return
        self._after_remove(self.ledger.remove_table(confirmed=True))

    def _after_remove(self, result: str) -> None:
        if result == TABLE_AT_MINIMUM:
            self.notice = "There must be at least one table."
        elif result == TABLE_REMOVED:
            self.notice = ""
            self.cursor_index = min(self.cursor_index, len(self.ledger.table_ids()) - 1)
        self._refresh_content()

    def _refresh_content(self) -> None:
        grid = self.query_one("#table-grid", Static)
        notice = self.query_one("#table-notice", Static)

        content = Text()
        for idx, table_id in enumerate(self.ledger.table_ids()):
            if idx > 0:
                content.append("\n" if idx % _COLUMNS == 0 else "  ")
            pointer = "➤ " if idx == self.cursor_index else "  "
            cell = format_table_cell(
                table_id,
                occupied=self.ledger.has_pending(table_id),
                active=table_id == self.ledger.current_table,
            )
            content.append(pointer)
            content.append_text(cell)
            content.append(" " * max(0, 12 - cell.cell_len))
        grid.update(content)
        notice.update(Text(self.notice))

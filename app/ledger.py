"""Per-table order ledger mirrored to durable storage after every change."""

from __future__ import annotations

from decimal import Decimal

from app.config import DEFAULT_TABLE_COUNT, TABLE_COUNT_KEY, TABLE_ORDERS_KEY
from app.debug_log import log_debug
from app.models import BAR_TABLE_ID, MAIN_SOURCE, CatalogItem, LineItem, TableId, Variant, to_money
from app.persistence import KeyValueStore, dump_table_orders, parse_table_count, parse_table_orders
from app.variants import normalize_name

TABLE_REMOVED = "removed"
TABLE_AT_MINIMUM = "at_minimum"
TABLE_HAS_PENDING = "has_pending"

ZERO = Decimal("0.00")


def order_total(order: list[LineItem]) -> Decimal:
    """Sum of line prices in two-decimal currency."""
    return to_money(sum((item.price for item in order), ZERO))


def _line_item_for(item: CatalogItem | Variant) -> LineItem:
    if isinstance(item, Variant):
        source = item.source if item.source != MAIN_SOURCE else None
        return LineItem(name=normalize_name(item.item.name), price=item.display_price, source=source)
    return LineItem(name=normalize_name(item.name), price=item.price)


class Ledger:
    """
    Authoritative in-memory store of every table's order.

    Construct one at startup with `Ledger.load(store)` and hand it to every
    caller. Each mutation is written through to the store; a failed write is
    logged by the store and the in-memory state stays the source of truth.
    """

    def __init__(
        self,
        store: KeyValueStore,
        table_orders: dict[TableId, list[LineItem]] | None = None,
        table_count: int = DEFAULT_TABLE_COUNT,
    ) -> None:
        if table_count < 1:
            raise ValueError("table_count must be at least 1")
        self.store = store
        self.table_orders: dict[TableId, list[LineItem]] = table_orders if table_orders is not None else {}
        self.table_count = table_count
        self.current_table: TableId | None = None

    @classmethod
    def load(cls, store: KeyValueStore) -> Ledger:
        store.bootstrap_schema()
        table_orders = parse_table_orders(store.load(TABLE_ORDERS_KEY))
        table_count = parse_table_count(store.load(TABLE_COUNT_KEY))
        log_debug(f"ledger_loaded tables={len(table_orders)} table_count={table_count}")
        return cls(store, table_orders=table_orders, table_count=table_count)

    # --- tables -----------------------------------------------------------

    def table_ids(self) -> list[TableId]:
        return [BAR_TABLE_ID, *range(1, self.table_count + 1)]

    def select_table(self, table_id: TableId) -> None:
        if table_id != BAR_TABLE_ID:
            if not isinstance(table_id, int) or not (1 <= table_id <= self.table_count):
                raise ValueError(f"unknown table {table_id!r}")
        self.current_table = table_id

    @property
    def current_order(self) -> list[LineItem]:
        if self.current_table is None:
            return []
        return self.order_for(self.current_table)

    def order_for(self, table_id: TableId) -> list[LineItem]:
        return list(self.table_orders.get(table_id, []))

    def has_pending(self, table_id: TableId) -> bool:
        return bool(self.table_orders.get(table_id))

    # --- order mutations --------------------------------------------------

    def append(self, table_id: TableId, item: CatalogItem | Variant) -> bool:
        """Add one unit of `item` to the active table's order."""
        if self.current_table is None or table_id != self.current_table:
            return False
        order = self.table_orders.setdefault(table_id, [])
        order.append(_line_item_for(item))
        self._save_orders()
        return True

    def remove_at(self, table_id: TableId, index: int) -> bool:
        # Stale indices from the UI are expected; out of range is a no-op.
        order = self.table_orders.get(table_id)
        if not order or not (0 <= index < len(order)):
            return False
        del order[index]
        self._save_orders()
        return True

    def total(self, table_id: TableId) -> Decimal:
        return order_total(self.table_orders.get(table_id, []))

    def charge(self, table_id: TableId) -> Decimal | None:
        """Total the order and empty it in one step; None when there is nothing to charge."""
        order = self.table_orders.get(table_id)
        if not order:
            return None
        amount = order_total(order)
        self.table_orders[table_id] = []
        self._save_orders()
        log_debug(f"charged table={table_id!r} lines={len(order)} total={amount}")
        return amount

    def clear(self, table_id: TableId) -> None:
        """Empty the order without charging it."""
        dropped = len(self.table_orders.get(table_id, []))
        self.table_orders[table_id] = []
        self._save_orders()
        log_debug(f"cleared table={table_id!r} lines={dropped}")

    # --- floor plan -------------------------------------------------------

    def add_table(self) -> int:
        self.table_count += 1
        self._save_table_count()
        return self.table_count

    def remove_table(self, confirmed: bool = False) -> str:
        """
        Drop the highest-numbered table.

        Returns TABLE_AT_MINIMUM when only one table is left and
        TABLE_HAS_PENDING when that table still has items and the caller has
        not confirmed. With confirmation the pending order is discarded
        before the count shrinks.
        """
        if self.table_count <= 1:
            return TABLE_AT_MINIMUM

        last_table = self.table_count
        if self.has_pending(last_table):
            if not confirmed:
                return TABLE_HAS_PENDING
            self.clear(last_table)
        if self.table_orders.pop(last_table, None) is not None:
            self._save_orders()

        self.table_count -= 1
        self._save_table_count()
        if self.current_table == last_table:
            self.current_table = None
        log_debug(f"table_removed table={last_table} table_count={self.table_count}")
        return TABLE_REMOVED

    # --- persistence ------------------------------------------------------

    def _save_orders(self) -> None:
        self.store.save(TABLE_ORDERS_KEY, dump_table_orders(self.table_orders))

    def _save_table_count(self) -> None:
        self.store.save(TABLE_COUNT_KEY, str(self.table_count))

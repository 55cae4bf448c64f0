"""SQLite key/value persistence for table orders and the table count."""

from __future__ import annotations

import json
import sqlite3
from contextlib import closing
from decimal import InvalidOperation
from pathlib import Path

from app.config import DEFAULT_TABLE_COUNT
from app.debug_log import log_debug
from app.models import BAR_TABLE_ID, LineItem, TableId, to_money


class KeyValueStore:
    """Durable mirror of ledger state; failures are logged, never raised."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.schema_ready = False

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(self.db_path)

    def bootstrap_schema(self) -> bool:
        """Create the settings table if it does not already exist."""
        try:
            with closing(self._connect()) as conn:
                with conn:
                    conn.execute(
                        """
                        CREATE TABLE IF NOT EXISTS settings (
                            key TEXT PRIMARY KEY,
                            value TEXT NOT NULL
                        )
                        """
                    )
        except (sqlite3.Error, OSError) as exc:
            log_debug(f"store_bootstrap_failed path={str(self.db_path)!r} error={exc!r}")
            return False
        self.schema_ready = True
        return True

    def _ensure_schema(self) -> None:
        # A failed bootstrap is retried on the next access.
        if not self.schema_ready:
            self.bootstrap_schema()

    def load(self, key: str) -> str | None:
        self._ensure_schema()
        try:
            with closing(self._connect()) as conn:
                row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
        except (sqlite3.Error, OSError) as exc:
            log_debug(f"store_load_failed key={key!r} error={exc!r}")
            return None
        if row is None:
            return None
        return str(row[0])

    def save(self, key: str, value: str) -> bool:
        self._ensure_schema()
        try:
            with closing(self._connect()) as conn:
                with conn:
                    conn.execute(
                        """
                        INSERT INTO settings (key, value) VALUES (?, ?)
                        ON CONFLICT(key) DO UPDATE SET value = excluded.value
                        """,
                        (key, value),
                    )
        except (sqlite3.Error, OSError) as exc:
            log_debug(f"store_save_failed key={key!r} error={exc!r}")
            return False
        return True


def _table_key(table_id: TableId) -> str:
    return str(table_id)


def _parse_table_key(raw: str) -> TableId:
    if raw == BAR_TABLE_ID:
        return BAR_TABLE_ID
    number = int(raw)
    if number < 1:
        raise ValueError(f"invalid table number {raw!r}")
    return number


def _line_record(item: LineItem) -> dict[str, str]:
    record = {"name": item.name, "price": f"{item.price:.2f}"}
    if item.source is not None:
        record["source"] = item.source
    return record


def dump_table_orders(table_orders: dict[TableId, list[LineItem]]) -> str:
    """Serialize all table orders as a flat, versionless JSON object."""
    payload = {
        _table_key(table_id): [_line_record(item) for item in order] for table_id, order in table_orders.items()
    }
    return json.dumps(payload, ensure_ascii=False)


def parse_table_orders(raw: str | None) -> dict[TableId, list[LineItem]]:
    """Parse stored table orders, skipping anything malformed."""
    if not raw:
        return {}
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        log_debug(f"table_orders_parse_failed error={exc!r}")
        return {}
    if not isinstance(payload, dict):
        log_debug(f"table_orders_parse_failed error='not an object' type={type(payload).__name__}")
        return {}

    table_orders: dict[TableId, list[LineItem]] = {}
    for raw_key, records in payload.items():
        try:
            table_id = _parse_table_key(raw_key)
        except ValueError:
            log_debug(f"table_orders_skip_key key={raw_key!r}")
            continue
        if not isinstance(records, list):
            log_debug(f"table_orders_skip_key key={raw_key!r} reason=not_a_list")
            continue

        order: list[LineItem] = []
        for record in records:
            try:
                source = record.get("source")
                order.append(
                    LineItem(
                        name=str(record["name"]),
                        price=to_money(record["price"]),
                        source=str(source) if source is not None else None,
                    )
                )
            except (AttributeError, KeyError, TypeError, ValueError, InvalidOperation):
                log_debug(f"table_orders_skip_record key={raw_key!r} record={record!r}")
        table_orders[table_id] = order
    return table_orders


def parse_table_count(raw: str | None) -> int:
    """Stored table count, or the default when absent or not a positive integer."""
    if raw is None:
        return DEFAULT_TABLE_COUNT
    try:
        count = int(raw.strip())
    except ValueError:
        log_debug(f"table_count_parse_failed raw={raw!r}")
        return DEFAULT_TABLE_COUNT
    if count < 1:
        return DEFAULT_TABLE_COUNT
    return count

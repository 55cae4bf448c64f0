"""Runtime configuration defaults for persistence, menu, export and printing."""

from __future__ import annotations

import os

DB_PATH = os.environ.get("POS_DB_PATH", "data/pos.db")
MENU_PATH = os.environ.get("POS_MENU_PATH", "menu.json")
MENU_FALLBACK_PATH = os.environ.get("POS_MENU_FALLBACK_PATH", "").strip() or None
EXPORT_DIR = os.environ.get("POS_EXPORT_DIR", "export")
DEBUG_LOG_PATH = os.environ.get("POS_DEBUG_LOG", "/tmp/pos-debug.log")

# Storage keys are shared with older saved data; do not rename.
TABLE_ORDERS_KEY = "pos_table_orders"
TABLE_COUNT_KEY = "pos_table_count"
DEFAULT_TABLE_COUNT = 10

EXPORT_NAME_WIDTH = 50

PRINTER_ENABLED = os.environ.get("POS_PRINTER_ENABLED", "").strip().lower() in {"1", "true", "yes"}
PRINTER_USB_VENDOR_ID = 0x28E9
PRINTER_USB_PRODUCT_ID = 0x0289
PRINTER_WIDTH_PX = 384
PRINTER_FONT_SIZE = 28
PRINTER_FONT_PATH = "/System/Library/Fonts/SFNS.ttf"
PRINTER_LEFT_INDENT_PX = 8
PRINTER_TAIL_SPACER_PX = 70

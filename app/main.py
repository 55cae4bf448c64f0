"""Entry point for the table POS Textual app."""

from __future__ import annotations

from app import config
from app.catalog import load_catalog
from app.ledger import Ledger
from app.persistence import KeyValueStore
from app.pos_app import PosApp


def build_app() -> PosApp:
    """Wire the ledger, its store and the menu catalog into one app instance."""
    store = KeyValueStore(config.DB_PATH)
    ledger = Ledger.load(store)
    catalog = load_catalog(config.MENU_PATH, config.MENU_FALLBACK_PATH)
    return PosApp(ledger, catalog)


def main() -> None:
    """Run the Textual application."""
    build_app().run()


if __name__ == "__main__":
    main()

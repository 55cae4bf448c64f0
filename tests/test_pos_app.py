from __future__ import annotations

import asyncio
import json
from decimal import Decimal

from app import config
from app.confirm_modal import ConfirmModal
from app.ledger import Ledger
from app.models import BAR_TABLE_ID, Catalog, Category, LineItem, Subcategory
from app.pos_app import PosApp
from app.table_modal import TableModal
from app.variant_modal import VariantModal
from tests.conftest import item


def _run(app: PosApp, scenario) -> None:
    async def runner() -> None:
        async with app.run_test() as pilot:
            await pilot.pause()
            await scenario(pilot)

    asyncio.run(runner())


def test_startup_asks_for_a_table_and_blocks_adds(ledger, catalog, tmp_path):
    app = PosApp(ledger, catalog, export_dir=tmp_path / "export", printer_enabled=False)

    async def scenario(pilot) -> None:
        assert isinstance(app.screen, TableModal)
        await pilot.press("escape")
        await pilot.pause()
        assert isinstance(app.screen, TableModal)
        assert ledger.current_table is None

    _run(app, scenario)


def test_add_single_and_variant_products_then_charge(ledger, catalog, tmp_path):
    app = PosApp(ledger, catalog, export_dir=tmp_path / "export", printer_enabled=False)

    async def scenario(pilot) -> None:
        await pilot.press("enter")
        await pilot.pause()
        assert ledger.current_table == BAR_TABLE_ID
        assert not isinstance(app.screen, TableModal)

        await pilot.press("enter")
        await pilot.pause()
        assert ledger.order_for(BAR_TABLE_ID) == [LineItem("Café", Decimal("1.50"))]

        await pilot.press("down", "enter")
        await pilot.pause()
        assert isinstance(app.screen, VariantModal)
        await pilot.press("down", "enter")
        await pilot.pause()
        assert ledger.order_for(BAR_TABLE_ID)[-1] == LineItem("Caña", Decimal("2.50"), source="Terraza")

        await pilot.press("c")
        await pilot.pause()
        assert isinstance(app.screen, ConfirmModal)
        await pilot.press("y")
        await pilot.pause()
        assert ledger.order_for(BAR_TABLE_ID) == []
        assert "Charged 4.00€" in app.system_status
        assert isinstance(app.screen, TableModal)

    _run(app, scenario)


def test_cancelled_variant_pick_changes_nothing(ledger, catalog, tmp_path):
    app = PosApp(ledger, catalog, export_dir=tmp_path / "export", printer_enabled=False)

    async def scenario(pilot) -> None:
        await pilot.press("enter")
        await pilot.pause()
        await pilot.press("down", "enter")
        await pilot.pause()
        assert isinstance(app.screen, VariantModal)
        await pilot.press("escape")
        await pilot.pause()
        assert not isinstance(app.screen, VariantModal)
        assert ledger.order_for(BAR_TABLE_ID) == []

    _run(app, scenario)


def test_delete_selected_line(ledger, catalog, tmp_path):
    app = PosApp(ledger, catalog, export_dir=tmp_path / "export", printer_enabled=False)

    async def scenario(pilot) -> None:
        await pilot.press("enter")
        await pilot.pause()
        await pilot.press("enter", "enter")
        await pilot.pause()
        assert len(ledger.order_for(BAR_TABLE_ID)) == 2

        await pilot.press("d")
        await pilot.pause()
        assert len(ledger.order_for(BAR_TABLE_ID)) == 1

    _run(app, scenario)


def test_removing_a_table_with_pending_items_asks_twice(ledger, catalog, tmp_path):
    ledger.select_table(10)
    ledger.append(10, catalog.categories[0].items[0])
    ledger.current_table = None
    app = PosApp(ledger, catalog, export_dir=tmp_path / "export", printer_enabled=False)

    async def scenario(pilot) -> None:
        await pilot.press("minus")
        await pilot.pause()
        assert isinstance(app.screen, ConfirmModal)
        await pilot.press("y")
        await pilot.pause()
        assert isinstance(app.screen, ConfirmModal)
        assert ledger.table_count == 10
        await pilot.press("n")
        await pilot.pause()
        assert ledger.table_count == 10
        assert ledger.has_pending(10)

        await pilot.press("minus")
        await pilot.pause()
        await pilot.press("y")
        await pilot.pause()
        await pilot.press("y")
        await pilot.pause()
        assert ledger.table_count == 9
        assert not ledger.has_pending(10)
        assert isinstance(app.screen, TableModal)

    _run(app, scenario)


def test_export_and_missing_menu(ledger, tmp_path):
    app = PosApp(ledger, None, export_dir=tmp_path / "export", printer_enabled=False)

    async def scenario(pilot) -> None:
        await pilot.press("enter")
        await pilot.pause()
        await pilot.press("enter")
        await pilot.pause()
        assert ledger.order_for(BAR_TABLE_ID) == []

        await pilot.press("e")
        await pilot.pause()
        assert app.system_status == "No menu data to export"

    _run(app, scenario)


def test_bracketed_names_render_as_plain_text(ledger, tmp_path):
    name = "Caña [/b] grande"
    catalog = Catalog(
        categories=(
            Category(
                name="Bebidas [b]",
                items=(item(name, "2.00"),),
                subcategories=(Subcategory(name="Terraza [/]", items=(item(name, "2.50"),)),),
            ),
        )
    )
    export_dir = tmp_path / "out[/x]"
    app = PosApp(ledger, catalog, export_dir=export_dir, printer_enabled=False)

    async def scenario(pilot) -> None:
        await pilot.press("enter")
        await pilot.pause()
        await pilot.press("enter")
        await pilot.pause()
        assert isinstance(app.screen, VariantModal)
        assert app.screen.group.name == name
        await pilot.press("down", "enter")
        await pilot.pause()
        assert ledger.order_for(BAR_TABLE_ID) == [LineItem(name, Decimal("2.50"), source="Terraza [/]")]

        await pilot.press("e")
        await pilot.pause()
        assert app.system_status == f"Exported 1 category files to {export_dir}"

    _run(app, scenario)


def test_print_failure_keeps_the_charge(ledger, catalog, tmp_path, monkeypatch, debug_log):
    def broken_printer(table_label, items, total):
        raise RuntimeError("paper out")

    monkeypatch.setattr("app.pos_app.check_printer_dependencies", lambda: (True, "Printer ready"))
    monkeypatch.setattr("app.pos_app.print_charge_ticket", broken_printer)
    app = PosApp(ledger, catalog, export_dir=tmp_path / "export", printer_enabled=True)

    async def scenario(pilot) -> None:
        assert app.system_status == "Printer ready"
        await pilot.press("enter")
        await pilot.pause()
        await pilot.press("enter")
        await pilot.pause()
        assert ledger.has_pending(BAR_TABLE_ID)

        await pilot.press("c")
        await pilot.pause()
        await pilot.press("y")
        await pilot.pause()
        assert ledger.order_for(BAR_TABLE_ID) == []
        assert app.system_status == "Charged 1.50€ to Bar but print failed: paper out"
        assert isinstance(app.screen, TableModal)

    _run(app, scenario)
    assert "ticket_print_failed table='barra'" in debug_log.read_text(encoding="utf-8")


def test_reload_menu_from_missing_to_loaded(ledger, tmp_path, monkeypatch):
    menu_path = tmp_path / "menu.json"
    monkeypatch.setattr(config, "MENU_PATH", str(menu_path))
    monkeypatch.setattr(config, "MENU_FALLBACK_PATH", None)
    app = PosApp(ledger, None, export_dir=tmp_path / "export", printer_enabled=False)

    async def scenario(pilot) -> None:
        assert app.system_status == "No menu loaded. Press M to retry."
        await pilot.press("enter")
        await pilot.pause()

        await pilot.press("m")
        await pilot.pause()
        assert app.catalog is None
        assert app.system_status == "Could not load the menu; see the debug log."

        menu_path.write_text(
            json.dumps({"categories": [{"name": "Bebidas", "items": [{"name": "Café", "price": 1.5}]}]}),
            encoding="utf-8",
        )
        await pilot.press("m")
        await pilot.pause()
        assert app.catalog is not None
        assert app.system_status == "Menu loaded: 1 categories"

        await pilot.press("enter")
        await pilot.pause()
        assert ledger.order_for(BAR_TABLE_ID) == [LineItem("Café", Decimal("1.50"))]

    _run(app, scenario)


def test_last_table_cannot_be_removed(store, catalog, tmp_path):
    ledger = Ledger(store, table_count=1)
    app = PosApp(ledger, catalog, export_dir=tmp_path / "export", printer_enabled=False)

    async def scenario(pilot) -> None:
        await pilot.press("minus")
        await pilot.pause()
        assert isinstance(app.screen, TableModal)
        assert app.screen.notice == "There must be at least one table."
        assert ledger.table_count == 1

        await pilot.press("plus")
        await pilot.pause()
        assert app.screen.notice == ""
        assert ledger.table_count == 2

    _run(app, scenario)

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest

from app import config
from app.ledger import Ledger
from app.models import Catalog, CatalogItem, Category, Subcategory
from app.persistence import KeyValueStore


@pytest.fixture(autouse=True)
def debug_log(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    log_path = tmp_path / "debug.log"
    monkeypatch.setattr(config, "DEBUG_LOG_PATH", str(log_path))
    return log_path


@pytest.fixture
def store(tmp_path: Path) -> KeyValueStore:
    return KeyValueStore(tmp_path / "data" / "pos.db")


@pytest.fixture
def ledger(store: KeyValueStore) -> Ledger:
    return Ledger.load(store)


def item(name: str, price: str) -> CatalogItem:
    return CatalogItem(name=name, price=Decimal(price))


@pytest.fixture
def drinks() -> Category:
    return Category(
        name="Bebidas",
        items=(item("Café", "1.50"), item("Caña", "2.00"), item(".Agua", "1.20")),
        subcategories=(
            Subcategory(name="Terraza", items=(item(".Caña", "2.50"), item("Vermut", "3.00"))),
            Subcategory(name="Happy hour", items=(item("Caña", "2.00"),)),
        ),
    )


@pytest.fixture
def catalog(drinks: Category) -> Catalog:
    return Catalog(categories=(drinks, Category(name="Postres")))

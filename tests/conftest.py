from __future__ import annotations

import pytest

from invoicing.db import connect
from invoicing.services.stock import add_stock_item
from invoicing.store import MemoryRecordStore, SqliteRecordStore, initialize_if_absent


@pytest.fixture
def store():
    s = MemoryRecordStore()
    initialize_if_absent(s)
    return s


@pytest.fixture
def sqlite_store(tmp_path):
    conn = connect(tmp_path / "app.db")
    s = SqliteRecordStore(conn)
    initialize_if_absent(s)
    yield s
    conn.close()


@pytest.fixture
def make_stock(store):
    def _make(qty: float = 10, **extra):
        data = {"name": extra.pop("name", "Corrugated sheet"), "unit_price": 100.0, "quantity_available": qty}
        data.update(extra)
        return add_stock_item(store, data)

    return _make


def line(stock_item=None, *, quantity=1, unit_price=100.0, description="Sheet", **extra):
    item = {
        "description": description,
        "quantity": quantity,
        "unit_price": unit_price,
        "stock_reference_id": stock_item["id"] if stock_item else None,
    }
    item.update(extra)
    return item


def invoice_data(items, *, client="Jean", **extra):
    data = {"client": {"name": client, "phone": "034", "address": "Lot 1"}, "items": items}
    data.update(extra)
    return data

from __future__ import annotations

import pytest

from conftest import invoice_data, line
from invoicing.errors import ValidationError
from invoicing.services.clients import add_client
from invoicing.services.data_management import (
    dumps_export,
    export_all_data,
    import_data,
    load_demo_data,
    loads_import,
    reset_all_data,
)
from invoicing.services.invoices import create_invoice
from invoicing.services.settings import get_settings, save_settings
from invoicing.services.stock import list_stock
from invoicing.store import CLIENTS, COLLECTIONS, DEFAULT_SETTINGS, INVOICES, SETTINGS, STOCK


def _collections(store):
    return {c: store.load(c) for c in COLLECTIONS}


def test_export_import_round_trip(store, make_stock):
    s = make_stock(10)
    add_client(store, {"name": "Marie"})
    create_invoice(store, invoice_data([line(s, quantity=4)], status="confirmed"))
    save_settings(store, {"company_name": "Acme"})

    doc = loads_import(dumps_export(export_all_data(store)))
    assert "exportDate" in doc
    snapshot = _collections(store)

    reset_all_data(store)
    assert import_data(store, doc) == list(COLLECTIONS)
    assert _collections(store) == snapshot


def test_round_trip_into_another_store(store, sqlite_store, make_stock):
    make_stock(3)
    create_invoice(store, invoice_data([line()]))

    import_data(sqlite_store, export_all_data(store))
    assert _collections(sqlite_store) == _collections(store)


def test_partial_import_leaves_other_collections(store, make_stock):
    make_stock(10)
    before_stock = store.load(STOCK)

    import_data(store, {"clients": [{"id": "c1", "name": "Imported"}]})

    assert store.load(CLIENTS) == [{"id": "c1", "name": "Imported"}]
    assert store.load(STOCK) == before_stock


def test_legacy_document_is_converted(store):
    legacy = {
        "stock": [
            {"id": "s1", "name": "Sheet", "quantity": 7, "unit": "feuille", "unitPrice": 100, "minQuantity": 2},
            {"id": "s2", "name": "Screw", "quantityAvailable": 50, "quantity": 50, "purchaseUnit": "piece", "unit": "piece"},
        ],
        "settings": {"companyName": "Legacy Co", "companyNif": "123"},
        "invoices": [{"id": "i1", "client": {"name": "Jean"}, "items": [{"stockReferenceId": "s1", "unitPrice": 5, "quantity": 2}]}],
    }

    import_data(store, legacy)

    s1, s2 = store.load(STOCK)
    assert s1["quantity_available"] == 7
    assert s1["purchase_unit"] == "feuille"
    assert s1["unit_price"] == 100
    assert s1["min_quantity"] == 2
    assert "quantity" not in s1 and "unit" not in s1
    assert s2["quantity_available"] == 50
    assert s2["purchase_unit"] == "piece"
    assert store.load(SETTINGS) == {"company_name": "Legacy Co", "company_nif": "123"}
    item = store.load(INVOICES)[0]["items"][0]
    assert item == {"stock_reference_id": "s1", "unit_price": 5, "quantity": 2}


@pytest.mark.parametrize(
    "doc",
    [
        {"clients": {"id": "x"}},
        {"settings": []},
        {"stock": ["not a record"]},
    ],
)
def test_invalid_import_writes_nothing(store, doc):
    doc = {"invoices": [{"id": "new"}], **doc}
    with pytest.raises(ValidationError):
        import_data(store, doc)
    assert store.load(INVOICES) == []


def test_loads_import_rejects_bad_json():
    with pytest.raises(ValidationError):
        loads_import("{not json")
    with pytest.raises(ValidationError):
        loads_import("[1, 2]")


def test_reset_restores_defaults(sqlite_store):
    add_client(sqlite_store, {"name": "Marie"})
    save_settings(sqlite_store, {"company_name": "Acme"})

    reset_all_data(sqlite_store)

    assert sqlite_store.load(CLIENTS) == []
    assert sqlite_store.load(SETTINGS) == DEFAULT_SETTINGS


def test_settings_defaults_are_merged(store):
    save_settings(store, {"company_name": " Acme "})
    settings = get_settings(store)
    assert settings["company_name"] == "Acme"
    assert settings["company_nif"] == ""


def test_demo_data(store):
    load_demo_data(store)
    assert len(list_stock(store)) == 5
    assert len(store.load(INVOICES)) == 4
    assert {i["status"] for i in store.load(INVOICES)} == {"confirmed", "draft"}

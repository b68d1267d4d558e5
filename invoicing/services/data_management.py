from __future__ import annotations

import json
import logging
import random
import re
from datetime import date, timedelta
from typing import Any

from invoicing.errors import ValidationError
from invoicing.services.clients import add_client
from invoicing.services.invoices import create_invoice, next_number
from invoicing.services.stock import add_stock_item
from invoicing.store import (
    CLIENTS,
    COLLECTIONS,
    INVOICES,
    SETTINGS,
    STOCK,
    RecordStore,
    initialize_if_absent,
)
from invoicing.utils import iso_now

logger = logging.getLogger(__name__)

EXPORT_DATE = "exportDate"

_CAMEL_RE = re.compile(r"(?<=[a-z0-9])([A-Z])")


# -------------------------
# Export / import
# -------------------------

def export_all_data(store: RecordStore) -> dict[str, Any]:
    doc: dict[str, Any] = {c: store.load(c) for c in COLLECTIONS}
    doc[EXPORT_DATE] = iso_now()
    return doc


def dumps_export(document: dict[str, Any]) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


def loads_import(text: str | bytes) -> dict[str, Any]:
    try:
        doc = json.loads(text)
    except ValueError as e:
        raise ValidationError(f"Import file is not valid JSON: {e}") from e
    if not isinstance(doc, dict):
        raise ValidationError("Import file must contain a JSON object.")
    return doc


def _snake(key: str) -> str:
    return _CAMEL_RE.sub(r"_\1", key).lower()


def _snake_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {_snake(str(k)): _snake_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_snake_keys(v) for v in value]
    return value


def _canonical_stock_item(item: dict[str, Any]) -> dict[str, Any]:
    # Older files mirror quantity_available in `quantity` and purchase_unit in `unit`.
    item = dict(item)
    legacy_qty = item.pop("quantity", None)
    legacy_unit = item.pop("unit", None)
    if item.get("quantity_available") is None and legacy_qty is not None:
        item["quantity_available"] = legacy_qty
    if not item.get("purchase_unit") and legacy_unit:
        item["purchase_unit"] = legacy_unit
    return item


def _canonical(collection: str, value: Any) -> Any:
    value = _snake_keys(value)
    if collection == STOCK:
        value = [_canonical_stock_item(s) for s in value]
    return value


def import_data(store: RecordStore, document: dict[str, Any]) -> list[str]:
    """
    Replace every collection present in the document; others are left alone.
    The whole document is checked before the first write.
    """
    if not isinstance(document, dict):
        raise ValidationError("Import document must be an object.")

    staged: dict[str, Any] = {}
    for collection in COLLECTIONS:
        value = document.get(collection)
        if value is None:
            continue
        expected = dict if collection == SETTINGS else list
        if not isinstance(value, expected):
            raise ValidationError(f"'{collection}' must be a {'object' if expected is dict else 'list'}.")
        if expected is list and not all(isinstance(r, dict) for r in value):
            raise ValidationError(f"Every record in '{collection}' must be an object.")
        staged[collection] = _canonical(collection, value)

    for collection, value in staged.items():
        store.save(collection, value)

    logger.info("Imported collections: %s", ", ".join(staged) or "none")
    return list(staged)


def reset_all_data(store: RecordStore) -> None:
    for collection in COLLECTIONS:
        store.remove(collection)
    initialize_if_absent(store)
    logger.warning("All data reset to defaults")


# -------------------------
# Demo data
# -------------------------

DEMO_STOCK = [
    # category, name, reference, purchase_price, unit_price, unit, qty, min_qty
    ("TOLE", "Corrugated sheet 0.35mm", "TOL-035", 28000.0, 35000.0, "feuille", 120, 20),
    ("TOLE", "Flat sheet 0.40mm", "TOL-040", 32000.0, 41000.0, "feuille", 60, 10),
    ("PANNE", "Purlin 40x80", "PAN-4080", 18000.0, 24000.0, "barre", 45, 10),
    ("ACCESSOIRE", "Roofing screw", "ACC-VIS", 150.0, 250.0, "piece", 2000, 300),
    ("ACCESSOIRE", "Ridge cap", "ACC-FAI", 9000.0, 13000.0, "piece", 8, 10),
]

DEMO_CLIENTS = [
    ("Rakoto Jean", "034 00 000 01", "Lot II A 12"),
    ("Rasoa Marie", "032 00 000 02", "Route du By Pass"),
    ("Hardware Plus", "033 00 000 03", ""),
]


def load_demo_data(store: RecordStore, *, seed: int = 7) -> None:
    random.seed(seed)
    initialize_if_absent(store)

    stock_items = []
    for cat, name, ref, pp, up, unit, qty, min_qty in DEMO_STOCK:
        stock_items.append(
            add_stock_item(
                store,
                {
                    "category": cat,
                    "name": name,
                    "reference": ref,
                    "purchase_price": pp,
                    "unit_price": up,
                    "purchase_unit": unit,
                    "quantity_available": qty,
                    "min_quantity": min_qty,
                },
            )
        )

    for name, phone, address in DEMO_CLIENTS:
        add_client(store, {"name": name, "phone": phone, "address": address})

    today = date.today()
    for i in range(4):
        name, phone, address = random.choice(DEMO_CLIENTS)
        picks = random.sample(stock_items, k=2)
        items = [
            {
                "stock_reference_id": s["id"],
                "reference": s["reference"],
                "purchase_price": s["purchase_price"],
                "description": s["name"],
                "quantity": random.randint(1, 10),
                "unit": s["purchase_unit"],
                "unit_price": s["unit_price"],
            }
            for s in picks
        ]
        create_invoice(
            store,
            {
                "number": next_number(store, today),
                "date": (today - timedelta(days=i)).isoformat(),
                "status": "confirmed" if i % 2 == 0 else "draft",
                "client": {"name": name, "phone": phone, "address": address},
                "items": items,
            },
        )

    logger.info("Demo data loaded")


def collection_counts(store: RecordStore) -> dict[str, int]:
    return {c: len(store.load(c)) for c in (INVOICES, CLIENTS, STOCK)}

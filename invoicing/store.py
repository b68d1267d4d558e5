from __future__ import annotations

import copy
import json
import logging
import sqlite3
from typing import Any, Protocol, Union

from invoicing.db import ensure_schema, q, x
from invoicing.utils import iso_now

logger = logging.getLogger(__name__)

INVOICES = "invoices"
CLIENTS = "clients"
STOCK = "stock"
SETTINGS = "settings"

# Stable storage keys. Changing these orphans existing data.
KEYS = {
    INVOICES: "invoices_v2",
    CLIENTS: "clients_v2",
    STOCK: "stock_v2",
    SETTINGS: "settings_v2",
}

COLLECTIONS = (INVOICES, CLIENTS, STOCK, SETTINGS)

DEFAULT_SETTINGS = {
    "company_name": "My Company",
    "company_activity": "Building materials sales",
    "company_address": "",
    "company_stat": "",
    "company_nif": "",
    "company_phone": "",
    "responsible_number": "",
}

Value = Union[list, dict]


def _key(collection: str) -> str:
    try:
        return KEYS[collection]
    except KeyError:
        raise KeyError(f"Unknown collection: {collection!r}") from None


def empty_value(collection: str) -> Value:
    _key(collection)
    return {} if collection == SETTINGS else []


class RecordStore(Protocol):
    def load(self, collection: str) -> Value: ...

    def save(self, collection: str, value: Value) -> None: ...

    def remove(self, collection: str) -> None: ...

    def exists(self, collection: str) -> bool: ...


class SqliteRecordStore:
    """
    Whole-collection JSON values in the `records` table.
    Every save is one committed upsert, so a collection is replaced atomically.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        ensure_schema(conn)

    def load(self, collection: str) -> Value:
        rows = q(self.conn, "SELECT value FROM records WHERE key=?", (_key(collection),))
        if not rows:
            return empty_value(collection)
        return json.loads(rows[0]["value"])

    def save(self, collection: str, value: Value) -> None:
        payload = json.dumps(value, ensure_ascii=False)
        x(
            self.conn,
            """
            INSERT INTO records (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
            """,
            (_key(collection), payload, iso_now()),
        )

    def remove(self, collection: str) -> None:
        x(self.conn, "DELETE FROM records WHERE key=?", (_key(collection),))

    def exists(self, collection: str) -> bool:
        rows = q(self.conn, "SELECT 1 FROM records WHERE key=?", (_key(collection),))
        return bool(rows)


class MemoryRecordStore:
    """Dict-backed store. Values go through JSON on save, like the sqlite store."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def load(self, collection: str) -> Value:
        raw = self._data.get(_key(collection))
        if raw is None:
            return empty_value(collection)
        return json.loads(raw)

    def save(self, collection: str, value: Value) -> None:
        self._data[_key(collection)] = json.dumps(value, ensure_ascii=False)

    def remove(self, collection: str) -> None:
        self._data.pop(_key(collection), None)

    def exists(self, collection: str) -> bool:
        return _key(collection) in self._data


def initialize_if_absent(store: RecordStore) -> list[str]:
    """
    Seed missing collections (empty lists, default settings).
    Returns the collections that were created; empty once initialized.
    """
    created: list[str] = []
    for collection in COLLECTIONS:
        if store.exists(collection):
            continue
        if collection == SETTINGS:
            store.save(collection, copy.deepcopy(DEFAULT_SETTINGS))
        else:
            store.save(collection, [])
        created.append(collection)

    if created:
        logger.info("Initialized collections: %s", ", ".join(created))
    return created


def find_index(records: list[dict[str, Any]], record_id: Any) -> int:
    for i, r in enumerate(records):
        if r.get("id") == record_id:
            return i
    return -1

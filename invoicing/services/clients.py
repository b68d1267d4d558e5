from __future__ import annotations

import logging
from typing import Any, Optional

from invoicing.errors import ValidationError
from invoicing.store import CLIENTS, RecordStore, find_index
from invoicing.utils import iso_now, new_id

logger = logging.getLogger(__name__)


def _clean(v: Any) -> str:
    return str(v).strip() if v is not None else ""


def list_clients(store: RecordStore) -> list[dict[str, Any]]:
    return store.load(CLIENTS)


def get_client(store: RecordStore, client_id: str) -> Optional[dict[str, Any]]:
    clients = store.load(CLIENTS)
    idx = find_index(clients, client_id)
    return clients[idx] if idx != -1 else None


def add_client(store: RecordStore, data: dict[str, Any]) -> dict[str, Any]:
    """
    Direct creation from the clients page. No name uniqueness check here;
    only the invoice-driven upsert merges by name.
    """
    name = _clean(data.get("name"))
    if not name:
        raise ValidationError("Client name is required.")

    client = {
        "id": new_id(),
        "name": name,
        "phone": _clean(data.get("phone")),
        "address": _clean(data.get("address")),
        "created_at": iso_now(),
        "last_purchase_date": None,
        "total_purchases": 0,
    }
    clients = store.load(CLIENTS)
    clients.append(client)
    store.save(CLIENTS, clients)
    logger.info("Client %s created (%s)", client["id"], name)
    return client


def update_client(store: RecordStore, client_id: str, data: dict[str, Any]) -> bool:
    clients = store.load(CLIENTS)
    idx = find_index(clients, client_id)
    if idx == -1:
        return False

    name = _clean(data.get("name"))
    if not name:
        raise ValidationError("Client name is required.")

    old = clients[idx]
    clients[idx] = {
        "id": client_id,
        "name": name,
        "phone": _clean(data.get("phone")),
        "address": _clean(data.get("address")),
        "created_at": old.get("created_at"),
        "last_purchase_date": old.get("last_purchase_date"),
        "total_purchases": int(old.get("total_purchases") or 0),
    }
    store.save(CLIENTS, clients)
    logger.info("Client %s updated", client_id)
    return True


def delete_client(store: RecordStore, client_id: str) -> bool:
    clients = store.load(CLIENTS)
    kept = [c for c in clients if c.get("id") != client_id]
    if len(kept) == len(clients):
        return False
    store.save(CLIENTS, kept)
    logger.info("Client %s deleted", client_id)
    return True


def upsert_from_invoice_client(store: RecordStore, snapshot: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """
    Record a purchase for the invoice's client.

    Clients are matched by case-insensitive name. A match keeps its id and
    creation date, gets one more purchase and takes the snapshot's contact
    details as-is (blank values included). No match creates a client with
    one purchase. Nothing happens when the snapshot has no name.
    """
    name = _clean((snapshot or {}).get("name"))
    if not name:
        return None

    clients = store.load(CLIENTS)
    key = name.casefold()
    idx = next(
        (i for i, c in enumerate(clients) if _clean(c.get("name")).casefold() == key),
        -1,
    )

    now = iso_now()
    client = {
        "name": name,
        "phone": _clean(snapshot.get("phone")),
        "address": _clean(snapshot.get("address")),
        "last_purchase_date": now,
    }

    if idx != -1:
        old = clients[idx]
        client["id"] = old.get("id")
        client["created_at"] = old.get("created_at")
        client["total_purchases"] = int(old.get("total_purchases") or 0) + 1
        clients[idx] = client
    else:
        client["id"] = new_id()
        client["created_at"] = now
        client["total_purchases"] = 1
        clients.append(client)

    store.save(CLIENTS, clients)
    logger.debug("Client %s purchases=%s", client["id"], client["total_purchases"])
    return client

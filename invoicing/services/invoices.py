from __future__ import annotations

import logging
from datetime import date
from enum import Enum
from typing import Any, Optional

from invoicing.errors import ValidationError
from invoicing.services.clients import upsert_from_invoice_client
from invoicing.services.line_items import build_line_items, invoice_total
from invoicing.services.stock import (
    StockEffect,
    apply_consumption,
    compute_stock_effect,
    reverse_consumption,
)
from invoicing.store import INVOICES, RecordStore, find_index
from invoicing.utils import iso_now, new_id, parse_iso_date

logger = logging.getLogger(__name__)

NUMBER_PREFIX = "FACT"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class InvoiceType(str, Enum):
    STANDARD = "standard"
    PROFORMA = "proforma"
    CREDIT_NOTE = "credit_note"


def _normalize_choice(value: Any, enum_cls: type[Enum], label: str) -> Optional[str]:
    if value is None or value == "":
        return None
    v = value.value if isinstance(value, Enum) else str(value).strip().lower()
    allowed = {e.value for e in enum_cls}
    if v not in allowed:
        raise ValidationError(f"Invalid {label} {value!r}. Use one of: {', '.join(sorted(allowed))}.")
    return v


def _normalize_client(client: Optional[dict[str, Any]]) -> dict[str, str]:
    client = client or {}
    name = str(client.get("name") or "").strip()
    if not name:
        raise ValidationError("Client name is required.")
    return {
        "name": name,
        "phone": str(client.get("phone") or "").strip(),
        "address": str(client.get("address") or "").strip(),
    }


def _normalize_date(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value.isoformat()
    d = parse_iso_date(value)
    if d is None:
        raise ValidationError(f"Invalid invoice date {value!r}. Use YYYY-MM-DD.")
    return d.isoformat()


def _validated(data: dict[str, Any]) -> dict[str, Any]:
    """All checks happen here, before any store write."""
    items = build_line_items(data.get("items"))
    return {
        "number": str(data.get("number") or "").strip() or None,
        "date": _normalize_date(data.get("date")),
        "status": _normalize_choice(data.get("status"), InvoiceStatus, "status"),
        "type": _normalize_choice(data.get("type"), InvoiceType, "type"),
        "client": _normalize_client(data.get("client")),
        "items": items,
        "notes": str(data.get("notes") or "").strip(),
        "total": invoice_total(items),
    }


# -------------------------
# Queries
# -------------------------

def list_invoices(store: RecordStore) -> list[dict[str, Any]]:
    return store.load(INVOICES)


def get_invoice(store: RecordStore, invoice_id: str) -> Optional[dict[str, Any]]:
    invoices = store.load(INVOICES)
    idx = find_index(invoices, invoice_id)
    return invoices[idx] if idx != -1 else None


def next_number(store: RecordStore, today: Optional[date] = None) -> str:
    """
    FACT-{year}-{seq}: seq counts this year's invoices by their `date`.
    Nothing is reserved, so two unsaved invoices can get the same number.
    """
    year = (today or date.today()).year
    n = 0
    for inv in store.load(INVOICES):
        d = parse_iso_date(inv.get("date"))
        if d is not None and d.year == year:
            n += 1
    return f"{NUMBER_PREFIX}-{year}-{n + 1:03d}"


# -------------------------
# Mutations
# -------------------------

def create_invoice(store: RecordStore, data: dict[str, Any]) -> dict[str, Any]:
    v = _validated(data)
    now = iso_now()

    invoice = {
        "id": new_id(),
        "number": v["number"] or next_number(store),
        "date": v["date"] or date.today().isoformat(),
        "status": v["status"] or InvoiceStatus.DRAFT.value,
        "type": v["type"] or InvoiceType.STANDARD.value,
        "client": v["client"],
        "items": v["items"],
        "notes": v["notes"],
        "total": v["total"],
        "created_at": now,
        "updated_at": now,
        "confirmed_at": None,
    }

    if invoice["status"] == InvoiceStatus.CONFIRMED.value:
        invoice["confirmed_at"] = now
        apply_consumption(store, invoice["items"])
    upsert_from_invoice_client(store, invoice["client"])

    # Side effects are written before the invoice itself.
    invoices = store.load(INVOICES)
    invoices.append(invoice)
    store.save(INVOICES, invoices)

    logger.info(
        "Invoice %s created (%s, %s, total=%.2f)",
        invoice["number"], invoice["status"], invoice["client"]["name"], invoice["total"],
    )
    return invoice


def update_invoice(store: RecordStore, invoice_id: str, data: dict[str, Any]) -> bool:
    """
    Replace an invoice's content. Stock only moves when the status crosses
    the confirmed boundary: a reversal restores the previously stored items,
    since those were the ones deducted. Editing the items of an invoice that
    stays confirmed does not touch stock.
    """
    invoices = store.load(INVOICES)
    idx = find_index(invoices, invoice_id)
    if idx == -1:
        return False

    v = _validated(data)
    old = invoices[idx]
    now = iso_now()

    invoice = {
        "id": invoice_id,
        "number": v["number"] or old.get("number"),
        "date": v["date"] or old.get("date"),
        "status": v["status"] or old.get("status") or InvoiceStatus.DRAFT.value,
        "type": v["type"] or old.get("type") or InvoiceType.STANDARD.value,
        "client": v["client"],
        "items": v["items"],
        "notes": v["notes"],
        "total": v["total"],
        "created_at": old.get("created_at"),
        "updated_at": now,
        "confirmed_at": old.get("confirmed_at"),
    }

    effect = compute_stock_effect(old.get("status"), invoice["status"])
    if effect is StockEffect.APPLY:
        invoice["confirmed_at"] = now
        apply_consumption(store, invoice["items"])
    elif effect is StockEffect.REVERSE:
        reverse_consumption(store, old.get("items") or [])
    upsert_from_invoice_client(store, invoice["client"])

    invoices[idx] = invoice
    store.save(INVOICES, invoices)

    logger.info(
        "Invoice %s updated (%s -> %s, stock %s)",
        invoice["number"], old.get("status"), invoice["status"], effect.value,
    )
    return True


def delete_invoice(store: RecordStore, invoice_id: str) -> bool:
    """Remove an invoice. Stock is left as is, even for a confirmed invoice."""
    invoices = store.load(INVOICES)
    kept = [inv for inv in invoices if inv.get("id") != invoice_id]
    if len(kept) == len(invoices):
        return False
    store.save(INVOICES, kept)
    logger.info("Invoice %s deleted", invoice_id)
    return True


def confirm_invoice(store: RecordStore, invoice_id: str) -> bool:
    invoices = store.load(INVOICES)
    idx = find_index(invoices, invoice_id)
    if idx == -1 or invoices[idx].get("status") != InvoiceStatus.DRAFT.value:
        return False

    inv = invoices[idx]
    now = iso_now()
    inv["status"] = InvoiceStatus.CONFIRMED.value
    inv["confirmed_at"] = now
    inv["updated_at"] = now
    apply_consumption(store, inv.get("items") or [])
    store.save(INVOICES, invoices)
    logger.info("Invoice %s confirmed", inv.get("number"))
    return True

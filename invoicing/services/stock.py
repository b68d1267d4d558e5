from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Iterable, Optional

from invoicing.errors import ValidationError
from invoicing.store import STOCK, RecordStore, find_index
from invoicing.utils import iso_now, new_id, to_float

logger = logging.getLogger(__name__)

CONFIRMED = "confirmed"

CATEGORIES = ["TOLE", "PANNE", "ACCESSOIRE", "AUTRE"]
DEFAULT_PURCHASE_UNIT = "piece"


class StockEffect(str, Enum):
    NONE = "none"
    APPLY = "apply"
    REVERSE = "reverse"


def compute_stock_effect(old_status: Optional[str], new_status: Optional[str]) -> StockEffect:
    """
    Stock consequence of moving an invoice from old_status to new_status.
    Only crossing the `confirmed` boundary moves stock.
    """
    was_confirmed = old_status == CONFIRMED
    is_confirmed = new_status == CONFIRMED
    if is_confirmed and not was_confirmed:
        return StockEffect.APPLY
    if was_confirmed and not is_confirmed:
        return StockEffect.REVERSE
    return StockEffect.NONE


# -------------------------
# Ledger
# -------------------------

def _stock_moves(line_items: Iterable[dict[str, Any]]) -> list[tuple[str, float]]:
    moves: list[tuple[str, float]] = []
    for item in line_items or []:
        ref = item.get("stock_reference_id")
        if not ref:
            continue
        qty = to_float(item.get("quantity")) or 0.0
        moves.append((str(ref), qty))
    return moves


def _move_stock(store: RecordStore, line_items: Iterable[dict[str, Any]], *, sign: int) -> int:
    moves = _stock_moves(line_items)
    if not moves:
        return 0

    stock = store.load(STOCK)
    touched: set[str] = set()
    now = iso_now()

    for ref, qty in moves:
        idx = find_index(stock, ref)
        if idx == -1:
            logger.warning("Line item references unknown stock item %s, skipped", ref)
            continue

        s = stock[idx]
        current = to_float(s.get("quantity_available")) or 0.0
        if sign < 0:
            new_qty = max(0.0, current - qty)
            if current - qty < 0:
                logger.warning(
                    "Stock %s (%s) clamped at 0: had %s, consumed %s",
                    s.get("name"), ref, current, qty,
                )
        else:
            new_qty = current + qty

        s["quantity_available"] = new_qty
        s["last_updated"] = now
        touched.add(ref)
        logger.debug("Stock %s: %s -> %s", ref, current, new_qty)

    if touched:
        store.save(STOCK, stock)
    return len(touched)


def apply_consumption(store: RecordStore, line_items: Iterable[dict[str, Any]]) -> int:
    """
    Deduct linked line item quantities from stock, flooring at zero.
    Items without a stock reference are free-text lines and are ignored.
    Returns the number of stock items touched.
    """
    return _move_stock(store, line_items, sign=-1)


def reverse_consumption(store: RecordStore, line_items: Iterable[dict[str, Any]]) -> int:
    """
    Add linked line item quantities back to stock, uncapped.
    Not an exact inverse of apply_consumption when the zero floor engaged.
    """
    return _move_stock(store, line_items, sign=1)


def add_quantity(store: RecordStore, stock_item_id: str, amount: Any) -> bool:
    amt = to_float(amount)
    if amt is None or amt <= 0:
        logger.info("Rejected stock quantity %r for %s", amount, stock_item_id)
        return False

    stock = store.load(STOCK)
    idx = find_index(stock, stock_item_id)
    if idx == -1:
        return False

    s = stock[idx]
    s["quantity_available"] = (to_float(s.get("quantity_available")) or 0.0) + amt
    s["last_updated"] = iso_now()
    store.save(STOCK, stock)
    logger.info("Added %s to stock item %s", amt, stock_item_id)
    return True


# -------------------------
# Catalog
# -------------------------

def _non_negative(data: dict[str, Any], field: str, label: str) -> float:
    raw = data.get(field)
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return 0.0
    v = to_float(raw)
    if v is None:
        raise ValidationError(f"{label} must be a number.")
    if v < 0:
        raise ValidationError(f"{label} must be >= 0.")
    return v


def _normalize_stock_item(data: dict[str, Any]) -> dict[str, Any]:
    name = str(data.get("name") or "").strip()
    if not name:
        raise ValidationError("Item name is required.")

    unit_price = _non_negative(data, "unit_price", "Unit price")
    purchase_price = _non_negative(data, "purchase_price", "Purchase price")
    if not purchase_price and unit_price:
        purchase_price = unit_price

    return {
        "category": str(data.get("category") or "AUTRE").strip().upper(),
        "name": name,
        "reference": str(data.get("reference") or "").strip(),
        "purchase_price": purchase_price,
        "purchase_unit": str(data.get("purchase_unit") or DEFAULT_PURCHASE_UNIT).strip(),
        "unit_price": unit_price,
        "quantity_available": _non_negative(data, "quantity_available", "Quantity available"),
        "min_quantity": _non_negative(data, "min_quantity", "Minimum quantity"),
        "notes": str(data.get("notes") or "").strip(),
    }


def list_stock(store: RecordStore) -> list[dict[str, Any]]:
    return store.load(STOCK)


def get_stock_item(store: RecordStore, stock_item_id: str) -> Optional[dict[str, Any]]:
    stock = store.load(STOCK)
    idx = find_index(stock, stock_item_id)
    return stock[idx] if idx != -1 else None


def add_stock_item(store: RecordStore, data: dict[str, Any]) -> dict[str, Any]:
    item = _normalize_stock_item(data)
    now = iso_now()
    item["id"] = new_id()
    item["created_at"] = now
    item["last_updated"] = now

    stock = store.load(STOCK)
    stock.append(item)
    store.save(STOCK, stock)
    logger.info("Stock item %s created (%s)", item["id"], item["name"])
    return item


def update_stock_item(store: RecordStore, stock_item_id: str, data: dict[str, Any]) -> bool:
    stock = store.load(STOCK)
    idx = find_index(stock, stock_item_id)
    if idx == -1:
        return False

    item = _normalize_stock_item(data)
    item["id"] = stock_item_id
    item["created_at"] = stock[idx].get("created_at")
    item["last_updated"] = iso_now()
    stock[idx] = item
    store.save(STOCK, stock)
    logger.info("Stock item %s updated", stock_item_id)
    return True


def delete_stock_item(store: RecordStore, stock_item_id: str) -> bool:
    stock = store.load(STOCK)
    kept = [s for s in stock if s.get("id") != stock_item_id]
    if len(kept) == len(stock):
        return False
    store.save(STOCK, kept)
    logger.info("Stock item %s deleted", stock_item_id)
    return True


# -------------------------
# Reporting
# -------------------------

def low_stock_items(store: RecordStore) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for s in store.load(STOCK):
        qty = to_float(s.get("quantity_available")) or 0.0
        min_qty = to_float(s.get("min_quantity")) or 0.0
        if min_qty > 0 and qty <= min_qty:
            out.append(s)
    return out


def stock_value(store: RecordStore) -> float:
    total = 0.0
    for s in store.load(STOCK):
        price = to_float(s.get("purchase_price")) or to_float(s.get("unit_price")) or 0.0
        qty = to_float(s.get("quantity_available")) or 0.0
        total += qty * price
    return total

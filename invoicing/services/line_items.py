from __future__ import annotations

from typing import Any, Iterable

from invoicing.errors import ValidationError
from invoicing.utils import new_id, safe_div, to_float

DEFAULT_QUANTITY_UNIT = "piece"
DEFAULT_LENGTH_UNIT = "m"
DEFAULT_UNIT = "m"


def _fmt(v: float) -> str:
    # 3.0 -> "3", 2.5 -> "2.5"
    return f"{v:g}"


def format_detail_line(line: dict[str, Any]) -> dict[str, Any]:
    """
    One measured row, e.g. 4 sheets of 3.5 m -> total 14 (m).
    Without a length the row counts its quantity only.
    """
    qty = to_float(line.get("quantity")) or 1.0
    length = to_float(line.get("length")) or 0.0
    qty_unit = str(line.get("quantity_unit") or "").strip() or DEFAULT_QUANTITY_UNIT
    length_unit = str(line.get("length_unit") or "").strip() or DEFAULT_LENGTH_UNIT

    total = qty * length if length > 0 else qty
    display = f"{_fmt(qty)} {qty_unit}"
    if length > 0:
        display += f" x {_fmt(length)}{length_unit} = {_fmt(total)}{length_unit}"

    return {
        "quantity": qty,
        "quantity_unit": qty_unit,
        "length": length,
        "length_unit": length_unit,
        "total": total,
        "display": display,
    }


def format_detail_lines(lines: Iterable[dict[str, Any]] | None) -> list[dict[str, Any]]:
    # Rows without a quantity are blank form rows.
    kept = [l for l in (lines or []) if to_float(l.get("quantity"))]
    return [format_detail_line(l) for l in kept]


def build_line_item(data: dict[str, Any]) -> dict[str, Any]:
    """
    Normalize one invoice row.

    quantity comes from the detail lines when any are filled in, else from
    the given quantity. total, purchase_cost and margins are always derived.
    """
    description = str(data.get("description") or "").strip()
    if not description:
        raise ValidationError("Each line item needs a description.")

    detail_lines = format_detail_lines(data.get("detail_lines"))
    if detail_lines:
        quantity = sum(l["total"] for l in detail_lines)
    else:
        quantity = to_float(data.get("quantity")) or 0.0
    if quantity <= 0:
        raise ValidationError(f"Quantity must be > 0 for '{description}'.")

    unit_price = to_float(data.get("unit_price"))
    if unit_price is None:
        raise ValidationError(f"Unit price is required for '{description}'.")
    if unit_price < 0:
        raise ValidationError(f"Unit price must be >= 0 for '{description}'.")

    purchase_price = to_float(data.get("purchase_price"))
    stock_ref = data.get("stock_reference_id") or None

    item: dict[str, Any] = {
        "id": data.get("id") or new_id(),
        "stock_reference_id": str(stock_ref) if stock_ref else None,
        "reference": str(data.get("reference") or "").strip(),
        "purchase_price": purchase_price,
        "description": description,
        "detail_lines": detail_lines,
        "quantity": quantity,
        "unit": str(data.get("unit") or DEFAULT_UNIT).strip(),
        "unit_price": unit_price,
        "total": quantity * unit_price,
    }

    if purchase_price:
        purchase_cost = quantity * purchase_price
        item["purchase_cost"] = purchase_cost
        item["margin"] = item["total"] - purchase_cost
        item["margin_percent"] = safe_div(item["margin"], purchase_cost) * 100.0

    return item


def build_line_items(items: Iterable[dict[str, Any]] | None) -> list[dict[str, Any]]:
    out = [build_line_item(i) for i in (items or [])]
    if not out:
        raise ValidationError("Add at least one line item.")
    return out


def invoice_total(items: Iterable[dict[str, Any]]) -> float:
    return sum(float(i["total"]) for i in items)


def carry_over_line_item(stored: dict[str, Any] | None, edited: dict[str, Any]) -> dict[str, Any]:
    """
    Merge an edited row back onto the stored line item it came from.

    The row keeps the stored id. The purchase price recorded at sale time
    stays while the row points at the same stock item. Detail lines the
    editor cannot show (more than one) stay unless the row brings its own
    or its quantity was changed.
    """
    if not stored:
        return edited

    merged = dict(edited)
    merged["id"] = stored.get("id") or edited.get("id")

    same_stock = (stored.get("stock_reference_id") or None) == (edited.get("stock_reference_id") or None)
    if same_stock and stored.get("purchase_price") is not None:
        merged["purchase_price"] = stored["purchase_price"]

    stored_lines = stored.get("detail_lines") or []
    edited_qty = to_float(edited.get("quantity"))
    qty_untouched = edited_qty is None or abs(edited_qty - (to_float(stored.get("quantity")) or 0.0)) < 1e-9
    if not edited.get("detail_lines") and len(stored_lines) > 1 and qty_untouched:
        merged["detail_lines"] = stored_lines

    return merged

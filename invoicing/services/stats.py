from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

import pandas as pd

from invoicing.store import INVOICES, RecordStore
from invoicing.utils import parse_iso_date, to_float

NO_CLIENT = "-"

INVOICE_COLUMNS = ["id", "number", "date", "client", "status", "type", "total", "created_at"]


@dataclass
class Stats:
    month_total: float
    total_invoices: int
    last_client: str


def get_stats(store: RecordStore, today: Optional[date] = None) -> Stats:
    """Dashboard figures, computed from the stored invoices on every call."""
    today = today or date.today()
    invoices = store.load(INVOICES)

    month_total = 0.0
    for inv in invoices:
        d = parse_iso_date(inv.get("date"))
        if d is not None and d.year == today.year and d.month == today.month:
            month_total += to_float(inv.get("total")) or 0.0

    last_client = NO_CLIENT
    if invoices:
        # ISO UTC timestamps sort lexically; same-second ties go to the later record.
        _, latest = max(
            enumerate(invoices),
            key=lambda pair: (str(pair[1].get("created_at") or ""), pair[0]),
        )
        last_client = str((latest.get("client") or {}).get("name") or NO_CLIENT)

    return Stats(month_total=month_total, total_invoices=len(invoices), last_client=last_client)


def invoices_frame(store: RecordStore) -> pd.DataFrame:
    rows = [
        {
            "id": inv.get("id"),
            "number": inv.get("number"),
            "date": inv.get("date"),
            "client": (inv.get("client") or {}).get("name"),
            "status": inv.get("status"),
            "type": inv.get("type"),
            "total": to_float(inv.get("total")) or 0.0,
            "created_at": inv.get("created_at"),
        }
        for inv in store.load(INVOICES)
    ]
    df = pd.DataFrame(rows, columns=INVOICE_COLUMNS)
    if not df.empty:
        df = df.sort_values("created_at", ascending=False).reset_index(drop=True)
    return df

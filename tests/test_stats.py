from __future__ import annotations

from datetime import date

import pytest

from conftest import invoice_data, line
from invoicing.services.invoices import create_invoice
from invoicing.services.stats import NO_CLIENT, get_stats, invoices_frame
from invoicing.store import INVOICES


def test_stats_empty(store):
    stats = get_stats(store)
    assert stats.month_total == 0
    assert stats.total_invoices == 0
    assert stats.last_client == NO_CLIENT


def test_month_total_uses_invoice_date(store):
    today = date(2026, 10, 19)
    create_invoice(store, invoice_data([line(quantity=1, unit_price=100)], date="2026-10-01"))
    create_invoice(store, invoice_data([line(quantity=2, unit_price=50)], date="2026-10-19"))
    create_invoice(store, invoice_data([line(quantity=1, unit_price=999)], date="2026-09-30"))
    create_invoice(store, invoice_data([line(quantity=1, unit_price=999)], date="2025-10-19"))

    stats = get_stats(store, today)
    assert stats.month_total == pytest.approx(200)
    assert stats.total_invoices == 4


def test_last_client_is_latest_created(store):
    store.save(
        INVOICES,
        [
            {"id": "1", "date": "2026-10-01", "total": 1, "client": {"name": "Newest"}, "created_at": "2026-10-03T00:00:00+00:00"},
            {"id": "2", "date": "2026-10-01", "total": 1, "client": {"name": "Older"}, "created_at": "2026-10-01T00:00:00+00:00"},
        ],
    )
    assert get_stats(store).last_client == "Newest"


def test_last_client_tie_goes_to_later_record(store):
    create_invoice(store, invoice_data([line()], client="First"))
    create_invoice(store, invoice_data([line()], client="Second"))
    assert get_stats(store).last_client == "Second"


def test_invoices_frame(store):
    assert invoices_frame(store).empty

    create_invoice(store, invoice_data([line(quantity=2, unit_price=10)], client="Jean"))
    df = invoices_frame(store)
    assert list(df.columns) == ["id", "number", "date", "client", "status", "type", "total", "created_at"]
    assert df.iloc[0]["client"] == "Jean"
    assert df.iloc[0]["total"] == pytest.approx(20)

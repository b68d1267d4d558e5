from __future__ import annotations

import pytest

from invoicing.errors import ValidationError
from invoicing.services.clients import (
    add_client,
    delete_client,
    get_client,
    list_clients,
    update_client,
    upsert_from_invoice_client,
)


def test_direct_add_starts_with_no_purchases(store):
    c = add_client(store, {"name": "Jean", "phone": "111"})
    assert c["total_purchases"] == 0
    assert c["last_purchase_date"] is None


def test_direct_add_does_not_merge_names(store):
    add_client(store, {"name": "Jean"})
    add_client(store, {"name": "jean"})
    assert len(list_clients(store)) == 2


def test_add_requires_name(store):
    with pytest.raises(ValidationError):
        add_client(store, {"name": "  "})


def test_upsert_matches_case_insensitively(store):
    original = add_client(store, {"name": "Jean", "phone": "111", "address": "Old street"})

    merged = upsert_from_invoice_client(store, {"name": "jean", "phone": "222", "address": ""})

    clients = list_clients(store)
    assert len(clients) == 1
    assert merged["id"] == original["id"]
    assert merged["created_at"] == original["created_at"]
    assert merged["total_purchases"] == 1
    assert merged["phone"] == "222"
    assert merged["address"] == ""
    assert merged["last_purchase_date"] is not None


def test_upsert_creates_new_client(store):
    c = upsert_from_invoice_client(store, {"name": "Marie"})
    assert c["total_purchases"] == 1
    assert get_client(store, c["id"])["name"] == "Marie"

    upsert_from_invoice_client(store, {"name": "MARIE"})
    assert get_client(store, c["id"])["total_purchases"] == 2


@pytest.mark.parametrize("snapshot", [None, {}, {"name": ""}, {"name": "   "}])
def test_upsert_without_name_is_a_no_op(store, snapshot):
    assert upsert_from_invoice_client(store, snapshot) is None
    assert list_clients(store) == []


def test_update_keeps_purchase_history(store):
    c = add_client(store, {"name": "Jean"})
    upsert_from_invoice_client(store, {"name": "Jean"})

    assert update_client(store, c["id"], {"name": "Jean R.", "phone": "333"}) is True
    updated = get_client(store, c["id"])
    assert updated["name"] == "Jean R."
    assert updated["total_purchases"] == 1
    assert updated["created_at"] == c["created_at"]


def test_update_and_delete_missing(store):
    assert update_client(store, "missing", {"name": "x"}) is False
    assert delete_client(store, "missing") is False


def test_delete(store):
    c = add_client(store, {"name": "Jean"})
    assert delete_client(store, c["id"]) is True
    assert list_clients(store) == []

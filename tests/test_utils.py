from __future__ import annotations

import pytest

from invoicing.utils import choice_index, parse_iso_date, to_float

STATUSES = ["draft", "confirmed", "cancelled"]


@pytest.mark.parametrize(
    "value, expected",
    [("confirmed", 1), ("cancelled", 2), (None, 0), ("", 0), ("paid", 0)],
)
def test_choice_index_falls_back_for_missing_or_unknown(value, expected):
    assert choice_index(STATUSES, value) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [("2.5", 2.5), ("2,5", 2.5), (3, 3.0), ("", None), ("abc", None), (None, None), (True, None), (float("nan"), None)],
)
def test_to_float(raw, expected):
    assert to_float(raw) == expected


def test_parse_iso_date():
    assert parse_iso_date("2026-10-19T08:00:00+00:00").isoformat() == "2026-10-19"
    assert parse_iso_date("19/10/2026") is None
    assert parse_iso_date(None) is None

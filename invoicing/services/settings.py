from __future__ import annotations

import logging
from typing import Any

from invoicing.store import DEFAULT_SETTINGS, SETTINGS, RecordStore

logger = logging.getLogger(__name__)


def get_settings(store: RecordStore) -> dict[str, Any]:
    stored = store.load(SETTINGS)
    return {**DEFAULT_SETTINGS, **stored}


def save_settings(store: RecordStore, values: dict[str, Any]) -> None:
    cleaned = {k: (str(v).strip() if v is not None else "") for k, v in values.items()}
    store.save(SETTINGS, cleaned)
    logger.info("Company settings saved")

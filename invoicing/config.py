from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

import streamlit as st

from invoicing.db import get_conn
from invoicing.store import SqliteRecordStore, initialize_if_absent

CONFIG_FILE_NAME = "settings.json"
ENV_DATA_DIR = "INVOICING_DATA_DIR"
ENV_LOG_LEVEL = "INVOICING_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    db_path: Path
    currency: str = "Ar"


def configure_logging() -> None:
    level_name = os.getenv(ENV_LOG_LEVEL, "INFO").strip().upper()
    level = getattr(logging, level_name, logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _default_data_dir() -> Path:
    return Path.home() / ".invoicing_manager"


def _load_persisted_settings(data_dir: Path) -> dict:
    cfg = data_dir / CONFIG_FILE_NAME
    if cfg.exists():
        try:
            return json.loads(cfg.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable %s", cfg)
            return {}
    return {}


def persist_data_dir(data_dir_str: str) -> None:
    data_dir = Path(data_dir_str).expanduser().resolve()
    data_dir.mkdir(parents=True, exist_ok=True)

    # Always written to the default folder, which is where the lookup starts.
    default_dir = _default_data_dir()
    default_dir.mkdir(parents=True, exist_ok=True)
    cfg = default_dir / CONFIG_FILE_NAME
    payload = {"data_dir": str(data_dir)}
    cfg.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info("Data directory set to %s", data_dir)

    # Update session for immediate effect
    st.session_state["invoicing_data_dir"] = str(data_dir)


def resolve_data_dir() -> Path:
    # Priority order:
    # 1) Session state (set via Data Management page)
    # 2) Environment variable
    # 3) Persisted settings in default folder
    # 4) Default folder
    if "invoicing_data_dir" in st.session_state:
        return Path(st.session_state["invoicing_data_dir"]).expanduser().resolve()
    if os.getenv(ENV_DATA_DIR):
        return Path(os.getenv(ENV_DATA_DIR, "")).expanduser().resolve()
    default_dir = _default_data_dir()
    persisted = _load_persisted_settings(default_dir)
    return Path(persisted.get("data_dir", default_dir)).expanduser().resolve()


@st.cache_resource
def get_settings() -> Settings:
    configure_logging()
    data_dir = resolve_data_dir()
    data_dir.mkdir(parents=True, exist_ok=True)
    db_path = data_dir / "app.db"
    return Settings(data_dir=data_dir, db_path=db_path)


def get_store() -> SqliteRecordStore:
    settings = get_settings()
    store = SqliteRecordStore(get_conn(settings.db_path))
    initialize_if_absent(store)
    return store

"""Application configuration management."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from studysync.models import AppConfig

log = logging.getLogger(__name__)

_CONFIG_DIR = Path.home() / ".config" / "studysync"
_DATA_DIR = Path.home() / ".local" / "share" / "studysync"

_CONFIG_FILE = _CONFIG_DIR / "config.json"

_DB_NAME = "studysync.db"
_SESSION_NAME = "session.json"


def load_config() -> AppConfig:
    """Load config from disk, returning defaults if none exists."""
    if _CONFIG_FILE.exists():
        try:
            data = json.loads(_CONFIG_FILE.read_text())
            return AppConfig(**data)
        except (
            OSError,
            UnicodeDecodeError,
            json.JSONDecodeError,
            TypeError,
            ValidationError,
        ):
            log.warning("Ignoring unreadable config file %s", _CONFIG_FILE)
    return AppConfig()


def save_config(config: AppConfig) -> Path:
    """Write config to disk. Returns the config file path."""
    _CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    _CONFIG_FILE.write_text(config.model_dump_json(indent=2))
    return _CONFIG_FILE


def get_db_path() -> Path:
    """Resolve the database path from config (or default)."""
    config = load_config()
    if config.db_path is not None:
        p = Path(config.db_path)
        p.parent.mkdir(parents=True, exist_ok=True)
        return p
    _DATA_DIR.mkdir(parents=True, exist_ok=True)
    return _DATA_DIR / _DB_NAME


def get_session_path(db_path: Optional[Path] = None) -> Path:
    """The signed-in user's local mirror lives next to the database."""
    return (db_path or get_db_path()).parent / _SESSION_NAME


def set_db_path(path: str) -> AppConfig:
    """Set a custom database path and save config."""
    resolved = Path(path).expanduser().resolve()
    # Ensure it ends with a filename
    if resolved.is_dir():
        resolved = resolved / _DB_NAME
    resolved.parent.mkdir(parents=True, exist_ok=True)
    config = load_config()
    config.db_path = str(resolved)
    save_config(config)
    return config


def reset_db_path() -> AppConfig:
    """Reset to the default local database path."""
    config = load_config()
    config.db_path = None
    save_config(config)
    return config

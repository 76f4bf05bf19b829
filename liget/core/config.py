"""
Data directory, persisted client settings and logging setup.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from liget.domain.models import ClientSettings

logger = logging.getLogger(__name__)

DATA_ROOT_ENV_VAR = "LIGET_DATA_DIR"
SETTINGS_FILE_NAME = "settings.json"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Resolve project root (not the Python package root)
_REPO_ROOT = Path(__file__).resolve().parents[2]
_DEFAULT_DATA_DIR = _REPO_ROOT / "data"


def get_data_dir() -> Path:
    """
    Determine the data directory path.

    Priority:
    1. Environment variable LIGET_DATA_DIR
    2. '<project root>/data'
    """
    env_path = os.environ.get(DATA_ROOT_ENV_VAR)
    if env_path:
        d = Path(env_path).expanduser()
    else:
        d = _DEFAULT_DATA_DIR
    d.mkdir(parents=True, exist_ok=True)
    return d


def _settings_path(data_dir: Optional[Path]) -> Path:
    return (data_dir or get_data_dir()) / SETTINGS_FILE_NAME


def load_settings(data_dir: Optional[Path] = None) -> ClientSettings:
    """
    Load settings.json, merging with defaults for any missing fields,
    and write it back so any new fields are persisted.
    """
    path = _settings_path(data_dir)
    if path.exists():
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            settings = ClientSettings(**raw)
        except (ValueError, TypeError) as e:
            logger.warning(f"Ignoring unreadable settings file {path}: {e}")
            settings = ClientSettings()
    else:
        settings = ClientSettings()

    save_settings(settings, data_dir)
    return settings


def save_settings(settings: ClientSettings, data_dir: Optional[Path] = None) -> None:
    path = _settings_path(data_dir)
    path.write_text(settings.model_dump_json(indent=2), encoding="utf-8")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        force=True,
    )

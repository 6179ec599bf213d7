"""
Persistent configuration (the saved timetable identifier).

This module manages the file:

    <user config dir>/KTU Timetable/config.json

Design rationale:
- the timetable itself is never cached; only the user's identifier is stored
- load errors are typed so the caller can tell "first run" from "broken file",
  but every one of them simply means "ask the user for an identifier"
"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

APP_DIR_NAME = "KTU Timetable"
CONFIG_FILE_NAME = "config.json"
CONFIG_PATH_ENV = "KTU_TIMETABLE_CONFIG"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class LoadConfigError(Exception):
    """
    Base class for a config that could not be loaded. Never fatal.
    """


class ConfigNotFoundError(LoadConfigError):
    pass


class ConfigFileError(LoadConfigError):
    pass


class ConfigParseError(LoadConfigError):
    pass


class SaveConfigError(Exception):
    pass


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


def normalize_vidko(value: object) -> Optional[str]:
    """
    Strip the identifier; blank or non-string values count as absent.
    """
    if not isinstance(value, str):
        return None
    vidko = value.strip()
    return vidko or None


@dataclass
class Config:
    vidko: Optional[str] = None

    def to_dict(self) -> dict:
        return {"vidko": self.vidko}

    @classmethod
    def from_dict(cls, data: object) -> "Config":
        if not isinstance(data, dict):
            raise ConfigParseError("Config root must be an object")
        return cls(vidko=normalize_vidko(data.get("vidko")))


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


def default_config_path() -> Path:
    """
    Return the per-user config file location for this platform.

    Using a function instead of a constant makes testing easier,
    because tests can override the environment.
    """
    override = os.environ.get(CONFIG_PATH_ENV)
    if override:
        return Path(override)

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA") or Path.home() / "AppData" / "Roaming")
        return base / APP_DIR_NAME / CONFIG_FILE_NAME

    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME / CONFIG_FILE_NAME

    base = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
    return base / "ktu-timetable" / CONFIG_FILE_NAME


# ---------------------------------------------------------------------------
# Stores (injected into the viewer)
# ---------------------------------------------------------------------------


class ConfigStore:
    def load(self) -> Config:
        raise NotImplementedError

    def save(self, config: Config) -> None:
        raise NotImplementedError


class JsonConfigStore(ConfigStore):
    """
    Stores the config as pretty-printed JSON, creating parent directories on save.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else default_config_path()

    def load(self) -> Config:
        if not self.path.exists():
            raise ConfigNotFoundError(f"No config at {self.path}")

        try:
            text = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigFileError(f"Could not read {self.path}: {e}") from e

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigParseError(f"Invalid JSON in {self.path}: {e}") from e

        return Config.from_dict(data)

    def save(self, config: Config) -> None:
        payload = Config(vidko=normalize_vidko(config.vidko)).to_dict()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as e:
            raise SaveConfigError(f"Could not write {self.path}: {e}") from e


class MemoryConfigStore(ConfigStore):
    """
    Keeps the config in memory; load() without a config behaves like a first run.
    """

    def __init__(self, config: Optional[Config] = None) -> None:
        self.config = config

    def load(self) -> Config:
        if self.config is None:
            raise ConfigNotFoundError("No config in memory")
        return Config(vidko=self.config.vidko)

    def save(self, config: Config) -> None:
        self.config = Config(vidko=normalize_vidko(config.vidko))

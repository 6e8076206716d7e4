from __future__ import annotations

"""Configuration loading and access helpers.

This module centralises the tunable editor rules (history depth, column width
precision, text normalisation tags, parser leniency) and the logging setup. It
loads YAML files packaged with *mjml_toolkit* and merges them with user
overrides.

User overrides are read from ``$MJML_TOOLKIT_CONFIG_DIR`` when set, else from
``%LOCALAPPDATA%\\MjmlToolkit\\config`` on Windows and ``~/.mjml_toolkit`` on
Unix.
"""

import logging
import os
from importlib import resources
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)

__all__ = ["ConfigManager"]


def _get_user_config_dir() -> Path:
    """Get the user configuration directory."""
    override = os.environ.get("MJML_TOOLKIT_CONFIG_DIR")
    if override:
        return Path(override)
    if os.name == 'nt':  # Windows
        local_appdata = os.environ.get('LOCALAPPDATA')
        if local_appdata:
            return Path(local_appdata) / "MjmlToolkit" / "config"
        return Path.home() / "AppData" / "Local" / "MjmlToolkit" / "config"
    return Path.home() / ".mjml_toolkit"


def _read_packaged(filename: str) -> str:
    return resources.files(__package__).joinpath(filename).read_text(encoding="utf-8")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class _Singleton(type):
    _instance: "ConfigManager" | None = None

    def __call__(cls, *args, **kwargs):  # type: ignore[no-self-use]
        if cls._instance is None:
            cls._instance = super().__call__(*args, **kwargs)
        return cls._instance


class ConfigManager(metaclass=_Singleton):
    """Lazy-loads and exposes configuration sections as dictionaries."""

    _DEFAULT_FILENAMES = {
        "editor": "editor.yml",
        "logging": "logging.yml",
    }

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, Any]] = {}
        self._ensure_loaded()

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------
    def get_editor_config(self) -> Dict[str, Any]:
        return self._data.get("editor", {})

    def get_logging_config(self) -> Dict[str, Any]:
        return self._data.get("logging", {})

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """Return ``editor[section][key]`` or *default* when absent."""
        value = self.get_editor_config().get(section)
        if not isinstance(value, dict):
            return default
        return value.get(key, default)

    def install_user_defaults(self) -> Path:
        """Copy packaged config files into the user directory if missing."""
        user_config_dir = _get_user_config_dir()
        user_config_dir.mkdir(parents=True, exist_ok=True)
        for filename in self._DEFAULT_FILENAMES.values():
            user_config_path = user_config_dir / filename
            if user_config_path.exists():
                continue
            try:
                user_config_path.write_text(_read_packaged(filename), encoding='utf-8')
                logger.info("Created user config: %s", user_config_path)
            except (FileNotFoundError, OSError) as e:
                logger.warning("Could not copy default config %s: %s", filename, e)
        return user_config_dir

    @classmethod
    def reload(cls) -> "ConfigManager":
        """Drop the cached instance and load configuration again."""
        _Singleton._instance = None
        cls._instance = None
        return cls()

    # ------------------------------------------------------------------
    # Internal loading logic
    # ------------------------------------------------------------------
    def _ensure_loaded(self) -> None:
        if self._data:
            return  # already loaded

        startup_summary = []
        user_config_dir = _get_user_config_dir()

        for key, filename in self._DEFAULT_FILENAMES.items():
            merged_cfg: Dict[str, Any] = dict(self._builtin_defaults().get(key, {}))
            status = "builtin"

            # 1. load packaged default
            try:
                packaged_data = yaml.safe_load(_read_packaged(filename)) or {}
                merged_cfg = _deep_merge(merged_cfg, packaged_data)
                status = "loaded"
            except (FileNotFoundError, OSError):
                logger.error("Missing packaged config for %s (%s)", key, filename)
            except yaml.YAMLError as exc:
                logger.error("Invalid packaged config for %s (%s): %s", key, filename, exc)
                status = "invalid"

            # 2. load user overrides
            user_path = user_config_dir / filename
            if user_path.exists():
                try:
                    user_data = yaml.safe_load(user_path.read_text(encoding="utf-8")) or {}
                    merged_cfg = _deep_merge(merged_cfg, user_data)
                    status = f"{status}+overrides"
                except (OSError, yaml.YAMLError) as exc:
                    logger.error("Could not parse user config %s: %s", user_path, exc)

            self._data[key] = merged_cfg
            startup_summary.append(f"{key}: {status}")

        logger.debug("Config startup: %s", " | ".join(startup_summary))

    @staticmethod
    def _builtin_defaults() -> Dict[str, Dict[str, Any]]:
        """Values used when a packaged file is missing or unreadable."""
        return {
            "editor": {
                "history": {"max_entries": 100},
                "columns": {"width_precision": 2},
                "text": {"block_tags": ["p", "div", "h1", "h2", "h3", "h4", "h5", "h6",
                                        "ul", "ol", "table", "blockquote", "pre"]},
                "parser": {"skip_unknown_elements": True},
            },
            "logging": {},
        }

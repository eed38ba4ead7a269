from __future__ import annotations

"""Configuration loading and access helpers.

This module centralises the declarative defaults of the editor (block
payload defaults, layout defaults, logging setup). It loads YAML files
packaged with *lesson_composer* and optionally merges them with user overrides.

On Windows: ``%LOCALAPPDATA%\\LessonComposer\\config\\*.yml``
On Unix: ``~/.lesson_composer/*.yml``

``LESSON_CONFIG_DIR`` overrides the user directory on every platform.

The class is intentionally lightweight; missing PyYAML falls back to embedded
Python dictionaries so the editor keeps working with neutral defaults.
"""

import importlib.resources as pkg_resources
import logging
import os
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

__all__ = ["ConfigManager"]


def _get_user_config_dir() -> Path:
    """Get the user configuration directory."""
    override = os.environ.get("LESSON_CONFIG_DIR")
    if override:
        return Path(override)
    if os.name == 'nt':  # Windows
        local_appdata = os.environ.get('LOCALAPPDATA')
        if local_appdata:
            return Path(local_appdata) / "LessonComposer" / "config"
        return Path.home() / "AppData" / "Local" / "LessonComposer" / "config"
    return Path.home() / ".lesson_composer"


class _Singleton(type):
    _instance: "ConfigManager" | None = None

    def __call__(cls, *args, **kwargs):  # type: ignore[no-self-use]
        if cls._instance is None:
            cls._instance = super().__call__(*args, **kwargs)
        return cls._instance


class ConfigManager(metaclass=_Singleton):
    """Lazy-loads and exposes configuration sections as dictionaries."""

    _DEFAULT_FILENAMES = {
        "logging": "logging.yml",
        "block_defaults": "block_defaults.yml",
        "editor": "editor.yml",
    }

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, Any]] = {}
        self._ensure_loaded()

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------
    def get_logging_config(self) -> Dict[str, Any]:
        return self._data.get("logging", {})

    def get_block_defaults(self) -> Dict[str, Any]:
        return self._data.get("block_defaults", {})

    def get_editor_settings(self) -> Dict[str, Any]:
        return self._data.get("editor", {})

    def get_editor_setting(self, key: str, default: Any = None) -> Any:
        """Return a single editor setting, or *default* when unset."""
        value = self.get_editor_settings().get(key)
        return default if value is None else value

    @classmethod
    def reset(cls) -> None:
        """Drop the cached instance so the next call reloads all files."""
        cls._instance = None

    # ------------------------------------------------------------------
    # Internal loading logic
    # ------------------------------------------------------------------
    def _ensure_loaded(self) -> None:
        if self._data:
            return  # already loaded

        try:
            import yaml  # type: ignore
        except ModuleNotFoundError:
            logger.warning("PyYAML not installed - falling back to built-in defaults")
            self._data = self._builtin_defaults()
            return

        startup_summary = []
        user_config_dir = _get_user_config_dir()

        for key, filename in self._DEFAULT_FILENAMES.items():
            merged_cfg: Dict[str, Any] = {}
            status = "missing"

            # 1. load packaged default
            try:
                packaged_text = pkg_resources.files(__package__).joinpath(filename).read_text(encoding="utf-8")
                merged_cfg.update(yaml.safe_load(packaged_text) or {})
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
                    merged_cfg.update(user_data)
                    if status == "loaded":
                        status = "loaded+overrides"
                except (OSError, yaml.YAMLError) as exc:
                    logger.error("Could not parse user config %s: %s", user_path, exc)

            self._data[key] = merged_cfg
            startup_summary.append(f"{key}: {status}")

        logger.info("Config startup: %s", " | ".join(startup_summary))

    @staticmethod
    def _builtin_defaults() -> Dict[str, Dict[str, Any]]:
        """Return neutral mappings (layout defaults only, no payload text)."""
        return {
            "logging": {},
            "block_defaults": {},
            "editor": {
                "default_constructor_cells": 2,
                "default_columns": 2,
                "empty_canvas_id": "empty-canvas",
                "columns_container_prefix": "columns:",
            },
        }

from __future__ import annotations

"""Configuration loading and access helpers.

This module centralises all declarative rules (component catalogue, envelope
defaults, editor timings, logging).  Each section is a YAML file packaged with
*mjml_toolkit*; a copy in the user directory overrides it.

On Windows: ``%LOCALAPPDATA%\\MjmlToolkit\\config\\*.yml``
On Unix: ``~/.mjml_toolkit/*.yml``

``MJML_TOOLKIT_CONFIG_DIR`` overrides the user directory on every platform.
"""

import importlib.resources as pkg_resources
import logging
import os
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

logger = logging.getLogger(__name__)

__all__ = ["ConfigManager"]


def _user_config_dir() -> Path:
    override = os.environ.get("MJML_TOOLKIT_CONFIG_DIR")
    if override:
        return Path(override)
    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
        return Path(base) / "MjmlToolkit" / "config"
    return Path.home() / ".mjml_toolkit"


def _packaged_text(filename: str) -> str:
    return pkg_resources.files(__package__).joinpath(filename).read_text(encoding="utf-8")


def _seed_user_dir(directory: Path, filenames) -> None:
    """Write the packaged defaults into *directory* where no user copy exists yet."""
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error("Cannot create config directory %s: %s", directory, exc)
        return
    for filename in filenames:
        target = directory / filename
        if target.exists():
            continue
        try:
            target.write_text(_packaged_text(filename), encoding="utf-8")
            logger.info("Seeded user config %s", target)
        except OSError as exc:
            logger.warning("Cannot seed %s: %s", target, exc)


class _Singleton(type):
    _instance: "ConfigManager" | None = None

    def __call__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super().__call__(*args, **kwargs)
        return cls._instance

    def reset(cls) -> None:
        """Forget the cached instance so the next call reloads every file."""
        cls._instance = None


class ConfigManager(metaclass=_Singleton):
    """Lazy-loads and exposes configuration sections as dictionaries."""

    SECTIONS = {
        "component_schema": "component_schema.yml",
        "head_defaults": "head_defaults.yml",
        "editor": "editor.yml",
        "logging": "logging.yml",
    }

    # Sections whose user copy is merged one level deep (per component type)
    _NESTED_SECTIONS = {"component_schema", "editor"}

    def __init__(self) -> None:
        self._sections: Dict[str, Dict[str, Any]] = {}
        user_dir = _user_config_dir()
        _seed_user_dir(user_dir, self.SECTIONS.values())

        summary = []
        for key, filename in self.SECTIONS.items():
            data, state = self._load_section(key, filename, user_dir)
            self._sections[key] = data
            summary.append(f"{key}={state}")
        logger.info("Config loaded from %s: %s", user_dir, ", ".join(summary))

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------
    def get_component_schema(self) -> Dict[str, Any]:
        return self._sections.get("component_schema", {})

    def get_head_defaults(self) -> Dict[str, Any]:
        return self._sections.get("head_defaults", {})

    def get_editor_settings(self) -> Dict[str, Any]:
        return self._sections.get("editor", {})

    def get_logging_config(self) -> Dict[str, Any]:
        return self._sections.get("logging", {})

    def get_editor_value(self, section: str, key: str, default: Any = None) -> Any:
        """Return ``editor.yml`` value *section.key* or *default*."""
        block = self.get_editor_settings().get(section) or {}
        if not isinstance(block, dict):
            return default
        return block.get(key, default)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def _load_section(self, key: str, filename: str, user_dir: Path) -> Tuple[Dict[str, Any], str]:
        """Return the packaged *filename* merged with its user copy, plus a status word."""
        data: Dict[str, Any] = {}
        try:
            data.update(yaml.safe_load(_packaged_text(filename)) or {})
            state = "packaged"
        except OSError:
            logger.error("Packaged config %s is missing", filename)
            state = "missing"
        except yaml.YAMLError as exc:
            logger.error("Packaged config %s is not valid YAML: %s", filename, exc)
            state = "invalid"

        user_file = user_dir / filename
        if not user_file.exists():
            return data, state
        try:
            overrides = yaml.safe_load(user_file.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.error("Ignoring unreadable user config %s: %s", user_file, exc)
            return data, state
        self._merge(data, overrides, nested=key in self._NESTED_SECTIONS)
        return data, f"{state}+user"

    @staticmethod
    def _merge(target: Dict[str, Any], overrides: Dict[str, Any], *, nested: bool) -> None:
        if not isinstance(overrides, dict):
            return
        for key, value in overrides.items():
            current = target.get(key)
            if nested and isinstance(current, dict) and isinstance(value, dict):
                target[key] = {**current, **value}
            else:
                target[key] = value

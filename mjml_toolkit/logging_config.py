from __future__ import annotations

"""Central logging configuration for MJML Toolkit.

Call :func:`setup_logging` once at start-up (the CLI does so for ``-v``).
The configuration comes from ``logging.yml``; the file handler always writes
``app.log`` inside ``MJML_LOG_DIR`` (``logs`` by default).

Environment overrides:

- ``MJML_DEBUG_SYNC=1`` turns on DEBUG for the code sync, editing service and
  drag loggers;
- ``MJML_DEBUG_MODULES=a.b,c.d`` turns on DEBUG for the listed loggers.
"""

import copy
import logging
import logging.config
import os
from typing import Any, Dict, List

from mjml_toolkit.config import ConfigManager

__all__ = ["setup_logging"]

_SYNC_LOGGERS = (
    "mjml_toolkit.ui.controllers.code_sync_controller",
    "mjml_toolkit.core.services.structure_editing_service",
    "mjml_toolkit.ui.controllers.drag_controller",
)
_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_TRUTHY = {"1", "true", "yes", "on"}


def setup_logging() -> None:
    """Configure logging from ``logging.yml``, falling back to console logging."""
    log_dir = os.environ.get("MJML_LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)

    try:
        config: Dict[str, Any] = copy.deepcopy(ConfigManager().get_logging_config())
        if not (isinstance(config, dict) and config.get("version")):
            _setup_minimal_logging()
        else:
            file_handler = (config.get("handlers") or {}).get("file")
            if isinstance(file_handler, dict):
                file_handler["filename"] = os.path.join(log_dir, "app.log")
            logging.config.dictConfig(config)
            logging.info("===== Logging configured from logging.yml =====")
    except (ValueError, TypeError, AttributeError, ImportError, OSError) as exc:
        # dictConfig reports every schema problem through one of these
        print(f"Invalid logging configuration, using console only: {exc}")
        _setup_minimal_logging()

    _apply_debug_overrides()


def _setup_minimal_logging() -> None:
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"simple": {"format": _FORMAT}},
            "handlers": {
                "console": {"class": "logging.StreamHandler", "formatter": "simple", "level": "INFO"},
            },
            "root": {"level": "INFO", "handlers": ["console"]},
        }
    )
    logging.error("===== Logging configured with console fallback =====")


def _debug_targets() -> List[str]:
    targets: List[str] = []
    if os.environ.get("MJML_DEBUG_SYNC", "").strip().lower() in _TRUTHY:
        targets.extend(_SYNC_LOGGERS)
    extra = os.environ.get("MJML_DEBUG_MODULES", "")
    targets.extend(name.strip() for name in extra.split(",") if name.strip())
    return targets


def _apply_debug_overrides() -> None:
    for name in _debug_targets():
        target = logging.getLogger(name)
        target.setLevel(logging.DEBUG)
        # Root handlers may filter DEBUG out; give the logger its own
        if not any(h.level <= logging.DEBUG for h in target.handlers):
            handler = logging.StreamHandler()
            handler.setLevel(logging.DEBUG)
            handler.setFormatter(logging.Formatter(_FORMAT))
            target.addHandler(handler)
        target.info("Debug override active for logger '%s'", name)

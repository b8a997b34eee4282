# -*- coding: utf-8 -*-
"""Version string shown by ``mjml-toolkit --version``.

The installed distribution metadata wins; an unpacked checkout falls back to
a ``version.txt`` beside the package directory.
"""

from __future__ import annotations

from functools import lru_cache
from importlib import metadata
from pathlib import Path

_DISTRIBUTION = "mjml-toolkit"


def _read_version_file() -> str:
    candidate = Path(__file__).resolve().parent.parent / "version.txt"
    if not candidate.is_file():
        return ""
    return candidate.read_text(encoding="ascii", errors="ignore").strip()


@lru_cache(maxsize=1)
def get_app_version() -> str:
    """Return the version prefixed with ``v`` (``v0.1.0``), or ``vdev``."""
    try:
        raw = metadata.version(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        raw = _read_version_file()
    if not raw:
        return "vdev"
    return raw if raw.startswith("v") else f"v{raw}"

from __future__ import annotations

"""Simple reusable helper functions.

These helpers are side-effect-free and contain no GUI or disk I/O; they can be
used across all layers of the toolkit.
"""

import uuid
from typing import Any

__all__ = [
    "generate_node_id",
    "escape_attr",
    "escape_text",
    "normalize_attribute_value",
    "is_unset",
]


def generate_node_id() -> str:
    """Return a new opaque node identifier (``node_<32 hex chars>``).

    Identifiers are random so they never collide with ids that were deleted
    earlier or that live in another tree.
    """
    return f"node_{uuid.uuid4().hex}"


def is_unset(value: Any) -> bool:
    """Return True for attribute values that mean "not set"."""
    return value is None or value == ""


def normalize_attribute_value(value: Any) -> str:
    """Return the textual form of a scalar attribute value.

    Integral floats are written without a trailing ``.0`` so that ``20.0``
    and ``20`` serialize identically.  Booleans become ``true``/``false``.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def escape_attr(value: Any) -> str:
    """Escape *value* for use inside a double-quoted attribute."""
    return (
        normalize_attribute_value(value)
        .replace("&", "&amp;")
        .replace('"', "&quot;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace("\n", "&#10;")
        .replace("\r", "&#13;")
        .replace("\t", "&#9;")
    )


def escape_text(value: str) -> str:
    """Escape character data that is not meant to be read as markup."""
    return value.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")

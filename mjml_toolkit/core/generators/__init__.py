from __future__ import annotations

"""Modules responsible for generating MJML markup from the node tree."""

from .mjml_builder import generate_head, generate_mjml, serialize_node  # noqa: F401

__all__: list[str] = [
    "generate_head",
    "generate_mjml",
    "serialize_node",
]

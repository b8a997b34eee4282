from __future__ import annotations

"""Serialization of :class:`EditorNode` trees to MJML markup.

All functions are pure and total: any tree serializes, unsafe attribute
values are escaped and unset attributes are skipped.  Output uses two-space
indentation and keeps attribute insertion order.

Rules per node:

- self-closing types (schema) never carry content or children and are
  written ``<tag attrs />``;
- types that do not accept children drop them;
- when a node carries both content and children, children win;
- content of raw-content types (``mj-text``, ``mj-button``...) is written
  verbatim since it is HTML; other content is escaped;
- html-content types (``mj-table``, ``mj-raw``) put their payload on its own
  lines, one level deeper;
- locked nodes get ``data-locked="true"``.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from mjml_toolkit.config import ConfigManager
from mjml_toolkit.core.models import EditorNode, HeadSettings
from mjml_toolkit.core.schema import ComponentSchema, get_default_schema
from mjml_toolkit.core.utils import escape_attr, escape_text, is_unset

__all__ = [
    "LOCKED_ATTRIBUTE",
    "INDENT",
    "serialize_node",
    "generate_head",
    "generate_mjml",
]

logger = logging.getLogger(__name__)

INDENT = "  "
LOCKED_ATTRIBUTE = "data-locked"


# ---------------------------------------------------------------------------
# Body
# ---------------------------------------------------------------------------

def _format_attributes(node: EditorNode) -> str:
    parts = [
        f'{name}="{escape_attr(value)}"'
        for name, value in node.attributes.items()
        if not is_unset(value) and name != LOCKED_ATTRIBUTE
    ]
    if node.locked:
        parts.append(f'{LOCKED_ATTRIBUTE}="true"')
    return " ".join(parts)


def serialize_node(node: EditorNode, schema: Optional[ComponentSchema] = None, indent: int = 0) -> str:
    """Return the MJML markup of *node* and its subtree.

    Parameters
    ----------
    node
        Subtree root to serialize.
    schema
        Component catalogue deciding self-closing, child acceptance and raw
        content handling.  Defaults to :func:`get_default_schema`.
    indent
        Depth of *node*; every depth level adds two spaces.
    """
    schema = schema or get_default_schema()
    definition = schema.definition(node.type)
    spaces = INDENT * indent

    attrs = _format_attributes(node)
    open_tag = f"<{node.type} {attrs}>" if attrs else f"<{node.type}>"
    close_tag = f"</{node.type}>"

    if definition.self_closing:
        # No content and no children on self-closing types
        if node.children or node.content:
            logger.debug("Dropping content/children of self-closing %s (%s)", node.type, node.id)
        return f"{spaces}<{node.type} {attrs} />" if attrs else f"{spaces}<{node.type} />"

    children = node.children if definition.accepts_children else ()
    if node.children and not children:
        logger.debug("Dropping children of %s (%s): type does not accept children", node.type, node.id)

    if children:
        lines = [f"{spaces}{open_tag}"]
        lines.extend(serialize_node(child, schema, indent + 1) for child in children)
        lines.append(f"{spaces}{close_tag}")
        return "\n".join(lines)

    if node.content:
        content = node.content if definition.raw_content else escape_text(node.content)
        if definition.html_content:
            inner = "\n".join(f"{spaces}{INDENT}{line}" for line in content.split("\n"))
            return f"{spaces}{open_tag}\n{inner}\n{spaces}{close_tag}"
        return f"{spaces}{open_tag}{content}{close_tag}"

    return f"{spaces}{open_tag}{close_tag}"


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------

def _default_attribute_lines(head_defaults: Mapping[str, Any]) -> List[str]:
    lines: List[str] = []
    for entry in head_defaults.get("attributes") or ():
        tag = entry.get("tag")
        if not tag:
            continue
        values: Dict[str, Any] = entry.get("attributes") or {}
        attrs = " ".join(f'{k}="{escape_attr(v)}"' for k, v in values.items() if not is_unset(v))
        lines.append(f"      <{tag} {attrs} />" if attrs else f"      <{tag} />")
    return lines


def generate_head(
    head_settings: Optional[HeadSettings] = None,
    head_defaults: Optional[Mapping[str, Any]] = None,
) -> str:
    """Return the inner lines of ``<mj-head>`` for *head_settings*.

    *head_defaults* is the ``head_defaults.yml`` mapping (the configured one
    when omitted): the ``mj-attributes`` block and the default CSS rules that
    open ``<mj-style>``.
    """
    settings = head_settings or HeadSettings()
    if head_defaults is None:
        head_defaults = ConfigManager().get_head_defaults()

    parts: List[str] = []
    if settings.title:
        parts.append(f"    <mj-title>{escape_text(settings.title)}</mj-title>")
    if settings.preview:
        parts.append(f"    <mj-preview>{escape_text(settings.preview)}</mj-preview>")
    for font in settings.fonts:
        parts.append(f'    <mj-font name="{escape_attr(font.name)}" href="{escape_attr(font.href)}" />')
    if settings.breakpoint:
        parts.append(f'    <mj-breakpoint width="{escape_attr(settings.breakpoint)}" />')

    attribute_lines = _default_attribute_lines(head_defaults)
    if attribute_lines:
        parts.append("    <mj-attributes>")
        parts.extend(attribute_lines)
        parts.append("    </mj-attributes>")

    styles = [str(s) for s in head_defaults.get("default_styles") or () if s]
    if settings.styles:
        styles.append(settings.styles)
    if styles:
        parts.append("    <mj-style>")
        parts.append("      " + "\n      ".join(styles))
        parts.append("    </mj-style>")

    return "\n".join(parts)


def generate_mjml(
    document: EditorNode,
    head_settings: Optional[HeadSettings] = None,
    schema: Optional[ComponentSchema] = None,
    head_defaults: Optional[Mapping[str, Any]] = None,
) -> str:
    """Return the complete ``<mjml>`` document for *document*."""
    body = serialize_node(document, schema, indent=1)
    head = generate_head(head_settings, head_defaults)
    head_block = f"  <mj-head>\n{head}\n  </mj-head>" if head else "  <mj-head>\n  </mj-head>"
    return f"<mjml>\n{head_block}\n{body}\n</mjml>"

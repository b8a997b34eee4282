from __future__ import annotations

"""MJML markup importer.

Rebuilds an :class:`EditorNode` tree (plus :class:`HeadSettings`) from MJML
text.  The importer accepts everything :mod:`mjml_builder` emits and the
usual hand-written variants: any whitespace, any attribute order, explicit
close tags on self-closing types and self-closed tags on the others.

MJML "ending tags" (``mj-text``, ``mj-button``, ``mj-table``...) hold raw
HTML, which is not necessarily well-formed XML.  Their inner content is
wrapped in CDATA sections before the document goes through the strict
``lxml`` parser, so it comes back verbatim.

Failures raise :class:`MjmlParseError` subclasses:

- :class:`MalformedMarkupError` for text that does not parse;
- :class:`MissingBodyError` for well-formed text without ``<mj-body>``.
"""

from dataclasses import dataclass, field
import logging
import re
import textwrap
from typing import Dict, Iterable, List, Optional, Tuple

from lxml import etree as ET  # type: ignore

from mjml_toolkit.config import ConfigManager
from mjml_toolkit.core.generators.mjml_builder import LOCKED_ATTRIBUTE
from mjml_toolkit.core.models import EditorNode, FontDefinition, HeadSettings
from mjml_toolkit.core.schema import ComponentSchema, ValidationWarning, get_default_schema

__all__ = [
    "MjmlParseError",
    "MalformedMarkupError",
    "MissingBodyError",
    "ParsedDocument",
    "parse_mjml",
    "parse_head",
]

logger = logging.getLogger(__name__)

_MJ_PREFIX = "mj-"
_CDATA_START = "<![CDATA["
_CDATA_END = "]]>"
# Head elements whose body is CSS rather than markup
_HEAD_RAW_TYPES = ("mj-style",)
# Quoted attribute values may contain '>'
_OPEN_TAG_ATTRIBUTES = r"""(?:\s+[^\s=<>/]+\s*=\s*(?:"[^"]*"|'[^']*'))*\s*"""


class MjmlParseError(Exception):
    """Base class for markup that cannot become a document."""


class MalformedMarkupError(MjmlParseError):
    """Raised when the markup is not well-formed.

    Attributes
    ----------
    detail
        Parser message, suitable for display next to the code editor.
    line
        1-based line of the error when the parser reports one.
    """

    def __init__(self, detail: str, line: Optional[int] = None) -> None:
        self.detail = detail
        self.line = line
        super().__init__(f"Malformed MJML: {detail}")


class MissingBodyError(MjmlParseError):
    """Raised when well-formed markup has no ``<mj-body>`` element."""

    def __init__(self, message: str = "No <mj-body> element found") -> None:
        super().__init__(message)


@dataclass
class ParsedDocument:
    """Outcome of a successful import.

    Attributes
    ----------
    document
        Root ``mj-body`` node with fresh ids throughout.
    head_settings
        Settings recovered from ``<mj-head>`` (defaults when absent).
    warnings
        Non-fatal findings (skipped elements, ambiguous nodes).
    """
    document: EditorNode
    head_settings: HeadSettings = field(default_factory=HeadSettings)
    warnings: List[ValidationWarning] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_mjml(text: str, schema: Optional[ComponentSchema] = None) -> ParsedDocument:
    """Parse MJML *text* into a document.

    Parameters
    ----------
    text
        Full ``<mjml>`` document, or a bare ``<mj-body>`` fragment.
    schema
        Component catalogue (raw/html content types).  Defaults to the
        configured one.

    Raises
    ------
    MalformedMarkupError
        The text is not well-formed markup.
    MissingBodyError
        The text is well-formed but contains no ``<mj-body>``.
    """
    schema = schema or get_default_schema()
    raw_types = schema.raw_content_types() + list(_HEAD_RAW_TYPES)
    root = _parse_xml(_wrap_raw_content(text, raw_types))

    body = _find_first(root, "mj-body")
    if body is None:
        raise MissingBodyError()

    warnings: List[ValidationWarning] = []
    document = _convert_element(body, schema, warnings)

    head = _find_first(root, "mj-head")
    head_settings = parse_head(head) if head is not None else HeadSettings()

    logger.debug("Parsed MJML: root=%s warnings=%d", document.id, len(warnings))
    return ParsedDocument(document=document, head_settings=head_settings, warnings=warnings)


def parse_head(head: ET._Element, default_styles: Optional[Iterable[str]] = None) -> HeadSettings:
    """Return the :class:`HeadSettings` described by an ``<mj-head>`` element.

    The default CSS rules added by the generator (``default_styles`` from
    ``head_defaults.yml`` unless given) are removed from the styles.
    """
    title = preview = breakpoint = ""
    fonts: List[FontDefinition] = []
    style_blocks: List[str] = []

    for element in head.iter():
        if not isinstance(element.tag, str):
            continue
        tag = element.tag.lower()
        if tag == "mj-title" and not title:
            title = "".join(element.itertext()).strip()
        elif tag == "mj-preview" and not preview:
            preview = "".join(element.itertext()).strip()
        elif tag == "mj-font":
            name = element.get("name") or ""
            href = element.get("href") or ""
            if name and href:
                fonts.append(FontDefinition(name=name, href=href))
        elif tag == "mj-breakpoint" and not breakpoint:
            breakpoint = element.get("width") or ""
        elif tag == "mj-style":
            block = "".join(element.itertext()).strip()
            if block:
                style_blocks.append(block)

    if default_styles is None:
        default_styles = ConfigManager().get_head_defaults().get("default_styles") or ()
    styles = "\n".join(style_blocks)
    for rule in default_styles:
        styles = _remove_css_rule(styles, str(rule))

    return HeadSettings(
        title=title,
        preview=preview,
        fonts=tuple(fonts),
        styles=styles.strip(),
        breakpoint=breakpoint,
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _wrap_raw_content(text: str, raw_types: Iterable[str]) -> str:
    """Wrap the inner content of every raw-content element in CDATA."""
    for tag in raw_types:
        pattern = re.compile(
            rf"(<{re.escape(tag)}{_OPEN_TAG_ATTRIBUTES}>)(.*?)(</{re.escape(tag)}\s*>)",
            re.DOTALL | re.IGNORECASE,
        )
        text = pattern.sub(_cdata_replacement, text)
    return text


def _cdata_replacement(match: "re.Match[str]") -> str:
    open_tag, inner, close_tag = match.groups()
    if not inner.strip() or inner.lstrip().startswith(_CDATA_START):
        return match.group(0)
    # "]]>" cannot appear inside a CDATA section; split it across two
    escaped = inner.replace(_CDATA_END, "]]]]><![CDATA[>")
    return f"{open_tag}{_CDATA_START}{escaped}{_CDATA_END}{close_tag}"


def _parse_xml(text: str) -> ET._Element:
    if not text or not text.strip():
        raise MalformedMarkupError("Document is empty")
    parser = ET.XMLParser(
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
        remove_pis=True,
        huge_tree=False,
    )
    try:
        root = ET.fromstring(text.encode("utf-8"), parser)
    except ET.XMLSyntaxError as exc:
        line = exc.position[0] if getattr(exc, "position", None) else None
        raise MalformedMarkupError(exc.msg or str(exc), line) from exc
    except (UnicodeError, ValueError) as exc:
        # lone surrogates and other characters XML cannot carry
        raise MalformedMarkupError(f"Invalid character data: {exc}") from exc
    if root is None:
        raise MalformedMarkupError("Document is empty")
    return root


def _find_first(root: ET._Element, tag: str) -> Optional[ET._Element]:
    for element in root.iter():
        if isinstance(element.tag, str) and element.tag.lower() == tag:
            return element
    return None


def _remove_css_rule(styles: str, rule: str) -> str:
    selector = rule.split("{", 1)[0].strip()
    if not selector:
        return styles
    return re.sub(rf"{re.escape(selector)}\s*\{{[^}}]*\}}", "", styles)


def _direct_text(element: ET._Element) -> str:
    parts = [element.text or ""]
    parts.extend(child.tail or "" for child in element)
    return "".join(parts)


def _convert_element(
    element: ET._Element,
    schema: ComponentSchema,
    warnings: List[ValidationWarning],
) -> EditorNode:
    node_type = element.tag.lower()
    definition = schema.definition(node_type)

    attributes: Dict[str, str] = {}
    locked = False
    for name, value in element.attrib.items():
        if name == LOCKED_ATTRIBUTE:
            locked = value.strip().lower() == "true"
            continue
        attributes[name] = value

    raw_text = _direct_text(element)
    if definition.html_content:
        raw_text = textwrap.dedent(raw_text)
    content: Optional[str] = raw_text.strip() or None

    children: List[EditorNode] = []
    for child in element:
        if not isinstance(child.tag, str):
            continue
        if child.tag.lower().startswith(_MJ_PREFIX):
            children.append(_convert_element(child, schema, warnings))
        else:
            warnings.append(
                ValidationWarning(
                    "unsupported_element",
                    f"Skipped <{child.tag}> inside <{node_type}>: only mj-* elements are kept.",
                )
            )

    node = EditorNode(
        type=node_type,
        attributes=attributes,
        content=content,
        children=tuple(children),
        locked=locked,
    )
    if content and children:
        warnings.append(
            ValidationWarning(
                "content_and_children",
                f"<{node_type}> has both text and child components; the text will not be rendered.",
                node.id,
            )
        )
    return node

from __future__ import annotations

"""Best-effort conversion of plain HTML e-mails into MJML documents.

HTML has no notion of sections or columns, so the importer keeps the
content and rebuilds a simple layout around it: every top-level block of
``<body>`` becomes one ``mj-section`` holding one ``mj-column``.

Element mapping:

- ``<img>`` becomes ``mj-image``;
- ``<a>`` without element children becomes ``mj-button``;
- ``<hr>`` becomes ``mj-divider``;
- text blocks (text with at most inline markup) become ``mj-text``;
- other containers are flattened into their converted children.

``<script>``, ``<style>``, ``<meta>``, ``<link>`` and the head are dropped.
The result always carries a warning that formatting may have been lost.
"""

import logging
from typing import List, Optional

import lxml.html  # type: ignore
from lxml import etree as ET  # type: ignore

from mjml_toolkit.core.importers.mjml_importer import MalformedMarkupError, ParsedDocument
from mjml_toolkit.core.models import EditorNode, HeadSettings
from mjml_toolkit.core.schema import ComponentSchema, ValidationWarning, get_default_schema
from mjml_toolkit.core.utils import escape_text

__all__ = ["import_html", "CONVERSION_WARNING", "EMPTY_WARNING"]

logger = logging.getLogger(__name__)

CONVERSION_WARNING = "HTML was converted to MJML. Some formatting may have been lost."
EMPTY_WARNING = "No content could be extracted from HTML"

_SKIPPED_TAGS = {"script", "style", "meta", "link", "head", "title", "noscript"}
_INLINE_TAGS = {
    "a", "abbr", "b", "br", "code", "em", "font", "i", "mark", "s",
    "small", "span", "strong", "sub", "sup", "u",
}


def import_html(html: str, schema: Optional[ComponentSchema] = None) -> ParsedDocument:
    """Convert *html* into a :class:`ParsedDocument`.

    Raises
    ------
    MalformedMarkupError
        When *html* is empty or cannot be parsed at all.
    """
    schema = schema or get_default_schema()
    if not html or not html.strip():
        raise MalformedMarkupError("Document is empty")
    try:
        root = lxml.html.document_fromstring(html)
    except (ET.ParserError, ValueError) as exc:
        raise MalformedMarkupError(str(exc)) from exc

    title_element = root.find(".//title")
    title = (title_element.text_content().strip() if title_element is not None else "")

    for element in list(root.iter(*_SKIPPED_TAGS)):
        element.drop_tree()

    body = root.find("body")
    sections: List[EditorNode] = []
    if body is not None and not _is_text_block(body):
        for child in body:
            nodes = _convert(child)
            if nodes:
                sections.append(_wrap_in_section(nodes))

    if body is not None and not sections and body.text_content().strip():
        sections.append(
            _wrap_in_section(
                [EditorNode(type="mj-text", content=_inner_html(body).strip())],
                {"background-color": "#ffffff"},
            )
        )

    document = EditorNode(
        type="mj-body",
        attributes=dict(schema.definition("mj-body").default_attributes),
        children=tuple(sections),
    )
    message = CONVERSION_WARNING if sections else EMPTY_WARNING
    logger.info("HTML import: %d section(s) created", len(sections))
    return ParsedDocument(
        document=document,
        head_settings=HeadSettings(title=title),
        warnings=[ValidationWarning("conversion", message)],
    )


# ---------------------------------------------------------------------------
# Conversion helpers
# ---------------------------------------------------------------------------

def _wrap_in_section(nodes: List[EditorNode], attributes: Optional[dict] = None) -> EditorNode:
    column = EditorNode(type="mj-column", children=tuple(nodes))
    return EditorNode(type="mj-section", attributes=dict(attributes or {}), children=(column,))


def _inner_html(element: ET._Element) -> str:
    parts = [escape_text(element.text or "")]
    parts.extend(lxml.html.tostring(child, encoding="unicode") for child in element)
    return "".join(parts)


def _is_text_block(element: ET._Element) -> bool:
    for descendant in element.iterdescendants():
        if not isinstance(descendant.tag, str):
            continue
        if descendant.tag.lower() not in _INLINE_TAGS:
            return False
    return bool(element.text_content().strip())


def _convert(element: ET._Element) -> List[EditorNode]:
    if not isinstance(element.tag, str):
        return []
    tag = element.tag.lower()
    if tag in _SKIPPED_TAGS:
        return []

    if tag == "img":
        attributes = {
            key: element.get(key)
            for key in ("src", "alt", "width")
            if element.get(key)
        }
        return [EditorNode(type="mj-image", attributes=attributes)]

    if tag == "a" and len(element) == 0:
        return [
            EditorNode(
                type="mj-button",
                attributes={"href": element.get("href") or "#"},
                content=escape_text(element.text_content().strip()) or "Link",
            )
        ]

    if tag == "hr":
        return [EditorNode(type="mj-divider")]

    if _is_text_block(element):
        return [EditorNode(type="mj-text", content=_inner_html(element).strip())]

    nodes: List[EditorNode] = []
    for child in element:
        nodes.extend(_convert(child))
    return nodes

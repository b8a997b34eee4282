from __future__ import annotations

"""Built-in starting documents.

Templates are packaged as plain MJML files under ``mjml_toolkit/templates``
and parsed on first use.  Loading a template into an editing session goes
through :meth:`StructureEditingService.load_template`, which regenerates
every id.
"""

import importlib.resources as pkg_resources
import logging
from typing import Dict, List, Optional

from mjml_toolkit.core.importers.mjml_importer import parse_mjml
from mjml_toolkit.core.models import EditorNode, Template
from mjml_toolkit.core.schema import ComponentSchema, get_default_schema

__all__ = ["empty_document", "list_templates", "get_template", "TEMPLATE_INDEX"]

logger = logging.getLogger(__name__)

# id -> (display name, category, file name)
TEMPLATE_INDEX = {
    "welcome": ("Welcome Email", "welcome", "welcome.mjml"),
    "newsletter": ("Newsletter", "newsletter", "newsletter.mjml"),
}

_CACHE: Dict[str, Template] = {}


def empty_document(schema: Optional[ComponentSchema] = None) -> EditorNode:
    """Return a new ``mj-body`` with the schema's default attributes and no children."""
    schema = schema or get_default_schema()
    return EditorNode(type="mj-body", attributes=dict(schema.definition("mj-body").default_attributes))


def _load(template_id: str) -> Template:
    name, category, filename = TEMPLATE_INDEX[template_id]
    text = (
        pkg_resources.files("mjml_toolkit")
        .joinpath("templates")
        .joinpath(filename)
        .read_text(encoding="utf-8")
    )
    parsed = parse_mjml(text)
    logger.debug("Loaded template %s (%s)", template_id, filename)
    return Template(
        id=template_id,
        name=name,
        category=category,
        document=parsed.document,
        head_settings=parsed.head_settings,
    )


def get_template(template_id: str) -> Optional[Template]:
    """Return the built-in template *template_id*, or None if unknown."""
    if template_id not in TEMPLATE_INDEX:
        return None
    if template_id not in _CACHE:
        _CACHE[template_id] = _load(template_id)
    return _CACHE[template_id]


def list_templates() -> List[Template]:
    return [get_template(template_id) for template_id in TEMPLATE_INDEX]

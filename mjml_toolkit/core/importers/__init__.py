from __future__ import annotations

"""Import functionality for the markup formats the editor understands.

Key components:
- parse_mjml: MJML text to node tree plus head settings
- import_html: best-effort conversion of plain HTML e-mails
"""

from .mjml_importer import (
    MalformedMarkupError,
    MissingBodyError,
    MjmlParseError,
    ParsedDocument,
    parse_mjml,
)
from .html_importer import import_html

__all__ = [
    "MalformedMarkupError",
    "MissingBodyError",
    "MjmlParseError",
    "ParsedDocument",
    "import_html",
    "parse_mjml",
]

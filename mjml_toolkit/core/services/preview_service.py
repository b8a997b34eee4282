from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Dict, Optional

from mjml_toolkit.core.generators.mjml_builder import generate_mjml
from mjml_toolkit.core.models import DocumentContext
from mjml_toolkit.core.preview.mjml_compiler import CliMjmlCompiler, MjmlCompiler
from mjml_toolkit.core.schema import ComponentSchema

logger = logging.getLogger(__name__)

__all__ = ["PreviewResult", "PreviewService"]


@dataclass
class PreviewResult:
    """Structured result for preview-oriented operations.

    Attributes
    ----------
    success : bool
        Indicates whether HTML was produced.
    content : Optional[str]
        Compiled HTML when available. May be None on failure.
    message : str
        Human-readable outcome message. Clear on failure, brief on success.
    details : Optional[Dict[str, Any]]
        ``mjml`` (the compiled markup) and ``diagnostics`` (compiler messages).
    """
    success: bool
    content: Optional[str]
    message: str
    details: Optional[Dict[str, Any]] = None


class PreviewService:
    """Service wrapper for preview compilation logic.

    Serializes the current document and hands it to an :class:`MjmlCompiler`.
    Compiler diagnostics are advisory: a result with HTML is a success even
    when diagnostics are present.

    Examples
    --------
    Basic usage:

    >>> service = PreviewService()
    >>> result = service.compile_document(context)
    >>> if result.success:
    ...     html = result.content
    ... else:
    ...     print(result.message)
    """

    def __init__(self, compiler: Optional[MjmlCompiler] = None, schema: Optional[ComponentSchema] = None) -> None:
        self._compiler = compiler
        self._schema = schema

    @property
    def compiler(self) -> MjmlCompiler:
        if self._compiler is None:
            self._compiler = CliMjmlCompiler()
        return self._compiler

    # -----------------------------
    # Public API
    # -----------------------------

    def generate_markup(self, context: DocumentContext) -> str:
        """Return the MJML text of the current document."""
        return generate_mjml(context.document, context.head_settings, self._schema)

    def compile_document(self, context: DocumentContext) -> PreviewResult:
        """Compile the current document to HTML.

        Parameters
        ----------
        context : DocumentContext
            Document and head settings to render.

        Returns
        -------
        PreviewResult
            ``content`` holds the HTML; ``details`` holds the markup and the
            compiler diagnostics.
        """
        markup = self.generate_markup(context)
        result = self.compiler.compile(markup)
        details = {"mjml": markup, "diagnostics": list(result.errors)}
        if result.html:
            if result.errors:
                logger.info("Preview compiled with %d diagnostic(s)", len(result.errors))
                return PreviewResult(True, result.html, f"Compiled with {len(result.errors)} warning(s).", details)
            return PreviewResult(True, result.html, "Compiled.", details)

        message = result.errors[0] if result.errors else "Compiler produced no output."
        logger.warning("Preview compile failed: %s", message)
        return PreviewResult(False, None, message, details)

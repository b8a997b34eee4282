"""Top-level package for the business-logic portion of MJML Toolkit.

This package hosts the GUI-agnostic implementation of the e-mail editor
core.  Front-ends (e.g. Tk GUI, CLI) should only depend on the public API
exposed here rather than importing internal modules directly.
"""

from .core.models import DocumentContext, EditorNode, HeadSettings  # re-export for convenience

__all__: list[str] = [
    "DocumentContext",
    "EditorNode",
    "HeadSettings",
]

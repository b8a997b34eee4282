from __future__ import annotations

"""Shared data structures used across the MJML Toolkit core.

This package exposes dataclasses and value objects used by services and other
core layers. It is intentionally free of UI / I/O code so that the contained
objects can be reused in any context (unit-tests, CLI, GUI, etc.).

:class:`EditorNode` values are immutable.  A tree is changed by building new
node values along the path from the edited node up to the root; the previous
root stays valid for anyone still holding it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from mjml_toolkit.core.utils import generate_node_id

__all__ = [
    "AttributeValue",
    "EditorNode",
    "FontDefinition",
    "HeadSettings",
    "Template",
    "DocumentContext",
    "TEMPLATE_CATEGORIES",
]

AttributeValue = Union[str, int, float, None]

TEMPLATE_CATEGORIES = ("marketing", "notification", "newsletter", "welcome")


@dataclass(frozen=True)
class EditorNode:
    """One component of the email document.

    Attributes
    ----------
    type
        MJML tag name (``mj-section``, ``mj-text``...).
    attributes
        Attribute mapping in insertion order.  ``None`` and ``""`` mean unset.
    content
        Inline text payload for text-bearing components.
    children
        Ordered child nodes; an empty tuple means "no children".
    id
        Opaque identifier, unique within a tree.  Not part of equality.
    locked
        Locked nodes (typically from templates) refuse structural edits.
    """

    type: str
    attributes: Dict[str, AttributeValue] = field(default_factory=dict)
    content: Optional[str] = None
    children: Tuple["EditorNode", ...] = ()
    id: str = field(default_factory=generate_node_id, compare=False)
    locked: bool = False

    # dict fields make the generated hash unusable
    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if not isinstance(self.children, tuple):
            object.__setattr__(self, "children", tuple(self.children))

    def has_children(self) -> bool:
        """Return True if this node has child nodes."""
        return len(self.children) > 0

    def has_content(self) -> bool:
        """Return True if this node carries a non-empty text payload."""
        return bool(self.content)

    def get_attribute(self, name: str, default: Any = None) -> Any:
        value = self.attributes.get(name)
        if value is None or value == "":
            return default
        return value

    def child_ids(self) -> List[str]:
        return [child.id for child in self.children]


@dataclass(frozen=True)
class FontDefinition:
    """Web font declared in the document head."""
    name: str
    href: str


@dataclass(frozen=True)
class HeadSettings:
    """Settings that parameterise the ``<mj-head>`` envelope.

    Attributes
    ----------
    title
        Document title (``<mj-title>``).
    preview
        Inbox preview text (``<mj-preview>``).
    fonts
        Web fonts emitted as ``<mj-font>`` declarations.
    styles
        Custom CSS appended to the default ``<mj-style>`` rules.
    breakpoint
        Responsive breakpoint width (``<mj-breakpoint>``), e.g. ``480px``.
    """

    title: str = ""
    preview: str = ""
    fonts: Tuple[FontDefinition, ...] = ()
    styles: str = ""
    breakpoint: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.fonts, tuple):
            object.__setattr__(self, "fonts", tuple(self.fonts))

    def font_names(self) -> List[str]:
        return [font.name for font in self.fonts]


@dataclass(frozen=True)
class Template:
    """Reusable starting document."""
    id: str
    name: str
    category: str
    document: EditorNode
    description: str = ""
    head_settings: Optional[HeadSettings] = None


@dataclass
class DocumentContext:
    """In-memory state of the document being edited.

    Attributes
    ----------
    document
        Root node of the current snapshot (type ``mj-body``).  Replaced
        wholesale on every mutation.
    head_settings
        Envelope settings used when the document is serialized.
    metadata
        Arbitrary key/value pairs (source file name, template id...).
    """

    document: EditorNode = field(default_factory=lambda: EditorNode(type="mj-body"))
    head_settings: HeadSettings = field(default_factory=HeadSettings)
    metadata: Dict[str, Any] = field(default_factory=dict)

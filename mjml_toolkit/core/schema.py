from __future__ import annotations

"""Read-only catalogue of MJML component types.

The catalogue maps a tag name to a :class:`ComponentDefinition` describing
its defaults and structural rules.  It is loaded from
``config/component_schema.yml`` through :class:`ConfigManager`; tests and
callers that need a different catalogue build one with
:meth:`ComponentSchema.from_config`.

Schema rules never block an edit.  :meth:`ComponentSchema.check_child` and
:meth:`ComponentSchema.validate_document` only report
:class:`ValidationWarning` values; the MJML compiler has the final word.
"""

from dataclasses import dataclass, field, replace
import logging
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from mjml_toolkit.config import ConfigManager
from mjml_toolkit.core.models import EditorNode
from mjml_toolkit.core.utils import is_unset, normalize_attribute_value

__all__ = [
    "ComponentDefinition",
    "ComponentSchema",
    "ValidationWarning",
    "get_default_schema",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationWarning:
    """Non-fatal schema mismatch.

    Attributes
    ----------
    code
        Machine readable kind: ``child_not_allowed``, ``parent_not_allowed``,
        ``children_not_accepted``, ``unknown_type``, ``content_and_children``,
        ``unsupported_element``, ``conversion``.
    message
        Human-readable summary.
    node_id
        Id of the offending node when known.
    """
    code: str
    message: str
    node_id: Optional[str] = None

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class ComponentDefinition:
    """Defaults and structural rules for one component type."""

    type: str
    name: str = ""
    category: str = ""
    accepts_children: bool = False
    self_closing: bool = False
    raw_content: bool = False
    html_content: bool = False
    allowed_children: Optional[FrozenSet[str]] = None
    allowed_parents: Optional[FrozenSet[str]] = None
    default_attributes: Tuple[Tuple[str, Any], ...] = ()
    default_content: Optional[str] = None
    default_children: Tuple[Dict[str, Any], ...] = field(default=(), compare=False)

    @classmethod
    def from_mapping(cls, type_name: str, data: Mapping[str, Any]) -> "ComponentDefinition":
        data = data or {}

        def _optional_set(key: str) -> Optional[FrozenSet[str]]:
            values = data.get(key)
            if values is None:
                return None
            return frozenset(str(v).lower() for v in values)

        attributes = data.get("default_attributes") or {}
        content = data.get("default_content")
        return cls(
            type=type_name,
            name=str(data.get("name") or type_name),
            category=str(data.get("category") or ""),
            accepts_children=bool(data.get("accepts_children", False)),
            self_closing=bool(data.get("self_closing", False)),
            raw_content=bool(data.get("raw_content", False)),
            html_content=bool(data.get("html_content", False)),
            allowed_children=_optional_set("allowed_children"),
            allowed_parents=_optional_set("allowed_parents"),
            default_attributes=tuple(
                (str(k), normalize_attribute_value(v)) for k, v in attributes.items() if not is_unset(v)
            ),
            default_content=None if content is None else str(content),
            default_children=tuple(dict(c) for c in (data.get("default_children") or ())),
        )


class ComponentSchema:
    """Lookup of :class:`ComponentDefinition` by tag name.

    Unknown types resolve to a permissive definition (accepts any child,
    not self-closing) so that hand-written markup using newer MJML tags is
    kept rather than dropped.
    """

    def __init__(self, definitions: Iterable[ComponentDefinition]) -> None:
        self._definitions: Dict[str, ComponentDefinition] = {d.type: d for d in definitions}

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "ComponentSchema":
        """Build a schema from a ``component_schema.yml`` style mapping."""
        definitions = []
        for type_name, data in (config or {}).items():
            if not isinstance(data, Mapping):
                logger.warning("Ignoring malformed schema entry for %s", type_name)
                continue
            definitions.append(ComponentDefinition.from_mapping(str(type_name).lower(), data))
        return cls(definitions)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def types(self) -> List[str]:
        return list(self._definitions)

    def get(self, type_name: str) -> Optional[ComponentDefinition]:
        return self._definitions.get(type_name)

    def definition(self, type_name: str) -> ComponentDefinition:
        """Return the definition for *type_name* or a permissive fallback."""
        found = self._definitions.get(type_name)
        if found is not None:
            return found
        return ComponentDefinition(type=type_name, name=type_name, accepts_children=True)

    def is_known(self, type_name: str) -> bool:
        return type_name in self._definitions

    def accepts_children(self, type_name: str) -> bool:
        return self.definition(type_name).accepts_children

    def is_self_closing(self, type_name: str) -> bool:
        return self.definition(type_name).self_closing

    def is_raw_content(self, type_name: str) -> bool:
        return self.definition(type_name).raw_content

    def is_html_content(self, type_name: str) -> bool:
        return self.definition(type_name).html_content

    def raw_content_types(self) -> List[str]:
        return [t for t, d in self._definitions.items() if d.raw_content]

    def by_category(self, category: str) -> List[ComponentDefinition]:
        return [d for d in self._definitions.values() if d.category == category]

    # ------------------------------------------------------------------
    # Node creation
    # ------------------------------------------------------------------

    def create_node(
        self,
        type_name: str,
        attributes: Optional[Mapping[str, Any]] = None,
        content: Optional[str] = None,
    ) -> EditorNode:
        """Instantiate *type_name* with its default attributes, content and children.

        Every node of the returned subtree gets a fresh id.  Explicit
        *attributes* are merged over the defaults and an explicit *content*
        replaces the default content.
        """
        definition = self.definition(type_name)
        merged = dict(definition.default_attributes)
        if attributes:
            merged.update(attributes)
        children = tuple(self._create_from_entry(entry) for entry in definition.default_children)
        return EditorNode(
            type=type_name,
            attributes=merged,
            content=definition.default_content if content is None else content,
            children=children,
        )

    def _create_from_entry(self, entry: Mapping[str, Any]) -> EditorNode:
        type_name = str(entry.get("type", "")).lower()
        node = self.create_node(type_name, entry.get("attributes"), entry.get("content"))
        if "children" in entry:
            node = replace(
                node,
                children=tuple(self._create_from_entry(c) for c in entry.get("children") or ()),
            )
        return node

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def check_child(self, parent_type: str, child_type: str) -> Optional[ValidationWarning]:
        """Return a warning when *child_type* is not expected under *parent_type*."""
        parent = self.definition(parent_type)
        if not parent.accepts_children:
            return ValidationWarning(
                "children_not_accepted",
                f"{parent_type} does not accept children ({child_type} will not be rendered).",
            )
        if parent.allowed_children is not None and child_type not in parent.allowed_children:
            return ValidationWarning(
                "child_not_allowed",
                f"{child_type} is not allowed inside {parent_type}.",
            )
        child = self.get(child_type)
        if child is not None and child.allowed_parents is not None and parent_type not in child.allowed_parents:
            return ValidationWarning(
                "parent_not_allowed",
                f"{child_type} must be placed inside one of: {', '.join(sorted(child.allowed_parents))}.",
            )
        return None

    def validate_document(self, root: EditorNode) -> List[ValidationWarning]:
        """Walk *root* and return every schema warning, parent before children."""
        warnings: List[ValidationWarning] = []
        stack = [root]
        while stack:
            node = stack.pop()
            if not self.is_known(node.type):
                warnings.append(ValidationWarning("unknown_type", f"Unknown component type {node.type}.", node.id))
            if node.children and node.content:
                warnings.append(
                    ValidationWarning(
                        "content_and_children",
                        f"{node.type} has both content and children; content is ignored.",
                        node.id,
                    )
                )
            for child in node.children:
                warning = self.check_child(node.type, child.type)
                if warning is not None:
                    warnings.append(replace(warning, node_id=child.id))
            stack.extend(reversed(node.children))
        return warnings


_DEFAULT_SCHEMA: Optional[ComponentSchema] = None


def get_default_schema() -> ComponentSchema:
    """Return the schema built from the configured component catalogue (cached)."""
    global _DEFAULT_SCHEMA
    if _DEFAULT_SCHEMA is None:
        _DEFAULT_SCHEMA = ComponentSchema.from_config(ConfigManager().get_component_schema())
        logger.debug("Component schema loaded: %d types", len(_DEFAULT_SCHEMA))
    return _DEFAULT_SCHEMA


def reset_default_schema() -> None:
    """Drop the cached default schema (used after configuration changes)."""
    global _DEFAULT_SCHEMA
    _DEFAULT_SCHEMA = None

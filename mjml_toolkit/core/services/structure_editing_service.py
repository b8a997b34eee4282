from __future__ import annotations

"""Service layer for structural edits on the in-memory MJML tree.

This module provides a UI-agnostic, testable service that owns every
mutation of :attr:`DocumentContext.document` (adding, removing, reordering,
updating and duplicating nodes, replacing the whole document) plus the head
settings.

Scope and guarantees:
- Operates purely in-memory on DocumentContext, no file I/O nor UI imports.
- Copy-on-write: each successful edit builds a new root and assigns it to
  ``context.document``; the previous root is left untouched.
- Conservative behavior with boundary checks; invalid operations return
  OperationResult(success=False, ...) with clear messaging, never raise.
- Schema mismatches do not block an edit; they are reported in
  ``details["warnings"]`` and left to the compiler's diagnostics.

Failure results carry ``details["reason"]``: ``no_match`` (unknown id),
``root`` (operation not applicable to the root), ``locked``, ``cycle``,
``invalid_root``, ``duplicate``, ``out_of_range`` or ``noop``.

Examples
--------
Basic usage:

    service = StructureEditingService()
    result = service.add_node(ctx, ctx.document.id, "mj-section")
    if not result.success:
        print(result.message)

"""

from dataclasses import dataclass, replace
import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from mjml_toolkit.core.models import DocumentContext, EditorNode, FontDefinition, HeadSettings, Template
from mjml_toolkit.core.schema import ComponentSchema, ValidationWarning, get_default_schema
from mjml_toolkit.core import tree


__all__ = ["OperationResult", "TreeObserver", "StructureEditingService", "ROOT_TYPE"]

logger = logging.getLogger(__name__)

ROOT_TYPE = "mj-body"


@dataclass(frozen=True)
class OperationResult:
    """Result of a structural editing operation.

    Attributes
    ----------
    success
        Whether the operation completed successfully.
    message
        Human-readable summary suitable for logs or UI display.
    details
        Optional structured details for diagnostics or caller logic.
    """
    success: bool
    message: str
    details: Optional[Dict[str, Any]] = None

    @property
    def reason(self) -> Optional[str]:
        return (self.details or {}).get("reason")


class TreeObserver:
    """Collaborator holding ids of the tree (selection, hover, expansion).

    Subclasses override what they need; both hooks default to no-ops.
    """

    def on_nodes_removed(self, removed_ids: Sequence[str]) -> None:
        """Called after a subtree was removed, with its root id first."""

    def on_document_replaced(self, document: EditorNode) -> None:
        """Called after the whole document was replaced."""


class StructureEditingService:
    """Encapsulates structural edit operations on an MJML document.

    Design principles:
    - No UI dependencies (no Tkinter), no disk I/O.
    - No exceptions for expected invalid actions; return OperationResult.
    - Pure tree helpers from :mod:`mjml_toolkit.core.tree` do the work.

    Parameters
    ----------
    schema
        Component catalogue used for defaults and validation; the configured
        catalogue when omitted.
    """

    def __init__(self, schema: Optional[ComponentSchema] = None) -> None:
        self._schema = schema
        self._observers: List[TreeObserver] = []

    @property
    def schema(self) -> ComponentSchema:
        if self._schema is None:
            self._schema = get_default_schema()
        return self._schema

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    def add_observer(self, observer: TreeObserver) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def remove_observer(self, observer: TreeObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def _notify_removed(self, removed_ids: List[str]) -> None:
        for observer in list(self._observers):
            try:
                observer.on_nodes_removed(removed_ids)
            except Exception:
                logger.error("Observer %r failed on removal of %s", observer, removed_ids[:1], exc_info=True)

    def _notify_replaced(self, document: EditorNode) -> None:
        for observer in list(self._observers):
            try:
                observer.on_document_replaced(document)
            except Exception:
                logger.error("Observer %r failed on document replacement", observer, exc_info=True)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def find_node(self, context: DocumentContext, node_id: str) -> Optional[EditorNode]:
        return tree.find_node(context.document, node_id)

    def find_parent(self, context: DocumentContext, node_id: str) -> Optional[Tuple[EditorNode, int]]:
        return tree.find_parent(context.document, node_id)

    def walk(self, context: DocumentContext) -> Iterator[Tuple[int, EditorNode]]:
        return tree.walk(context.document)

    def validate(self, context: DocumentContext) -> List[ValidationWarning]:
        """Return the schema warnings of the current document."""
        return self.schema.validate_document(context.document)

    # -------------------------------------------------------------------------
    # Node creation
    # -------------------------------------------------------------------------

    def add_child(
        self,
        context: DocumentContext,
        parent_id: str,
        node: EditorNode,
        index: Optional[int] = None,
    ) -> OperationResult:
        """Insert *node* under *parent_id* at *index* (append by default).

        Ids of *node*'s subtree that already exist in the document are
        regenerated.  A child type the schema does not expect is still
        inserted; the mismatch is returned in ``details["warnings"]``.
        """
        logger.info("Edit: add_child parent=%s type=%s index=%s", parent_id, node.type, index)
        parent = tree.find_node(context.document, parent_id)
        if parent is None:
            logger.warning("Edit FAIL: add_child no_match parent=%s", parent_id)
            return OperationResult(False, f"Parent not found for id '{parent_id}'.", {"reason": "no_match", "parent_id": parent_id})
        if tree.is_locked(context.document, parent_id):
            logger.warning("Edit FAIL: add_child locked parent=%s", parent_id)
            return OperationResult(False, "Cannot add into a locked component.", {"reason": "locked", "parent_id": parent_id})

        existing = set(tree.collect_ids(context.document))
        incoming = tree.collect_ids(node)
        if existing.intersection(incoming) or len(set(incoming)) != len(incoming):
            node = tree.clone_with_new_ids(node)
            logger.debug("add_child: regenerated ids of incoming %s subtree", node.type)

        warnings = []
        warning = self.schema.check_child(parent.type, node.type)
        if warning is not None:
            warnings.append(warning)
            logger.info("add_child: schema warning: %s", warning.message)

        new_root = tree.insert_child(context.document, parent_id, node, index)
        context.document = new_root
        logger.info("Edit OK: add_child node=%s parent=%s", node.id, parent_id)
        return OperationResult(
            True,
            f"Added {self.schema.definition(node.type).name or node.type}.",
            {"node_id": node.id, "parent_id": parent_id, "warnings": warnings},
        )

    def add_node(
        self,
        context: DocumentContext,
        parent_id: str,
        node_type: str,
        index: Optional[int] = None,
    ) -> OperationResult:
        """Create a *node_type* component from schema defaults and insert it."""
        node = self.schema.create_node(node_type)
        return self.add_child(context, parent_id, node, index)

    def duplicate_node(self, context: DocumentContext, node_id: str) -> OperationResult:
        """Insert an unlocked deep copy (fresh ids) right after *node_id*."""
        logger.info("Edit: duplicate_node node=%s", node_id)
        located = tree.find_parent(context.document, node_id)
        if located is None:
            reason = "root" if context.document.id == node_id else "no_match"
            logger.warning("Edit FAIL: duplicate_node %s node=%s", reason, node_id)
            return OperationResult(False, "Cannot duplicate this component.", {"reason": reason, "node_id": node_id})
        if tree.is_locked(context.document, node_id):
            logger.warning("Edit FAIL: duplicate_node locked node=%s", node_id)
            return OperationResult(False, "Cannot duplicate a locked component.", {"reason": "locked", "node_id": node_id})

        parent, index = located
        source = parent.children[index]
        clone = tree.clone_with_new_ids(source, keep_locks=False)
        context.document = tree.insert_child(context.document, parent.id, clone, index + 1)
        logger.info("Edit OK: duplicate_node node=%s copy=%s", node_id, clone.id)
        return OperationResult(True, "Duplicated component.", {"node_id": clone.id, "source_id": node_id, "parent_id": parent.id})

    # -------------------------------------------------------------------------
    # Removal and updates
    # -------------------------------------------------------------------------

    def remove_node(self, context: DocumentContext, node_id: str) -> OperationResult:
        """Detach the subtree rooted at *node_id*.

        No-op for the root and for unknown ids.  Observers receive the
        removed id followed by all its descendant ids.
        """
        logger.info("Edit: remove_node node=%s", node_id)
        if context.document.id == node_id:
            logger.info("Edit noop: remove_node root")
            return OperationResult(False, "The document body cannot be removed.", {"reason": "root", "node_id": node_id})
        if tree.is_locked(context.document, node_id):
            logger.warning("Edit FAIL: remove_node locked node=%s", node_id)
            return OperationResult(False, "Cannot remove a locked component.", {"reason": "locked", "node_id": node_id})

        outcome = tree.remove_subtree(context.document, node_id)
        if outcome is None:
            logger.info("Edit noop: remove_node no_match node=%s", node_id)
            return OperationResult(False, f"Component not found for id '{node_id}'.", {"reason": "no_match", "node_id": node_id})

        new_root, removed = outcome
        context.document = new_root
        removed_ids = tree.collect_ids(removed)
        logger.info("Edit OK: remove_node node=%s removed=%d", node_id, len(removed_ids))
        self._notify_removed(removed_ids)
        return OperationResult(True, "Removed component.", {"node_id": node_id, "removed_ids": removed_ids})

    def update_attributes(
        self,
        context: DocumentContext,
        node_id: str,
        partial: Mapping[str, Any],
    ) -> OperationResult:
        """Shallow-merge *partial* into the node's attributes.

        ``None`` or ``""`` removes the attribute.
        """
        logger.info("Edit: update_attributes node=%s keys=%s", node_id, sorted(partial))
        node = tree.find_node(context.document, node_id)
        if node is None:
            logger.warning("Edit FAIL: update_attributes no_match node=%s", node_id)
            return OperationResult(False, f"Component not found for id '{node_id}'.", {"reason": "no_match", "node_id": node_id})
        if tree.is_locked(context.document, node_id):
            logger.warning("Edit FAIL: update_attributes locked node=%s", node_id)
            return OperationResult(False, "Cannot edit a locked component.", {"reason": "locked", "node_id": node_id})

        merged = tree.merge_attributes(node.attributes, partial)
        context.document = tree.update_node(context.document, node_id, attributes=merged)
        logger.info("Edit OK: update_attributes node=%s", node_id)
        return OperationResult(True, "Updated attributes.", {"node_id": node_id})

    def update_content(self, context: DocumentContext, node_id: str, text: Optional[str]) -> OperationResult:
        """Replace the inline text payload of *node_id*."""
        logger.info("Edit: update_content node=%s", node_id)
        node = tree.find_node(context.document, node_id)
        if node is None:
            logger.warning("Edit FAIL: update_content no_match node=%s", node_id)
            return OperationResult(False, f"Component not found for id '{node_id}'.", {"reason": "no_match", "node_id": node_id})
        if tree.is_locked(context.document, node_id):
            logger.warning("Edit FAIL: update_content locked node=%s", node_id)
            return OperationResult(False, "Cannot edit a locked component.", {"reason": "locked", "node_id": node_id})

        context.document = tree.update_node(context.document, node_id, content=text)
        logger.info("Edit OK: update_content node=%s", node_id)
        return OperationResult(True, "Updated content.", {"node_id": node_id})

    # -------------------------------------------------------------------------
    # Reordering and moves
    # -------------------------------------------------------------------------

    def reorder_children(
        self,
        context: DocumentContext,
        parent_id: str,
        ordered_ids: Sequence[str],
    ) -> OperationResult:
        """Reorder the children of *parent_id* following *ordered_ids*.

        Only a permutation is ever applied: ids that are not children of
        *parent_id* are ignored, repeated ids count once, and children
        missing from *ordered_ids* keep their slot.  The listed children
        are written, in the given order, into the slots they occupy.
        """
        logger.info("Edit: reorder_children parent=%s ids=%d", parent_id, len(ordered_ids))
        parent = tree.find_node(context.document, parent_id)
        if parent is None:
            logger.warning("Edit FAIL: reorder_children no_match parent=%s", parent_id)
            return OperationResult(False, f"Parent not found for id '{parent_id}'.", {"reason": "no_match", "parent_id": parent_id})
        if tree.is_locked(context.document, parent_id):
            logger.warning("Edit FAIL: reorder_children locked parent=%s", parent_id)
            return OperationResult(False, "Cannot reorder a locked component.", {"reason": "locked", "parent_id": parent_id})

        by_id = {child.id: child for child in parent.children}
        requested: List[str] = []
        for node_id in ordered_ids:
            if node_id in by_id and node_id not in requested:
                requested.append(node_id)

        slots = [i for i, child in enumerate(parent.children) if child.id in requested]
        children = list(parent.children)
        for slot, node_id in zip(slots, requested):
            children[slot] = by_id[node_id]

        if [c.id for c in children] == parent.child_ids():
            logger.info("Edit noop: reorder_children parent=%s order unchanged", parent_id)
            return OperationResult(False, "Order unchanged.", {"reason": "noop", "parent_id": parent_id})

        context.document = tree.update_node(context.document, parent_id, children=tuple(children))
        logger.info("Edit OK: reorder_children parent=%s", parent_id)
        return OperationResult(True, "Reordered components.", {"parent_id": parent_id, "order": [c.id for c in children]})

    def move_child(
        self,
        context: DocumentContext,
        parent_id: str,
        from_index: int,
        to_index: int,
    ) -> OperationResult:
        """Move the child at *from_index* to *to_index* (array move)."""
        logger.info("Edit: move_child parent=%s from=%s to=%s", parent_id, from_index, to_index)
        parent = tree.find_node(context.document, parent_id)
        if parent is None:
            logger.warning("Edit FAIL: move_child no_match parent=%s", parent_id)
            return OperationResult(False, f"Parent not found for id '{parent_id}'.", {"reason": "no_match", "parent_id": parent_id})
        count = len(parent.children)
        if not (0 <= from_index < count and 0 <= to_index < count):
            logger.info("Edit noop: move_child out_of_range parent=%s", parent_id)
            return OperationResult(False, "Index out of range.", {"reason": "out_of_range", "parent_id": parent_id})
        if from_index == to_index:
            logger.info("Edit noop: move_child same index parent=%s", parent_id)
            return OperationResult(False, "Order unchanged.", {"reason": "noop", "parent_id": parent_id})
        if tree.is_locked(context.document, parent_id):
            logger.warning("Edit FAIL: move_child locked parent=%s", parent_id)
            return OperationResult(False, "Cannot reorder a locked component.", {"reason": "locked", "parent_id": parent_id})

        children = list(parent.children)
        children.insert(to_index, children.pop(from_index))
        context.document = tree.update_node(context.document, parent_id, children=tuple(children))
        logger.info("Edit OK: move_child parent=%s", parent_id)
        return OperationResult(True, "Moved component.", {"parent_id": parent_id, "node_id": children[to_index].id})

    def move_node(
        self,
        context: DocumentContext,
        node_id: str,
        new_parent_id: str,
        index: int,
    ) -> OperationResult:
        """Move *node_id* under *new_parent_id*.

        *index* is a slot in the new parent's children as they are before
        the move, so dropping "after sibling k" is ``k + 1`` whether or not
        the node currently sits in the same parent.  The index is clamped.
        """
        logger.info("Edit: move_node node=%s parent=%s index=%s", node_id, new_parent_id, index)
        doc = context.document
        if node_id == new_parent_id:
            logger.info("Edit noop: move_node onto itself node=%s", node_id)
            return OperationResult(False, "Cannot move a component into itself.", {"reason": "cycle", "node_id": node_id})
        if doc.id == node_id:
            logger.info("Edit noop: move_node root")
            return OperationResult(False, "The document body cannot be moved.", {"reason": "root", "node_id": node_id})

        located = tree.find_parent(doc, node_id)
        new_parent = tree.find_node(doc, new_parent_id)
        if located is None or new_parent is None:
            logger.warning("Edit FAIL: move_node no_match node=%s parent=%s", node_id, new_parent_id)
            return OperationResult(False, "Component or target not found.", {"reason": "no_match", "node_id": node_id, "parent_id": new_parent_id})
        if tree.is_locked(doc, node_id) or tree.is_locked(doc, new_parent_id):
            logger.warning("Edit FAIL: move_node locked node=%s parent=%s", node_id, new_parent_id)
            return OperationResult(False, "Cannot move a locked component.", {"reason": "locked", "node_id": node_id})
        if tree.is_descendant(doc, node_id, new_parent_id):
            logger.warning("Edit FAIL: move_node cycle node=%s parent=%s", node_id, new_parent_id)
            return OperationResult(False, "Cannot move a component into its own content.", {"reason": "cycle", "node_id": node_id})

        old_parent, old_index = located
        target = index
        if old_parent.id == new_parent_id and old_index < index:
            target = index - 1
        target = max(0, min(target, len(new_parent.children) - (1 if old_parent.id == new_parent_id else 0)))
        if old_parent.id == new_parent_id and target == old_index:
            logger.info("Edit noop: move_node same position node=%s", node_id)
            return OperationResult(False, "Position unchanged.", {"reason": "noop", "node_id": node_id})

        node = old_parent.children[old_index]
        warnings = []
        warning = self.schema.check_child(new_parent.type, node.type)
        if warning is not None:
            warnings.append(warning)

        detached, _removed = tree.remove_subtree(doc, node_id)
        context.document = tree.insert_child(detached, new_parent_id, node, target)
        logger.info("Edit OK: move_node node=%s parent=%s index=%s", node_id, new_parent_id, target)
        return OperationResult(
            True,
            "Moved component.",
            {"node_id": node_id, "parent_id": new_parent_id, "index": target, "warnings": warnings},
        )

    def reorder_node(self, context: DocumentContext, node_id: str, target_id: str) -> OperationResult:
        """Move *node_id* to the position of its sibling *target_id*."""
        logger.info("Edit: reorder_node node=%s target=%s", node_id, target_id)
        if node_id == target_id:
            return OperationResult(False, "Order unchanged.", {"reason": "noop", "node_id": node_id})
        source = tree.find_parent(context.document, node_id)
        target = tree.find_parent(context.document, target_id)
        if source is None or target is None:
            logger.warning("Edit FAIL: reorder_node no_match node=%s target=%s", node_id, target_id)
            return OperationResult(False, "Component or target not found.", {"reason": "no_match", "node_id": node_id})
        if source[0].id != target[0].id:
            logger.info("Edit noop: reorder_node different parents node=%s target=%s", node_id, target_id)
            return OperationResult(False, "Components do not share a parent.", {"reason": "no_match", "node_id": node_id})
        if tree.is_locked(context.document, node_id) or tree.is_locked(context.document, target_id):
            logger.warning("Edit FAIL: reorder_node locked node=%s", node_id)
            return OperationResult(False, "Cannot reorder a locked component.", {"reason": "locked", "node_id": node_id})
        return self.move_child(context, source[0].id, source[1], target[1])

    # -------------------------------------------------------------------------
    # Whole-document replacement
    # -------------------------------------------------------------------------

    def set_document(
        self,
        context: DocumentContext,
        document: EditorNode,
        head_settings: Optional[HeadSettings] = None,
    ) -> OperationResult:
        """Replace the document (and optionally the head settings) wholesale."""
        logger.info("Edit: set_document root=%s", document.type)
        if document.type != ROOT_TYPE:
            logger.warning("Edit FAIL: set_document invalid_root type=%s", document.type)
            return OperationResult(False, f"The document root must be <{ROOT_TYPE}>.", {"reason": "invalid_root", "type": document.type})
        if not tree.ids_unique(document):
            document = tree.clone_with_new_ids(document)

        context.document = document
        if head_settings is not None:
            context.head_settings = head_settings
        logger.info("Edit OK: set_document nodes=%d", tree.count_nodes(document))
        self._notify_replaced(document)
        return OperationResult(True, "Document replaced.", {"node_id": document.id})

    def load_template(
        self,
        context: DocumentContext,
        template: Union[Template, EditorNode],
        head_settings: Optional[HeadSettings] = None,
    ) -> OperationResult:
        """Replace the document with a fresh copy of *template*.

        Every id is regenerated so the live tree never shares ids with the
        template (or with another document loaded from it).

        Without explicit *head_settings* a :class:`Template` brings its own.
        """
        document = template.document if isinstance(template, Template) else template
        if head_settings is None and isinstance(template, Template):
            head_settings = template.head_settings
        clone = tree.clone_with_new_ids(document)
        result = self.set_document(context, clone, head_settings)
        if result.success and isinstance(template, Template):
            context.metadata["template_id"] = template.id
        return result

    # -------------------------------------------------------------------------
    # Head settings
    # -------------------------------------------------------------------------

    def update_head_settings(self, context: DocumentContext, **changes: Any) -> OperationResult:
        """Update fields of :class:`HeadSettings` (``title``, ``preview``...)."""
        logger.info("Edit: update_head_settings keys=%s", sorted(changes))
        valid = {"title", "preview", "fonts", "styles", "breakpoint"}
        unknown = set(changes) - valid
        if unknown:
            logger.warning("Edit FAIL: update_head_settings unknown keys=%s", sorted(unknown))
            return OperationResult(False, f"Unknown head settings: {', '.join(sorted(unknown))}.", {"reason": "no_match"})
        context.head_settings = replace(context.head_settings, **changes)
        logger.info("Edit OK: update_head_settings")
        return OperationResult(True, "Updated head settings.")

    def add_font(self, context: DocumentContext, font: FontDefinition) -> OperationResult:
        if font.name in context.head_settings.font_names():
            logger.info("Edit noop: add_font duplicate name=%s", font.name)
            return OperationResult(False, f"Font '{font.name}' already declared.", {"reason": "duplicate"})
        fonts = context.head_settings.fonts + (font,)
        context.head_settings = replace(context.head_settings, fonts=fonts)
        logger.info("Edit OK: add_font name=%s", font.name)
        return OperationResult(True, f"Added font {font.name}.")

    def remove_font(self, context: DocumentContext, name: str) -> OperationResult:
        fonts = tuple(f for f in context.head_settings.fonts if f.name != name)
        if len(fonts) == len(context.head_settings.fonts):
            return OperationResult(False, f"Font '{name}' not found.", {"reason": "no_match"})
        context.head_settings = replace(context.head_settings, fonts=fonts)
        logger.info("Edit OK: remove_font name=%s", name)
        return OperationResult(True, f"Removed font {name}.")

    def update_font(self, context: DocumentContext, name: str, font: FontDefinition) -> OperationResult:
        names = context.head_settings.font_names()
        if name not in names:
            return OperationResult(False, f"Font '{name}' not found.", {"reason": "no_match"})
        if font.name != name and font.name in names:
            return OperationResult(False, f"Font '{font.name}' already declared.", {"reason": "duplicate"})
        fonts = tuple(font if f.name == name else f for f in context.head_settings.fonts)
        context.head_settings = replace(context.head_settings, fonts=fonts)
        logger.info("Edit OK: update_font name=%s", name)
        return OperationResult(True, f"Updated font {font.name}.")

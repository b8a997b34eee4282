from __future__ import annotations

"""Drag and drop of components on the structure canvas.

Consumes an abstract stream of drag events (start, over, end, cancel) and
turns the final directive into one tree edit:

- ``BEFORE`` / ``AFTER`` insert into the target's parent at the target's
  index / the next index;
- ``INSIDE`` appends as the last child of the target;
- ``NONE`` changes nothing.

Dragging an existing node moves it; dragging a palette entry creates a new
component.  The root accepts drops too: *before* means first child, *after*
means last child.
"""

from dataclasses import dataclass, replace
import logging
from typing import Optional, Tuple

from mjml_toolkit.config import ConfigManager
from mjml_toolkit.core import tree
from mjml_toolkit.core.dnd import (
    DEFAULT_AFTER_THRESHOLD,
    DEFAULT_BEFORE_THRESHOLD,
    DropPosition,
    Rect,
    downgrade_for_target,
    resolve_drop_position,
)
from mjml_toolkit.core.models import DocumentContext
from mjml_toolkit.core.services.structure_editing_service import OperationResult, StructureEditingService

__all__ = ["DragState", "DragController"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DragState:
    """Snapshot of the drag in progress."""
    is_dragging: bool = False
    active_id: Optional[str] = None
    component_type: Optional[str] = None
    over_id: Optional[str] = None
    over_position: DropPosition = DropPosition.NONE


class DragController:
    """Tracks one drag gesture and applies its outcome through the editing service.

    Parameters
    ----------
    context : DocumentContext
        Document being edited.
    editing_service : StructureEditingService
        Performs the move or insertion.
    sync_controller : optional
        Anything with an ``invalidate()`` method (the code view), told after
        each successful drop.
    """

    def __init__(
        self,
        context: DocumentContext,
        editing_service: StructureEditingService,
        sync_controller=None,
        before_threshold: Optional[float] = None,
        after_threshold: Optional[float] = None,
    ) -> None:
        self.context = context
        self.editing_service = editing_service
        self.sync_controller = sync_controller
        cfg = ConfigManager()
        if before_threshold is None:
            before_threshold = cfg.get_editor_value("drag", "before_threshold", DEFAULT_BEFORE_THRESHOLD)
        if after_threshold is None:
            after_threshold = cfg.get_editor_value("drag", "after_threshold", DEFAULT_AFTER_THRESHOLD)
        self.before_threshold = float(before_threshold)
        self.after_threshold = float(after_threshold)
        self._state = DragState()

    @property
    def state(self) -> DragState:
        return self._state

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def drag_start(self, active_id: Optional[str] = None, component_type: Optional[str] = None) -> None:
        """Begin dragging an existing node (*active_id*) or a palette entry (*component_type*)."""
        if active_id is None and component_type is None:
            return
        self._state = DragState(is_dragging=True, active_id=active_id, component_type=component_type)
        logger.debug("Drag start: node=%s palette=%s", active_id, component_type)

    def drag_over(
        self,
        over_id: Optional[str],
        over_rect: Optional[Rect],
        active_rect: Optional[Rect],
    ) -> DropPosition:
        """Update the candidate target and return the resolved position."""
        if not self._state.is_dragging:
            return DropPosition.NONE
        position = DropPosition.NONE
        target = tree.find_node(self.context.document, over_id) if over_id else None
        if target is not None:
            position = resolve_drop_position(over_rect, active_rect, self.before_threshold, self.after_threshold)
            position = downgrade_for_target(position, target.type, self.editing_service.schema)
        self._state = replace(
            self._state,
            over_id=over_id if target is not None else None,
            over_position=position,
        )
        return position

    def drag_cancel(self) -> None:
        self._state = DragState()

    def drag_end(self) -> Optional[OperationResult]:
        """Apply the last resolved directive; return the edit result or None."""
        state = self._state
        self._state = DragState()
        if not state.is_dragging or state.over_id is None or state.over_position is DropPosition.NONE:
            logger.debug("Drag end: nothing to apply")
            return None

        doc = self.context.document
        if state.active_id is not None:
            if tree.find_node(doc, state.active_id) is None:
                return None
            if tree.is_descendant(doc, state.active_id, state.over_id):
                logger.info("Edit noop: drop onto own subtree node=%s", state.active_id)
                return None

        slot = self._target_slot(state.over_id, state.over_position)
        if slot is None:
            return None
        parent_id, index = slot

        if state.active_id is not None:
            result = self.editing_service.move_node(self.context, state.active_id, parent_id, index)
        else:
            result = self.editing_service.add_node(self.context, parent_id, state.component_type, index)

        if result.success and self.sync_controller is not None:
            self.sync_controller.invalidate()
        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _target_slot(self, over_id: str, position: DropPosition) -> Optional[Tuple[str, int]]:
        """Return ``(parent_id, index)`` for a drop at *position* of *over_id*."""
        doc = self.context.document
        target = tree.find_node(doc, over_id)
        if target is None:
            return None
        if position is DropPosition.INSIDE:
            return target.id, len(target.children)
        if target.id == doc.id:
            return doc.id, (0 if position is DropPosition.BEFORE else len(doc.children))
        located = tree.find_parent(doc, over_id)
        if located is None:
            return None
        parent, index = located
        return parent.id, (index if position is DropPosition.BEFORE else index + 1)

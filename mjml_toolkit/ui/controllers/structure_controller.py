from typing import Any, Dict, List, Optional, Sequence, Set, Union

from mjml_toolkit.core import tree
from mjml_toolkit.core.models import DocumentContext, EditorNode, Template
from mjml_toolkit.core.services.structure_editing_service import (
    StructureEditingService,
    OperationResult,
    TreeObserver,
)
from mjml_toolkit.core.services.preview_service import PreviewService, PreviewResult
from mjml_toolkit.core.templates import get_template


class StructureController(TreeObserver):
    """Controller for coordinating structure editing UI actions with services.

    This controller maintains transient UI-related state (selection, hover,
    expanded items, all keyed by node id) and delegates operations to the
    appropriate services. It contains no UI toolkit code and does not
    perform I/O or logging.

    Parameters
    ----------
    context : DocumentContext
        The active document the UI is working with.
    editing_service : StructureEditingService
        Service that performs structural editing operations.
    preview_service : PreviewService
        Service that compiles the document to HTML.
    sync_controller : optional
        Code view controller; invalidated after every successful edit.

    Notes
    -----
    - The controller registers itself as a :class:`TreeObserver` so removed
      or replaced nodes never linger in the selection, hover or expansion
      state.
    - No Tkinter or UI framework code should appear in this module.
    """

    def __init__(
        self,
        context: DocumentContext,
        editing_service: StructureEditingService,
        preview_service: Optional[PreviewService] = None,
        sync_controller: Any = None,
    ) -> None:
        # Dependencies
        self.context: DocumentContext = context
        self.editing_service: StructureEditingService = editing_service
        self.preview_service: Optional[PreviewService] = preview_service
        self.sync_controller = sync_controller

        # Transient UI-related state
        self.selected_id: Optional[str] = None
        self.hovered_id: Optional[str] = None
        self.expanded_ids: Set[str] = set()

        self.editing_service.add_observer(self)

    def dispose(self) -> None:
        """Detach from the editing service."""
        self.editing_service.remove_observer(self)

    # ---------------------------------------------------------------------------------
    # Tree notifications
    # ---------------------------------------------------------------------------------

    def on_nodes_removed(self, removed_ids: Sequence[str]) -> None:
        removed = set(removed_ids)
        if self.selected_id in removed:
            self.selected_id = None
        if self.hovered_id in removed:
            self.hovered_id = None
        self.expanded_ids -= removed

    def on_document_replaced(self, document: EditorNode) -> None:
        live = set(tree.collect_ids(document))
        if self.selected_id not in live:
            self.selected_id = None
        if self.hovered_id not in live:
            self.hovered_id = None
        self.expanded_ids &= live

    # ---------------------------------------------------------------------------------
    # Selection state
    # ---------------------------------------------------------------------------------

    def select(self, node_id: Optional[str]) -> bool:
        """Select *node_id* (None clears). Returns False for unknown ids."""
        if node_id is not None and tree.find_node(self.context.document, node_id) is None:
            return False
        self.selected_id = node_id
        return True

    def set_hovered(self, node_id: Optional[str]) -> None:
        if node_id is not None and tree.find_node(self.context.document, node_id) is None:
            node_id = None
        self.hovered_id = node_id

    def toggle_expanded(self, node_id: str) -> bool:
        """Flip the expanded state of *node_id*; return the new state."""
        if node_id in self.expanded_ids:
            self.expanded_ids.discard(node_id)
            return False
        if tree.find_node(self.context.document, node_id) is None:
            return False
        self.expanded_ids.add(node_id)
        return True

    def get_selected_node(self) -> Optional[EditorNode]:
        if self.selected_id is None:
            return None
        return tree.find_node(self.context.document, self.selected_id)

    def get_breadcrumb(self, node_id: Optional[str] = None) -> List[EditorNode]:
        """Return the nodes from the root down to *node_id* (default: selection)."""
        target = node_id or self.selected_id
        if target is None:
            return []
        return tree.find_path(self.context.document, target) or []

    # ---------------------------------------------------------------------------------
    # Editing actions
    # ---------------------------------------------------------------------------------

    def _after_edit(self, result: OperationResult, select_new: bool = False) -> OperationResult:
        if result.success:
            if select_new and result.details and result.details.get("node_id"):
                self.selected_id = result.details["node_id"]
            if self.sync_controller is not None:
                self.sync_controller.invalidate()
        return result

    def handle_add_component(
        self,
        parent_id: Optional[str],
        component_type: str,
        index: Optional[int] = None,
    ) -> OperationResult:
        """Add a component under *parent_id* (root when None) and select it."""
        parent_id = parent_id or self.context.document.id
        result = self.editing_service.add_node(self.context, parent_id, component_type, index)
        return self._after_edit(result, select_new=True)

    def handle_delete(self, node_id: Optional[str] = None) -> OperationResult:
        """Delete *node_id* (default: the selection)."""
        target = node_id or self.selected_id
        if target is None:
            return OperationResult(False, "Nothing selected.", {"reason": "no_match"})
        return self._after_edit(self.editing_service.remove_node(self.context, target))

    def handle_duplicate(self, node_id: Optional[str] = None) -> OperationResult:
        """Duplicate *node_id* (default: the selection) and select the copy."""
        target = node_id or self.selected_id
        if target is None:
            return OperationResult(False, "Nothing selected.", {"reason": "no_match"})
        return self._after_edit(self.editing_service.duplicate_node(self.context, target), select_new=True)

    def handle_update_attributes(self, node_id: str, partial: Dict[str, Any]) -> OperationResult:
        return self._after_edit(self.editing_service.update_attributes(self.context, node_id, partial))

    def handle_update_content(self, node_id: str, text: Optional[str]) -> OperationResult:
        return self._after_edit(self.editing_service.update_content(self.context, node_id, text))

    def handle_move(self, node_id: str, new_parent_id: str, index: int) -> OperationResult:
        return self._after_edit(self.editing_service.move_node(self.context, node_id, new_parent_id, index))

    def handle_reorder(self, parent_id: str, ordered_ids: Sequence[str]) -> OperationResult:
        return self._after_edit(self.editing_service.reorder_children(self.context, parent_id, ordered_ids))

    def handle_load_template(self, template: Union[str, Template]) -> OperationResult:
        """Replace the document with a template (by id or value)."""
        if isinstance(template, str):
            found = get_template(template)
            if found is None:
                return OperationResult(False, f"Unknown template '{template}'.", {"reason": "no_match"})
            template = found
        result = self.editing_service.load_template(self.context, template)
        if result.success and self.sync_controller is not None:
            # A template replaces whatever the code view was showing
            self.sync_controller.handle_reset()
        return result

    # ---------------------------------------------------------------------------------
    # Preview
    # ---------------------------------------------------------------------------------

    def compile_preview(self) -> PreviewResult:
        if self.preview_service is None:
            return PreviewResult(False, None, "Preview is not available.", {"reason": "no_preview_service"})
        return self.preview_service.compile_document(self.context)

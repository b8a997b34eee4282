from __future__ import annotations

"""Two-way synchronisation between the MJML code editor and the tree.

The controller is an explicit two-state machine:

**Clean**
    The code view shows markup generated from the tree on demand.
**Dirty**
    The code view shows the text the user typed; it is authoritative and the
    tree lags behind by at most one debounce interval.

Transitions:

- any edit moves to Dirty, stores the text verbatim and (re)starts the
  debounce timer; only the latest edit is ever committed;
- when the timer fires the text is parsed.  Success replaces the document
  (and head settings) but the state stays Dirty, so the text the user is
  typing is never reformatted under the cursor.  Failure leaves the tree
  alone, records the error and waits for the next edit;
- :meth:`handle_sync` parses immediately and, on success, returns to Clean;
- :meth:`handle_reset` discards the edited text and returns to Clean.

At most one timer is pending per controller.  No UI toolkit code lives here;
timers come from a :class:`Scheduler`.
"""

import logging
from typing import Any, Callable, List, Optional

from mjml_toolkit.config import ConfigManager
from mjml_toolkit.core.generators.mjml_builder import generate_mjml
from mjml_toolkit.core.importers.mjml_importer import MjmlParseError, parse_mjml
from mjml_toolkit.core.models import DocumentContext
from mjml_toolkit.core.scheduling import Scheduler
from mjml_toolkit.core.schema import ComponentSchema, ValidationWarning
from mjml_toolkit.core.services.structure_editing_service import StructureEditingService

__all__ = ["CodeSyncController", "DEFAULT_DEBOUNCE_MS"]

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 500


class CodeSyncController:
    """Reconciles direct MJML edits with the node tree.

    Parameters
    ----------
    context : DocumentContext
        Document being edited.
    editing_service : StructureEditingService
        Used to replace the document after a successful parse.
    scheduler : Scheduler
        Source of the cancellable debounce timer.
    debounce_ms : int, optional
        Quiet period before an edit is parsed; ``sync.debounce_ms`` from
        ``editor.yml`` when omitted.
    schema : ComponentSchema, optional
        Catalogue used by the parser and generator.
    on_state_changed : callable, optional
        Called with the controller after every state change.
    """

    def __init__(
        self,
        context: DocumentContext,
        editing_service: StructureEditingService,
        scheduler: Scheduler,
        debounce_ms: Optional[int] = None,
        schema: Optional[ComponentSchema] = None,
        on_state_changed: Optional[Callable[["CodeSyncController"], Any]] = None,
    ) -> None:
        self.context = context
        self.editing_service = editing_service
        self.scheduler = scheduler
        if debounce_ms is None:
            debounce_ms = ConfigManager().get_editor_value("sync", "debounce_ms", DEFAULT_DEBOUNCE_MS)
        self.debounce_ms = int(debounce_ms)
        self._schema = schema
        self._on_state_changed = on_state_changed

        self._edited_code: Optional[str] = None
        self._is_dirty = False
        self._pending: Any = None
        self.error: Optional[str] = None
        self.warnings: List[ValidationWarning] = []
        self.parse_attempts = 0

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_dirty(self) -> bool:
        return self._is_dirty

    @property
    def has_pending_commit(self) -> bool:
        return self._pending is not None

    @property
    def code(self) -> str:
        """Text for the code view: the edited text when dirty, else generated."""
        if self._is_dirty and self._edited_code is not None:
            return self._edited_code
        return generate_mjml(self.context.document, self.context.head_settings, self._schema)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def handle_change(self, text: Optional[str]) -> None:
        """Record a user edit and restart the debounce timer."""
        if text is None:
            return
        self._edited_code = text
        self._is_dirty = True
        self.error = None
        self._cancel_pending()
        self._pending = self.scheduler.call_later(self.debounce_ms, self._on_timer)
        logger.debug("Code edit: %d chars, commit in %d ms", len(text), self.debounce_ms)
        self._emit()

    def handle_sync(self) -> bool:
        """Parse the edited text now; on success return to the clean state.

        Returns True when the tree matches the code view afterwards.
        """
        self._cancel_pending()
        if not self._is_dirty:
            return True
        return self._commit(clear_dirty=True)

    def handle_reset(self) -> None:
        """Discard the edited text and any error; show markup from the tree."""
        self._cancel_pending()
        self._edited_code = None
        self._is_dirty = False
        self.error = None
        self.warnings = []
        logger.info("Code edits discarded")
        self._emit()

    def invalidate(self) -> bool:
        """React to a structural edit made outside the code view.

        The edited text is dropped only when it is already committed to the
        tree (no pending timer, no error).  Otherwise it is kept so that no
        user input is lost.  Returns True when the code view now follows the
        tree.
        """
        if not self._is_dirty:
            self._emit()
            return True
        if self._pending is not None or self.error is not None:
            logger.info("Tree changed while code edits are uncommitted; keeping edited text")
            return False
        self._edited_code = None
        self._is_dirty = False
        self.warnings = []
        self._emit()
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self.scheduler.cancel(self._pending)
            self._pending = None

    def _on_timer(self) -> None:
        self._pending = None
        self._commit(clear_dirty=False)

    def _commit(self, clear_dirty: bool) -> bool:
        text = self._edited_code
        if text is None:
            return True
        self.parse_attempts += 1
        try:
            parsed = parse_mjml(text, self._schema)
        except MjmlParseError as exc:
            self.error = str(exc)
            logger.info("Code parse failed, tree kept: %s", exc)
            self._emit()
            return False

        result = self.editing_service.set_document(self.context, parsed.document, parsed.head_settings)
        if not result.success:
            self.error = result.message
            logger.info("Parsed code rejected: %s", result.message)
            self._emit()
            return False

        self.error = None
        self.warnings = list(parsed.warnings)
        if clear_dirty:
            self._edited_code = None
            self._is_dirty = False
        logger.debug("Code committed to tree (clear_dirty=%s)", clear_dirty)
        self._emit()
        return True

    def _emit(self) -> None:
        if self._on_state_changed is None:
            return
        try:
            self._on_state_changed(self)
        except Exception:
            logger.error("on_state_changed callback failed", exc_info=True)

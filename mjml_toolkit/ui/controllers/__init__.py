"""UI controllers package for MJML Toolkit.

Controllers mediate between UI widgets and the underlying services and
models.  They hold transient view state only and contain no toolkit code.
"""

from .code_sync_controller import CodeSyncController
from .drag_controller import DragController, DragState
from .structure_controller import StructureController

__all__: list[str] = ["CodeSyncController", "DragController", "DragState", "StructureController"]

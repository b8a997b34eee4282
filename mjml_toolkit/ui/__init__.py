"""MJML Toolkit UI package.

Toolkit-independent controllers for the structure canvas, drag and drop and
the MJML code view.
"""

from . import controllers as _controllers  # noqa: F401

# Controllers
from .controllers.structure_controller import StructureController  # noqa: F401
from .controllers.code_sync_controller import CodeSyncController  # noqa: F401
from .controllers.drag_controller import DragController  # noqa: F401

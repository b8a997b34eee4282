from __future__ import annotations

"""Service layer exposing the editing and preview workflows."""

from .structure_editing_service import OperationResult, StructureEditingService, TreeObserver  # noqa: F401
from .preview_service import PreviewResult, PreviewService  # noqa: F401

__all__: list[str] = [
    "OperationResult",
    "PreviewResult",
    "PreviewService",
    "StructureEditingService",
    "TreeObserver",
]

from __future__ import annotations

"""Drop-position geometry for drag and drop in the structure canvas.

The resolver compares the vertical centre of the dragged item with the
rectangle of the candidate target:

- upper 30% of the target: drop *before* it;
- lower 30% of the target: drop *after* it;
- the middle band: drop *inside* it.

The wide middle band favours "into this container" for tall targets.
*inside* only makes sense for types that accept children; for others it is
downgraded to *after*.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from mjml_toolkit.core.schema import ComponentSchema

__all__ = [
    "DropPosition",
    "Rect",
    "DEFAULT_BEFORE_THRESHOLD",
    "DEFAULT_AFTER_THRESHOLD",
    "resolve_drop_position",
    "downgrade_for_target",
]

DEFAULT_BEFORE_THRESHOLD = 0.3
DEFAULT_AFTER_THRESHOLD = 0.7


class DropPosition(str, Enum):
    """Resolved drag directive."""
    BEFORE = "before"
    AFTER = "after"
    INSIDE = "inside"
    NONE = "none"


@dataclass(frozen=True)
class Rect:
    """Bounding rectangle in screen coordinates (y grows downwards)."""
    top: float
    left: float
    width: float
    height: float

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def center_y(self) -> float:
        return self.top + self.height / 2


def resolve_drop_position(
    over_rect: Optional[Rect],
    active_rect: Optional[Rect],
    before_threshold: float = DEFAULT_BEFORE_THRESHOLD,
    after_threshold: float = DEFAULT_AFTER_THRESHOLD,
) -> DropPosition:
    """Return where the active item would land relative to the target.

    Missing geometry on either side yields :attr:`DropPosition.NONE`.
    """
    if over_rect is None or active_rect is None:
        return DropPosition.NONE
    center = active_rect.center_y
    if center < over_rect.top + over_rect.height * before_threshold:
        return DropPosition.BEFORE
    if center > over_rect.top + over_rect.height * after_threshold:
        return DropPosition.AFTER
    return DropPosition.INSIDE


def downgrade_for_target(position: DropPosition, target_type: str, schema: ComponentSchema) -> DropPosition:
    """Turn INSIDE into AFTER when *target_type* cannot hold children."""
    if position is DropPosition.INSIDE and not schema.accepts_children(target_type):
        return DropPosition.AFTER
    return position

"""
Position resolution - Screen space to canvas space conversion.

Translates where the pointer was released into the canvas position of a new
child node. Pure functions: the view transform is passed in explicitly.
"""

from typing import Optional

from .models import NodeLayout, Position, ViewTransform


def resolve_child_position(
    pointer: Position,
    pane_origin: Position,
    parent_layout: NodeLayout,
    transform: ViewTransform = ViewTransform(),
) -> Optional[Position]:
    """
    Resolve the canvas position for a child dragged out of `parent_layout`.

    The pointer is made pane-relative, projected through the inverse view
    transform, then expressed relative to the parent's center so the child's
    drag handle lands near the cursor whatever the parent's size.

    Args:
        pointer: Pointer release point in screen space
        pane_origin: Top-left corner of the canvas pane in screen space
        parent_layout: Measured layout of the parent node
        transform: Current pan/zoom of the canvas

    Returns:
        The child's position, or None when the parent has not been laid out
        yet (the gesture should be ignored).
    """
    if not parent_layout.is_measured:
        return None

    pane_position = transform.project(pointer - pane_origin)
    parent = parent_layout.position_absolute

    return Position(
        x=pane_position.x - parent.x + parent_layout.width / 2,
        y=pane_position.y - parent.y + parent_layout.height / 2,
    )

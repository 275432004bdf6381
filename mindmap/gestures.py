"""
Gesture handling - Turns connect-drag gestures into graph edits.

The renderer reports when a drag starts on a node's handle and where the
pointer is released:
- released over empty pane: branch a new child from the pressed node
- released over a node: focus that node's label for editing
- anywhere else: nothing happens
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .factory import ChildNodeFactory
from .models import Edge, GestureTarget, Node, NodeLayout, Position, ViewTransform
from .positioning import resolve_child_position
from .state import GraphView

logger = logging.getLogger(__name__)


class GestureOutcome(str, Enum):
    """What a finished gesture did."""
    CHILD_CREATED = "child_created"
    FOCUS_LABEL = "focus_label"
    IGNORED = "ignored"


@dataclass
class GestureResult:
    """Result of a finished gesture."""
    outcome: GestureOutcome
    node: Optional[Node] = None
    edge: Optional[Edge] = None
    focus_node_id: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {"outcome": self.outcome.value}
        if self.node:
            result["node"] = self.node.to_json_dict()
        if self.edge:
            result["edge"] = self.edge.to_json_dict()
        if self.focus_node_id:
            result["focus_node_id"] = self.focus_node_id
        return result


class GestureController:
    """Tracks the node a connect-drag started from."""

    def __init__(self, graph: GraphView, factory: ChildNodeFactory):
        self._graph = graph
        self._factory = factory
        self._connecting_node_id: Optional[str] = None

    @property
    def connecting_node_id(self) -> Optional[str]:
        return self._connecting_node_id

    def start(self, node_id: Optional[str]):
        """Remember the node a drag started from."""
        self._connecting_node_id = node_id

    def end(
        self,
        target: GestureTarget,
        pointer: Position,
        pane_origin: Position,
        parent_layout: NodeLayout,
        transform: ViewTransform = ViewTransform(),
        target_node_id: Optional[str] = None,
    ) -> GestureResult:
        """
        Finish the gesture started by start().

        A child is only created when the pointer lands on the pane, the
        pressed node still exists and its layout is known.
        """
        if target == GestureTarget.NODE:
            return GestureResult(GestureOutcome.FOCUS_LABEL, focus_node_id=target_node_id)

        if target != GestureTarget.PANE or self._connecting_node_id is None:
            return GestureResult(GestureOutcome.IGNORED)

        parent = self._graph.get_node(self._connecting_node_id)
        position = resolve_child_position(pointer, pane_origin, parent_layout, transform)
        if parent is None or position is None:
            logger.debug("Ignoring gesture from %s: parent missing or not laid out", self._connecting_node_id)
            return GestureResult(GestureOutcome.IGNORED)

        node, edge = self._factory.add_child(parent, position)
        return GestureResult(GestureOutcome.CHILD_CREATED, node=node, edge=edge)

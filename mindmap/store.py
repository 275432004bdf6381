"""
Mind map store - One editing session over one mind map.

This module wires the components to a single GraphState:
- ChangeReducer for UI change batches (moves, removals, renames)
- ChildNodeFactory and GestureController for branching new children
- PersistenceGateway for save / load / listing
- Change callbacks for re-render notification

Only those components receive the state's writer; everyone else reads
through `graph`.
"""

import logging
from typing import Callable, Iterable, Optional

from .errors import PreconditionError
from .factory import ChildNodeFactory
from .gestures import GestureController
from .models import (
    NEW_DIAGRAM_ROOT_LABEL,
    DiagramListing,
    Edge,
    Node,
    NodeLayout,
    Position,
    RenameChange,
    ViewTransform,
    initial_root,
)
from .persistence import PersistenceGateway
from .positioning import resolve_child_position
from .reducer import Change, ChangeReducer
from .remote import RemoteStore
from .state import GraphSnapshot, GraphState, GraphView
from .validation import ValidationIssue, validate_tree

logger = logging.getLogger(__name__)


class MindMapStore:
    """
    Manages a single mind map's state and persistence.

    The store never writes the graph itself except for `new_diagram`, which
    resets the session to a fresh single-root mind map.
    """

    def __init__(self, remote: RemoteStore, state: Optional[GraphState] = None):
        self._state = state or GraphState()
        self._graph = self._state.view()
        self._writer = self._state.writer()

        self.reducer = ChangeReducer(self._writer)
        self.factory = ChildNodeFactory(self._writer)
        self.gestures = GestureController(self._graph, self.factory)
        self.gateway = PersistenceGateway(self._writer, remote)

    # --- Properties ---

    @property
    def graph(self) -> GraphView:
        """Read-only view of the current graph."""
        return self._graph

    @property
    def current_diagram_id(self) -> Optional[str]:
        return self._graph.current_diagram_id

    # --- Change Callbacks ---

    def on_change(self, callback: Callable[[], None]):
        """Register a callback for graph changes."""
        self._state.on_change(callback)

    def remove_listener(self, callback: Callable[[], None]):
        self._state.remove_listener(callback)

    # --- Editing ---

    def apply_changes(self, changes: Iterable[Change]):
        """Apply a UI change batch in order (removals do not cascade)."""
        self.reducer.apply(changes)

    def add_child(self, parent_id: str, position: Position) -> tuple[Node, Edge]:
        """Branch a new child from `parent_id` at a canvas position."""
        return self.factory.add_child(parent_id, position)

    def add_child_at_pointer(
        self,
        parent_id: str,
        pointer: Position,
        pane_origin: Position,
        parent_layout: NodeLayout,
        transform: ViewTransform = ViewTransform(),
    ) -> Optional[tuple[Node, Edge]]:
        """Branch a child where the pointer was released; None if the parent is not laid out."""
        position = resolve_child_position(pointer, pane_origin, parent_layout, transform)
        if position is None:
            return None
        return self.factory.add_child(parent_id, position)

    def rename_node(self, node_id: str, label: str) -> Node:
        """Change a node's label."""
        if self._graph.get_node(node_id) is None:
            raise PreconditionError(f"Node not found: {node_id}")
        self.reducer.apply([RenameChange(id=node_id, label=label)])
        return self._graph.get_node(node_id)

    def remove_subtree(self, node_id: str) -> list[str]:
        """Remove a node with its whole subtree and incident edges."""
        return self.reducer.remove_subtree(node_id)

    def new_diagram(self):
        """Discard the current mind map and start over from a single root."""
        self._writer.replace(GraphSnapshot(nodes=(initial_root(NEW_DIAGRAM_ROOT_LABEL),)))
        logger.info("Started a new mind map")

    # --- Persistence ---

    async def save(self, name: str) -> str:
        return await self.gateway.save(name)

    async def load(self, diagram_id: str) -> None:
        await self.gateway.load(diagram_id)

    async def list_saved(self) -> list[DiagramListing]:
        return await self.gateway.list_saved()

    # --- Inspection ---

    def validate(self) -> list[ValidationIssue]:
        return validate_tree(self._graph.nodes, self._graph.edges)

    def get_state(self) -> dict:
        """Get the full current state for API responses."""
        return {
            "diagram": self._graph.snapshot().to_json_dict(),
            "current_diagram_id": self._graph.current_diagram_id,
            "connecting_node_id": self.gestures.connecting_node_id,
        }

"""
Graph State - The authoritative node and edge collections of one mind map.

This module implements:
- Immutable snapshots: every mutation swaps in a complete new snapshot
- O(1) node/edge lookups via index dictionaries rebuilt on each commit
- A read-only view type (GraphView) for renderers and the API
- A writer type (GraphWriter) handed only to the reducer, the child factory
  and the persistence gateway
- Change callbacks for re-render notification
"""

import logging
from typing import Callable, Iterable, Optional
from pydantic import BaseModel, ConfigDict, Field

from .models import Edge, Node, initial_root

logger = logging.getLogger(__name__)


class GraphSnapshot(BaseModel):
    """A complete, immutable state of the graph at one point in time."""
    model_config = ConfigDict(frozen=True)

    nodes: tuple[Node, ...] = Field(default_factory=lambda: (initial_root(),))
    edges: tuple[Edge, ...] = ()
    current_diagram_id: Optional[str] = None

    def to_json_dict(self) -> dict:
        return {
            "nodes": [n.to_json_dict() for n in self.nodes],
            "edges": [e.to_json_dict() for e in self.edges],
            "currentDiagramId": self.current_diagram_id,
        }


class GraphState:
    """
    Owns the current snapshot of one mind map for the lifetime of a session.

    Nothing outside this module assigns the snapshot directly: reads go
    through view(), writes through writer().
    """

    def __init__(self, initial: Optional[GraphSnapshot] = None):
        self._snapshot = initial or GraphSnapshot()
        self._on_change_callbacks: list[Callable[[], None]] = []
        # Bumped by every whole-graph replacement (new diagram, load)
        self._generation = 0

        # O(1) lookup indexes
        self._node_index: dict[str, Node] = {}  # node_id -> Node
        self._edge_index: dict[str, Edge] = {}  # edge_id -> Edge
        self._rebuild_indexes()

    # --- Index Management ---

    def _rebuild_indexes(self):
        """Rebuild all indexes from the current snapshot."""
        self._node_index = {node.id: node for node in self._snapshot.nodes}
        self._edge_index = {edge.id: edge for edge in self._snapshot.edges}

    def _swap(self, snapshot: GraphSnapshot):
        self._snapshot = snapshot
        self._rebuild_indexes()
        logger.debug(
            "Graph committed: %d nodes, %d edges, diagram=%s",
            len(snapshot.nodes), len(snapshot.edges), snapshot.current_diagram_id,
        )
        self._notify_change()

    # --- Change Callbacks ---

    def on_change(self, callback: Callable[[], None]):
        """Register a callback for graph changes."""
        self._on_change_callbacks.append(callback)

    def remove_listener(self, callback: Callable[[], None]):
        """Unregister a previously registered change callback."""
        if callback in self._on_change_callbacks:
            self._on_change_callbacks.remove(callback)

    def _notify_change(self):
        """Notify all registered callbacks of a change."""
        for callback in list(self._on_change_callbacks):
            callback()

    # --- Access ---

    def view(self) -> "GraphView":
        return GraphView(self)

    def writer(self) -> "GraphWriter":
        return GraphWriter(self)


class GraphView:
    """Read-only access to a GraphState."""

    def __init__(self, state: GraphState):
        self._state = state

    @property
    def nodes(self) -> tuple[Node, ...]:
        return self._state._snapshot.nodes

    @property
    def edges(self) -> tuple[Edge, ...]:
        return self._state._snapshot.edges

    @property
    def current_diagram_id(self) -> Optional[str]:
        return self._state._snapshot.current_diagram_id

    @property
    def generation(self) -> int:
        """Counts whole-graph replacements; unchanged by commits and binds."""
        return self._state._generation

    def snapshot(self) -> GraphSnapshot:
        """The current snapshot. Safe to keep: snapshots never change."""
        return self._state._snapshot

    def get_node(self, node_id: str) -> Optional[Node]:
        """Get a node by ID (O(1) lookup)."""
        return self._state._node_index.get(node_id)

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        """Get an edge by ID (O(1) lookup)."""
        return self._state._edge_index.get(edge_id)

    def children_of(self, node_id: str) -> list[Node]:
        """Direct children of a node, in insertion order."""
        return [n for n in self.nodes if n.parent_id == node_id]

    def descendant_ids(self, node_id: str) -> list[str]:
        """IDs of the node and everything below it, parents before children."""
        children: dict[str, list[str]] = {}
        for node in self.nodes:
            if node.parent_id is not None:
                children.setdefault(node.parent_id, []).append(node.id)

        result: list[str] = []
        seen: set[str] = set()
        queue = [node_id]
        while queue:
            current = queue.pop(0)
            if current in seen:
                continue
            seen.add(current)
            result.append(current)
            queue.extend(children.get(current, []))
        return result


class GraphWriter(GraphView):
    """
    Mutation entry points of a GraphState.

    Every call replaces the whole snapshot at once, so a caller that computes
    its result first and commits once can never leave a partial edit behind.
    """

    def commit(self, nodes: Optional[Iterable[Node]] = None, edges: Optional[Iterable[Edge]] = None):
        """Replace the node and/or edge collections, keeping the diagram binding."""
        current = self._state._snapshot
        self._state._swap(GraphSnapshot(
            nodes=tuple(nodes) if nodes is not None else current.nodes,
            edges=tuple(edges) if edges is not None else current.edges,
            current_diagram_id=current.current_diagram_id,
        ))

    def replace(self, snapshot: GraphSnapshot):
        """Replace the entire graph, including the diagram binding."""
        self._state._generation += 1
        self._state._swap(snapshot)

    def bind(self, diagram_id: Optional[str]):
        """Bind the graph to a remote diagram id (or unbind with None)."""
        current = self._state._snapshot
        self._state._swap(current.model_copy(update={"current_diagram_id": diagram_id}))

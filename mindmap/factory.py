"""
Child node factory - The only way the tree grows.

A child node and the edge connecting it to its parent are always created
together and committed in one step.
"""

import logging
from typing import Callable, Union

from .errors import PreconditionError
from .models import (
    DEFAULT_CHILD_LABEL,
    Edge,
    Node,
    Position,
    generate_edge_id,
    generate_node_id,
)
from .state import GraphWriter

logger = logging.getLogger(__name__)


class ChildNodeFactory:
    """Creates child nodes with their parent edge."""

    def __init__(
        self,
        writer: GraphWriter,
        node_id_factory: Callable[[], str] = generate_node_id,
        edge_id_factory: Callable[[], str] = generate_edge_id,
    ):
        self._writer = writer
        self._new_node_id = node_id_factory
        self._new_edge_id = edge_id_factory

    def add_child(self, parent: Union[Node, str], position: Position) -> tuple[Node, Edge]:
        """
        Append a new child of `parent` at `position` and its connecting edge.

        Args:
            parent: The parent node, or its ID
            position: Canvas position of the new child

        Returns:
            The created (node, edge) pair

        Raises:
            PreconditionError: if the parent is not in the graph
        """
        parent_id = parent.id if isinstance(parent, Node) else parent
        if self._writer.get_node(parent_id) is None:
            raise PreconditionError(f"Parent node not found: {parent_id}")

        node = Node(
            id=self._new_node_id(),
            label=DEFAULT_CHILD_LABEL,
            position=position,
            parent_id=parent_id,
        )
        edge = Edge(id=self._new_edge_id(), source_id=parent_id, target_id=node.id)

        self._writer.commit(
            nodes=[*self._writer.nodes, node],
            edges=[*self._writer.edges, edge],
        )
        logger.debug("Added child %s under %s", node.id, parent_id)
        return node, edge

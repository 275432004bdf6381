"""
Change reducer - Applies batches of UI edits to the graph.

Changes are folded left to right over the current node and edge lists; the
result is committed once, so a batch lands completely or not at all.

Removing a node does not remove its subtree or its incident edges. The UI
layer is expected to submit the full cascade in the same batch; callers that
want the cascade computed for them use cascade_removal().
"""

import logging
from typing import Iterable, Union

from .errors import PreconditionError
from .models import Edge, MoveChange, Node, RemoveChange, RenameChange
from .state import GraphWriter

logger = logging.getLogger(__name__)

Change = Union[MoveChange, RemoveChange, RenameChange]


def _apply_change(
    nodes: list[Node], edges: list[Edge], change: Change
) -> tuple[list[Node], list[Edge]]:
    """Apply a single change and return the new node and edge lists."""
    if isinstance(change, RemoveChange):
        return (
            [n for n in nodes if n.id != change.id],
            [e for e in edges if e.id != change.id],
        )

    if isinstance(change, MoveChange):
        if change.position is None:
            return nodes, edges
        return [
            n.model_copy(update={"position": change.position}) if n.id == change.id else n
            for n in nodes
        ], edges

    if isinstance(change, RenameChange):
        return [
            n.model_copy(update={"label": change.label}) if n.id == change.id else n
            for n in nodes
        ], edges

    return nodes, edges


class ChangeReducer:
    """Applies ordered change batches through a GraphWriter."""

    def __init__(self, writer: GraphWriter):
        self._writer = writer

    def apply(self, changes: Iterable[Change]) -> None:
        """
        Apply changes strictly in order.

        Moves and renames of ids that are absent (for example removed earlier
        in the same batch) are no-ops.
        """
        nodes = list(self._writer.nodes)
        edges = list(self._writer.edges)
        count = 0

        for change in changes:
            nodes, edges = _apply_change(nodes, edges, change)
            count += 1

        if count:
            self._writer.commit(nodes=nodes, edges=edges)
            logger.debug("Applied %d change(s)", count)

    def cascade_removal(self, node_id: str) -> list[RemoveChange]:
        """
        Build the removal batch for a node, its whole subtree and every edge
        touching any of them.

        Raises:
            PreconditionError: if the node is absent or is the root
        """
        node = self._writer.get_node(node_id)
        if node is None:
            raise PreconditionError(f"Node not found: {node_id}")
        if node.is_root:
            raise PreconditionError("The root node cannot be removed; start a new mind map instead")

        removed = self._writer.descendant_ids(node_id)
        removed_set = set(removed)
        edge_ids = [
            e.id for e in self._writer.edges
            if e.source_id in removed_set or e.target_id in removed_set
        ]
        return [RemoveChange(id=i) for i in edge_ids] + [RemoveChange(id=i) for i in removed]

    def remove_subtree(self, node_id: str) -> list[str]:
        """Remove a node with its subtree and incident edges; returns removed ids."""
        batch = self.cascade_removal(node_id)
        self.apply(batch)
        return [change.id for change in batch]

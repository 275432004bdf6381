"""
Mind map validation - Check a graph against the tree invariants.

Used by the persistence gateway (to flag broken records on load), the API
and the tests.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .models import DEFAULT_CHILD_LABEL, Edge, Node


class IssueSeverity(str, Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # Tree invariant broken
    WARNING = "warning"  # Valid tree, but probably unfinished
    INFO = "info"        # Informational


@dataclass
class ValidationIssue:
    """A single validation issue found in a mind map."""
    severity: IssueSeverity
    message: str
    node_id: str | None = None
    edge_id: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "type": self.severity.value,
            "message": self.message
        }
        if self.node_id:
            result["node_id"] = self.node_id
        if self.edge_id:
            result["edge_id"] = self.edge_id
        return result


def validate_tree(nodes: Iterable[Node], edges: Iterable[Edge]) -> list[ValidationIssue]:
    """
    Validate nodes and edges and return a list of issues.

    Checks for:
    - Missing root, or more than one root - ERROR
    - Duplicate node or edge IDs - ERROR
    - Parent references to missing nodes - ERROR
    - Edges referencing missing nodes - ERROR
    - Non-root nodes without a matching parent edge - ERROR
    - Edges that disagree with the target's parent, or a second edge into
      the same target - ERROR
    - Cycles and nodes unreachable from the root - ERROR
    - Nodes still carrying the default label - WARNING

    Args:
        nodes: The nodes to validate
        edges: The edges to validate

    Returns:
        List of ValidationIssue objects
    """
    nodes = list(nodes)
    edges = list(edges)
    issues: list[ValidationIssue] = []

    # Duplicate IDs
    seen_nodes: set[str] = set()
    for node in nodes:
        if node.id in seen_nodes:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Duplicate node id: {node.id}",
                node_id=node.id
            ))
        seen_nodes.add(node.id)

    seen_edges: set[str] = set()
    for edge in edges:
        if edge.id in seen_edges:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Duplicate edge id: {edge.id}",
                edge_id=edge.id
            ))
        seen_edges.add(edge.id)

    # Quick lookups
    by_id = {n.id: n for n in nodes}

    # Exactly one root
    roots = [n for n in nodes if n.parent_id is None]
    if not roots:
        issues.append(ValidationIssue(
            severity=IssueSeverity.ERROR,
            message="Mind map has no root node"
        ))
    for extra in roots[1:]:
        issues.append(ValidationIssue(
            severity=IssueSeverity.ERROR,
            message=f"More than one root node: {extra.label} ({extra.id})",
            node_id=extra.id
        ))

    # Parent references
    for node in nodes:
        if node.parent_id is not None and node.parent_id not in by_id:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Node references non-existent parent: {node.parent_id}",
                node_id=node.id
            ))

    # Edge references and edge/parent agreement
    edges_by_target: dict[str, list[Edge]] = {}
    for edge in edges:
        if edge.source_id not in by_id:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Edge references non-existent source node: {edge.source_id}",
                edge_id=edge.id
            ))
        if edge.target_id not in by_id:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Edge references non-existent target node: {edge.target_id}",
                edge_id=edge.id
            ))
            continue

        edges_by_target.setdefault(edge.target_id, []).append(edge)
        target = by_id[edge.target_id]
        if target.parent_id != edge.source_id:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Edge {edge.source_id} -> {edge.target_id} does not match the target's parent",
                edge_id=edge.id,
                node_id=target.id
            ))

    for target_id, incoming in edges_by_target.items():
        for extra in incoming[1:]:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Node has more than one parent edge: {target_id}",
                edge_id=extra.id,
                node_id=target_id
            ))

    for node in nodes:
        if node.parent_id is not None and node.parent_id in by_id and node.id not in edges_by_target:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Node has no edge from its parent: {node.label} ({node.id})",
                node_id=node.id
            ))

    # Reachability from the root (this also catches cycles)
    if len(roots) == 1:
        children: dict[str, list[str]] = {}
        for node in nodes:
            if node.parent_id is not None:
                children.setdefault(node.parent_id, []).append(node.id)

        reachable: set[str] = set()
        queue = [roots[0].id]
        while queue:
            current = queue.pop()
            if current in reachable:
                continue
            reachable.add(current)
            queue.extend(children.get(current, []))

        unreachable = [n for n in nodes if n.id not in reachable]
        if unreachable:
            labels = [f"{n.label} ({n.id})" for n in unreachable]
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Nodes not reachable from the root: {', '.join(labels)}"
            ))

    # Default labels
    for node in nodes:
        if not node.label or node.label.strip() == "" or node.label == DEFAULT_CHILD_LABEL:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message="Node has default or empty label",
                node_id=node.id
            ))

    return issues


def is_valid_tree(nodes: Iterable[Node], edges: Iterable[Edge]) -> bool:
    """True when no ERROR-level issue is found."""
    return not any(i.severity == IssueSeverity.ERROR for i in validate_tree(nodes, edges))


def validation_summary(issues: list[ValidationIssue]) -> dict:
    """
    Create a summary of validation issues.

    Args:
        issues: List of validation issues

    Returns:
        Dictionary with counts by severity
    """
    return {
        "total": len(issues),
        "errors": len([i for i in issues if i.severity == IssueSeverity.ERROR]),
        "warnings": len([i for i in issues if i.severity == IssueSeverity.WARNING]),
        "info": len([i for i in issues if i.severity == IssueSeverity.INFO]),
        "valid": len([i for i in issues if i.severity == IssueSeverity.ERROR]) == 0
    }

"""
Mind Map Core - Graph state, edit rules and persistence for tree-shaped mind maps.

This package provides the core used by the backend API and the CLI, ensuring
a single source of truth for what a valid mind map is and how it changes.
"""

from .errors import (
    MindMapError,
    PreconditionError,
    PersistenceError,
    RemoteUnavailableError,
    RemoteValidationError,
    DiagramNotFoundError,
)
from .models import (
    # Constants
    ROOT_NODE_ID,
    DEFAULT_CHILD_LABEL,
    # Core models
    Position,
    Node,
    Edge,
    MindMapRecord,
    DiagramListing,
    # Change operations
    MoveChange,
    RemoveChange,
    RenameChange,
    ChangeOp,
    parse_changes,
    # Identifiers
    generate_node_id,
    generate_edge_id,
    # Canvas layout
    ViewTransform,
    NodeLayout,
    GestureTarget,
)
from .positioning import resolve_child_position
from .state import GraphSnapshot, GraphState, GraphView, GraphWriter
from .reducer import ChangeReducer
from .factory import ChildNodeFactory
from .gestures import GestureController, GestureOutcome, GestureResult
from .remote import RemoteStore, PocketBaseStore, InMemoryStore
from .persistence import PersistenceGateway
from .validation import validate_tree, is_valid_tree, validation_summary, ValidationIssue, IssueSeverity
from .store import MindMapStore

__all__ = [
    # Errors
    "MindMapError",
    "PreconditionError",
    "PersistenceError",
    "RemoteUnavailableError",
    "RemoteValidationError",
    "DiagramNotFoundError",
    # Models
    "ROOT_NODE_ID",
    "DEFAULT_CHILD_LABEL",
    "Position",
    "Node",
    "Edge",
    "MindMapRecord",
    "DiagramListing",
    "MoveChange",
    "RemoveChange",
    "RenameChange",
    "ChangeOp",
    "parse_changes",
    "generate_node_id",
    "generate_edge_id",
    # Positioning
    "ViewTransform",
    "NodeLayout",
    "resolve_child_position",
    # State and writers
    "GraphSnapshot",
    "GraphState",
    "GraphView",
    "GraphWriter",
    "ChangeReducer",
    "ChildNodeFactory",
    "GestureController",
    "GestureTarget",
    "GestureOutcome",
    "GestureResult",
    # Persistence
    "RemoteStore",
    "PocketBaseStore",
    "InMemoryStore",
    "PersistenceGateway",
    # Validation
    "validate_tree",
    "is_valid_tree",
    "validation_summary",
    "ValidationIssue",
    "IssueSeverity",
    # Session
    "MindMapStore",
]

"""
Core data models for mind maps.

These models define the canonical schema for a mind map:
- Nodes with a label, an absolute canvas position and a parent back-reference
- Edges connecting a parent node to a child node
- Saved records as returned by the remote store
- UI change operations consumed by the change reducer
- Canvas layout reported by the renderer (view transform, measured node size)
- Request bodies of the HTTP API

Field Naming Convention:
- Python attributes are snake_case (`parent_id`, `source_id`, `target_id`)
- JSON serialization outputs camelCase (`parentId`, `sourceId`, `targetId`)
- For backward compatibility, records written by the React Flow web client
  (`data.label`, `parentNode`, `source`/`target`) are accepted on input
"""

from enum import Enum
from typing import Annotated, Any, Iterable, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator
import logging
import uuid

logger = logging.getLogger(__name__)

ROOT_NODE_ID = "root"
ROOT_LABEL = "Mind Map"
NEW_DIAGRAM_ROOT_LABEL = "New Mind Map"
DEFAULT_CHILD_LABEL = "New Node"


def generate_node_id() -> str:
    """Generate a unique node ID."""
    return f"n{uuid.uuid4().hex[:12]}"


def generate_edge_id() -> str:
    """Generate a unique edge ID."""
    return f"e{uuid.uuid4().hex[:12]}"


class Position(BaseModel):
    """A point in canvas (or screen) space."""
    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: "Position") -> "Position":
        return Position(x=self.x + other.x, y=self.y + other.y)

    def __sub__(self, other: "Position") -> "Position":
        return Position(x=self.x - other.x, y=self.y - other.y)


class Node(BaseModel):
    """
    A node in the mind map.

    Positions are absolute canvas coordinates. `parent_id` is only a
    back-reference for grouping; it does not nest coordinates.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=generate_node_id)
    label: str = DEFAULT_CHILD_LABEL
    position: Position = Field(default_factory=Position)
    parent_id: Optional[str] = Field(default=None, alias="parentId")

    @model_validator(mode='before')
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Convert React Flow node fields (`data.label`, `parentNode`)."""
        if isinstance(data, dict):
            data = dict(data)
            payload = data.get('data')
            if 'label' not in data and isinstance(payload, dict) and 'label' in payload:
                data['label'] = payload['label']
            if 'parentNode' in data and 'parentId' not in data and 'parent_id' not in data:
                data['parentId'] = data.pop('parentNode')
        return data

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def to_json_dict(self) -> dict:
        """Convert to JSON-serializable dict with camelCase keys."""
        return self.model_dump(by_alias=True)


class Edge(BaseModel):
    """
    A connector between a parent node (source) and a child node (target).

    Accepts React Flow's `source`/`target` on input.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=generate_edge_id)
    source_id: str = Field(alias="sourceId")
    target_id: str = Field(alias="targetId")

    @model_validator(mode='before')
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Convert legacy 'source'/'target' fields to 'sourceId'/'targetId'."""
        if isinstance(data, dict):
            data = dict(data)
            if 'source' in data and 'sourceId' not in data and 'source_id' not in data:
                data['sourceId'] = data.pop('source')
            if 'target' in data and 'targetId' not in data and 'target_id' not in data:
                data['targetId'] = data.pop('target')
        return data

    def to_json_dict(self) -> dict:
        """Convert to JSON-serializable dict with camelCase keys."""
        return self.model_dump(by_alias=True)


def initial_root(label: str = ROOT_LABEL) -> Node:
    """The single root node a fresh diagram starts with."""
    return Node(id=ROOT_NODE_ID, label=label, position=Position(x=0, y=0))


class MindMapRecord(BaseModel):
    """
    A saved mind map as stored in the remote `mindmaps` collection.
    This is what gets sent to and fetched from the remote store.
    """
    id: str
    name: Optional[str] = None
    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    created: Optional[str] = None


class DiagramListing(BaseModel):
    """An entry in the saved-diagram directory."""
    id: str
    name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or f"Mind Map {self.id}"

    def to_json_dict(self) -> dict:
        return {"id": self.id, "name": self.name or "", "display_name": self.display_name}


# --- UI Change Operations ---

class MoveChange(BaseModel):
    """A drag tick. `position` is absent on the final tick of a drag."""
    model_config = ConfigDict(frozen=True)

    type: Literal["position"] = "position"
    id: str
    position: Optional[Position] = None


class RemoveChange(BaseModel):
    """Removal of the node and/or edge carrying `id`."""
    model_config = ConfigDict(frozen=True)

    type: Literal["remove"] = "remove"
    id: str


class RenameChange(BaseModel):
    """Inline label edit."""
    model_config = ConfigDict(frozen=True)

    type: Literal["label"] = "label"
    id: str
    label: str


ChangeOp = Annotated[Union[MoveChange, RemoveChange, RenameChange], Field(discriminator="type")]

CHANGE_TYPES = ("position", "remove", "label")

_change_list_adapter = TypeAdapter(list[ChangeOp])


def parse_changes(raw_changes: Iterable[dict]) -> list[Union[MoveChange, RemoveChange, RenameChange]]:
    """
    Validate a batch of UI change dicts into change operations.

    Change types the core does not model (selection, dimensions, ...) are
    dropped; order of the remaining changes is preserved.
    Raises pydantic.ValidationError for malformed known changes.
    """
    known = []
    for change in raw_changes:
        change_type = change.get("type") if isinstance(change, dict) else None
        if change_type in CHANGE_TYPES:
            known.append(change)
        else:
            logger.debug("Ignoring unsupported change type %r", change_type)
    return _change_list_adapter.validate_python(known)


# --- Canvas Layout ---

class ViewTransform(BaseModel):
    """The canvas pan offset and zoom level."""
    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0
    zoom: float = Field(default=1.0, gt=0)

    def project(self, point: Position) -> Position:
        """Convert a pane-relative screen point into canvas coordinates."""
        return Position(x=(point.x - self.x) / self.zoom, y=(point.y - self.y) / self.zoom)


class NodeLayout(BaseModel):
    """
    Layout of a node as measured by the renderer.

    All fields stay unset until the node has been rendered once.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    position_absolute: Optional[Position] = Field(default=None, alias="positionAbsolute")
    width: Optional[float] = None
    height: Optional[float] = None

    @property
    def is_measured(self) -> bool:
        # A zero size means the renderer has not measured the node yet
        return self.position_absolute is not None and bool(self.width) and bool(self.height)


class GestureTarget(str, Enum):
    """What the pointer was over when it was released."""
    PANE = "pane"
    NODE = "node"
    OTHER = "other"


# --- API Request Models ---

class SaveDiagramRequest(BaseModel):
    """Request to save the current diagram."""
    name: Optional[str] = None


class LoadDiagramRequest(BaseModel):
    """Request to load a saved diagram."""
    diagram_id: str


class AddChildRequest(BaseModel):
    """Request to branch a child from a node at a canvas position."""
    position: Position


class UpdateNodeRequest(BaseModel):
    """Request to rename a node."""
    label: str


class GestureStartRequest(BaseModel):
    """Request to record the node a connect-drag started from."""
    node_id: Optional[str] = None


class GestureEndRequest(BaseModel):
    """Request to finish a connect-drag where the pointer was released."""
    target: GestureTarget
    pointer: Position
    pane_origin: Position = Position()
    parent_layout: NodeLayout = NodeLayout()
    transform: ViewTransform = ViewTransform()
    target_node_id: Optional[str] = None

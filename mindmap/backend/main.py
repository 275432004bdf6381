"""
Mind Map Backend - FastAPI Application

This is the main entry point for the mind map backend.
It provides:
- REST API for the editing session (change batches, branching, renaming,
  removal, gestures) and for Save / New / Load / listing
- WebSocket endpoint that tells the canvas client to re-render
- CORS configuration for local frontend development
"""
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from mindmap import (
    DiagramNotFoundError,
    InMemoryStore,
    MindMapStore,
    PersistenceError,
    PocketBaseStore,
    PreconditionError,
    RemoteValidationError,
    RemoveChange,
    parse_changes,
    validation_summary,
)
from mindmap.config import Settings, configure_logging, get_settings
from mindmap.models import (
    AddChildRequest,
    GestureEndRequest,
    GestureStartRequest,
    LoadDiagramRequest,
    SaveDiagramRequest,
    UpdateNodeRequest,
)

from .websocket_manager import ws_manager

logger = logging.getLogger(__name__)

settings = get_settings()


def build_store(settings: Settings) -> MindMapStore:
    """Create the session store for the configured remote backend."""
    if settings.store == "memory":
        remote = InMemoryStore()
    elif settings.store == "pocketbase":
        remote = PocketBaseStore(
            settings.pocketbase_url,
            collection=settings.collection,
            timeout=settings.request_timeout,
        )
    else:
        raise ValueError(f"Unknown store backend: {settings.store}")
    return MindMapStore(remote)


# Global session for the application
store = build_store(settings)


# --- Async change notification ---
# Bridge between sync graph callbacks and async WebSocket broadcasts

async def change_broadcaster(change_event: asyncio.Event):
    """Background task that broadcasts changes to WebSocket clients."""
    while True:
        await change_event.wait()
        change_event.clear()
        await ws_manager.notify_mindmap_updated(store.current_diagram_id)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup/shutdown tasks."""
    configure_logging(settings.log_level)

    session = store
    change_event = asyncio.Event()
    session.on_change(change_event.set)

    broadcaster_task = asyncio.create_task(change_broadcaster(change_event))

    yield

    session.remove_listener(change_event.set)
    broadcaster_task.cancel()
    try:
        await broadcaster_task
    except asyncio.CancelledError:
        pass


# --- FastAPI App ---

app = FastAPI(
    title="Mind Map API",
    description="Backend API for the mind map editor",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _persistence_http_error(e: PersistenceError) -> HTTPException:
    """Map a persistence failure onto an HTTP error."""
    if isinstance(e, DiagramNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, RemoteValidationError):
        return HTTPException(status_code=422, detail=str(e))
    return HTTPException(status_code=502, detail=str(e))


# --- Health Check ---

@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "connections": ws_manager.connection_count}


# --- Mind Map State ---

@app.get("/api/diagram")
async def get_diagram():
    """Get the current mind map state."""
    return store.get_state()


@app.post("/api/diagram/new")
async def new_diagram():
    """Discard the current mind map and start a new one."""
    store.new_diagram()
    return {"success": True, **store.get_state()}


@app.post("/api/diagram/save")
async def save_diagram(request: SaveDiagramRequest):
    """Save the mind map (create on first save, update afterwards)."""
    name = request.name or settings.default_name
    try:
        diagram_id = await store.save(name)
    except PersistenceError as e:
        raise _persistence_http_error(e)
    await ws_manager.notify_mindmap_saved(diagram_id, name)
    return {"success": True, "diagram_id": diagram_id, "name": name}


@app.post("/api/diagram/load")
async def load_diagram(request: LoadDiagramRequest):
    """Replace the current mind map with a saved one."""
    try:
        await store.load(request.diagram_id)
    except PersistenceError as e:
        raise _persistence_http_error(e)
    return {"success": True, **store.get_state()}


@app.get("/api/diagrams")
async def list_diagrams():
    """List saved mind maps, newest first."""
    listings = await store.list_saved()
    return {"success": True, "diagrams": [d.to_json_dict() for d in listings]}


@app.get("/api/diagram/validate")
async def validate_current_diagram():
    """
    Validate the current mind map against the tree rules.

    Returns a list of issues (errors, warnings, info) and a summary.
    """
    issues = store.validate()
    return {
        "success": True,
        "issues": [issue.to_dict() for issue in issues],
        "summary": validation_summary(issues)
    }


# --- Change Batches ---

@app.post("/api/changes")
async def apply_changes(changes: list[dict]):
    """Apply a batch of UI changes (position, remove, label) in order."""
    try:
        parsed = parse_changes(changes)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    store.apply_changes(parsed)
    return {"success": True, "applied": len(parsed)}


# --- Node Operations ---

@app.get("/api/nodes/{node_id}")
async def get_node(node_id: str):
    """Get a specific node."""
    node = store.graph.get_node(node_id)
    if node:
        return {"success": True, "node": node.to_json_dict()}
    raise HTTPException(status_code=404, detail="Node not found")


@app.post("/api/nodes/{node_id}/children")
async def add_child(node_id: str, request: AddChildRequest):
    """Branch a new child node from a node."""
    try:
        node, edge = store.add_child(node_id, request.position)
    except PreconditionError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "node": node.to_json_dict(), "edge": edge.to_json_dict()}


@app.patch("/api/nodes/{node_id}")
async def rename_node(node_id: str, request: UpdateNodeRequest):
    """Rename a node."""
    try:
        node = store.rename_node(node_id, request.label)
    except PreconditionError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "node": node.to_json_dict()}


@app.delete("/api/nodes/{node_id}")
async def delete_node(node_id: str, cascade: bool = Query(default=False)):
    """
    Delete a node.

    Without `cascade` only the node itself is removed; its edges and
    children stay behind. With `cascade` the whole subtree and every edge
    touching it are removed.
    """
    if store.graph.get_node(node_id) is None:
        raise HTTPException(status_code=404, detail="Node not found")

    if not cascade:
        store.apply_changes([RemoveChange(id=node_id)])
        return {"success": True, "removed": [node_id]}

    try:
        removed = store.remove_subtree(node_id)
    except PreconditionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "removed": removed}


# --- Gestures ---

@app.post("/api/gestures/start")
async def gesture_start(request: GestureStartRequest):
    """Record the node a connect-drag started from."""
    store.gestures.start(request.node_id)
    return {"success": True, "node_id": request.node_id}


@app.post("/api/gestures/end")
async def gesture_end(request: GestureEndRequest):
    """Finish a connect-drag: branch a child, focus a label, or nothing."""
    result = store.gestures.end(
        request.target,
        request.pointer,
        request.pane_origin,
        request.parent_layout,
        request.transform,
        target_node_id=request.target_node_id,
    )
    return {"success": True, **result.to_dict()}


# --- WebSocket ---

@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for re-render notifications.

    Clients connect here to receive mindmap_updated events.
    """
    await ws_manager.connect(websocket)

    try:
        while True:
            text = await websocket.receive_text()
            await ws_manager.handle_message(websocket, text)
    except WebSocketDisconnect:
        await ws_manager.disconnect(websocket)


# --- Run with uvicorn ---

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)

"""
Shared test configuration and fixtures.

Remote stores used here are in-process: no test needs a running server.
"""

import asyncio

import pytest

from mindmap import GraphState, GraphView, InMemoryStore, MindMapStore, PersistenceError


# ============================================================================
# Remote Store Doubles
# ============================================================================

class RecordingStore(InMemoryStore):
    """In-memory store that records which remote operations were issued."""

    def __init__(self):
        super().__init__()
        self.calls: list[tuple[str, str | None]] = []

    async def create(self, data: dict) -> dict:
        self.calls.append(("create", None))
        return await super().create(data)

    async def update(self, record_id: str, data: dict) -> dict:
        self.calls.append(("update", record_id))
        return await super().update(record_id, data)

    async def get_one(self, record_id: str) -> dict:
        self.calls.append(("get_one", record_id))
        return await super().get_one(record_id)


class GatedStore(InMemoryStore):
    """In-memory store whose create/get_one block until `gate` is set."""

    def __init__(self):
        super().__init__()
        self.gate = asyncio.Event()

    async def create(self, data: dict) -> dict:
        await self.gate.wait()
        return await super().create(data)

    async def get_one(self, record_id: str) -> dict:
        await self.gate.wait()
        return await super().get_one(record_id)


class FailingStore:
    """Remote store where every operation raises the given error."""

    def __init__(self, error: PersistenceError):
        self.error = error

    async def create(self, data):
        raise self.error

    async def update(self, record_id, data):
        raise self.error

    async def get_one(self, record_id):
        raise self.error

    async def get_full_list(self, sort="-created"):
        raise self.error


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def remote():
    return RecordingStore()


@pytest.fixture
def store(remote):
    return MindMapStore(remote)


@pytest.fixture
def state():
    return GraphState()


# ============================================================================
# Helpers
# ============================================================================

def assert_tree(graph: GraphView):
    """Assert every tree invariant on a graph view."""
    nodes = graph.nodes
    edges = graph.edges
    node_ids = [n.id for n in nodes]
    edge_ids = [e.id for e in edges]

    assert len(node_ids) == len(set(node_ids)), "duplicate node ids"
    assert len(edge_ids) == len(set(edge_ids)), "duplicate edge ids"

    roots = [n for n in nodes if n.parent_id is None]
    assert len(roots) == 1, "exactly one root expected"

    by_id = {n.id: n for n in nodes}
    targets = [e.target_id for e in edges]
    assert len(targets) == len(set(targets)), "node with more than one parent edge"

    for node in nodes:
        if node.parent_id is None:
            continue
        assert node.parent_id in by_id
        matching = [e for e in edges if e.target_id == node.id and e.source_id == node.parent_id]
        assert len(matching) == 1, f"node {node.id} lacks its parent edge"

    assert len(edges) == len(nodes) - 1

    # Every node reaches the root without revisiting anything
    for node in nodes:
        seen = set()
        current = node
        while current.parent_id is not None:
            assert current.id not in seen, "cycle"
            seen.add(current.id)
            current = by_id[current.parent_id]
        assert current.id == roots[0].id

import pytest

from mindmap import (
    ChangeReducer,
    ChildNodeFactory,
    GraphState,
    MoveChange,
    Position,
    PreconditionError,
    RemoveChange,
    RenameChange,
)

from .conftest import assert_tree


@pytest.fixture
def graph():
    """root -> a -> b, root -> c"""
    state = GraphState()
    factory = ChildNodeFactory(state.writer())
    a, _ = factory.add_child("root", Position(x=100, y=0))
    b, _ = factory.add_child(a, Position(x=200, y=0))
    c, _ = factory.add_child("root", Position(x=100, y=100))
    return state, ChangeReducer(state.writer()), a, b, c


def test_move_updates_position_in_place(graph):
    state, reducer, a, _, _ = graph
    reducer.apply([MoveChange(id=a.id, position=Position(x=5, y=6))])

    view = state.view()
    assert view.get_node(a.id).position == Position(x=5, y=6)
    assert [n.id for n in view.nodes].index(a.id) == 1


def test_move_without_position_is_a_noop(graph):
    state, reducer, a, _, _ = graph
    reducer.apply([MoveChange(id=a.id)])
    assert state.view().get_node(a.id).position == Position(x=100, y=0)


def test_move_of_absent_id_is_a_noop(graph):
    state, reducer, _, _, _ = graph
    before = state.view().snapshot()
    reducer.apply([MoveChange(id="missing", position=Position(x=1, y=1))])
    assert state.view().nodes == before.nodes


def test_move_then_remove_removes(graph):
    state, reducer, a, _, _ = graph
    reducer.apply([MoveChange(id=a.id, position=Position(x=1, y=1)), RemoveChange(id=a.id)])
    assert state.view().get_node(a.id) is None


def test_remove_then_move_removes(graph):
    state, reducer, a, _, _ = graph
    reducer.apply([RemoveChange(id=a.id), MoveChange(id=a.id, position=Position(x=1, y=1))])
    assert state.view().get_node(a.id) is None


def test_remove_edge(graph):
    state, reducer, _, _, c = graph
    edge = next(e for e in state.view().edges if e.target_id == c.id)
    reducer.apply([RemoveChange(id=edge.id)])
    assert state.view().get_edge(edge.id) is None
    assert state.view().get_node(c.id) is not None


def test_rename(graph):
    state, reducer, a, _, _ = graph
    reducer.apply([RenameChange(id=a.id, label="Goals")])
    assert state.view().get_node(a.id).label == "Goals"


def test_batch_commits_once(graph):
    state, reducer, a, b, _ = graph
    calls = []
    state.on_change(lambda: calls.append(1))
    reducer.apply([
        MoveChange(id=a.id, position=Position(x=1, y=1)),
        MoveChange(id=b.id, position=Position(x=2, y=2)),
    ])
    assert calls == [1]


def test_empty_batch_does_not_commit(graph):
    state, reducer, _, _, _ = graph
    calls = []
    state.on_change(lambda: calls.append(1))
    reducer.apply([])
    assert calls == []


def test_node_removal_does_not_cascade():
    """
    Removing a node leaves its incident edges and its children behind.

    This is the current contract and a known defect: the caller must submit
    the cascade in the same batch, or use remove_subtree().
    """
    state = GraphState()
    factory = ChildNodeFactory(state.writer())
    reducer = ChangeReducer(state.writer())

    n1, e1 = factory.add_child("root", Position(x=100, y=0))
    n2, e2 = factory.add_child(n1, Position(x=200, y=0))
    assert (e1.source_id, e1.target_id) == ("root", n1.id)
    assert (e2.source_id, e2.target_id) == (n1.id, n2.id)

    reducer.apply([RemoveChange(id=n1.id)])

    view = state.view()
    assert view.get_node(n1.id) is None
    assert view.get_edge(e1.id) is not None
    assert view.get_edge(e2.id) is not None
    assert view.get_node(n2.id) is not None
    assert view.get_node(n2.id).parent_id == n1.id


class TestCascadeRemoval:

    def test_batch_covers_subtree_and_incident_edges(self, graph):
        state, reducer, a, b, c = graph
        batch = reducer.cascade_removal(a.id)

        removed = {change.id for change in batch}
        edge_ids = {e.id for e in state.view().edges if e.target_id in (a.id, b.id)}
        assert removed == {a.id, b.id} | edge_ids
        assert all(isinstance(change, RemoveChange) for change in batch)

    def test_remove_subtree_keeps_a_valid_tree(self, graph):
        state, reducer, a, b, c = graph
        reducer.remove_subtree(a.id)

        view = state.view()
        assert [n.id for n in view.nodes] == ["root", c.id]
        assert_tree(view)

    def test_root_cannot_be_removed(self, graph):
        _, reducer, _, _, _ = graph
        with pytest.raises(PreconditionError):
            reducer.cascade_removal("root")

    def test_absent_node(self, graph):
        _, reducer, _, _, _ = graph
        with pytest.raises(PreconditionError):
            reducer.remove_subtree("missing")

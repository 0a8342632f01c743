"""Tests for the directed interaction graph."""
from __future__ import annotations

import pytest

from agora_lite.graph.adjacency import Graph


class TestGraphBasics:
    def test_empty_graph(self) -> None:
        g: Graph[str] = Graph()
        assert g.node_count == 0
        assert g.edge_count == 0
        assert list(g.nodes()) == []
        assert list(g.edges()) == []

    def test_add_node_idempotent(self) -> None:
        g: Graph[str] = Graph()
        g.add_node("A")
        g.add_node("A")
        assert "A" in g
        assert len(g) == 1

    def test_interactions_accumulate(self, replies: Graph[str]) -> None:
        assert replies.weight("u1", "op") == 2
        assert replies.weight("u2", "op") == 1
        assert replies.weight("op", "u2") == 0
        assert replies.edge_count == 3
        assert replies.out_weight("u1") == 2

    def test_successors_and_predecessors(self, replies: Graph[str]) -> None:
        assert replies.successors("u1") == {"op": 2}
        assert replies.predecessors("op") == {"u1", "u2"}
        assert replies.in_degree("op") == 2
        assert replies.out_degree("op") == 1
        assert replies.successors("missing") == {}

    def test_successors_is_a_copy(self, replies: Graph[str]) -> None:
        replies.successors("u1")["op"] = 100
        assert replies.weight("u1", "op") == 2

    def test_self_interaction_dropped(self) -> None:
        g: Graph[str] = Graph()
        g.add_interaction("me", "me")
        assert g.has_node("me")
        assert not g.has_edge("me", "me")
        assert g.edge_count == 0

    def test_weighted_interaction(self) -> None:
        g: Graph[str] = Graph()
        g.add_interaction("a", "b", count=5)
        assert g.weight("a", "b") == 5
        with pytest.raises(ValueError):
            g.add_interaction("a", "b", count=0)

    def test_remove_edge(self, replies: Graph[str]) -> None:
        replies.remove_edge("u1", "op")
        assert not replies.has_edge("u1", "op")
        assert replies.predecessors("op") == {"u2"}
        with pytest.raises(ValueError, match="not found"):
            replies.remove_edge("u1", "op")

    def test_edges_and_repr(self, replies: Graph[str]) -> None:
        assert sorted(replies.edges()) == [("op", "u1", 1), ("u1", "op", 2), ("u2", "op", 1)]
        assert repr(replies) == "Graph(nodes=3, edges=3)"

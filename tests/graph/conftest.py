"""Shared fixtures for graph tests."""
from __future__ import annotations

import random

import pytest

from agora_lite.graph.adjacency import Graph
from agora_lite.graph.social import SocialGraph

SEED = 42

FRIENDSHIPS = [
    ("alice", "bob"),
    ("alice", "carol"),
    ("bob", "dave"),
    ("carol", "dave"),
    ("bob", "erin"),
    ("erin", "frank"),
    ("frank", "gina"),
]


@pytest.fixture
def friends() -> SocialGraph[str]:
    """
    alice - bob - erin - frank - gina
      |      |
    carol - dave
    """
    return SocialGraph.from_edges(FRIENDSHIPS)


@pytest.fixture
def triangle() -> dict[str, frozenset[str]]:
    return {
        "a": frozenset({"b", "c"}),
        "b": frozenset({"a", "c"}),
        "c": frozenset({"a", "b"}),
    }


@pytest.fixture
def random_social_graph() -> SocialGraph[int]:
    rng = random.Random(SEED)
    g: SocialGraph[int] = SocialGraph()
    for node in range(60):
        g.add_node(node)
    for _ in range(180):
        g.add_edge(rng.randrange(60), rng.randrange(60))
    return g


@pytest.fixture
def replies() -> Graph[str]:
    """Directed reply graph: u1 and u2 reply to op, op replies to u1."""
    return Graph.from_interactions([("u1", "op"), ("u2", "op"), ("u1", "op"), ("op", "u1")])

"""Directed interaction graph: who engages with whom, and how often.

Nodes are any hashable id (user id, post id). An edge u -> v means "u
interacted with v" (replied to, upvoted, quoted); repeated interactions
accumulate as an integer weight on the edge instead of duplicating it.
A reverse map keeps predecessors so in-degree style queries are O(1).

This is the input of the authority (PageRank) score in
agora_lite.ranking.authority. Friendship, which is symmetric, lives in
SocialGraph instead.
"""
from __future__ import annotations

from typing import Generic, Hashable, Iterator, TypeVar

T = TypeVar("T", bound=Hashable)


class Graph(Generic[T]):
    """Weighted directed graph backed by nested dicts.

    ``_out[u][v]`` is the number of recorded u -> v interactions;
    ``_in[v]`` is the set of u with an edge into v.
    """

    __slots__ = ("_out", "_in")

    def __init__(self) -> None:
        self._out: dict[T, dict[T, int]] = {}
        self._in: dict[T, set[T]] = {}

    @classmethod
    def from_interactions(cls, pairs) -> "Graph[T]":
        """Build from an iterable of (source, target) pairs."""
        g: Graph[T] = cls()
        for src, dst in pairs:
            g.add_interaction(src, dst)
        return g

    # ---- mutation --------------------------------------------------------

    def add_node(self, node: T) -> None:
        if node not in self._out:
            self._out[node] = {}
            self._in[node] = set()

    def add_interaction(self, src: T, dst: T, count: int = 1) -> None:
        """Record *count* interactions src -> dst.

        Self-interactions (a user replying in their own thread) carry no
        authority signal and are dropped.
        """
        if count <= 0:
            raise ValueError(f"count must be positive, got {count}")
        self.add_node(src)
        self.add_node(dst)
        if src == dst:
            return
        out = self._out[src]
        out[dst] = out.get(dst, 0) + count
        self._in[dst].add(src)

    def remove_edge(self, src: T, dst: T) -> None:
        """Drop the src -> dst edge and all of its weight."""
        try:
            del self._out[src][dst]
            self._in[dst].discard(src)
        except KeyError:
            raise ValueError(f"Edge {src!r} -> {dst!r} not found") from None

    # ---- queries ---------------------------------------------------------

    def has_node(self, node: T) -> bool:
        return node in self._out

    def has_edge(self, src: T, dst: T) -> bool:
        return dst in self._out.get(src, {})

    def weight(self, src: T, dst: T) -> int:
        return self._out.get(src, {}).get(dst, 0)

    def successors(self, node: T) -> dict[T, int]:
        """Targets of *node* mapped to interaction counts (a copy)."""
        return dict(self._out.get(node, {}))

    def predecessors(self, node: T) -> set[T]:
        return set(self._in.get(node, ()))

    def out_weight(self, node: T) -> int:
        """Total interactions initiated by *node*."""
        return sum(self._out.get(node, {}).values())

    def in_degree(self, node: T) -> int:
        return len(self._in.get(node, ()))

    def out_degree(self, node: T) -> int:
        return len(self._out.get(node, {}))

    def nodes(self) -> Iterator[T]:
        return iter(self._out)

    def edges(self) -> Iterator[tuple[T, T, int]]:
        for src, targets in self._out.items():
            for dst, w in targets.items():
                yield src, dst, w

    @property
    def node_count(self) -> int:
        return len(self._out)

    @property
    def edge_count(self) -> int:
        return sum(len(t) for t in self._out.values())

    # ---- dunder ----------------------------------------------------------

    def __contains__(self, node: object) -> bool:
        return node in self._out

    def __len__(self) -> int:
        return self.node_count

    def __repr__(self) -> str:
        return f"Graph(nodes={self.node_count}, edges={self.edge_count})"

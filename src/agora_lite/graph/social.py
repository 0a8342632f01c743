"""Undirected friendship graph with friend recommendations.

The graph is rebuilt at startup from persisted accepted friendships and
then kept current as new requests are accepted. Node ids can be any
hashable, orderable value (UUIDs, ints, usernames); ordering is only
used to break score ties deterministically.

Thread safety strategy: copy-on-write neighbour sets. Each node maps to
a frozenset that is replaced, never mutated, under the write lock. A
snapshot is then just a shallow dict copy taken under the read lock, and
recommendation queries run on it without holding any lock. They may
miss an edge accepted a moment ago; for suggestions that is fine.

Recommendation signals for a candidate c (a non-neighbour within two
hops of the user u):

    jaccard      overlap of N(u) and N(c)
    pagerank     random-walk-with-restart probability of c from u
    adamic_adar  mutual friends weighted by 1 / ln(degree)

Each signal is min-max normalised across the candidate set, then mixed
with RecommendationWeights (equal thirds by default).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Generic, Hashable, Iterable, Iterator, TypeVar

from agora_lite.concurrency.rwlock import ReadWriteLock
from agora_lite.domain.errors import InvalidConfiguration
from agora_lite.graph import link_prediction as lp

log = logging.getLogger(__name__)

T = TypeVar("T", bound=Hashable)


@dataclass(frozen=True, slots=True)
class RecommendationWeights:
    jaccard: float = 1.0 / 3.0
    pagerank: float = 1.0 / 3.0
    adamic_adar: float = 1.0 / 3.0

    def __post_init__(self) -> None:
        weights = (self.jaccard, self.pagerank, self.adamic_adar)
        if any(w < 0 for w in weights) or sum(weights) <= 0:
            raise InvalidConfiguration(
                f"weights must be non-negative with a positive sum, got {weights}"
            )


DEFAULT_WEIGHTS = RecommendationWeights()


@dataclass(frozen=True, slots=True)
class Recommendation(Generic[T]):
    node: T
    score: float          # weighted sum of the normalised signals
    jaccard: float        # raw signals, before normalisation
    pagerank: float
    adamic_adar: float


def _min_max(values: list[float]) -> list[float]:
    lo, hi = min(values), max(values)
    if hi == lo:
        return [1.0 if hi > 0 else 0.0] * len(values)
    span = hi - lo
    return [(v - lo) / span for v in values]


class SocialGraph(Generic[T]):
    """Thread-safe undirected, unweighted graph of friendships.

    Usage:
        g: SocialGraph[int] = SocialGraph.from_edges(accepted_pairs)
        g.add_edge(alice, bob)          # on accept
        g.recommend_friends(alice, 10)  # "people you may know"
    """

    __slots__ = ("_adj", "_lock", "_weights", "_restart", "_max_iterations")

    def __init__(
        self,
        weights: RecommendationWeights = DEFAULT_WEIGHTS,
        restart: float = lp.RESTART_PROBABILITY,
        max_iterations: int = lp.MAX_ITERATIONS,
    ) -> None:
        if not (0.0 < restart < 1.0):
            raise InvalidConfiguration(f"restart must be in (0, 1), got {restart}")
        if max_iterations < 1:
            raise InvalidConfiguration(f"max_iterations must be >= 1, got {max_iterations}")
        self._adj: dict[T, frozenset[T]] = {}
        self._lock = ReadWriteLock()
        self._weights = weights
        self._restart = restart
        self._max_iterations = max_iterations

    @classmethod
    def from_edges(cls, pairs: Iterable[tuple[T, T]], **kwargs) -> "SocialGraph[T]":
        g: SocialGraph[T] = cls(**kwargs)
        for a, b in pairs:
            g.add_edge(a, b)
        return g

    # ---- mutation --------------------------------------------------------

    def add_node(self, node: T) -> None:
        with self._lock.write():
            self._adj.setdefault(node, frozenset())

    def add_edge(self, a: T, b: T) -> bool:
        """Link *a* and *b* both ways. Returns False if nothing changed.

        Idempotent. Self loops are ignored: they would count a user as
        their own mutual friend and inflate their degree.
        """
        if a == b:
            log.debug("ignoring self loop on %r", a)
            return False
        with self._lock.write():
            na = self._adj.get(a, frozenset())
            if b in na:
                return False
            self._adj[a] = na | {b}
            self._adj[b] = self._adj.get(b, frozenset()) | {a}
            return True

    def remove_edge(self, a: T, b: T) -> None:
        """Unlink *a* and *b* (unfriend). Both nodes stay in the graph."""
        with self._lock.write():
            if b not in self._adj.get(a, frozenset()):
                raise ValueError(f"Edge {a!r} -- {b!r} not found")
            self._adj[a] = self._adj[a] - {b}
            self._adj[b] = self._adj[b] - {a}

    # ---- queries ---------------------------------------------------------

    def snapshot(self) -> dict[T, frozenset[T]]:
        """Point-in-time adjacency; safe to read without locks."""
        with self._lock.read():
            return dict(self._adj)

    def neighbors(self, node: T) -> frozenset[T]:
        with self._lock.read():
            return self._adj.get(node, frozenset())

    def degree(self, node: T) -> int:
        return len(self.neighbors(node))

    def has_edge(self, a: T, b: T) -> bool:
        return b in self.neighbors(a)

    def has_node(self, node: T) -> bool:
        with self._lock.read():
            return node in self._adj

    def nodes(self) -> Iterator[T]:
        return iter(self.snapshot())

    @property
    def node_count(self) -> int:
        with self._lock.read():
            return len(self._adj)

    @property
    def edge_count(self) -> int:
        with self._lock.read():
            return sum(len(n) for n in self._adj.values()) // 2

    def jaccard_similarity(self, a: T, b: T) -> float:
        return lp.jaccard_similarity(self.snapshot(), a, b)

    def adamic_adar_index(self, a: T, b: T) -> float:
        return lp.adamic_adar_index(self.snapshot(), a, b)

    def personalized_pagerank(self, source: T) -> dict[T, float]:
        return lp.personalized_pagerank(
            self.snapshot(), source, self._restart, self._max_iterations
        ).scores

    def social_distance(self, a: T, b: T) -> int | None:
        return lp.social_distance(self.snapshot(), a, b)

    def clustering_coefficient(self, node: T | None = None) -> float:
        """Local coefficient of *node*, or the global one when omitted."""
        adjacency = self.snapshot()
        if node is None:
            return lp.global_clustering_coefficient(adjacency)
        return lp.local_clustering_coefficient(adjacency, node)

    # ---- recommendations -------------------------------------------------

    def recommend_with_scores(self, node: T, limit: int) -> list[Recommendation[T]]:
        """Ranked candidates for *node* together with their signals."""
        if limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")
        adjacency = self.snapshot()
        friends = adjacency.get(node, frozenset())
        if not friends or limit == 0:
            return []

        candidates = sorted(
            {c for f in friends for c in adjacency[f]} - friends - {node}
        )
        if not candidates:
            return []

        walk = lp.personalized_pagerank(
            adjacency, node, self._restart, self._max_iterations
        ).scores
        jac = [lp.jaccard_similarity(adjacency, node, c) for c in candidates]
        ppr = [walk.get(c, 0.0) for c in candidates]
        aa = [lp.adamic_adar_index(adjacency, node, c) for c in candidates]

        w = self._weights
        combined = [
            w.jaccard * j + w.pagerank * p + w.adamic_adar * a
            for j, p, a in zip(_min_max(jac), _min_max(ppr), _min_max(aa))
        ]
        ranked = sorted(
            (
                Recommendation(c, s, j, p, a)
                for c, s, j, p, a in zip(candidates, combined, jac, ppr, aa)
            ),
            key=lambda r: (-r.score, r.node),
        )
        return ranked[:limit]

    def recommend_friends(self, node: T, limit: int) -> list[T]:
        """Up to *limit* suggested friends for *node*, best first.

        Never returns *node* itself or an existing friend. An isolated or
        unknown node gets an empty list.
        """
        return [r.node for r in self.recommend_with_scores(node, limit)]

    def __contains__(self, node: object) -> bool:
        return self.has_node(node)  # type: ignore[arg-type]

    def __len__(self) -> int:
        return self.node_count

    def __repr__(self) -> str:
        return f"SocialGraph(nodes={self.node_count}, edges={self.edge_count})"

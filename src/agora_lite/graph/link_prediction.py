"""Link-prediction signals over an undirected adjacency mapping.

All functions take ``adjacency: Mapping[T, AbstractSet[T]]`` (what
SocialGraph.snapshot() returns) and never mutate it. Unknown nodes are
treated as isolated, not as errors.

    jaccard_similarity   |N(a) & N(b)| / |N(a) | N(b)|
    adamic_adar_index    sum over common neighbours z of 1 / ln|N(z)|
    personalized_pagerank
                         random walk with restart to a source node
"""
from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass, field
from typing import AbstractSet, Generic, Hashable, Mapping, TypeVar

from agora_lite.domain.errors import InvalidConfiguration

log = logging.getLogger(__name__)

T = TypeVar("T", bound=Hashable)

Adjacency = Mapping[T, AbstractSet[T]]

RESTART_PROBABILITY = 0.15
MAX_ITERATIONS = 200
TOLERANCE = 1e-8

_EMPTY: frozenset = frozenset()


def jaccard_similarity(adjacency: Adjacency[T], a: T, b: T) -> float:
    """Overlap of two neighbour sets; 0.0 when both are empty."""
    na = adjacency.get(a, _EMPTY)
    nb = adjacency.get(b, _EMPTY)
    union = len(na | nb)
    if union == 0:
        return 0.0
    return len(na & nb) / union


def adamic_adar_index(adjacency: Adjacency[T], a: T, b: T) -> float:
    """Common neighbours weighted by rarity.

    A mutual friend with 3 friends says more about a and b than a mutual
    friend with 3000. Degree-1 neighbours cannot be common to two
    distinct nodes, so ln(degree) is always positive here.
    """
    common = adjacency.get(a, _EMPTY) & adjacency.get(b, _EMPTY)
    score = 0.0
    for z in common:
        degree = len(adjacency.get(z, _EMPTY))
        if degree > 1:
            score += 1.0 / math.log(degree)
    return score


def component_of(adjacency: Adjacency[T], source: T) -> list[T]:
    """Nodes reachable from *source*, in BFS order."""
    if source not in adjacency:
        return []
    seen = {source}
    order = [source]
    queue = deque([source])
    while queue:
        u = queue.popleft()
        for v in adjacency.get(u, _EMPTY):
            if v not in seen:
                seen.add(v)
                order.append(v)
                queue.append(v)
    return order


def social_distance(adjacency: Adjacency[T], a: T, b: T) -> int | None:
    """Hop count of the shortest path a..b, or None if unreachable."""
    if a not in adjacency or b not in adjacency:
        return None
    if a == b:
        return 0
    dist = {a: 0}
    queue = deque([a])
    while queue:
        u = queue.popleft()
        for v in adjacency.get(u, _EMPTY):
            if v not in dist:
                if v == b:
                    return dist[u] + 1
                dist[v] = dist[u] + 1
                queue.append(v)
    return None


@dataclass(slots=True)
class WalkScores(Generic[T]):
    """Personalized PageRank output: visit probabilities from one source."""
    scores: dict[T, float] = field(default_factory=dict)
    iterations: int = 0
    converged: bool = True


def personalized_pagerank(
    adjacency: Adjacency[T],
    source: T,
    restart: float = RESTART_PROBABILITY,
    max_iterations: int = MAX_ITERATIONS,
    tolerance: float = TOLERANCE,
) -> WalkScores[T]:
    """Random walk with restart rooted at *source*.

        r = restart * e_source + (1 - restart) * sum_{u ~ v} r(u) / deg(u)

    Only the source's connected component can hold probability mass, so
    the iteration runs there. It stops after ``max_iterations`` rounds or
    once the L1 change falls below ``tolerance``. The change shrinks by
    about (1 - restart) per round, so the defaults need ~115 rounds.
    """
    if not (0.0 < restart < 1.0):
        raise InvalidConfiguration(f"restart must be in (0, 1), got {restart}")
    if max_iterations < 1:
        raise InvalidConfiguration(f"max_iterations must be >= 1, got {max_iterations}")

    nodes = component_of(adjacency, source)
    if not nodes:
        return WalkScores()
    if len(nodes) == 1:
        return WalkScores(scores={source: 1.0})

    degree = {u: len(adjacency[u]) for u in nodes}
    ranks = dict.fromkeys(nodes, 0.0)
    ranks[source] = 1.0
    walk = 1.0 - restart
    iterations = 0
    delta = float("inf")

    while iterations < max_iterations:
        iterations += 1
        new_ranks = dict.fromkeys(nodes, 0.0)
        for u in nodes:
            share = walk * ranks[u] / degree[u]
            for v in adjacency[u]:
                new_ranks[v] += share
        new_ranks[source] += restart
        delta = sum(abs(new_ranks[u] - ranks[u]) for u in nodes)
        ranks = new_ranks
        if delta < tolerance:
            break

    converged = delta < tolerance
    log.debug("personalized pagerank from %r: %d iterations, converged=%s", source, iterations, converged)
    return WalkScores(scores=ranks, iterations=iterations, converged=converged)


def local_clustering_coefficient(adjacency: Adjacency[T], node: T) -> float:
    """Fraction of a node's neighbour pairs that are themselves linked."""
    neighbors = list(adjacency.get(node, _EMPTY))
    k = len(neighbors)
    if k < 2:
        return 0.0
    links = sum(
        1
        for i in range(k)
        for j in range(i + 1, k)
        if neighbors[j] in adjacency.get(neighbors[i], _EMPTY)
    )
    return 2.0 * links / (k * (k - 1))


def global_clustering_coefficient(adjacency: Adjacency[T]) -> float:
    """3 * triangles / connected triples over the whole graph."""
    closed = 0
    triples = 0
    for nbrs in adjacency.values():
        neighbors = list(nbrs)
        k = len(neighbors)
        triples += k * (k - 1) // 2
        for i in range(k):
            adj_i = adjacency.get(neighbors[i], _EMPTY)
            for j in range(i + 1, k):
                if neighbors[j] in adj_i:
                    closed += 1
    # each triangle is counted once per corner, i.e. 3 times
    return closed / triples if triples else 0.0

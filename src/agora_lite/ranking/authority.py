"""Authority score: PageRank over the interaction graph.

    PR(v) = (1 - d) / N + d * sum_{u -> v} PR(u) * w(u, v) / W(u)

where w(u, v) is the number of u -> v interactions and W(u) the total
interactions u initiated. Users who never interact with anyone
(dangling nodes) spread their mass uniformly, so the vector always sums
to 1.

Power iteration stops at ``max_iterations`` or as soon as the L1 distance
between successive vectors drops below ``tolerance``, whichever comes
first. The result records which of the two happened.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Generic, Hashable, TypeVar

from agora_lite.domain.errors import InvalidConfiguration
from agora_lite.graph.adjacency import Graph

log = logging.getLogger(__name__)

T = TypeVar("T", bound=Hashable)

DAMPING_FACTOR = 0.85
MAX_ITERATIONS = 100
TOLERANCE = 1e-6


@dataclass(slots=True)
class AuthorityResult(Generic[T]):
    scores: dict[T, float] = field(default_factory=dict)
    iterations: int = 0
    converged: bool = True
    delta: float = 0.0          # L1 change of the last iteration

    def top(self, k: int) -> list[tuple[T, float]]:
        """Highest *k* scores, ties broken by node order."""
        return sorted(self.scores.items(), key=lambda kv: (-kv[1], kv[0]))[:k]


def authority_scores(
    graph: Graph[T],
    damping: float = DAMPING_FACTOR,
    max_iterations: int = MAX_ITERATIONS,
    tolerance: float = TOLERANCE,
) -> AuthorityResult[T]:
    """Stationary importance of every node in *graph*.

    An empty graph yields an empty, converged result.
    """
    if not (0.0 < damping < 1.0):
        raise InvalidConfiguration(f"damping must be in (0, 1), got {damping}")
    if max_iterations < 1:
        raise InvalidConfiguration(f"max_iterations must be >= 1, got {max_iterations}")
    if tolerance <= 0:
        raise InvalidConfiguration(f"tolerance must be positive, got {tolerance}")

    nodes = list(graph.nodes())
    n = len(nodes)
    if n == 0:
        return AuthorityResult()

    out_weight = {u: graph.out_weight(u) for u in nodes}
    incoming = {
        v: [(u, graph.weight(u, v) / out_weight[u]) for u in graph.predecessors(v)]
        for v in nodes
    }
    dangling = [u for u in nodes if out_weight[u] == 0]

    ranks = dict.fromkeys(nodes, 1.0 / n)
    base = (1.0 - damping) / n
    delta = float("inf")
    iterations = 0

    while iterations < max_iterations:
        iterations += 1
        dangling_share = damping * sum(ranks[u] for u in dangling) / n
        new_ranks = {
            v: base + dangling_share + damping * sum(ranks[u] * share for u, share in incoming[v])
            for v in nodes
        }
        delta = sum(abs(new_ranks[v] - ranks[v]) for v in nodes)
        ranks = new_ranks
        if delta < tolerance:
            break

    converged = delta < tolerance
    log.debug(
        "authority scores: %d nodes, %d iterations, delta=%.3g, converged=%s",
        n, iterations, delta, converged,
    )
    return AuthorityResult(scores=ranks, iterations=iterations, converged=converged, delta=delta)

"""Popularity and ranking functions.

Public API:
    hot_score, wilson_score, bayesian_average, decay_weight,
    controversy_score, trending_score, combined_score: pure scores
    authority_scores: PageRank over an interaction Graph
"""

from agora_lite.ranking.authority import AuthorityResult, authority_scores
from agora_lite.ranking.popularity import (
    RankingParams,
    apply_time_decay,
    bayesian_average,
    combined_score,
    controversy_score,
    decay_rate,
    decay_weight,
    hot_score,
    trending_score,
    wilson_score,
    z_for_confidence,
)

__all__ = [
    "AuthorityResult",
    "RankingParams",
    "apply_time_decay",
    "authority_scores",
    "bayesian_average",
    "combined_score",
    "controversy_score",
    "decay_rate",
    "decay_weight",
    "hot_score",
    "trending_score",
    "wilson_score",
    "z_for_confidence",
]

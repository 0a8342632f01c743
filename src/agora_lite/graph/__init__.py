"""Graph structures and algorithms for the social features."""

from agora_lite.graph.adjacency import Graph
from agora_lite.graph.link_prediction import (
    WalkScores,
    adamic_adar_index,
    global_clustering_coefficient,
    jaccard_similarity,
    local_clustering_coefficient,
    personalized_pagerank,
    social_distance,
)
from agora_lite.graph.social import (
    DEFAULT_WEIGHTS,
    Recommendation,
    RecommendationWeights,
    SocialGraph,
)

__all__ = [
    "DEFAULT_WEIGHTS",
    "Graph",
    "Recommendation",
    "RecommendationWeights",
    "SocialGraph",
    "WalkScores",
    "adamic_adar_index",
    "global_clustering_coefficient",
    "jaccard_similarity",
    "local_clustering_coefficient",
    "personalized_pagerank",
    "social_distance",
]

"""Tests for link-prediction signals over adjacency mappings."""
from __future__ import annotations

import math

import pytest

from agora_lite.domain.errors import InvalidConfiguration
from agora_lite.graph.link_prediction import (
    MAX_ITERATIONS,
    adamic_adar_index,
    component_of,
    global_clustering_coefficient,
    jaccard_similarity,
    local_clustering_coefficient,
    personalized_pagerank,
    social_distance,
)

PATH = {
    1: frozenset({2}),
    2: frozenset({1, 3}),
    3: frozenset({2, 4}),
    4: frozenset({3}),
    9: frozenset(),
}


class TestSimilarity:
    def test_jaccard(self, friends):
        adjacency = friends.snapshot()
        assert jaccard_similarity(adjacency, "alice", "dave") == 1.0
        assert jaccard_similarity(adjacency, "alice", "erin") == pytest.approx(1 / 3)
        assert jaccard_similarity(adjacency, "alice", "gina") == 0.0

    def test_jaccard_empty_sets(self):
        assert jaccard_similarity({}, "x", "y") == 0.0

    def test_adamic_adar(self, friends):
        adjacency = friends.snapshot()
        # bob has 3 friends, carol 2
        expected = 1 / math.log(3) + 1 / math.log(2)
        assert adamic_adar_index(adjacency, "alice", "dave") == pytest.approx(expected)
        assert adamic_adar_index(adjacency, "alice", "gina") == 0.0
        assert adamic_adar_index(adjacency, "nobody", "alice") == 0.0


class TestDistance:
    def test_component(self):
        assert component_of(PATH, 1) == [1, 2, 3, 4]
        assert component_of(PATH, 9) == [9]
        assert component_of(PATH, 42) == []

    def test_social_distance(self):
        assert social_distance(PATH, 1, 1) == 0
        assert social_distance(PATH, 1, 4) == 3
        assert social_distance(PATH, 1, 9) is None
        assert social_distance(PATH, 1, 42) is None


class TestPersonalizedPageRank:
    @pytest.mark.parametrize("source", ["alice", "gina"])
    def test_defaults_converge_on_friends(self, friends, source):
        result = personalized_pagerank(friends.snapshot(), source)
        assert result.converged
        assert result.iterations < MAX_ITERATIONS

    def test_defaults_converge_on_path(self):
        result = personalized_pagerank(PATH, 1)
        assert result.converged
        assert result.iterations < MAX_ITERATIONS

    def test_mass_is_conserved(self, friends):
        result = personalized_pagerank(friends.snapshot(), "alice")
        assert sum(result.scores.values()) == pytest.approx(1.0)
        assert result.converged

    def test_source_and_nearby_nodes_score_highest(self, friends):
        scores = personalized_pagerank(friends.snapshot(), "alice").scores
        assert max(scores, key=scores.get) == "alice"
        assert scores["dave"] > scores["gina"]

    def test_only_component_gets_mass(self):
        scores = personalized_pagerank(PATH, 1).scores
        assert 9 not in scores
        assert set(scores) == {1, 2, 3, 4}

    def test_isolated_and_unknown_source(self):
        assert personalized_pagerank(PATH, 9).scores == {9: 1.0}
        assert personalized_pagerank(PATH, 42).scores == {}

    def test_iteration_bound(self, friends):
        result = personalized_pagerank(friends.snapshot(), "alice", max_iterations=3, tolerance=1e-30)
        assert result.iterations == 3
        assert not result.converged

    @pytest.mark.parametrize("kwargs", [{"restart": 0.0}, {"restart": 1.0}, {"max_iterations": 0}])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(InvalidConfiguration):
            personalized_pagerank(PATH, 1, **kwargs)


class TestClustering:
    def test_triangle(self, triangle):
        assert local_clustering_coefficient(triangle, "a") == 1.0
        assert global_clustering_coefficient(triangle) == 1.0

    def test_path_has_no_triangles(self):
        assert local_clustering_coefficient(PATH, 2) == 0.0
        assert global_clustering_coefficient(PATH) == 0.0

    def test_low_degree(self):
        assert local_clustering_coefficient(PATH, 1) == 0.0
        assert global_clustering_coefficient({}) == 0.0

    def test_partial(self):
        # triangle a-b-c plus a pendant d on a
        adjacency = {
            "a": frozenset({"b", "c", "d"}),
            "b": frozenset({"a", "c"}),
            "c": frozenset({"a", "b"}),
            "d": frozenset({"a"}),
        }
        assert local_clustering_coefficient(adjacency, "a") == pytest.approx(1 / 3)
        # 3 closed corners over 3 + 1 + 1 triples
        assert global_clustering_coefficient(adjacency) == pytest.approx(3 / 5)

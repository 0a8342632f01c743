"""Probabilistic membership filter.

Public API:
    BloomFilter: no false negatives, tunable false positive rate
"""

from agora_lite.analytics.bloom import BloomFilter, optimal_hashes, optimal_size

__all__ = [
    "BloomFilter",
    "optimal_hashes",
    "optimal_size",
]

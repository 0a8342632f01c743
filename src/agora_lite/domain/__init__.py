"""Shared domain types for agora-lite.

    from agora_lite.domain import InvalidConfiguration, Timestamp
"""
from agora_lite.domain.errors import InvalidConfiguration
from agora_lite.domain.types import Millis, RateKey, Timestamp

__all__ = [
    "InvalidConfiguration",
    "Millis",
    "RateKey",
    "Timestamp",
]

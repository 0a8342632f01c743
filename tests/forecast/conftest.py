"""Shared fixtures for forecast tests."""
from __future__ import annotations

import random

import pytest

SEED = 42


@pytest.fixture
def hourly_history() -> list[float]:
    """A week of hourly latency samples with a daily cycle."""
    rng = random.Random(SEED)
    return [
        60.0 + 20.0 * ((hour % 24) / 23.0) + rng.gauss(0.0, 4.0)
        for hour in range(168)
    ]

"""Error types shared by every component."""
from __future__ import annotations


class InvalidConfiguration(ValueError):
    """A component was constructed with parameters it cannot work with.

    Raised eagerly at construction time (non-positive capacity, a
    false-positive target outside (0, 1), a non-positive refill
    interval, ...). Values are never clamped into range silently.
    """

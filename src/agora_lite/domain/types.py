"""Shared type aliases used across the engine."""
from __future__ import annotations

from typing import TypeAlias

Timestamp: TypeAlias = float    # Unix epoch seconds
Millis: TypeAlias = float       # monotonic milliseconds
RateKey: TypeAlias = str        # IP address, user id, ...

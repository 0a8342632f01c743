"""Online estimation of noisy scalar signals.

Public API:
    LatencyEstimator: thread-safe scalar Kalman filter
    SampleHistory: bounded ring buffer of timestamped samples
    LatencyMonitor: estimator + history + load forecast
"""

from agora_lite.estimation.history import LatencyStatistics, Sample, SampleHistory
from agora_lite.estimation.kalman import FilterState, KalmanParams, LatencyEstimator
from agora_lite.estimation.monitor import LatencyMonitor

__all__ = [
    "FilterState",
    "KalmanParams",
    "LatencyEstimator",
    "LatencyMonitor",
    "LatencyStatistics",
    "Sample",
    "SampleHistory",
]

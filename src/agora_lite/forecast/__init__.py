"""Probabilistic forecasting.

Public API:
    predict_load: Monte Carlo load forecast, None on short history
    MonteCarloSimulator: generic sampling, probabilities, A/B tests
"""

from agora_lite.forecast.montecarlo import (
    ABTestResult,
    LoadPrediction,
    MonteCarloSimulator,
    ProbabilityEstimate,
    SimulationResult,
    predict_load,
    wilson_interval,
)

__all__ = [
    "ABTestResult",
    "LoadPrediction",
    "MonteCarloSimulator",
    "ProbabilityEstimate",
    "SimulationResult",
    "predict_load",
    "wilson_interval",
]

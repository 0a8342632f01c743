"""Latency monitor: estimator, history and forecaster wired together.

One monitor per watched server. The periodic probe calls record() with
each measured round trip; request handlers read the smoothed estimate,
summary statistics, or an hour-by-hour load forecast built from the
last ``window`` samples (a week of hourly samples by default).
"""
from __future__ import annotations

from dataclasses import replace

from agora_lite.domain.errors import InvalidConfiguration
from agora_lite.domain.types import Timestamp
from agora_lite.estimation.history import LatencyStatistics, SampleHistory
from agora_lite.estimation.kalman import LatencyEstimator
from agora_lite.forecast.montecarlo import DEFAULT_TRIALS, LoadPrediction, predict_load

FORECAST_WINDOW = 168


class LatencyMonitor:
    def __init__(
        self,
        estimator: LatencyEstimator | None = None,
        history: SampleHistory | None = None,
        window: int = FORECAST_WINDOW,
    ) -> None:
        if window <= 0:
            raise InvalidConfiguration(f"window must be positive, got {window}")
        self._estimator = LatencyEstimator.for_latency() if estimator is None else estimator
        self._history = SampleHistory() if history is None else history
        self._window = window

    @property
    def estimator(self) -> LatencyEstimator:
        return self._estimator

    @property
    def history(self) -> SampleHistory:
        return self._history

    def record(self, measurement_ms: float, timestamp: Timestamp | None = None) -> float:
        """Feed one raw measurement; returns the smoothed estimate."""
        estimate = self._estimator.update(measurement_ms)
        self._history.append(measurement_ms, timestamp)
        return estimate

    def statistics(self) -> LatencyStatistics | None:
        stats = self._history.statistics()
        if stats is None:
            return None
        return replace(stats, predicted=self._estimator.estimate)

    def predict_load(
        self,
        hours_ahead: int,
        trials: int = DEFAULT_TRIALS,
        *,
        seed: int | None = None,
        workers: int = 1,
    ) -> LoadPrediction | None:
        """Forecast from the most recent window; None while history is short."""
        return predict_load(
            self._history.values(last=self._window),
            hours_ahead,
            trials,
            seed=seed,
            workers=workers,
        )

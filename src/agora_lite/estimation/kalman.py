"""Scalar Kalman filter for smoothing a noisy measurement stream.

The platform uses one instance per monitored signal, e.g. the ping
latency of a game server sampled once a minute. The hidden value is
modelled as a random walk (F = H = 1) observed with noise:

    predict:  P <- P + Q
    gain:     K  = P / (P + R)
    correct:  x <- x + K * (z - x)
              P <- (1 - K) * P

Q (process noise) controls how fast the estimate is allowed to drift,
R (measurement noise) how much a single sample is trusted. P is clamped
at COVARIANCE_FLOOR so repeated updates never divide by zero.

A background refresh calls update() while request threads read the
estimate; the (estimate, covariance, gain) triple is only ever changed
under the write side of a ReadWriteLock, so readers never see an
estimate paired with a stale covariance.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from agora_lite.concurrency.rwlock import ReadWriteLock
from agora_lite.domain.errors import InvalidConfiguration

log = logging.getLogger(__name__)

COVARIANCE_FLOOR = 1e-9


@dataclass(frozen=True, slots=True)
class KalmanParams:
    """Initial state and noise model of a LatencyEstimator."""
    initial_estimate: float = 50.0
    initial_covariance: float = 1000.0
    process_noise: float = 1.0
    measurement_noise: float = 10.0

    def __post_init__(self) -> None:
        for name in ("initial_estimate", "initial_covariance", "process_noise", "measurement_noise"):
            if not math.isfinite(getattr(self, name)):
                raise InvalidConfiguration(f"{name} must be finite")
        if self.initial_covariance <= 0:
            raise InvalidConfiguration("initial_covariance must be positive")
        if self.process_noise < 0:
            raise InvalidConfiguration("process_noise must be non-negative")
        if self.measurement_noise <= 0:
            raise InvalidConfiguration("measurement_noise must be positive")


@dataclass(frozen=True, slots=True)
class FilterState:
    """Consistent snapshot of an estimator."""
    estimate: float
    covariance: float
    gain: float
    measurement_count: int
    rmse: float
    confidence_lower: float
    confidence_upper: float

    @property
    def confidence(self) -> float:
        return 1.0 / (1.0 + self.covariance)


class LatencyEstimator:
    """Thread-safe one-dimensional Kalman filter.

    Usage:
        est = LatencyEstimator.for_latency()
        smoothed = est.update(measured_ms)
        if est.confidence() > 0.2:
            show(est.estimate)
    """

    def __init__(
        self,
        initial_estimate: float = 50.0,
        initial_covariance: float = 1000.0,
        process_noise: float = 1.0,
        measurement_noise: float = 10.0,
    ) -> None:
        self._params = KalmanParams(
            initial_estimate, initial_covariance, process_noise, measurement_noise
        )
        self._lock = ReadWriteLock()
        self._estimate = initial_estimate
        self._covariance = initial_covariance
        self._gain = 0.0
        self._count = 0
        self._sum_sq_error = 0.0

    @classmethod
    def from_params(cls, params: KalmanParams) -> "LatencyEstimator":
        return cls(
            params.initial_estimate,
            params.initial_covariance,
            params.process_noise,
            params.measurement_noise,
        )

    @classmethod
    def for_latency(cls) -> "LatencyEstimator":
        """Ping latency in ms: starts at 50 ms, knows almost nothing."""
        return cls(50.0, 1000.0, 1.0, 10.0)

    @classmethod
    def for_player_count(cls) -> "LatencyEstimator":
        """Online player counts: smoother, slower to move."""
        return cls(0.0, 100.0, 0.5, 5.0)

    @property
    def params(self) -> KalmanParams:
        return self._params

    # ---- state transitions -----------------------------------------------

    def predict(self) -> None:
        """Time update only: widen uncertainty for a skipped sample."""
        with self._lock.write():
            self._covariance += self._params.process_noise

    def update(self, measurement: float) -> float:
        """Fuse one measurement and return the corrected estimate."""
        if not math.isfinite(measurement):
            raise ValueError(f"measurement must be finite, got {measurement}")
        q = self._params.process_noise
        r = self._params.measurement_noise
        with self._lock.write():
            p = self._covariance + q
            k = p / (p + r)
            innovation = measurement - self._estimate
            self._estimate += k * innovation
            self._covariance = max(COVARIANCE_FLOOR, (1.0 - k) * p)
            self._gain = k
            self._count += 1
            self._sum_sq_error += innovation * innovation
            return self._estimate

    def reset(self, initial_estimate: float | None = None, initial_covariance: float | None = None) -> None:
        """Return to an initial state (the configured one by default)."""
        estimate = self._params.initial_estimate if initial_estimate is None else initial_estimate
        covariance = self._params.initial_covariance if initial_covariance is None else initial_covariance
        if not math.isfinite(estimate) or not (math.isfinite(covariance) and covariance > 0):
            raise InvalidConfiguration("reset needs a finite estimate and positive covariance")
        with self._lock.write():
            self._estimate = estimate
            self._covariance = covariance
            self._gain = 0.0
            self._count = 0
            self._sum_sq_error = 0.0
        log.info("estimator reset to %.3f (P=%.3f)", estimate, covariance)

    # ---- reads -----------------------------------------------------------

    @property
    def estimate(self) -> float:
        with self._lock.read():
            return self._estimate

    @property
    def covariance(self) -> float:
        with self._lock.read():
            return self._covariance

    @property
    def gain(self) -> float:
        """Last Kalman gain; near 1 trusts measurements, near 0 the model."""
        with self._lock.read():
            return self._gain

    @property
    def measurement_count(self) -> int:
        with self._lock.read():
            return self._count

    def confidence(self) -> float:
        """1 / (1 + P): approaches 1 as the covariance shrinks."""
        with self._lock.read():
            return 1.0 / (1.0 + self._covariance)

    def rmse(self) -> float:
        """Root mean square of the innovations seen so far."""
        with self._lock.read():
            if self._count == 0:
                return 0.0
            return math.sqrt(self._sum_sq_error / self._count)

    def confidence_interval(self, sigmas: float = 1.96) -> tuple[float, float]:
        with self._lock.read():
            spread = sigmas * math.sqrt(self._covariance)
            return self._estimate - spread, self._estimate + spread

    def state(self) -> FilterState:
        with self._lock.read():
            spread = 1.96 * math.sqrt(self._covariance)
            rmse = math.sqrt(self._sum_sq_error / self._count) if self._count else 0.0
            return FilterState(
                estimate=self._estimate,
                covariance=self._covariance,
                gain=self._gain,
                measurement_count=self._count,
                rmse=rmse,
                confidence_lower=self._estimate - spread,
                confidence_upper=self._estimate + spread,
            )

    def __repr__(self) -> str:
        s = self.state()
        return f"LatencyEstimator(estimate={s.estimate:.3f}, covariance={s.covariance:.3g})"

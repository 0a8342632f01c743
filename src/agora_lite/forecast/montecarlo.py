"""Monte Carlo forecasting of server load from recent samples.

predict_load() fits the simplest model that still looks like real
latency: a mean-reverting random walk around the historical mean,

    x_{t+1} = max(0, x_t + REVERSION * (mean - x_t) + N(0, std))

starting from the most recent sample. ``trials`` independent paths are
simulated ``hours_ahead`` steps forward, and each hour is summarised by
its mean and a percentile band (5th/95th by default) across paths.

Below ``min_history`` samples there is no honest forecast to make, and
the caller gets None back rather than numbers built on noise.

Paths are simulated as numpy arrays, one row per trial. With
``workers > 1`` the trials are split into chunks that each draw from a
child of one SeedSequence and run on a thread pool; numpy releases the
GIL inside its generators, and the aggregation (mean, percentile) does
not care in which order chunks finish.

MonteCarloSimulator wraps the same machinery for ad-hoc questions:
generic sampling, event probabilities with Wilson bounds, and Bayesian
A/B comparisons.
"""
from __future__ import annotations

import logging
import math
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Sequence

import numpy as np

from agora_lite.domain.errors import InvalidConfiguration

log = logging.getLogger(__name__)

MIN_HISTORY = 24
DEFAULT_TRIALS = 1000
MAX_TRIALS = 1_000_000
MAX_HOURS_AHEAD = 24 * 30
REVERSION = 0.1
Z_95 = 1.96


@dataclass(frozen=True, slots=True)
class LoadPrediction:
    """Per-hour forecast. Index 0 is one hour ahead."""
    means: tuple[float, ...]
    lower: tuple[float, ...]
    upper: tuple[float, ...]

    @property
    def hours(self) -> int:
        return len(self.means)

    def at(self, hour: int) -> float:
        """Mean forecast *hour* hours ahead (1-based)."""
        return self.means[self._index(hour)]

    def interval(self, hour: int) -> tuple[float, float]:
        idx = self._index(hour)
        return self.lower[idx], self.upper[idx]

    def _index(self, hour: int) -> int:
        if not 1 <= hour <= len(self.means):
            raise ValueError(f"hour must be in 1..{len(self.means)}, got {hour}")
        return hour - 1


def _check_trials(trials: int) -> None:
    if trials < 1:
        raise InvalidConfiguration(f"trials must be >= 1, got {trials}")
    if trials > MAX_TRIALS:
        raise InvalidConfiguration(f"trials must be <= {MAX_TRIALS}, got {trials}")


def _split(total: int, parts: int) -> list[int]:
    base, extra = divmod(total, parts)
    return [base + (1 if i < extra else 0) for i in range(parts) if base or i < extra]


def _simulate_paths(
    rng: np.random.Generator,
    start: float,
    mean: float,
    std: float,
    hours: int,
    trials: int,
) -> np.ndarray:
    shocks = rng.normal(0.0, std, size=(trials, hours))
    paths = np.empty((trials, hours))
    level = np.full(trials, start)
    for t in range(hours):
        level = np.maximum(0.0, level + REVERSION * (mean - level) + shocks[:, t])
        paths[:, t] = level
    return paths


def predict_load(
    history: Sequence[float],
    hours_ahead: int,
    trials: int = DEFAULT_TRIALS,
    *,
    seed: int | None = None,
    min_history: int = MIN_HISTORY,
    lower_percentile: float = 5.0,
    upper_percentile: float = 95.0,
    workers: int = 1,
) -> LoadPrediction | None:
    """Forecast the next *hours_ahead* hours from *history*.

    Returns None when ``len(history) < min_history``. Raises
    InvalidConfiguration for out-of-range horizons, trial counts,
    percentiles or worker counts.
    """
    if not 1 <= hours_ahead <= MAX_HOURS_AHEAD:
        raise InvalidConfiguration(f"hours_ahead must be in 1..{MAX_HOURS_AHEAD}, got {hours_ahead}")
    _check_trials(trials)
    if min_history < 1:
        raise InvalidConfiguration(f"min_history must be >= 1, got {min_history}")
    if not 0.0 <= lower_percentile <= upper_percentile <= 100.0:
        raise InvalidConfiguration(
            f"need 0 <= lower <= upper <= 100, got {lower_percentile}, {upper_percentile}"
        )
    if workers < 1:
        raise InvalidConfiguration(f"workers must be >= 1, got {workers}")

    data = np.asarray(history, dtype=float)
    if data.ndim != 1:
        raise ValueError("history must be a flat sequence of numbers")
    if data.size < min_history:
        log.info("load forecast skipped: %d samples, need %d", data.size, min_history)
        return None
    if not np.all(np.isfinite(data)):
        raise ValueError("history contains non-finite values")

    mean = float(data.mean())
    std = float(data.std())
    start = float(data[-1])

    if workers == 1:
        paths = _simulate_paths(np.random.default_rng(seed), start, mean, std, hours_ahead, trials)
    else:
        chunks = _split(trials, workers)
        streams = np.random.SeedSequence(seed).spawn(len(chunks))

        def run(job: tuple[np.random.SeedSequence, int]) -> np.ndarray:
            stream, count = job
            return _simulate_paths(np.random.default_rng(stream), start, mean, std, hours_ahead, count)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            paths = np.vstack(list(pool.map(run, zip(streams, chunks))))

    lower = np.percentile(paths, lower_percentile, axis=0)
    upper = np.percentile(paths, upper_percentile, axis=0)
    log.debug(
        "load forecast: %d samples, %d hours, %d trials, %d workers",
        data.size, hours_ahead, trials, workers,
    )
    return LoadPrediction(
        means=tuple(float(x) for x in paths.mean(axis=0)),
        lower=tuple(float(x) for x in lower),
        upper=tuple(float(x) for x in upper),
    )


# ---- general-purpose simulator ----------------------------------------


@dataclass(frozen=True, slots=True)
class SimulationResult:
    samples: np.ndarray     # sorted ascending
    mean: float
    std_dev: float
    median: float
    minimum: float
    maximum: float

    def percentile(self, p: float) -> float:
        return float(np.percentile(self.samples, p))

    def confidence_interval_95(self) -> tuple[float, float]:
        return self.percentile(2.5), self.percentile(97.5)


@dataclass(frozen=True, slots=True)
class ProbabilityEstimate:
    probability: float
    lower: float
    upper: float
    trials: int

    def is_significant(self) -> bool:
        """True when the interval excludes a coin flip."""
        return self.upper < 0.5 or self.lower > 0.5


@dataclass(frozen=True, slots=True)
class ABTestResult:
    control_rate: float
    treatment_rate: float
    observed_lift: float
    probability_treatment_better: float
    lift_lower: float
    lift_upper: float

    def is_significant(self) -> bool:
        p = self.probability_treatment_better
        return p > 0.95 or p < 0.05

    def summary(self) -> str:
        return (
            f"control {self.control_rate:.2%}, treatment {self.treatment_rate:.2%}, "
            f"lift {self.observed_lift:.2%} [{self.lift_lower:.2%}, {self.lift_upper:.2%}], "
            f"P(better) {self.probability_treatment_better:.1%}"
        )


def wilson_interval(successes: int, trials: int, z: float = Z_95) -> tuple[float, float]:
    """Two-sided Wilson score interval for a binomial proportion."""
    if trials <= 0:
        return 0.0, 0.0
    n = float(trials)
    p = successes / n
    denom = 1 + z * z / n
    center = (p + z * z / (2 * n)) / denom
    margin = z * math.sqrt((p * (1 - p) + z * z / (4 * n)) / n) / denom
    return max(0.0, center - margin), min(1.0, center + margin)


class MonteCarloSimulator:
    """Seedable sampler for one-off probabilistic questions.

    The generator is shared, so calls are serialised with a lock; use
    predict_load(workers=...) for parallel work.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._rng = np.random.default_rng(seed)
        self._lock = threading.Lock()

    def simulate(
        self, trials: int, sampler: Callable[[np.random.Generator], float]
    ) -> SimulationResult:
        """Draw *trials* values from ``sampler(rng)`` and summarise them."""
        _check_trials(trials)
        with self._lock:
            values = np.fromiter((sampler(self._rng) for _ in range(trials)), dtype=float, count=trials)
        values.sort()
        return SimulationResult(
            samples=values,
            mean=float(values.mean()),
            std_dev=float(values.std()),
            median=float(np.median(values)),
            minimum=float(values[0]),
            maximum=float(values[-1]),
        )

    def estimate_probability(
        self, trials: int, event: Callable[[np.random.Generator], bool]
    ) -> ProbabilityEstimate:
        _check_trials(trials)
        with self._lock:
            hits = sum(1 for _ in range(trials) if event(self._rng))
        lower, upper = wilson_interval(hits, trials)
        return ProbabilityEstimate(hits / trials, lower, upper, trials)

    def ab_test(
        self,
        control_successes: int,
        control_total: int,
        treatment_successes: int,
        treatment_total: int,
        simulations: int = 10_000,
    ) -> ABTestResult:
        """Compare two conversion rates through Beta(s + 1, f + 1) posteriors."""
        _check_trials(simulations)
        for successes, total in ((control_successes, control_total),
                                 (treatment_successes, treatment_total)):
            if total <= 0 or not 0 <= successes <= total:
                raise ValueError(f"need 0 <= successes <= total and total > 0, got {successes}/{total}")

        control_rate = control_successes / control_total
        treatment_rate = treatment_successes / treatment_total
        if control_rate > 0:
            observed_lift = (treatment_rate - control_rate) / control_rate
        else:
            observed_lift = math.inf if treatment_rate > 0 else 0.0

        with self._lock:
            control = self._rng.beta(
                control_successes + 1, control_total - control_successes + 1, size=simulations
            )
            treatment = self._rng.beta(
                treatment_successes + 1, treatment_total - treatment_successes + 1, size=simulations
            )
        lift = (treatment - control) / control
        return ABTestResult(
            control_rate=control_rate,
            treatment_rate=treatment_rate,
            observed_lift=observed_lift,
            probability_treatment_better=float(np.mean(treatment > control)),
            lift_lower=float(np.percentile(lift, 5)),
            lift_upper=float(np.percentile(lift, 95)),
        )

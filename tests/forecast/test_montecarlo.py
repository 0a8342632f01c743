"""Tests for Monte Carlo load forecasting and the general simulator."""
from __future__ import annotations

import logging
import math

import numpy as np
import pytest

from agora_lite.domain.errors import InvalidConfiguration
from agora_lite.forecast.montecarlo import (
    MAX_HOURS_AHEAD,
    MAX_TRIALS,
    MIN_HISTORY,
    LoadPrediction,
    MonteCarloSimulator,
    predict_load,
    wilson_interval,
)
from agora_lite.ranking.popularity import wilson_score


class TestPredictLoad:
    def test_short_history_returns_none(self, caplog):
        with caplog.at_level(logging.INFO, logger="agora_lite.forecast.montecarlo"):
            assert predict_load([50.0] * (MIN_HISTORY - 1), 12) is None
        assert any("skipped" in r.getMessage() for r in caplog.records)

    def test_empty_history_returns_none(self):
        assert predict_load([], 1) is None

    def test_shape(self, hourly_history):
        prediction = predict_load(hourly_history, 12, trials=500, seed=1)
        assert prediction.hours == 12
        assert len(prediction.lower) == len(prediction.upper) == 12

    def test_band_contains_mean_and_is_non_negative(self, hourly_history):
        prediction = predict_load(hourly_history, 24, trials=2000, seed=3)
        for hour in range(1, 25):
            lo, hi = prediction.interval(hour)
            assert 0.0 <= lo <= prediction.at(hour) <= hi

    def test_constant_history_is_flat(self):
        prediction = predict_load([50.0] * 30, 5, trials=100, seed=0)
        assert prediction.means == pytest.approx((50.0,) * 5)
        assert prediction.lower == pytest.approx((50.0,) * 5)
        assert prediction.upper == pytest.approx((50.0,) * 5)

    def test_reverts_toward_historical_mean(self):
        history = [100.0] * 47 + [200.0]
        prediction = predict_load(history, 48, trials=2000, seed=11)
        assert prediction.at(1) > prediction.at(48) + 50.0
        assert prediction.at(48) == pytest.approx(float(np.mean(history)), abs=10.0)

    def test_never_negative(self):
        history = [0.0, 30.0] * 20
        prediction = predict_load(history, 24, trials=1000, seed=5)
        assert min(prediction.lower) >= 0.0

    def test_seed_makes_it_reproducible(self, hourly_history):
        a = predict_load(hourly_history, 6, trials=300, seed=123)
        b = predict_load(hourly_history, 6, trials=300, seed=123)
        c = predict_load(hourly_history, 6, trials=300, seed=124)
        assert a == b
        assert a != c

    def test_parallel_workers(self, hourly_history):
        a = predict_load(hourly_history, 6, trials=1000, seed=9, workers=4)
        b = predict_load(hourly_history, 6, trials=1000, seed=9, workers=4)
        serial = predict_load(hourly_history, 6, trials=1000, seed=9)
        assert a == b
        for hour in range(1, 7):
            assert a.at(hour) == pytest.approx(serial.at(hour), rel=0.05)

    def test_more_workers_than_trials(self, hourly_history):
        prediction = predict_load(hourly_history, 3, trials=2, seed=1, workers=4)
        assert prediction.hours == 3

    def test_custom_min_history(self):
        assert predict_load([10.0] * 5, 2, min_history=5, seed=0) is not None

    @pytest.mark.parametrize(
        "hours, kwargs",
        [
            (0, {}),
            (MAX_HOURS_AHEAD + 1, {}),
            (6, {"trials": 0}),
            (6, {"trials": MAX_TRIALS + 1}),
            (6, {"min_history": 0}),
            (6, {"lower_percentile": 90.0, "upper_percentile": 10.0}),
            (6, {"upper_percentile": 101.0}),
            (6, {"workers": 0}),
        ],
    )
    def test_invalid_configuration(self, hourly_history, hours, kwargs):
        with pytest.raises(InvalidConfiguration):
            predict_load(hourly_history, hours, **kwargs)

    def test_non_finite_history(self):
        with pytest.raises(ValueError):
            predict_load([50.0] * 30 + [math.nan], 3)

    def test_nested_history(self):
        with pytest.raises(ValueError):
            predict_load([[1.0, 2.0]] * 30, 3)


class TestLoadPrediction:
    def test_hour_is_one_based(self):
        prediction = LoadPrediction(means=(1.0, 2.0), lower=(0.5, 1.5), upper=(1.5, 2.5))
        assert prediction.at(1) == 1.0
        assert prediction.interval(2) == (1.5, 2.5)
        with pytest.raises(ValueError):
            prediction.at(0)
        with pytest.raises(ValueError):
            prediction.at(3)


class TestSimulator:
    def test_simulate(self):
        sim = MonteCarloSimulator(seed=42)
        result = sim.simulate(5000, lambda rng: rng.normal(10.0, 2.0))
        assert result.mean == pytest.approx(10.0, abs=0.2)
        assert result.std_dev == pytest.approx(2.0, abs=0.2)
        assert list(result.samples) == sorted(result.samples)
        assert result.minimum <= result.median <= result.maximum
        lo, hi = result.confidence_interval_95()
        assert lo < result.mean < hi

    def test_trial_cap(self):
        sim = MonteCarloSimulator(seed=1)
        with pytest.raises(InvalidConfiguration):
            sim.simulate(MAX_TRIALS + 1, lambda rng: 0.0)
        with pytest.raises(InvalidConfiguration):
            sim.estimate_probability(0, lambda rng: True)

    def test_estimate_probability(self):
        sim = MonteCarloSimulator(seed=7)
        estimate = sim.estimate_probability(4000, lambda rng: rng.random() < 0.3)
        assert estimate.probability == pytest.approx(0.3, abs=0.03)
        assert estimate.lower < estimate.probability < estimate.upper
        assert estimate.trials == 4000
        assert estimate.is_significant()

    def test_ab_test_detects_lift(self):
        sim = MonteCarloSimulator(seed=3)
        result = sim.ab_test(100, 1000, 150, 1000)
        assert result.control_rate == pytest.approx(0.10)
        assert result.treatment_rate == pytest.approx(0.15)
        assert result.observed_lift == pytest.approx(0.5)
        assert result.probability_treatment_better > 0.95
        assert result.is_significant()
        assert result.lift_lower < result.observed_lift < result.lift_upper
        assert "P(better)" in result.summary()

    def test_ab_test_rejects_bad_counts(self):
        sim = MonteCarloSimulator(seed=3)
        with pytest.raises(ValueError):
            sim.ab_test(5, 0, 1, 10)
        with pytest.raises(ValueError):
            sim.ab_test(11, 10, 1, 10)

    def test_wilson_interval_matches_ranking(self):
        lower, upper = wilson_interval(90, 100)
        assert lower == pytest.approx(wilson_score(90, 100))
        assert lower < 0.9 < upper
        assert wilson_interval(0, 0) == (0.0, 0.0)

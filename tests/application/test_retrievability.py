"""Tests for the forgetting curve, interval modifier and fuzzed intervals."""

import random

import pytest

from seeyouagain.application.algorithm import (
    apply_fuzz,
    calculate_interval_modifier,
    forgetting_curve,
    get_fuzz_range,
    next_interval,
)
from seeyouagain.application.config import Parameters
from seeyouagain.domain.errors import ConfigurationError


class TestForgettingCurve:
    @pytest.mark.parametrize("stability", [0.01, 1.0, 10.0, 365.0])
    def test_no_elapsed_time_is_certain_recall(self, stability):
        assert forgetting_curve(0, stability) == 1.0

    @pytest.mark.parametrize("stability", [1.0, 4.0, 10.0, 100.0])
    def test_ninety_percent_at_stability(self, stability):
        assert forgetting_curve(stability, stability) == pytest.approx(0.9, abs=1e-7)

    def test_monotone_decay(self):
        values = [forgetting_curve(t, 10.0) for t in range(0, 200, 5)]
        assert all(a > b for a, b in zip(values, values[1:]))
        assert all(0 < v <= 1 for v in values)

    def test_higher_stability_retains_more(self):
        assert forgetting_curve(10, 20.0) > forgetting_curve(10, 5.0)

    def test_zero_stability_decays_instantly(self):
        assert forgetting_curve(1, 0) == 0.0


class TestIntervalModifier:
    def test_default_retention(self):
        assert calculate_interval_modifier(0.9) == pytest.approx(1.0)

    @pytest.mark.parametrize("retention", [0, -0.1, 1.01])
    def test_out_of_range(self, retention):
        with pytest.raises(ConfigurationError):
            calculate_interval_modifier(retention)


class TestFuzzRange:
    def test_band(self):
        # delta = 1 + 0.15 * 4.5 + 0.1 * 3 = 1.975
        assert get_fuzz_range(10, 0, 36500) == (8, 12)

    def test_elapsed_raises_lower_bound(self):
        assert get_fuzz_range(10, 9, 36500) == (10, 12)

    def test_capped_by_maximum_interval(self):
        min_ivl, max_ivl = get_fuzz_range(100, 0, 50)
        assert max_ivl == 50
        assert min_ivl <= max_ivl

    def test_lower_bound_at_least_two(self):
        min_ivl, _ = get_fuzz_range(3, 0, 36500)
        assert min_ivl >= 2


class TestApplyFuzz:
    def test_disabled_rounds_half_up(self, parameters):
        assert apply_fuzz(10.5, 0, parameters) == 11
        assert apply_fuzz(10.4, 0, parameters) == 10

    def test_short_intervals_not_fuzzed(self, fuzzed_parameters, fixed_random):
        assert apply_fuzz(2, 0, fuzzed_parameters, fixed_random(0.99)) == 2

    def test_band_edges(self, fuzzed_parameters, fixed_random):
        assert apply_fuzz(10, 0, fuzzed_parameters, fixed_random(0.0)) == 8
        assert apply_fuzz(10, 0, fuzzed_parameters, fixed_random(0.9999)) == 12

    def test_same_seed_same_result(self, fuzzed_parameters):
        a = apply_fuzz(40, 0, fuzzed_parameters, random.Random("1704110400000_1_0.0"))
        b = apply_fuzz(40, 0, fuzzed_parameters, random.Random("1704110400000_1_0.0"))
        assert a == b

    def test_never_exceeds_maximum(self, fixed_random):
        params = Parameters(enable_fuzz=True, maximum_interval=30)
        assert apply_fuzz(30, 0, params, fixed_random(0.9999)) <= 30


class TestNextInterval:
    @pytest.mark.parametrize("stability", [0.01, 0.4, 3.173, 15.7, 250.0, 1e6])
    @pytest.mark.parametrize("enable_fuzz", [False, True])
    def test_bounds(self, stability, enable_fuzz):
        params = Parameters(enable_fuzz=enable_fuzz, maximum_interval=365)
        interval = next_interval(stability, 0, params, random.Random("seed"))
        assert 1 <= interval <= 365

    def test_scales_with_retention(self):
        assert next_interval(10, 0, Parameters()) == 10
        assert next_interval(10, 0, Parameters(request_retention=0.8)) > 10

    def test_tiny_stability_is_one_day(self, parameters):
        assert next_interval(0.01, 0, parameters) == 1

    @pytest.mark.parametrize("enable_fuzz", [False, True])
    def test_capped_at_maximum(self, enable_fuzz):
        params = Parameters(enable_fuzz=enable_fuzz, maximum_interval=365)
        assert next_interval(1e6, 0, params, random.Random("seed")) <= 365
        assert next_interval(1e6, 0, Parameters(maximum_interval=365)) == 365

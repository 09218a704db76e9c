"""Monte Carlo sanity checks for conversion rules."""

import random
from dataclasses import replace

import pytest

from dice_core import (
    ConversionEntry,
    ReduceBranch,
    TossRange,
    best_conversion,
    build_round,
    create_die,
    simulate_many,
    simulate_once,
)


def rule_for(source, target, fair=False):
    return best_conversion(create_die(source), create_die(target), fair)


class TestSimulateOnce:
    def test_single_throw_rule(self):
        rule = rule_for(6, 2)
        label, draws = simulate_once(rule, random.Random(7))
        assert label in ("H", "T")
        assert draws == 1

    def test_draws_are_whole_rounds(self):
        rule = rule_for(2, 3)
        rng = random.Random(3)
        for _ in range(50):
            label, draws = simulate_once(rule, rng)
            assert label in rule.target_die
            assert draws % 2 == 0 and draws >= 2

    def test_one_face_target(self):
        assert simulate_once(rule_for(6, 1), random.Random(0)) == ("1", 0)

    def test_same_seed_same_result(self):
        rule = rule_for(2, 6)
        assert simulate_once(rule, random.Random(11)) == simulate_once(rule, random.Random(11))


class TestSimulateMany:
    def test_mean_draws_matches_expectation(self):
        rule = rule_for(2, 6)
        summary = simulate_many(rule, runs=20000, seed=42)
        assert summary.total_runs == 20000
        assert summary.mean_draws == pytest.approx(rule.expectation, abs=0.1)
        assert summary.max_frequency_deviation < 0.02
        assert sum(summary.label_frequencies.values()) == pytest.approx(1.0)

    def test_fair_rule_with_biased_coin(self):
        rule = rule_for(2, 2, fair=True)
        summary = simulate_many(rule, runs=20000, seed=1, face_weights=[3, 1])
        assert summary.max_frequency_deviation < 0.03
        assert summary.mean_draws == pytest.approx(2 / (2 * 0.75 * 0.25), abs=0.3)

    def test_unfair_rule_shows_bias(self):
        rule = rule_for(6, 2)
        summary = simulate_many(rule, runs=20000, seed=5, face_weights=[1, 1, 1, 1, 1, 5])
        assert summary.label_frequencies["T"] == pytest.approx(0.7, abs=0.02)

    def test_rejects_non_positive_runs(self):
        with pytest.raises(ValueError):
            simulate_many(rule_for(6, 2), runs=0)


class TestUnresolvableRounds:
    """A single fair-coin throw can only ever repeat, so playback must refuse it."""

    def test_simulate_once_rejects_round(self):
        rule = build_round(create_die(2), create_die(2), True, 1)
        with pytest.raises(ValueError, match="never resolves"):
            simulate_once(rule, random.Random(0))

    def test_simulate_many_rejects_round(self):
        rule = build_round(create_die(2), create_die(2), True, 1)
        with pytest.raises(ValueError, match="never resolves"):
            simulate_many(rule, runs=10)

    def test_rejects_nested_round(self):
        inner = build_round(create_die(2), create_die(2), True, 1)
        base = rule_for(2, 4)
        handover = ConversionEntry(tosses=TossRange(faces=(), ids=()), branch=ReduceBranch(inner))
        outer = replace(base, entries=(handover,) + base.entries)
        with pytest.raises(ValueError, match="never resolves"):
            simulate_once(outer, random.Random(0))

"""Tests for the conversion rule builder and the throw-count search."""

import math

import pytest

from dice_core import (
    ConversionSolver,
    ReduceBranch,
    RepeatBranch,
    TerminalBranch,
    create_die,
)


def walk(rule):
    yield rule
    for sub_rule in rule.sub_rules():
        yield from walk(sub_rule)


def best(source, target, fair=False):
    return ConversionSolver().best_round(create_die(source), create_die(target), fair)


class TestEndToEnd:
    def test_six_to_coin(self):
        rule = best(6, 2)
        assert rule.throws == 1
        assert rule.expectation == 1.0
        assert [entry.tosses.ids for entry in rule.entries] == [(0, 1, 2), (3, 4, 5)]
        assert [entry.branch for entry in rule.entries] == [
            TerminalBranch("H"),
            TerminalBranch("T"),
        ]

    def test_identity_conversion(self):
        rule = best(6, 6)
        assert rule.throws == 1
        assert rule.expectation == 1.0
        assert all(isinstance(entry.branch, TerminalBranch) for entry in rule.entries)
        assert len(rule.entries) == 6

    def test_coin_to_six(self):
        rule = best(2, 6)
        assert rule.throws == 3
        assert 3.0 < rule.expectation < 4.0
        assert rule.expectation == pytest.approx(11 / 3)

    def test_coin_to_three_repeats(self):
        rule = best(2, 3)
        assert rule.throws == 2
        assert rule.expectation == pytest.approx(8 / 3)
        assert rule.repeat_size == 1
        assert isinstance(rule.entries[-1].branch, RepeatBranch)
        assert rule.entries[-1].tosses.ids == (3,)

    def test_six_to_four_reduces_leftovers(self):
        rule = best(6, 4)
        assert rule.throws == 1
        assert rule.expectation == pytest.approx(4 / 3)
        kinds = [type(entry.branch) for entry in rule.entries]
        assert kinds == [TerminalBranch] * 4 + [ReduceBranch] * 2
        assert [sub.target_die for sub in rule.sub_rules()] == [("1", "2"), ("3", "4")]

    def test_one_face_target(self):
        rule = best(6, 1)
        assert rule.throws == 0
        assert rule.entries == ()
        assert rule.expectation == 0.0


class TestFairnessRequired:
    def test_coin_von_neumann(self):
        rule = best(2, 2, fair=True)
        assert rule.throws == 2
        assert rule.expectation == 4.0
        assert rule.repeat_size == 2
        assert rule.entries[0].branch == TerminalBranch("H")
        assert rule.entries[0].tosses.faces == (("H", "T"),)
        assert rule.entries[1].tosses.faces == (("T", "H"),)

    def test_six_to_coin(self):
        rule = best(6, 2, fair=True)
        assert rule.throws == 2
        assert rule.expectation == pytest.approx(2.4)

    def test_single_throw_coin_never_resolves(self):
        rule = ConversionSolver().build_round(create_die(2), create_die(2), True, 1)
        assert math.isinf(rule.expectation)
        assert rule.repeat_size == 2

    def test_sub_rules_keep_fairness_flag(self):
        for rule in walk(best(3, 8, fair=True)):
            assert rule.fairness_required


class TestInvariants:
    PAIRS = [(2, 3), (2, 5), (2, 7), (3, 2), (3, 8), (4, 6), (5, 12), (6, 4), (6, 10), (10, 6)]

    @pytest.mark.parametrize("fair", [False, True])
    @pytest.mark.parametrize("source, target", PAIRS)
    def test_expectation_lower_bound(self, source, target, fair):
        for rule in walk(best(source, target, fair)):
            assert rule.expectation >= rule.throws
            assert (rule.expectation == 0.0) == (len(rule.target_die) == 1)

    @pytest.mark.parametrize("fair", [False, True])
    @pytest.mark.parametrize("source, target", PAIRS)
    def test_cover_property(self, source, target, fair):
        for rule in walk(best(source, target, fair)):
            ids = sorted(i for entry in rule.entries for i in entry.tosses.ids)
            assert ids == list(range(len(rule.source_die) ** rule.throws))

    @pytest.mark.parametrize("source, target", PAIRS)
    def test_search_matches_exhaustive_scan(self, source, target):
        source_die, target_die = create_die(source), create_die(target)
        solver = ConversionSolver()
        chosen = solver.best_round(source_die, target_die, False)
        start = ConversionSolver.minimum_throws(source, target)
        for throws in range(start, start + 4):
            candidate = solver.build_round(source_die, target_die, False, throws)
            assert chosen.expectation <= candidate.expectation

    @pytest.mark.parametrize("fair", [False, True])
    @pytest.mark.parametrize("source, target", [(2, 6), (3, 7), (6, 4), (2, 12)])
    def test_cache_does_not_change_results(self, source, target, fair):
        source_die, target_die = create_die(source), create_die(target)
        cached = ConversionSolver(use_cache=True).best_round(source_die, target_die, fair)
        uncached = ConversionSolver(use_cache=False).best_round(source_die, target_die, fair)
        assert cached == uncached

    def test_cache_avoids_rebuilding(self):
        cached = ConversionSolver()
        cached.best_round(create_die(2), create_die(12), False)
        uncached = ConversionSolver(use_cache=False)
        uncached.best_round(create_die(2), create_die(12), False)
        assert 0 < cached.rounds_built <= uncached.rounds_built


class TestSolverHelpers:
    @pytest.mark.parametrize(
        "source, target, expected",
        [(2, 2, 1), (2, 3, 2), (2, 6, 3), (2, 8, 3), (6, 36, 2), (6, 37, 3), (10, 6, 1)],
    )
    def test_minimum_throws(self, source, target, expected):
        assert ConversionSolver.minimum_throws(source, target) == expected

    def test_rejects_single_face_source(self):
        with pytest.raises(ValueError):
            ConversionSolver().best_round(("X",), create_die(6), False)

    def test_lookup_routes_toss_ids(self):
        rule = best(2, 3)
        assert rule.lookup(0) == TerminalBranch("1")
        assert isinstance(rule.lookup(3), RepeatBranch)
        with pytest.raises(KeyError):
            rule.lookup(4)

    def test_rejects_empty_target(self):
        with pytest.raises(ValueError):
            ConversionSolver().best_round(create_die(6), (), False)

    def test_clear_resets_state(self):
        solver = ConversionSolver()
        solver.best_round(create_die(2), create_die(6), False)
        solver._clear()
        assert solver.rounds_built == 0

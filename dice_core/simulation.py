"""Monte Carlo playback of conversion rules with a seeded random source."""

from __future__ import annotations

import random
from bisect import bisect_left
from collections import Counter
from collections.abc import Sequence
from itertools import accumulate
from typing import Optional

import numpy as np

from .data import DEFAULT_SIMULATION_SEED, normalize_face_weights
from .models import Branch, ConversionRule, RepeatBranch, SimulationSummary, TerminalBranch

RoutingTable = dict[int, tuple[Branch, ...]]


def _cumulative_weights(weights: Optional[tuple[float, ...]]) -> Optional[tuple[float, ...]]:
    if weights is None:
        return None
    cumulative = list(accumulate(weights))
    cumulative[-1] = 1.0
    return tuple(cumulative)


def _routes(rule: ConversionRule, routing: RoutingTable) -> tuple[Branch, ...]:
    """Return the branch for every toss id of ``rule``, building it on first use."""

    table = routing.get(id(rule))
    if table is None:
        branches: list[Optional[Branch]] = [None] * rule.outcome_count
        for entry in rule.entries:
            for toss_id in entry.tosses.ids:
                branches[toss_id] = entry.branch
        table = routing[id(rule)] = tuple(branches)  # type: ignore[arg-type]
    return table


def _throw(rng: random.Random, faces: int, cumulative: Optional[tuple[float, ...]]) -> int:
    if cumulative is None:
        return rng.randrange(faces)
    pick = bisect_left(cumulative, rng.random())
    return pick if pick < faces else faces - 1


def _check_resolves(rule: ConversionRule) -> None:
    """Raise if ``rule`` or any rule it hands over to can never finish."""

    if not rule.resolves:
        raise ValueError(
            f"The {rule.throws}-throw round for {' '.join(rule.target_die)} never resolves"
        )
    for sub_rule in rule.sub_rules():
        _check_resolves(sub_rule)


def _play(
    rule: ConversionRule,
    rng: random.Random,
    cumulative: Optional[tuple[float, ...]],
    routing: RoutingTable,
) -> tuple[str, int]:
    draws = 0
    current = rule
    faces = len(rule.source_die)
    while True:
        if not current.entries:
            return current.target_die[0], draws
        toss_id = 0
        for _ in range(current.throws):
            toss_id = toss_id * faces + _throw(rng, faces, cumulative)
        draws += current.throws
        branch = _routes(current, routing)[toss_id]
        if isinstance(branch, TerminalBranch):
            return branch.label, draws
        if not isinstance(branch, RepeatBranch):
            current = branch.rule


def simulate_once(
    rule: ConversionRule,
    rng: random.Random,
    face_weights: Optional[Sequence[float]] = None,
) -> tuple[str, int]:
    """Carry out ``rule`` once and return the label reached and the throws spent.

    Parameters
    ----------
    rule:
        Conversion rule to follow.
    rng:
        Deterministic random number generator.
    face_weights:
        Optional relative weights of the source faces (fair when omitted).
    """

    _check_resolves(rule)
    weights = normalize_face_weights(face_weights, len(rule.source_die))
    return _play(rule, rng, _cumulative_weights(weights), {})


def simulate_many(
    rule: ConversionRule,
    runs: int = 10000,
    seed: int = DEFAULT_SIMULATION_SEED,
    face_weights: Optional[Sequence[float]] = None,
) -> SimulationSummary:
    """Run ``rule`` repeatedly and summarise throws spent and labels returned."""

    if runs <= 0:
        raise ValueError("The number of simulation runs must be positive.")
    _check_resolves(rule)

    rng = random.Random(seed)
    weights = normalize_face_weights(face_weights, len(rule.source_die))
    cumulative = _cumulative_weights(weights)
    routing: RoutingTable = {}

    draws = np.empty(runs, dtype=np.int64)
    labels: Counter[str] = Counter()
    for run in range(runs):
        label, spent = _play(rule, rng, cumulative, routing)
        draws[run] = spent
        labels[label] += 1

    frequencies = np.array([labels[label] for label in rule.target_die], dtype=float) / runs
    uniform = 1.0 / len(rule.target_die)
    return SimulationSummary(
        mean_draws=float(draws.mean()),
        std_draws=float(draws.std()),
        label_frequencies={
            label: float(value) for label, value in zip(rule.target_die, frequencies)
        },
        max_frequency_deviation=float(np.abs(frequencies - uniform).max()),
        total_runs=runs,
    )

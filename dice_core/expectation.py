"""Expected-throw formulas, the size-only analytical model, and exact playback."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from functools import lru_cache
from typing import Optional

from .data import normalize_face_weights
from .models import (
    ConversionRule,
    ExpectedValue,
    OutcomePartition,
    ReduceBranch,
    RepeatBranch,
    TerminalBranch,
    TossRange,
)
from .tosses import divisors


def closed_form_expectation(
    total: int,
    throws: int,
    resolved: Iterable[tuple[float, float]],
    repeat_size: float,
) -> float:
    """Solve the self-referential expectation of one round.

    With ``E = sum(size_i / a * (throws + E_i)) + size_b / a * (throws + E)``
    the unknown ``E`` appears on both sides; solving for it gives
    ``(sum(size_i * (throws + E_i)) + size_b * throws) / (a - size_b)``.

    Parameters
    ----------
    total:
        Outcome mass of the round (``a``).
    throws:
        Throws spent per round.
    resolved:
        ``(size_i, E_i)`` for every branch that does not repeat the round.
    repeat_size:
        Outcome mass that restarts the round (``size_b``).

    Returns
    -------
    float
        The expectation, or ``inf`` when no outcome leaves the round.

    Raises
    ------
    RuntimeError
        If the repeat mass exceeds the total, which no partition can produce.
    """

    if repeat_size > total:
        raise RuntimeError(
            f"Repeat branch holds {repeat_size} of {total} outcomes; partition is inconsistent"
        )
    if repeat_size == total:
        return math.inf
    weighted = 0.0
    for size, expectation in resolved:
        weighted += size * (throws + expectation)
    return (weighted + repeat_size * throws) / (total - repeat_size)


# ---- Size-only analytical model ---------------------------------------------


def partition_outcomes(total: int, faces: int) -> list[OutcomePartition]:
    """Split ``total`` equiprobable outcomes over divisors of ``faces``.

    Example: ``(101, 39)`` gives ``2*39 + 1*13 + 3*3 + 1*1`` worth of outcomes.
    """

    partitions: list[OutcomePartition] = []
    for divisor in divisors(faces):
        count = total // divisor
        if count:
            partitions.append(
                OutcomePartition(
                    size=divisor * count,
                    sub_faces=faces // divisor,
                    count=count,
                    divisor=divisor,
                )
            )
            total -= divisor * count
    return partitions


def expected_value(source_faces: int, target_faces: int, throws: int) -> ExpectedValue:
    """Return the analytical expectation of a fair round with ``throws`` throws."""

    if target_faces == 1:
        return ExpectedValue(throws=throws, expected=0.0, desc="")

    total = source_faces**throws
    resolved: list[tuple[float, float]] = []
    repeat_size = 0
    steps: list[str] = []
    for partition in partition_outcomes(total, target_faces):
        if partition.sub_faces == target_faces:
            repeat_size = partition.size
        elif partition.sub_faces == 1:
            resolved.append((partition.size, 0.0))
        else:
            sub = best_expected_value(source_faces, partition.sub_faces)
            resolved.append((partition.size, sub.expected))
        steps.append(f"{partition.count}*{partition.divisor}")

    return ExpectedValue(
        throws=throws,
        expected=closed_form_expectation(total, throws, resolved, repeat_size),
        desc="+".join(steps),
    )


@lru_cache(maxsize=None)
def best_expected_value(source_faces: int, target_faces: int) -> ExpectedValue:
    """Search the throw count that minimises the fair-source expectation."""

    if source_faces < 2:
        raise ValueError("The source die needs at least 2 faces.")
    if target_faces < 1:
        raise ValueError("The target die needs at least 1 face.")
    if target_faces == 1:
        return ExpectedValue(throws=0, expected=0.0, desc="")

    throws = 1
    while source_faces**throws < target_faces:
        throws += 1

    best: Optional[ExpectedValue] = None
    while True:
        candidate = expected_value(source_faces, target_faces, throws)
        if best is None or candidate.expected < best.expected:
            best = candidate
        if throws + 1 >= best.expected:
            return best
        throws += 1


def fairing_expectation(k: int) -> float:
    """Return the expected throws of a possibly biased ``k``-face die per fair ``k!`` result.

    Throwing until all ``k`` faces have been seen and recording their order
    yields one of ``k!`` equiprobable permutations. With
    ``a_i = i/k * prod_{j=k+1-i}^{k-1} j/k`` the closed form is
    ``E_k = (k!/k^(k-1) + sum a_i * (1 + i)) / (1 - sum a_i)``.
    """

    if k < 2:
        raise ValueError("Fairing needs a die with at least 2 faces.")

    numerator = 1.0
    for i in range(2, k + 1):
        numerator *= i / k
    denominator = 1.0
    for i in range(1, k):
        product_term = 1.0
        for j in range(k + 1 - i, k):
            product_term *= j / k
        a_i = i / k * product_term
        numerator += a_i * (1 + i)
        denominator -= a_i
    return numerator / denominator


def fairing_estimate(n: int, k: int) -> tuple[float, float, float, float]:
    """Estimate the cost of making an ``n``-face die fair through a ``k``-face stage.

    Returns ``(n -> k, k fairing, k! -> n, product)``.
    """

    n_to_k = best_expected_value(n, k).expected
    k_fairing = fairing_expectation(k)
    k_factorial_to_n = best_expected_value(math.factorial(k), n).expected
    return n_to_k, k_fairing, k_factorial_to_n, n_to_k * k_fairing * k_factorial_to_n


# ---- Exact playback under a weighted source die -----------------------------


def _range_probability(
    tosses: TossRange,
    face_index: dict[str, int],
    weights: Optional[Sequence[float]],
    total: int,
) -> float:
    if weights is None:
        return len(tosses) / total
    probability = 0.0
    for faces in tosses.faces:
        term = 1.0
        for face in faces:
            term *= weights[face_index[face]]
        probability += term
    return probability


def outcome_distribution(
    rule: ConversionRule,
    face_weights: Optional[Sequence[float]] = None,
) -> dict[str, float]:
    """Return the exact probability of each target label.

    Parameters
    ----------
    rule:
        Conversion rule to play back.
    face_weights:
        Relative weights of the source faces; ``None`` means a fair die.
    """

    weights = normalize_face_weights(face_weights, len(rule.source_die))
    return _distribution(rule, weights)


def _distribution(
    rule: ConversionRule,
    weights: Optional[tuple[float, ...]],
) -> dict[str, float]:
    if not rule.entries:
        return {rule.target_die[0]: 1.0}
    if not rule.resolves:
        raise ValueError(
            f"The {rule.throws}-throw round for {' '.join(rule.target_die)} never resolves"
        )

    face_index = {face: index for index, face in enumerate(rule.source_die)}
    total = rule.outcome_count
    result = {label: 0.0 for label in rule.target_die}
    repeat_probability = 0.0
    for entry in rule.entries:
        probability = _range_probability(entry.tosses, face_index, weights, total)
        branch = entry.branch
        if isinstance(branch, RepeatBranch):
            repeat_probability += probability
        elif isinstance(branch, TerminalBranch):
            result[branch.label] += probability
        else:
            for label, sub_probability in _distribution(branch.rule, weights).items():
                result[label] += probability * sub_probability

    scale = 1.0 / (1.0 - repeat_probability)
    return {label: value * scale for label, value in result.items()}


def expected_draws(
    rule: ConversionRule,
    face_weights: Optional[Sequence[float]] = None,
) -> float:
    """Return the exact expected number of source throws under ``face_weights``."""

    weights = normalize_face_weights(face_weights, len(rule.source_die))
    return _expected_draws(rule, weights)


def _expected_draws(rule: ConversionRule, weights: Optional[tuple[float, ...]]) -> float:
    if not rule.entries:
        return 0.0

    face_index = {face: index for index, face in enumerate(rule.source_die)}
    total = rule.outcome_count
    resolved: list[tuple[float, float]] = []
    repeat_probability = 0.0
    for entry in rule.entries:
        probability = _range_probability(entry.tosses, face_index, weights, total)
        branch = entry.branch
        if isinstance(branch, RepeatBranch):
            repeat_probability += probability
        elif isinstance(branch, ReduceBranch):
            resolved.append((probability, _expected_draws(branch.rule, weights)))
        else:
            resolved.append((probability, 0.0))
    return closed_form_expectation(1, rule.throws, resolved, repeat_probability)

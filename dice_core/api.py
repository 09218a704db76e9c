"""High-level entry points used by the command line and callers."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from time import perf_counter
from typing import Optional

from .data import DEFAULT_SIMULATION_SEED, create_die, normalize_face_weights, validate_die
from .expectation import best_expected_value
from .models import ConversionRule, ExpectedValue, SimulationSummary
from .simulation import simulate_many
from .solver import ConversionSolver

logger = logging.getLogger(__name__)


def best_conversion(
    source_die: Sequence[str],
    target_die: Sequence[str],
    fairness_required: bool,
) -> ConversionRule:
    """Return the rule simulating ``target_die`` with the fewest expected throws.

    Parameters
    ----------
    source_die:
        Labels of the die that is actually thrown (at least two faces).
    target_die:
        Labels of the die to simulate (at least one face).
    fairness_required:
        Assume the source die may be biased and guarantee a uniform result anyway.

    Raises
    ------
    ValueError
        If either die is too small or repeats a label. Also raised when one round
        would enumerate more tosses than ``get_max_round_outcomes()`` allows
        (``MAX_ROUND_OUTCOMES_DEFAULT`` unless reconfigured).
    """

    source = validate_die(source_die, minimum_faces=2, role="source die")
    target = validate_die(target_die, minimum_faces=1, role="target die")
    return ConversionSolver().best_round(source, target, fairness_required)


def build_round(
    source_die: Sequence[str],
    target_die: Sequence[str],
    fairness_required: bool,
    throws: int,
) -> ConversionRule:
    """Return the rule that throws the source die exactly ``throws`` times per round.

    Raises
    ------
    ValueError
        If a die is invalid or ``throws`` is not positive.
    """

    source = validate_die(source_die, minimum_faces=2, role="source die")
    target = validate_die(target_die, minimum_faces=2, role="target die")
    if throws < 1:
        raise ValueError(f"A round needs at least one throw, received {throws}")
    return ConversionSolver().build_round(source, target, fairness_required, throws)


@dataclass
class ConversionComputationResult:
    """Bundle containing the rule and derived reporting artefacts."""

    rule: ConversionRule
    analytic: Optional[ExpectedValue]
    compute_seconds: float
    simulation: Optional[SimulationSummary]


def compute_conversion(
    source_faces: int,
    target_faces: int,
    fairness_required: bool = False,
    simulation_runs: int = 0,
    simulation_seed: int = DEFAULT_SIMULATION_SEED,
    face_weights: Optional[Sequence[float]] = None,
) -> ConversionComputationResult:
    """Compute the best conversion between conventionally labelled dice.

    Parameters
    ----------
    source_faces:
        Face count of the die that is thrown.
    target_faces:
        Face count of the die to simulate.
    fairness_required:
        Guarantee a uniform result even for a biased source die.
    simulation_runs:
        Number of Monte Carlo runs to execute (0 disables simulation).
    simulation_seed:
        Seed forwarded to the RNG used for simulations.
    face_weights:
        Optional source face weights used by the simulation.

    Returns
    -------
    ConversionComputationResult
        The rule, the size-only analytical cross-check (fair source only),
        timing, and the optional simulation summary.
    """

    if source_faces < 2:
        raise ValueError(f"The source die needs at least 2 faces, received {source_faces}")
    if target_faces < 1:
        raise ValueError(f"The target die needs at least 1 face, received {target_faces}")
    if simulation_runs < 0:
        raise ValueError(
            f"The number of simulation runs cannot be negative, received {simulation_runs}"
        )
    # Validate before spending time on the solver.
    normalize_face_weights(face_weights, source_faces)

    source = create_die(source_faces)
    target = create_die(target_faces)

    compute_start = perf_counter()
    rule = best_conversion(source, target, fairness_required)
    compute_seconds = perf_counter() - compute_start
    logger.info(
        "Converted %d -> %d faces (fair=%s) in %.3fs: %d throws per round, E=%.4f",
        source_faces,
        target_faces,
        fairness_required,
        compute_seconds,
        rule.throws,
        rule.expectation,
    )

    analytic: Optional[ExpectedValue] = None
    if not fairness_required:
        analytic = best_expected_value(source_faces, target_faces)

    simulation: Optional[SimulationSummary] = None
    if simulation_runs > 0:
        simulation = simulate_many(
            rule,
            runs=simulation_runs,
            seed=simulation_seed,
            face_weights=face_weights,
        )

    return ConversionComputationResult(
        rule=rule,
        analytic=analytic,
        compute_seconds=compute_seconds,
        simulation=simulation,
    )

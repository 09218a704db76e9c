"""Plan the fewest expected throws of one die needed to simulate another."""

from .api import (
    ConversionComputationResult,
    best_conversion,
    build_round,
    compute_conversion,
)
from .data import (
    COIN_FACES,
    DEFAULT_SIMULATION_SEED,
    MAX_ROUND_OUTCOMES_DEFAULT,
    Die,
    create_die,
    get_max_round_outcomes,
    set_max_round_outcomes,
    validate_die,
)
from .expectation import (
    best_expected_value,
    closed_form_expectation,
    expected_draws,
    expected_value,
    fairing_estimate,
    fairing_expectation,
    outcome_distribution,
    partition_outcomes,
)
from .models import (
    Branch,
    ChanceClass,
    ConversionEntry,
    ConversionRule,
    ExpectedValue,
    OutcomePartition,
    PartitionEntry,
    ReduceBranch,
    RepeatBranch,
    SimulationSummary,
    TerminalBranch,
    Toss,
    TossRange,
)
from .presentation import conversion_tables, conversion_text, toss_range_text
from .simulation import simulate_many, simulate_once
from .solver import ConversionSolver
from .tosses import divisors, enumerate_tosses, partition_tosses

__all__ = [
    "Branch",
    "COIN_FACES",
    "ChanceClass",
    "ConversionComputationResult",
    "ConversionEntry",
    "ConversionRule",
    "ConversionSolver",
    "DEFAULT_SIMULATION_SEED",
    "Die",
    "ExpectedValue",
    "MAX_ROUND_OUTCOMES_DEFAULT",
    "OutcomePartition",
    "PartitionEntry",
    "ReduceBranch",
    "RepeatBranch",
    "SimulationSummary",
    "TerminalBranch",
    "Toss",
    "TossRange",
    "best_conversion",
    "best_expected_value",
    "build_round",
    "closed_form_expectation",
    "compute_conversion",
    "conversion_tables",
    "conversion_text",
    "create_die",
    "divisors",
    "enumerate_tosses",
    "expected_draws",
    "expected_value",
    "fairing_estimate",
    "fairing_expectation",
    "get_max_round_outcomes",
    "outcome_distribution",
    "partition_outcomes",
    "partition_tosses",
    "set_max_round_outcomes",
    "simulate_many",
    "simulate_once",
    "toss_range_text",
    "validate_die",
]

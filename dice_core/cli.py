"""Command line front-end: print the conversion script for a pair of dice."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence
from typing import Optional

from .api import compute_conversion
from .data import DEFAULT_SIMULATION_SEED
from .expectation import fairing_estimate
from .presentation import conversion_tables, conversion_text

FAIRING_STAGES: tuple[int, ...] = (2, 3)


def parse_weights(raw: str) -> list[float]:
    """Parse a comma separated list of face weights."""

    try:
        return [float(part) for part in raw.split(",") if part.strip()]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid face weights '{raw}'") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dice-convert",
        description="Find the fewest expected throws of one die needed to simulate another.",
    )
    parser.add_argument("source", type=int, help="Number of faces of the die you own.")
    parser.add_argument("target", type=int, help="Number of faces of the die to simulate.")
    parser.add_argument(
        "--fair",
        action="store_true",
        help="Guarantee an equally likely result even if the source die is biased.",
    )
    parser.add_argument("--tables", action="store_true", help="Also print lookup tables.")
    parser.add_argument(
        "--simulate",
        type=int,
        default=0,
        metavar="RUNS",
        help="Play the rule RUNS times and report the observed averages.",
    )
    parser.add_argument("--seed", type=int, default=DEFAULT_SIMULATION_SEED)
    parser.add_argument(
        "--weights",
        type=parse_weights,
        default=None,
        help="Comma separated source face weights used by --simulate.",
    )
    parser.add_argument(
        "--fairing",
        action="store_true",
        help="Print the estimated cost of making the source die fair via small dice.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.weights is not None and args.simulate <= 0:
        parser.error("--weights only applies together with --simulate")
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        result = compute_conversion(
            args.source,
            args.target,
            fairness_required=args.fair,
            simulation_runs=args.simulate,
            simulation_seed=args.seed,
            face_weights=args.weights,
        )
    except ValueError as exc:
        parser.error(str(exc))

    print(conversion_text(result.rule))

    if args.tables:
        for number, table in enumerate(conversion_tables(result.rule), start=1):
            print()
            print(f"Rule {number}")
            print(table.to_string())

    if result.analytic is not None:
        print()
        print(
            f"Analytical check: {result.analytic.expected:.4f} throws "
            f"({result.analytic.throws} per round, {result.analytic.desc})"
        )

    if result.simulation is not None:
        sim = result.simulation
        print()
        print(f"Simulated {sim.total_runs} runs: {sim.mean_draws:.3f} throws on average")
        for label, frequency in sim.label_frequencies.items():
            print(f"  {label}: {frequency * 100:.2f}%")
        print(f"  largest deviation from uniform: {sim.max_frequency_deviation * 100:.2f}%")

    if args.fairing:
        print()
        for k in FAIRING_STAGES:
            n_to_k, k_fairing, back, total = fairing_estimate(args.source, k)
            print(f"k={k}, E={n_to_k:.1f} * {k_fairing:.1f} * {back:.1f}={total:.1f}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())

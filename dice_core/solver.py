"""Recursive solver that builds minimum-expectation conversion rules."""

from __future__ import annotations

import logging
from typing import Optional

from .data import Die
from .expectation import closed_form_expectation
from .models import (
    Branch,
    ChanceClass,
    ConversionEntry,
    ConversionRule,
    ReduceBranch,
    RepeatBranch,
    TerminalBranch,
)
from .tosses import enumerate_tosses, partition_tosses

logger = logging.getLogger(__name__)

RuleKey = tuple[Die, Die, bool]


class ConversionSolver:
    """Search for the conversion rule with the fewest expected source throws."""

    def __init__(self, use_cache: bool = True) -> None:
        """Initialise the solver.

        Parameters
        ----------
        use_cache:
            Reuse rules and enumerations already computed by this instance.
            Results are identical either way; only the running time changes.
        """
        self.use_cache = use_cache
        self._rule_cache: dict[RuleKey, ConversionRule] = {}
        self._toss_cache: dict[tuple[Die, bool, int], tuple[ChanceClass, ...]] = {}
        self._rounds_built = 0

    def _clear(self) -> None:
        """Drop every memoised rule and enumeration."""

        self._rule_cache.clear()
        self._toss_cache.clear()
        self._rounds_built = 0

    @property
    def rounds_built(self) -> int:
        """Return how many rounds were built since the last reset."""

        return self._rounds_built

    @staticmethod
    def minimum_throws(source_faces: int, target_faces: int) -> int:
        """Return the fewest throws whose outcome count reaches ``target_faces``."""

        throws = 1
        outcomes = source_faces
        while outcomes < target_faces:
            outcomes *= source_faces
            throws += 1
        return throws

    def _tosses(self, die: Die, assume_unfair: bool, throws: int) -> tuple[ChanceClass, ...]:
        if not self.use_cache:
            return enumerate_tosses(die, assume_unfair, throws)
        key = (die, assume_unfair, throws)
        cached = self._toss_cache.get(key)
        if cached is None:
            cached = self._toss_cache[key] = enumerate_tosses(die, assume_unfair, throws)
        return cached

    def build_round(
        self,
        source_die: Die,
        target_die: Die,
        fairness_required: bool,
        throws: int,
    ) -> ConversionRule:
        """Build the rule that throws ``source_die`` exactly ``throws`` times per round.

        A biased source die only keeps permutations of the same faces
        equiprobable, so the enumeration is unfair-aware exactly when the
        result has to be fair.
        """

        classes = self._tosses(source_die, fairness_required, throws)
        partition = partition_tosses(classes, target_die)

        entries: list[ConversionEntry] = []
        resolved: list[tuple[float, float]] = []
        repeat_size = 0
        for item in partition:
            size = len(item.tosses)
            branch: Branch
            if len(item.sub_die) == len(target_die):
                branch = RepeatBranch()
                repeat_size += size
            elif len(item.sub_die) == 1:
                branch = TerminalBranch(label=item.sub_die[0])
                resolved.append((size, 0.0))
            else:
                sub_rule = self.best_round(source_die, item.sub_die, fairness_required)
                branch = ReduceBranch(rule=sub_rule)
                resolved.append((size, sub_rule.expectation))
            entries.append(ConversionEntry(tosses=item.tosses, branch=branch))

        total = len(source_die) ** throws
        expectation = closed_form_expectation(total, throws, resolved, repeat_size)
        self._rounds_built += 1
        logger.debug(
            "Round %d -> %d faces (fair=%s) with %d throws: %d entries, %d repeat, E=%.6f",
            len(source_die),
            len(target_die),
            fairness_required,
            throws,
            len(entries),
            repeat_size,
            expectation,
        )
        return ConversionRule(
            source_die=source_die,
            target_die=target_die,
            fairness_required=fairness_required,
            throws=throws,
            entries=tuple(entries),
            expectation=expectation,
        )

    def best_round(
        self,
        source_die: Die,
        target_die: Die,
        fairness_required: bool,
    ) -> ConversionRule:
        """Return the rule with the lowest expectation over all throw counts.

        Every round costs at least ``throws`` throws, so once ``throws + 1``
        reaches the best expectation no longer round can do better. Ties keep
        the smaller throw count.

        Raises
        ------
        ValueError
            If the source die has fewer than two faces or the target none.
        """

        if len(source_die) < 2:
            raise ValueError("The source die needs at least 2 faces.")
        if len(target_die) < 1:
            raise ValueError("The target die needs at least 1 face.")

        if len(target_die) == 1:
            return ConversionRule(
                source_die=source_die,
                target_die=target_die,
                fairness_required=fairness_required,
                throws=0,
            )

        key = (source_die, target_die, fairness_required)
        if self.use_cache:
            cached = self._rule_cache.get(key)
            if cached is not None:
                return cached

        throws = self.minimum_throws(len(source_die), len(target_die))
        best: Optional[ConversionRule] = None
        while True:
            candidate = self.build_round(source_die, target_die, fairness_required, throws)
            if best is None or candidate.expectation < best.expectation:
                best = candidate
            if throws + 1 >= best.expectation:
                break
            throws += 1

        logger.debug(
            "Best rule %d -> %d faces (fair=%s): %d throws, E=%.6f",
            len(source_die),
            len(target_die),
            fairness_required,
            best.throws,
            best.expectation,
        )
        if self.use_cache:
            self._rule_cache[key] = best
        return best

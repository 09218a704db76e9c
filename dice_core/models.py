"""Dataclasses shared across the enumeration, solver, and reporting modules."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Union

from .data import Die


@dataclass(frozen=True)
class Toss:
    """One sequence of throws and its mixed-radix id (first throw most significant)."""

    faces: tuple[str, ...]
    id: int


@dataclass(frozen=True)
class TossRange:
    """Tosses kept as parallel face/id tuples with ids in ascending order."""

    faces: tuple[tuple[str, ...], ...]
    ids: tuple[int, ...]

    def __len__(self) -> int:
        return len(self.ids)

    def __contains__(self, toss_id: object) -> bool:
        return toss_id in self.ids

    def tosses(self) -> Iterator[Toss]:
        for faces, toss_id in zip(self.faces, self.ids):
            yield Toss(faces=faces, id=toss_id)

    def runs(self) -> list[tuple[int, int]]:
        """Return inclusive index spans covering runs of consecutive ids."""

        spans: list[tuple[int, int]] = []
        start = 0
        for index in range(1, len(self.ids) + 1):
            if index == len(self.ids) or self.ids[index] != self.ids[index - 1] + 1:
                spans.append((start, index - 1))
                start = index
        return spans


# Members of a chance class are mutually equiprobable.
ChanceClass = TossRange


@dataclass(frozen=True)
class PartitionEntry:
    """Tosses assigned to a contiguous slice of the target die."""

    tosses: TossRange
    sub_die: Die


@dataclass(frozen=True)
class TerminalBranch:
    """The toss range resolves directly to ``label``."""

    label: str


@dataclass(frozen=True)
class ReduceBranch:
    """The toss range hands over to a rule for a strictly smaller die."""

    rule: ConversionRule


@dataclass(frozen=True)
class RepeatBranch:
    """The toss range restarts the enclosing rule."""


Branch = Union[TerminalBranch, ReduceBranch, RepeatBranch]


@dataclass(frozen=True)
class ConversionEntry:
    """A toss range paired with the branch taken when it comes up."""

    tosses: TossRange
    branch: Branch


@dataclass(frozen=True)
class ConversionRule:
    """One round of throws plus the expected total throws from here on.

    Attributes
    ----------
    source_die:
        Die being thrown.
    target_die:
        Die being simulated.
    fairness_required:
        Whether the result must be uniform even for a biased source die.
    throws:
        Source throws per round (``0`` for a one-face target).
    entries:
        Complete, non-overlapping cover of the round's toss ids.
    expectation:
        Expected number of source throws until a label is returned.
    """

    source_die: Die
    target_die: Die
    fairness_required: bool
    throws: int
    entries: tuple[ConversionEntry, ...] = field(default=())
    expectation: float = 0.0

    @property
    def outcome_count(self) -> int:
        """Return the number of distinct tosses in one round."""

        if self.throws == 0:
            return 1
        return len(self.source_die) ** self.throws

    @property
    def repeat_size(self) -> int:
        """Return how many tosses restart this rule."""

        return sum(
            len(entry.tosses)
            for entry in self.entries
            if isinstance(entry.branch, RepeatBranch)
        )

    @property
    def resolves(self) -> bool:
        """Return False when every toss restarts the round, so it can never finish."""

        return not self.entries or self.repeat_size < self.outcome_count

    def sub_rules(self) -> list[ConversionRule]:
        """Return the reduction rules in entry order."""

        return [
            entry.branch.rule
            for entry in self.entries
            if isinstance(entry.branch, ReduceBranch)
        ]

    def lookup(self, toss_id: int) -> Branch:
        """Return the branch taken for ``toss_id``.

        Raises
        ------
        KeyError
            If the id is outside this round's outcome space.
        """

        for entry in self.entries:
            if toss_id in entry.tosses:
                return entry.branch
        raise KeyError(toss_id)


@dataclass(frozen=True)
class OutcomePartition:
    """Size-only view of one greedy allocation step.

    ``count`` outcomes go to each of ``divisor`` sub-dice with ``sub_faces`` faces.
    """

    size: int
    sub_faces: int
    count: int
    divisor: int


@dataclass(frozen=True)
class ExpectedValue:
    """Best analytical expectation found for a pair of face counts."""

    throws: int
    expected: float
    desc: str


@dataclass
class SimulationSummary:
    """Aggregated Monte Carlo metrics for a conversion rule."""

    mean_draws: float
    std_draws: float
    label_frequencies: dict[str, float]
    max_frequency_deviation: float
    total_runs: int

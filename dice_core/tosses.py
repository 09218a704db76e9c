"""Toss enumeration and the greedy divisor-based toss partitioner."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from itertools import product

from .data import Die, get_max_round_outcomes
from .models import ChanceClass, PartitionEntry, TossRange

logger = logging.getLogger(__name__)


def divisors(n: int) -> list[int]:
    """Return every divisor of ``n`` in descending order."""

    if n < 1:
        raise ValueError(f"Divisors are only defined for positive integers, received {n}")
    return [d for d in range(n, 0, -1) if n % d == 0]


def enumerate_tosses(die: Die, assume_unfair: bool, throws: int) -> tuple[ChanceClass, ...]:
    """Enumerate every toss of ``die`` thrown ``throws`` times, grouped by chance.

    Parameters
    ----------
    die:
        Face labels of the die being thrown.
    assume_unfair:
        When set, tosses are only equiprobable if they are permutations of the
        same faces. Otherwise every toss shares a single class.
    throws:
        Number of throws per toss.

    Returns
    -------
    tuple[ChanceClass, ...]
        Classes in order of first appearance; members keep ascending id order.

    Raises
    ------
    ValueError
        If ``throws`` is not positive or the round is larger than the configured limit.
    """

    if throws < 1:
        raise ValueError(f"A round needs at least one throw, received {throws}")
    total = len(die) ** throws
    limit = get_max_round_outcomes()
    if total > limit:
        raise ValueError(
            f"{len(die)} faces thrown {throws} times gives {total} outcomes, "
            f"above the configured limit of {limit}"
        )

    grouped: dict[tuple[int, ...], tuple[list[tuple[str, ...]], list[int]]] = {}
    # product() walks the digits like an odometer, so ids come out ascending.
    for toss_id, digits in enumerate(product(range(len(die)), repeat=throws)):
        key = tuple(sorted(digits)) if assume_unfair else ()
        bucket = grouped.get(key)
        if bucket is None:
            bucket = grouped[key] = ([], [])
        bucket[0].append(tuple(die[digit] for digit in digits))
        bucket[1].append(toss_id)

    logger.debug(
        "Enumerated %d tosses of a %d-face die into %d chance classes",
        total,
        len(die),
        len(grouped),
    )
    return tuple(
        ChanceClass(faces=tuple(faces), ids=tuple(ids)) for faces, ids in grouped.values()
    )


def partition_tosses(
    classes: Sequence[ChanceClass],
    target_die: Die,
) -> list[PartitionEntry]:
    """Allocate equiprobable tosses to slices of ``target_die``, biggest divisor first.

    Each pending class hands ``k = len(class) // d`` tosses to each of the ``d``
    sub-dice, so every sub-die receives the same probability mass. Whatever a
    divisor cannot split evenly waits for the next, smaller one. Divisor 1
    maps the leftovers onto the whole target die, which the caller treats as
    "repeat this round".
    """

    pending = [(list(chance.faces), list(chance.ids)) for chance in classes]
    entries: list[PartitionEntry] = []
    face_count = len(target_die)

    for divisor in divisors(face_count):
        sub_length = face_count // divisor
        sub_dice = [
            target_die[i * sub_length:(i + 1) * sub_length] for i in range(divisor)
        ]
        assigned: list[list[tuple[int, tuple[str, ...]]]] = [[] for _ in range(divisor)]

        remaining: list[tuple[list[tuple[str, ...]], list[int]]] = []
        for faces, ids in pending:
            k = len(ids) // divisor
            if k:
                for i in range(divisor):
                    for j in range(i * k, (i + 1) * k):
                        assigned[i].append((ids[j], faces[j]))
                used = divisor * k
                faces, ids = faces[used:], ids[used:]
            if ids:
                remaining.append((faces, ids))
        pending = remaining

        for sub_die, tosses in zip(sub_dice, assigned):
            if not tosses:
                continue
            tosses.sort()
            entries.append(
                PartitionEntry(
                    tosses=TossRange(
                        faces=tuple(faces for _, faces in tosses),
                        ids=tuple(toss_id for toss_id, _ in tosses),
                    ),
                    sub_die=sub_die,
                )
            )

    return entries

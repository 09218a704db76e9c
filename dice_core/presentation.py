"""Human-readable renderings of conversion rules: step scripts and lookup tables."""

from __future__ import annotations

from itertools import product

import pandas as pd

from .models import ConversionRule, ReduceBranch, RepeatBranch, TerminalBranch, TossRange


def _throw_caption(throws: int) -> str:
    return "once" if throws == 1 else f"{throws} times"


def toss_range_text(tosses: TossRange) -> str:
    """Describe a toss range compactly, collapsing runs of consecutive ids.

    Runs of three or more become ``first - last``; a pair is listed as is.
    """

    parts: list[str] = []
    for start, end in tosses.runs():
        first = " ".join(tosses.faces[start])
        if end == start:
            parts.append(first)
        elif end == start + 1:
            parts.extend([first, " ".join(tosses.faces[end])])
        else:
            parts.append(f"{first} - {' '.join(tosses.faces[end])}")
    return ", ".join(parts)


def conversion_text(rule: ConversionRule) -> str:
    """Return step-by-step instructions for carrying out ``rule`` by hand."""

    lines = [
        f"Convert {' '.join(rule.source_die)} to {' '.join(rule.target_die)}"
        f"{'' if rule.fairness_required else ' without'}"
        " guaranteeing the result to be equally likely",
        f"You will have to throw it {rule.expectation:.1f} times on average",
    ]
    step = 1

    def add_steps(current: ConversionRule, prefix: str) -> None:
        nonlocal step
        if not current.entries:
            lines.append(f"{prefix}{step}. The result is always {current.target_die[0]}")
            step += 1
            return

        first_step = step
        lines.append(f"{prefix}{step}. Throw it {_throw_caption(current.throws)}")
        step += 1
        lines.append(f"{prefix}{step}. Find the result in the following table:")
        step += 1

        for entry in current.entries:
            label = f"{prefix}  {toss_range_text(entry.tosses)} =>"
            branch = entry.branch
            if isinstance(branch, TerminalBranch):
                lines.append(f"{label} return {branch.label}")
            elif isinstance(branch, RepeatBranch):
                lines.append(f"{label} repeat from step {first_step}")
            else:
                lines.append(f"{label} execute the following")
                add_steps(branch.rule, prefix + "    ")

    add_steps(rule, "")
    return "\n".join(lines)


def conversion_tables(rule: ConversionRule) -> list[pd.DataFrame]:
    """Return one lookup table per distinct rule reachable from ``rule``.

    Rows are keyed by the first half of the throws and columns by the rest.
    A cell holds either the final label or ``Rule N`` pointing at the N-th
    table (1-based); a cell pointing at its own table means "throw again".
    """

    rules = [rule]
    tables: list[pd.DataFrame] = []
    index = 0
    while index < len(rules):
        tables.append(_conversion_table(rules[index], rules))
        index += 1
    return tables


def _rule_number(target: ConversionRule, rules: list[ConversionRule]) -> int:
    for position, known in enumerate(rules):
        if known.target_die == target.target_die:
            return position + 1
    rules.append(target)
    return len(rules)


def _conversion_table(rule: ConversionRule, rules: list[ConversionRule]) -> pd.DataFrame:
    caption = f"Throw {_throw_caption(rule.throws)}"
    if not rule.entries:
        frame = pd.DataFrame([[rule.target_die[0]]], index=[""], columns=[""])
        frame.index.name = "No throw needed"
        return frame

    column_throws = rule.throws // 2
    row_throws = rule.throws - column_throws
    column_labels = [" ".join(faces) for faces in product(rule.source_die, repeat=column_throws)]
    row_labels = [" ".join(faces) for faces in product(rule.source_die, repeat=row_throws)]
    width = len(column_labels)

    cells = [["" for _ in column_labels] for _ in row_labels]
    for entry in rule.entries:
        branch = entry.branch
        if isinstance(branch, TerminalBranch):
            value = branch.label
        elif isinstance(branch, ReduceBranch):
            value = f"Rule {_rule_number(branch.rule, rules)}"
        else:
            value = f"Rule {_rule_number(rule, rules)}"
        for toss_id in entry.tosses.ids:
            cells[toss_id // width][toss_id % width] = value

    frame = pd.DataFrame(cells, index=row_labels, columns=column_labels)
    frame.index.name = caption
    return frame

"""Die construction helpers, validation, and module-level configuration."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Final, Optional

Die = tuple[str, ...]

COIN_FACES: Final[Die] = ("H", "T")

# A single round enumerates every toss, so its size is bounded.
MAX_ROUND_OUTCOMES_DEFAULT: Final[int] = 1 << 20
_MAX_ROUND_OUTCOMES: int = MAX_ROUND_OUTCOMES_DEFAULT

DEFAULT_SIMULATION_SEED: Final[int] = 42


def set_max_round_outcomes(limit: int) -> None:
    """Update the largest number of tosses a single round may enumerate.

    Parameters
    ----------
    limit:
        New upper bound for ``faces ** throws``.

    Raises
    ------
    ValueError
        If the limit is smaller than two outcomes.
    """

    if limit < 2:
        raise ValueError("The round outcome limit must be at least 2.")
    global _MAX_ROUND_OUTCOMES
    _MAX_ROUND_OUTCOMES = int(limit)


def get_max_round_outcomes() -> int:
    """Return the currently configured round outcome limit."""

    return _MAX_ROUND_OUTCOMES


def create_die(face_count: int) -> Die:
    """Return the conventional labels for a die with ``face_count`` faces.

    A two-face die is a coin (``H``/``T``); anything else is numbered from 1.
    """

    if face_count < 1:
        raise ValueError(f"A die needs at least one face, received {face_count}")
    if face_count == 2:
        return COIN_FACES
    return tuple(str(value) for value in range(1, face_count + 1))


def validate_die(faces: Sequence[str], minimum_faces: int = 1, role: str = "die") -> Die:
    """Coerce ``faces`` to a die tuple and check it is usable.

    Parameters
    ----------
    faces:
        Face labels in die order.
    minimum_faces:
        Smallest accepted face count.
    role:
        Name used in error messages ("source die", "target die").

    Raises
    ------
    ValueError
        If there are too few faces or a label repeats.
    """

    if isinstance(faces, str):
        raise ValueError(f"The {role} must be a sequence of labels, not a single string")
    die = tuple(str(face) for face in faces)
    if len(die) < minimum_faces:
        raise ValueError(
            f"The {role} needs at least {minimum_faces} faces, received {len(die)}"
        )
    if len(set(die)) != len(die):
        raise ValueError(f"The {role} has duplicate face labels: {' '.join(die)}")
    return die


def normalize_face_weights(
    weights: Optional[Sequence[float]],
    face_count: int,
) -> Optional[tuple[float, ...]]:
    """Return weights scaled to sum to one, or ``None`` for a fair die.

    Raises
    ------
    ValueError
        If the weight count does not match the die or a weight is not positive.
    """

    if weights is None:
        return None
    values = tuple(float(weight) for weight in weights)
    if len(values) != face_count:
        raise ValueError(
            f"Expected {face_count} face weights, received {len(values)}"
        )
    if any(weight <= 0.0 for weight in values):
        raise ValueError("Face weights must all be positive.")
    total = sum(values)
    return tuple(weight / total for weight in values)

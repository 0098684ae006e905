"""Linear-with-saturation mapping from available capacity to a score."""

from collections.abc import Mapping
from dataclasses import dataclass

from ..quantity import (
    MIB,
    MILLI_PER_CPU,
    ResourceDimension,
    ResourceName,
    truncating_div,
)


@dataclass(frozen=True)
class ScoreProfile:
    """Score scale for one resource dimension.

    Attributes:
        max_score: Score reached at saturation.
        max_capacity_reference: Available amount, in reference units, at
            which the score saturates.
        unit_divisor: Base units per reference unit (e.g. 1000 milli-CPU
            per CPU).
    """

    max_score: float
    max_capacity_reference: float
    unit_divisor: int = 1


DEFAULT_SCORE_PROFILES: Mapping[ResourceName, ScoreProfile] = {
    # 100 free CPUs saturate the score.
    ResourceDimension.CPU.value: ScoreProfile(
        max_score=100,
        max_capacity_reference=100,
        unit_divisor=MILLI_PER_CPU,
    ),
    # 1 TiB of free memory, measured in MiB.
    ResourceDimension.MEMORY.value: ScoreProfile(
        max_score=100,
        max_capacity_reference=1024 * 1024,
        unit_divisor=MIB,
    ),
}


def normalize(available: int, profile: ScoreProfile) -> int:
    """Map available capacity onto the profile's score scale.

    The available amount is first converted to reference units, truncating
    toward zero. Above the reference the score saturates at ``max_score``;
    otherwise it is interpolated linearly from 0 and truncated. A negative
    amount (over-commitment) yields a negative score, which is returned
    as is.

    Args:
        available: Allocatable minus requested, in base units.
        profile: Score scale of the dimension.

    Returns:
        Integer score.
    """
    amount = truncating_div(available, profile.unit_divisor)
    if amount > profile.max_capacity_reference:
        return int(profile.max_score)
    return int(profile.max_score / profile.max_capacity_reference * amount)

"""Scoring policy configuration and named presets."""

import pydantic

DEFAULT_PRESET = "placement"


class ScoringConfig(pydantic.BaseModel):
    """Immutable request accounting policy for one scoring pass."""

    model_config = pydantic.ConfigDict(frozen=True)

    use_non_zero_defaults: bool = pydantic.Field(
        False,
        description="Substitute 100m CPU / 200Mi memory for absent requests",
    )
    enable_overhead: bool = pydantic.Field(
        True,
        description="Add pod overhead to each workload's request",
    )
    enable_ephemeral_storage_isolation: bool = pydantic.Field(
        True,
        description="Count ephemeral-storage requests at all",
    )


# Cluster placement scoring: requests are taken as declared.
PLACEMENT_PRESET = ScoringConfig(use_non_zero_defaults=False, enable_overhead=True)

# Scheduler-style accounting: best-effort containers still occupy a share.
SCHEDULER_PRESET = ScoringConfig(use_non_zero_defaults=True, enable_overhead=True)

PRESETS: dict[str, ScoringConfig] = {
    "placement": PLACEMENT_PRESET,
    "scheduler": SCHEDULER_PRESET,
}


def get_preset(name: str) -> ScoringConfig:
    """Look up a named preset.

    Raises:
        ValueError: If no preset has that name.
    """
    try:
        return PRESETS[name]
    except KeyError:
        msg = f"Unknown scoring preset: {name!r} (expected one of {sorted(PRESETS)})"
        raise ValueError(msg) from None

"""Cluster availability scoring pass.

Composes the allocatable and request aggregators with the score normalizer
over one snapshot of the cluster.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

import structlog

from .quantity import ResourceDimension, ResourceName, resource_name
from .scoring import (
    DEFAULT_SCORE_PROFILES,
    PLACEMENT_PRESET,
    ScoreProfile,
    ScoringConfig,
    normalize,
    sum_allocatable,
    sum_requests,
)
from .snapshot import SnapshotProvider

logger = structlog.get_logger(__name__)

DEFAULT_DIMENSIONS: tuple[ResourceDimension, ...] = (
    ResourceDimension.CPU,
    ResourceDimension.MEMORY,
)


@dataclass(frozen=True)
class ResourceScore:
    """Outcome of scoring one resource dimension.

    Amounts are in the dimension's base unit; ``available`` is negative
    when the cluster is over-committed.
    """

    resource: ResourceName
    allocatable: int
    requested: int
    available: int
    score: int


class ClusterScorer:
    """Scores the spare capacity of one cluster per resource dimension.

    Each call lists nodes and workloads once from the injected provider and
    holds no state between calls, so repeated calls over an unchanged
    cluster return identical results.
    """

    def __init__(
        self,
        provider: SnapshotProvider,
        config: ScoringConfig = PLACEMENT_PRESET,
        profiles: Mapping[ResourceName, ScoreProfile] = DEFAULT_SCORE_PROFILES,
    ):
        """Initialize the scorer.

        Args:
            provider: Source of node and workload snapshots.
            config: Request accounting policy.
            profiles: Score scale per resource name.
        """
        self._provider = provider
        self._config = config
        self._profiles = profiles

    @property
    def config(self) -> ScoringConfig:
        return self._config

    def _profile_for(self, name: ResourceName) -> ScoreProfile:
        try:
            return self._profiles[name]
        except KeyError:
            msg = f"No score profile configured for resource {name!r}"
            raise ValueError(msg) from None

    def compute_report(
        self,
        dimensions: Iterable[ResourceDimension | str] = DEFAULT_DIMENSIONS,
    ) -> list[ResourceScore]:
        """Score each requested dimension against one cluster snapshot.

        Every dimension must have a score profile. The check runs before the
        provider is queried, so a missing profile is a configuration error
        rather than an outcome of the snapshot.

        Args:
            dimensions: Resources to score.

        Returns:
            One ResourceScore per dimension, in the order given.

        Raises:
            SnapshotUnavailable: Propagated unchanged from the provider.
            ValueError: If a dimension has no score profile.
        """
        names = [resource_name(d) for d in dimensions]
        profiles = {name: self._profile_for(name) for name in names}

        nodes = self._provider.list_schedulable_nodes()
        workloads = self._provider.list_workloads()

        report = []
        for name in names:
            allocatable = sum_allocatable(nodes, name)
            requested = sum_requests(workloads, name, self._config)
            available = allocatable - requested
            score = normalize(available, profiles[name])
            logger.debug(
                "Scored resource",
                resource=name,
                allocatable=allocatable,
                requested=requested,
                available=available,
                score=score,
            )
            report.append(
                ResourceScore(
                    resource=name,
                    allocatable=allocatable,
                    requested=requested,
                    available=available,
                    score=score,
                ),
            )

        logger.info(
            "Computed cluster scores",
            node_count=len(nodes),
            workload_count=len(workloads),
            scores={r.resource: r.score for r in report},
        )
        return report

    def compute_scores(
        self,
        dimensions: Sequence[ResourceDimension | str] = DEFAULT_DIMENSIONS,
    ) -> dict[ResourceName, int]:
        """Return the score of each dimension keyed by resource name.

        Only CPU and memory have default profiles; scoring any other
        resource requires passing ``profiles`` to the constructor.

        Raises:
            SnapshotUnavailable: Propagated unchanged from the provider.
            ValueError: If a dimension has no score profile.
        """
        return {r.resource: r.score for r in self.compute_report(dimensions)}
